import asyncio
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from common.core.config import Settings, settings as default_settings
from common.core.constants import MonitorFailurePolicy
from common.core.telemetry import get_logger
from common.providers.cluster.interface import ClusterClientInterface
from packages.jobs.models.domain.monitor import MonitorRecord, MonitorState
from packages.jobs.services.lifecycle_monitor import LifecycleMonitor

logger = get_logger(__name__)

RunKey = Tuple[str, str]


class MonitorRegistry:
    """Tracks the lifecycle monitor task of every in-flight run.

    Runs are keyed by ``(namespace, job_name)``. Finished monitors move to a
    bounded history so their outcome can still be queried.
    """

    def __init__(
        self,
        cluster: ClusterClientInterface,
        poll_interval: float = 5.0,
        grace_period: float = 30.0,
        failure_policy: MonitorFailurePolicy = MonitorFailurePolicy.RETAIN,
        not_found_threshold: int = 3,
        history_size: int = 256,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.cluster = cluster
        self.poll_interval = poll_interval
        self.grace_period = grace_period
        self.failure_policy = failure_policy
        self.not_found_threshold = not_found_threshold
        self.history_size = history_size
        self._sleep = sleep
        self._active: Dict[RunKey, Tuple[LifecycleMonitor, asyncio.Task]] = {}
        self._history: "OrderedDict[RunKey, MonitorRecord]" = OrderedDict()
        self._closed = False

    @classmethod
    def from_settings(
        cls, cluster: ClusterClientInterface, settings: Settings = default_settings
    ) -> "MonitorRegistry":
        return cls(
            cluster,
            poll_interval=settings.monitor_poll_interval_seconds,
            grace_period=settings.monitor_grace_period_seconds,
            failure_policy=settings.monitor_failure_policy,
            not_found_threshold=settings.monitor_not_found_threshold,
            history_size=settings.monitor_history_size,
        )

    @property
    def active_count(self) -> int:
        return len(self._active)

    def start(self, namespace: str, job_name: str) -> MonitorRecord:
        """Spawn a monitor for a run unless one is already watching it."""
        key = (namespace, job_name)
        if key in self._active:
            return self._active[key][0].record

        record = MonitorRecord(
            name=job_name, namespace=namespace, started_at=datetime.now(timezone.utc)
        )
        if self._closed:
            logger.warning(f"Registry is shutting down, not monitoring job {job_name}")
            record.state = MonitorState.CANCELLED
            record.finished_at = record.started_at
            self._remember(key, record)
            return record

        monitor = LifecycleMonitor(
            self.cluster,
            record,
            poll_interval=self.poll_interval,
            grace_period=self.grace_period,
            failure_policy=self.failure_policy,
            not_found_threshold=self.not_found_threshold,
            sleep=self._sleep,
        )
        task = asyncio.create_task(monitor.run(), name=f"monitor:{namespace}/{job_name}")
        self._active[key] = (monitor, task)
        task.add_done_callback(lambda t: self._on_done(key, t))
        return record

    def get(self, namespace: str, job_name: str) -> Optional[MonitorRecord]:
        key = (namespace, job_name)
        if key in self._active:
            return self._active[key][0].record
        return self._history.get(key)

    def snapshot(self) -> List[MonitorRecord]:
        """In-flight monitors first, then finished ones, oldest first."""
        active = [monitor.record for monitor, _ in self._active.values()]
        return active + list(self._history.values())

    async def stop(self, namespace: str, job_name: str) -> bool:
        """Cancel the monitor of one run. Returns False if none is in flight."""
        entry = self._active.get((namespace, job_name))
        if entry is None:
            return False

        _, task = entry
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        logger.info(f"Unregistered monitor for job {namespace}/{job_name}")
        return True

    async def shutdown(self, timeout: float = 10.0) -> None:
        """Cancel every monitor and wait up to ``timeout`` seconds for them to exit."""
        self._closed = True
        tasks = [task for _, task in self._active.values()]
        if not tasks:
            return

        logger.info(f"Cancelling {len(tasks)} job monitor(s)...")
        for task in tasks:
            task.cancel()
        _, pending = await asyncio.wait(tasks, timeout=timeout)
        if pending:
            logger.warning(f"{len(pending)} job monitor(s) did not stop within {timeout}s")

    def _on_done(self, key: RunKey, task: asyncio.Task) -> None:
        entry = self._active.pop(key, None)
        if entry is None:
            return

        record = entry[0].record
        if task.cancelled():
            # Cancelled before the monitor got to run
            if not record.state.is_terminal:
                record.state = MonitorState.CANCELLED
                record.finished_at = datetime.now(timezone.utc)
        elif task.exception() is not None:
            logger.error(
                f"Monitor for job {key[0]}/{key[1]} crashed", exc_info=task.exception()
            )
            record.state = MonitorState.CRASHED
            record.error = str(task.exception())
            record.finished_at = datetime.now(timezone.utc)
        self._remember(key, record)

    def _remember(self, key: RunKey, record: MonitorRecord) -> None:
        self._history.pop(key, None)
        self._history[key] = record
        while len(self._history) > self.history_size:
            self._history.popitem(last=False)
