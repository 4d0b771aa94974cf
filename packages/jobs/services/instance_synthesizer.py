"""
Template-to-instance transformation.

Turns a job fetched from the cluster into a creation-ready copy with a fresh
name, cleared server-assigned identity fields and the caller's overrides.
"""

import copy
import random
import time
from typing import Callable, Optional

from kubernetes.client import V1EnvVar, V1Job, V1ObjectMeta

from common.core.constants import JOB_NAME_LABEL
from common.core.exceptions import TemplateMissingContainerError
from packages.jobs.models.domain.job import TriggerRequest

# Random suffix is drawn from [0, RUN_SUFFIX_RANGE)
RUN_SUFFIX_RANGE = 10000

_rng = random.SystemRandom()


def generate_run_name(
    template_name: str,
    clock: Callable[[], float] = time.time,
    rng: Optional[random.Random] = None,
) -> str:
    """Build ``{template}-run-{unixSeconds}-{random}``."""
    suffix = (rng or _rng).randrange(RUN_SUFFIX_RANGE)
    return f"{template_name}-run-{int(clock())}-{suffix}"


def synthesize(
    template: V1Job,
    request: TriggerRequest,
    name_factory: Callable[[str], str] = generate_run_name,
) -> V1Job:
    """
    Produce a new job specification from a template and caller overrides.

    The template is deep-copied and never modified. Only the first container
    receives env/args overrides, and each override replaces the template's
    value wholesale.

    Args:
        template: Job previously fetched from the cluster
        request: Trigger request carrying the overrides
        name_factory: Builds the run name from the template name

    Returns:
        V1Job ready to be submitted

    Raises:
        TemplateMissingContainerError: overrides were requested but the pod
            spec has no containers
    """
    job = copy.deepcopy(template)

    pod_spec = job.spec.template.spec if job.spec and job.spec.template else None
    containers = (pod_spec.containers or []) if pod_spec else []
    if (request.env_vars or request.args) and not containers:
        raise TemplateMissingContainerError(
            f"Job {request.job_name} has no containers to apply overrides to"
        )

    new_name = name_factory(request.job_name)
    labels = {JOB_NAME_LABEL: new_name}

    # Reset metadata the API server assigns or would reject on create
    if job.metadata is None:
        job.metadata = V1ObjectMeta()
    job.metadata.name = new_name
    job.metadata.generate_name = None
    job.metadata.namespace = request.namespace
    job.metadata.resource_version = None
    job.metadata.uid = None
    job.metadata.creation_timestamp = None
    job.metadata.managed_fields = None
    job.metadata.labels = labels
    job.status = None

    # Selector is generated from the new pod labels
    job.spec.selector = None

    if job.spec.template.metadata is None:
        job.spec.template.metadata = V1ObjectMeta()
    job.spec.template.metadata.name = new_name
    job.spec.template.metadata.generate_name = None
    job.spec.template.metadata.labels = dict(labels)

    if request.env_vars:
        containers[0].env = [
            V1EnvVar(name=key, value=value) for key, value in request.env_vars.items()
        ]

    if request.args:
        containers[0].args = list(request.args)

    return job
