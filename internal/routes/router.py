"""Internal routes aggregator.

Routes in this module are mounted at root level next to the job API and
serve only the k8s liveness and readiness probes.
"""

from fastapi import APIRouter

from internal.routes import probes

internal_router = APIRouter()

# K8s probe endpoints
internal_router.include_router(probes.router)
