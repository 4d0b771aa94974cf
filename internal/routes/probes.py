"""Kubernetes probe endpoints.

Mounted at root level, outside the job API, so probes hitting the pod IP
directly do not show up in the OpenAPI schema.
"""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter(tags=["internal"])


@router.get("/healthz", include_in_schema=False)
async def healthz():
    """Liveness probe - is the process alive?"""
    return {"status": "healthy"}


@router.get("/readiness", include_in_schema=False)
@router.get("/readyz", include_in_schema=False)
async def readiness(request: Request):
    """Readiness probe - is the Kubernetes client initialized?"""
    if getattr(request.app.state, "cluster_client", None) is None:
        return JSONResponse(status_code=503, content={"status": "not ready"})
    return {"status": "ready"}
