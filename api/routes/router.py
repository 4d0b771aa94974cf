from fastapi import APIRouter

from packages.jobs.routes import jobs

api_router = APIRouter()

# Job trigger, listing, logs and monitor endpoints (mounted at root)
api_router.include_router(jobs.router, tags=["jobs"])
