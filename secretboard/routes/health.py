#  Secret Board - Health Check
#
#  Liveness probe. Public, unauthenticated.
#
#  Depends on: (none)
#  Used by:    app.py

from fastapi import APIRouter

health_router = APIRouter(tags=["health"])


@health_router.get("/health")
async def health():
    return {"status": "ok"}
