"""API route aggregation.

All routers registered here get mounted in main.py. Health and auth
are open; the task router requires a bearer token on every route. Task
handlers also take the identity as a parameter, and FastAPI resolves
the shared dependency once per request.
"""

from fastapi import APIRouter, Depends

from taskdesk.api.auth import router as auth_router
from taskdesk.api.health import router as health_router
from taskdesk.api.tasks import router as tasks_router
from taskdesk.auth.dependencies import get_current_user

_auth = [Depends(get_current_user)]

api_router = APIRouter(prefix="/api")

# Open routes — no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Protected routes — require a valid JWT
api_router.include_router(tasks_router, tags=["tasks"], dependencies=_auth)
