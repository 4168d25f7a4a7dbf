"""Route handlers for Web API."""

from satprep.web.routes.health import router as health_router
from satprep.web.routes.attempts import router as attempts_router
from satprep.web.routes.users import router as users_router

__all__ = [
    "health_router",
    "attempts_router",
    "users_router",
]
