from routers.auth import router as auth_router
from routers.reactives import router as reactives_router
from routers.doses import router as doses_router
from routers.notifications import router as notifications_router
from routers.data import router as data_router
from routers.jobs import router as jobs_router

__all__ = [
    "auth_router",
    "reactives_router",
    "doses_router",
    "notifications_router",
    "data_router",
    "jobs_router",
]
