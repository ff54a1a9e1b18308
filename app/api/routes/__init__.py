"""Package routes: exports every FastAPI router."""

from .babies import router as babies_router
from .collaborators import router as collaborators_router
from .diapers import router as diapers_router
from .feedings import router as feedings_router
from .health import router as health_router
from .health_records import router as health_records_router
from .insights import router as insights_router
from .invitations import router as invitations_router
from .realtime import router as realtime_router
from .sleeps import router as sleeps_router

__all__ = [
    "health_router",
    "babies_router",
    "collaborators_router",
    "invitations_router",
    "feedings_router",
    "sleeps_router",
    "diapers_router",
    "health_records_router",
    "insights_router",
    "realtime_router",
]
