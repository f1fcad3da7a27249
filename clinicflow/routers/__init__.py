# Routers package
from . import announcements_router
from . import appointments_router
from . import messages_router
from . import patients_router
from . import queue_router
from . import scribe_router

__all__ = [
    "announcements_router",
    "appointments_router",
    "messages_router",
    "patients_router",
    "queue_router",
    "scribe_router",
]
