# Routes package __init__.py - re-exports routers for main.py convenience
from .auth import router as auth_router
from .users import router as users_router
from .courses import router as courses_router
from .resources import router as resources_router
from .forum import router as forum_router
from .study_groups import router as study_groups_router
from .conversations import router as conversations_router
from .messages import router as messages_router
from .calendar import router as calendar_router
from .dashboard import router as dashboard_router
from .uploads import router as uploads_router

__all__ = [
    'auth_router',
    'users_router',
    'courses_router',
    'resources_router',
    'forum_router',
    'study_groups_router',
    'conversations_router',
    'messages_router',
    'calendar_router',
    'dashboard_router',
    'uploads_router',
]
