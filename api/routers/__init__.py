"""
API routers for different endpoints.
"""

from .health import router as health_router
from .health import status_router
from .auth import router as auth_router
from .generate import router as generate_router
from .chat import router as chat_router
from .user import router as user_router
from .upload import router as upload_router
from .images import router as images_router
from .stripe import router as stripe_router
from .subscription import router as subscription_router

__all__ = [
    "health_router",
    "status_router",
    "auth_router",
    "generate_router",
    "chat_router",
    "user_router",
    "upload_router",
    "images_router",
    "stripe_router",
    "subscription_router",
]
