# Routers package
from . import auth_router
from . import user_router

__all__ = [
    "auth_router",
    "user_router",
]
