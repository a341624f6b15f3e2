from .auth import router as auth_router
from .profiles import router as profiles_router
from .templates import router as templates_router
from .cv import router as cv_router
from .models import router as models_router
from .settings import router as settings_router
from .credits import router as credits_router

__all__ = [
    "auth_router", "profiles_router", "templates_router", "cv_router",
    "models_router", "settings_router", "credits_router"
]
