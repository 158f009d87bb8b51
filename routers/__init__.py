from .assets_api import router as assets_api_router
from .categories_api import router as categories_api_router
from .lendings_api import router as lendings_api_router
from .reports_api import router as reports_api_router
from .users_api import router as users_api_router

ALL_ROUTERS = (
    users_api_router,
    categories_api_router,
    assets_api_router,
    lendings_api_router,
    reports_api_router,
)
