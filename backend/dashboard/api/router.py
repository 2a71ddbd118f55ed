from fastapi import APIRouter

from dashboard.api.routes.health import router as health_router
from dashboard.api.routes.me import router as me_router
from dashboard.api.routes.oauth2 import router as oauth2_router

# Mounted under /api.
router = APIRouter()

router.include_router(health_router)
router.include_router(me_router)

# Mounted at the site root; providers redirect back to /oauth2/callback.
root_router = APIRouter()

root_router.include_router(oauth2_router)
