from fastapi import APIRouter
from xray_drafts.api.routes import health, config, drafts, settings, xray

api_router = APIRouter()

# Include all route modules
api_router.include_router(health.router)
api_router.include_router(config.router)
api_router.include_router(drafts.router)
api_router.include_router(settings.router)
api_router.include_router(xray.router)
