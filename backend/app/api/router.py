from fastapi import APIRouter

from app.api.routes.dashboard import router as dashboard_router
from app.api.routes.exchange_rate import router as exchange_rate_router

api_router = APIRouter()

api_router.include_router(dashboard_router)
api_router.include_router(exchange_rate_router)
