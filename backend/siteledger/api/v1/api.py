from fastapi import APIRouter
from siteledger.api.v1.endpoints import auth, materials, daily_reports, received, total_prices, manager, settings

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(materials.router, prefix="/materials", tags=["materials"])
api_router.include_router(daily_reports.router, prefix="/daily-reports", tags=["ledger"])
api_router.include_router(received.router, prefix="/received", tags=["ledger"])
api_router.include_router(total_prices.router, prefix="/total-prices", tags=["ledger"])
api_router.include_router(manager.router, prefix="/manager", tags=["manager"])
api_router.include_router(settings.router, prefix="/settings", tags=["settings"])
