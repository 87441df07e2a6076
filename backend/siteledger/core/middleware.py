from fastapi import Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from siteledger.core.exceptions import SiteLedgerError, StorageUnavailable
import logging

logger = logging.getLogger(__name__)


async def exception_handler(request: Request, call_next):
    """Global exception handler"""
    try:
        response = await call_next(request)
        return response
    except Exception as e:
        logger.error(f"Unhandled exception: {str(e)}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Internal server error",
                "detail": str(e) if request.app.state.ENVIRONMENT == "development" else "An error occurred"
            }
        )


async def site_ledger_error_handler(request: Request, exc: SiteLedgerError):
    if exc.status_code >= 500:
        logger.error(f"{exc.error} on {request.url.path}: {exc.detail}")
    else:
        logger.info(f"{exc.error} on {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.error, "message": exc.detail}
    )


async def storage_error_handler(request: Request, exc: OperationalError):
    """Storage outages surface as StorageUnavailable, never as empty results."""
    logger.error(f"Storage error on {request.url.path}: {exc}", exc_info=True)
    return await site_ledger_error_handler(request, StorageUnavailable())
