from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import OperationalError
from siteledger.core.config import settings
from siteledger.core.database import create_db_and_tables
from siteledger.core.environment import validate_on_startup
from siteledger.core.exceptions import SiteLedgerError
from siteledger.api.v1.api import api_router
from siteledger.core.middleware import exception_handler, site_ledger_error_handler, storage_error_handler
from siteledger.services.tenant_registry import shutdown_tenant_registry
import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.is_production:
        validate_on_startup()
    create_db_and_tables()
    logger.info("Global database ready")
    yield
    shutdown_tenant_registry()
    logger.info("Tenant databases closed")


app = FastAPI(
    title="Site Ledger API",
    description="Multi-site construction material ledger and cost aggregation",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Store environment in app state
app.state.ENVIRONMENT = settings.ENVIRONMENT

# Add exception handler middleware
app.middleware("http")(exception_handler)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(SiteLedgerError, site_ledger_error_handler)
app.add_exception_handler(OperationalError, storage_error_handler)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.error(f"Validation error on {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content=jsonable_encoder({"success": False, "error": "InvalidRequest", "detail": exc.errors()})
    )

# Include API router
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
async def root():
    return {"message": "Site Ledger API", "version": "1.0.0"}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
