from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

from sitedirectory.core.config import settings
from sitedirectory.core.database import init_db
from sitedirectory.core.exceptions import SiteDirectoryError, ClaimConflict
from sitedirectory.api import api_router
from sitedirectory.api.deps import get_site_store
from sitedirectory.services.site_store import SiteStore

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.DEBUG else logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle manager."""
    # Startup
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    if settings.uses_database:
        # Create database tables (in production, use migrations)
        init_db()
        logger.info("Database tables created/verified")
    else:
        logger.warning(f"DATABASE_URL not set - using static dataset at {settings.SEED_DATA_PATH}")

    yield

    # Shutdown
    logger.info("Shutting down...")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Search licensed gaming sites on a map and claim operator listings",
    lifespan=lifespan,
)


@app.exception_handler(SiteDirectoryError)
async def site_directory_error_handler(request: Request, exc: SiteDirectoryError):
    if isinstance(exc, ClaimConflict):
        logger.info(f"Claim conflict on {request.url.path}: {exc.message}")
    elif exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    err = exc.errors()[0]
    field = ".".join(str(p) for p in err["loc"] if p not in ("body", "query", "path"))
    message = f"Invalid {field}: {err['msg']}" if field else err["msg"]
    return JSONResponse(status_code=400, content={"error": message})


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix="/api/v1")


@app.get("/")
def root():
    """Health check endpoint."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "healthy"
    }


@app.get("/health")
def health_check(store: SiteStore = Depends(get_site_store)):
    """Detailed health check."""
    reachable = store.ping()
    return {
        "status": "healthy" if reachable else "degraded",
        "store": store.backend,
        "store_reachable": reachable,
        "version": settings.APP_VERSION
    }
