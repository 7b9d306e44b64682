from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging

from app.core.config import get_settings
from app.core.database import close_db, check_db_health
from app.core.db_init import init_supplier_onboarding_database
from app.api import onboarding, audit, menus, roles
from shared.exceptions import PlatformException
from shared.models import ErrorResponse

settings = get_settings()

# Configure logging
logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info("🚀 Starting Supplier Onboarding Service...")
    db_success = await init_supplier_onboarding_database()
    if db_success:
        logger.info("✅ Database initialization completed")
    else:
        logger.error("❌ Database initialization failed")
        # Don't exit - let the service start but log the error

    yield

    # Shutdown
    logger.info("🛑 Shutting down Supplier Onboarding Service...")
    await close_db()
    logger.info("👋 Supplier Onboarding Service shutdown completed")


app = FastAPI(
    title="Supplier Onboarding Service",
    description="Supplier registration, admin review and permission provisioning",
    version=settings.VERSION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers
@app.exception_handler(PlatformException)
async def platform_exception_handler(request: Request, exc: PlatformException):
    if exc.status_code >= 500:
        logger.error(f"❌ {exc.error_code}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=ErrorResponse(error=exc.message).model_dump())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Request parsing runs before the auth dependency; every route with parameters requires a token
    if not request.headers.get("authorization"):
        return JSONResponse(status_code=401, content=ErrorResponse(error="Missing authorization").model_dump())

    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(
            str(part) for part in first.get("loc", ()) if part != "body" and not isinstance(part, int)
        )
        message = f"{location}: {first.get('msg')}" if location else first.get("msg")
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content=ErrorResponse(error=message).model_dump())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.error(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error=str(exc) if settings.DEBUG else "An unexpected error occurred").model_dump()
    )


app.include_router(onboarding.router)
app.include_router(audit.router)
app.include_router(menus.router)
app.include_router(roles.router)


@app.get("/")
async def root():
    return {
        "service": "Supplier Onboarding Service",
        "version": app.version,
        "endpoints": {
            "register": "POST /onboarding/register",
            "status": "GET /onboarding/status",
            "admin_audit": "POST /admin-audit",
            "menus": "GET /menus?terminal=supplier",
            "roles": "GET /roles?terminal=department"
        }
    }


@app.get("/health")
async def health_check():
    db_healthy = await check_db_health()
    return {
        "status": "healthy" if db_healthy else "degraded",
        "service": settings.SERVICE_NAME,
        "version": app.version,
        "environment": settings.ENVIRONMENT,
        "database": "connected" if db_healthy else "unavailable",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.SUPPLIER_ONBOARDING_SERVICE_PORT,
        reload=settings.DEBUG
    )
