import logging
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from fitcircle.core.config import settings
from fitcircle.core.database import engine, init_db
from fitcircle.api.v1.router import api_router
from fitcircle.api.v1.endpoints.websocket import websocket_endpoint
from fitcircle.utils.exceptions import FitCircleException

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle"""
    # Startup
    logger.info(f"Starting {settings.APP_NAME} {settings.APP_VERSION} ({settings.ENVIRONMENT})")
    await init_db()

    yield

    # Shutdown
    logger.info("Shutting down...")
    await engine.dispose()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    openapi_url="/api/v1/openapi.json",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan
)

# Set up CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error envelope: {"error": kind, "code": code, "detail": message}
@app.exception_handler(FitCircleException)
async def fitcircle_exception_handler(request: Request, exc: FitCircleException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.kind, "code": exc.code, "detail": exc.message}
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"] if part != "body")
        problems.append(f"{location}: {error['msg']}" if location else error["msg"])
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": "validation_error", "code": None, "detail": "; ".join(problems)}
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"Database error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "internal", "code": None, "detail": "Something went wrong. Please try again."}
    )


# Anything else, e.g. a refused storage connection raised by the driver
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "internal", "code": None, "detail": "Something went wrong. Please try again."}
    )


# Include API router
app.include_router(api_router, prefix="/api/v1")

# WebSocket endpoint for realtime notifications
app.websocket("/ws")(websocket_endpoint)


# Root endpoint
@app.get("/")
async def root():
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/api/docs",
        "redoc": "/api/redoc",
        "health": "/health",
        "api": "/api/v1",
        "websocket": "/ws"
    }


# Health check endpoint
@app.get("/health")
async def health_check():
    database_status = "healthy"
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.warning(f"Database health check failed: {e}")
        database_status = "unhealthy"

    return {
        "status": "healthy" if database_status == "healthy" else "degraded",
        "services": {
            "database": database_status
        }
    }
