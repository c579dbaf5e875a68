"""
FastAPI application entry point.
Main application setup and configuration.
"""

from fastapi import FastAPI, HTTPException, Request
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from pydantic import ValidationError as PydanticValidationError
from pathlib import Path
import logging

from rentalhub.config import settings
from rentalhub.database import check_database_connection, close_db_connection, create_tables
from rentalhub.routers import auth_router, listing_router, user_router
from rentalhub.utils.exceptions import APIException
from rentalhub.services.error_handler import ErrorHandlerService

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    db_connected = await check_database_connection()
    if not db_connected:
        logger.error("Failed to connect to database on startup")
    else:
        await create_tables()

    yield

    logger.info("Shutting down application")
    await close_db_connection()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Rental listing API for hosts.

    ## Authentication

    Sign up or log in through `/auth/signup` or `/auth/login`. The session token is
    returned in the `token` cookie and must accompany every request that changes data.
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {
            "name": "Authentication",
            "description": "Sign-up, login and logout"
        },
        {
            "name": "Listings",
            "description": "Rental listing management"
        },
        {
            "name": "Users",
            "description": "Current user information"
        },
        {
            "name": "Health",
            "description": "System health endpoints"
        }
    ],
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(listing_router)
app.include_router(user_router)

# Stored listing images are served from the upload directory
Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)
app.mount(settings.media_url_prefix, StaticFiles(directory=settings.upload_dir), name="uploads")


# Global exception handlers using ErrorHandlerService
@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    """Handle custom API exceptions with structured error responses."""
    return ErrorHandlerService.handle_api_exception(exc, request)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle FastAPI request validation errors with detailed field information."""
    return ErrorHandlerService.handle_validation_error(exc, request)


@app.exception_handler(PydanticValidationError)
async def pydantic_validation_exception_handler(request: Request, exc: PydanticValidationError):
    """Handle Pydantic validation errors raised while building listing fields."""
    return ErrorHandlerService.handle_validation_error(exc, request)


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    return ErrorHandlerService.handle_database_error(exc, request)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return ErrorHandlerService.handle_http_exception(exc, request)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions with secure error responses."""
    return ErrorHandlerService.handle_unexpected_error(exc, request)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint with database connectivity test.
    """
    db_healthy = await check_database_connection()
    if not db_healthy:
        raise HTTPException(status_code=503, detail="Database connection failed")

    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "database": "connected"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "rentalhub.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
