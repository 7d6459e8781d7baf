from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from solardesk.api.v1.api import api_router
from solardesk.core.config import settings
from solardesk.core.logging import setup_logging, get_logger
from solardesk.middleware.logging import RequestLoggingMiddleware
from solardesk.middleware.auth_interceptor import AuthInterceptorMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from solardesk.core.exceptions import (
    http_exception_handler,
    request_validation_exception_handler,
    integrity_error_handler,
    sqlalchemy_error_handler,
    unhandled_exception_handler,
)

# Registers every model on Base.metadata before relationships are resolved
import solardesk.models  # noqa: F401

setup_logging()
logger = get_logger("main")

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="Solar installation projects: stage tracking, payment ledger and reporting dashboard",
    openapi_url=f"{settings.API_V1_STR}/openapi.json"
)

# First added is innermost
app.add_middleware(
    AuthInterceptorMiddleware,
    skip_paths=[
        "/health",
        "/docs",
        "/openapi.json",
        f"{settings.API_V1_STR}/openapi.json",
        "/redoc",
        "/",
        f"{settings.API_V1_STR}/auth/login",
    ],
)
app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/")
async def root():
    return {"message": f"Welcome to {settings.PROJECT_NAME} API"}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
app.add_exception_handler(IntegrityError, integrity_error_handler)
app.add_exception_handler(SQLAlchemyError, sqlalchemy_error_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

logger.info(f"{settings.PROJECT_NAME} {settings.VERSION} started with {len(settings.PROJECT_STAGES)} project stages")
