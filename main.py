from typing import Awaitable, Callable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.sessions import SessionMiddleware
from starlette.responses import Response

from api.v1.routes import api_router
from core.api_response import validation_error_message
from core.config import settings
from core.config_log import setup_logging
from core.lifespan import lifespan
from core.logging_config import get_logger
from utils.rate_limit import RateLimitMiddleware
from utils.security_headers import SecurityHeadersMiddleware

setup_logging(env=settings.APP_ENV, log_dir=settings.LOG_DIR)

logger = get_logger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        response = await call_next(request)
        logger.info(f"{request.method} {request.url.path} -> {response.status_code}")
        return response


async def handle_http_exceptions(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail), "path": request.url.path},
        headers=getattr(exc, "headers", None),
    )


async def handle_validation_errors(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": validation_error_message(exc.errors()), "path": request.url.path},
    )


def create_app() -> FastAPI:
    fastapi_app: FastAPI = FastAPI(
        title=settings.APP_NAME,
        version=settings.VERSION,
        description=settings.DESCRIPTION,
        lifespan=lifespan,
        debug=settings.ENVIRONMENT == "development" and settings.DEBUG,
        swagger_ui_parameters={
            "filter": True,
            "persistAuthorization": True,
            "docExpansion": "none",
            "displayRequestDuration": True,
        },
    )

    @fastapi_app.get("/", tags=["System"])
    async def root() -> dict[str, str]:
        return {
            "message": "Welcome to Shoppersky API Services",
            "version": settings.VERSION,
            "docs_url": "/docs",
            "redoc_url": "/redoc",
        }

    @fastapi_app.get("/health", tags=["System"])
    async def health_check() -> dict[str, str]:
        return {"status": "healthy", "message": "API is running fine!"}

    fastapi_app.include_router(api_router)

    fastapi_app.add_exception_handler(HTTPException, handle_http_exceptions)
    fastapi_app.add_exception_handler(RequestValidationError, handle_validation_errors)

    # Innermost first: the last middleware added wraps all the others.
    fastapi_app.add_middleware(GZipMiddleware, minimum_size=1000)
    fastapi_app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SESSION_SECRET_KEY,
        session_cookie=settings.SESSION_COOKIE_NAME,
        max_age=settings.SESSION_MAX_AGE,
        same_site="lax",
        https_only=settings.COOKIE_SECURE,
    )
    fastapi_app.add_middleware(RequestLoggingMiddleware)
    fastapi_app.add_middleware(RateLimitMiddleware, enabled=settings.RATE_LIMIT_ENABLED)
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    fastapi_app.add_middleware(SecurityHeadersMiddleware)

    return fastapi_app


app = create_app()


# Dev mode runner
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app="main:app",
        host=settings.APP_HOST,
        port=settings.APP_PORT,
        reload=True,
        use_colors=True,
    )
