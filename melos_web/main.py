"""FastAPI application for the Melo's Pizza ordering backend"""

from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from melos import __version__
from melos.app import MelosApp, build_app
from melos.core.config import Settings
from melos.utils.exceptions import MelosError, Unauthorized, describe_errors
from melos.utils.logger import get_logger

from .auth_routes import router as auth_router
from .order_routes import router as order_router

logger = get_logger(__name__)


async def melos_error_handler(request: Request, exc: MelosError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
    if exc.status_code >= 500:
        logger.error("Request failed", path=request.url.path, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload(), headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = describe_errors(exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Validation errors: " + ", ".join(errors), "errors": errors},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error"},
    )


def create_app(settings: Optional[Settings] = None, melos: Optional[MelosApp] = None) -> FastAPI:
    """
    Build the API.

    Pass a ready MelosApp (tests, embedding) or Settings; with neither,
    settings are loaded from config/settings.yaml and the environment.
    """
    melos = melos or build_app(settings)

    app = FastAPI(
        title=f"{melos.settings.app.name} API",
        description="Registration, login and order history for the storefront",
        version=__version__,
    )
    app.state.melos = melos

    cors_origins = list(melos.settings.server.cors_origins) or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials="*" not in cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(MelosError, melos_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    @app.get("/")
    async def root():
        return {"message": f"{melos.settings.app.name} backend is running"}

    app.include_router(auth_router)
    app.include_router(order_router)
    return app
