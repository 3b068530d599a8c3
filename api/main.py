"""
Staged Token Sale API - Main Application.

FastAPI application with CORS enabled for frontend communication.
"""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import __version__
from api.models import ErrorResponse
from api.routers import purchases, quotes, sale as sale_router
from domain.errors import (
    CapError,
    ConfigurationError,
    ContributionError,
    EligibilityError,
    StageError,
    TokenSaleError,
    TransferError,
)
from services.purchase_service import TokenSale

# Rejections are client errors except a ledger refusal (upstream) and a
# misconfigured sale (server).
_STATUS_BY_ERROR = (
    (StageError, 409),
    (CapError, 409),
    (EligibilityError, 403),
    (ContributionError, 422),
    (TransferError, 502),
    (ConfigurationError, 500),
)


def status_code_for(error: TokenSaleError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status_code
    return 400


def create_app(sale: Optional[TokenSale] = None) -> FastAPI:
    """
    Create the API application.

    Args:
        sale: Sale to serve; when omitted it is built from the environment on first request
    """
    app = FastAPI(
        title="Staged Token Sale API",
        description="REST API for quoting and buying tokens in a staged sale",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.sale = sale

    # Configure CORS - Allow all origins for development
    # TODO: Restrict origins via an ALLOWED_ORIGINS setting before production
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(TokenSaleError)
    async def handle_token_sale_error(request: Request, exc: TokenSaleError):
        status_code = status_code_for(exc)
        body = ErrorResponse(error=exc.kind.value, detail=exc.message, status_code=status_code)
        return JSONResponse(status_code=status_code, content=body.model_dump())

    @app.get("/health", tags=["Health"])
    def health_check():
        """
        Health check endpoint.

        Returns the API status and version.
        """
        return {
            "status": "healthy",
            "version": __version__,
            "service": "staged-token-sale-api"
        }

    @app.get("/", tags=["Root"])
    def root():
        """
        Root endpoint with API information.
        """
        return {
            "message": "Staged Token Sale API",
            "version": __version__,
            "docs": "/docs",
            "health": "/health"
        }

    app.include_router(sale_router.router, prefix="/api/v1", tags=["Sale"])
    app.include_router(quotes.router, prefix="/api/v1", tags=["Quotes"])
    app.include_router(purchases.router, prefix="/api/v1", tags=["Purchases"])

    return app


app = create_app()
