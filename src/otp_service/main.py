"""FastAPI application entry point."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from otp_service.api.rate_limit import RateLimitMiddleware
from otp_service.api.routes import router as otp_router
from otp_service.config import Settings, settings
from otp_service.errors import (
    OTPServiceError,
    general_exception_handler,
    otp_service_error_handler,
    validation_exception_handler,
)
from otp_service.identity.base import IdentityProvider
from otp_service.identity.factory import create_identity_provider
from otp_service.services.email_service import EmailService
from otp_service.services.otp_service import OTPService
from otp_service.services.otp_store import OTPStore
from otp_service.services.sweeper import ExpirySweeper

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)


def _build_otp_service(app: FastAPI, identity_provider: IdentityProvider) -> OTPService:
    config: Settings = app.state.settings
    return OTPService(
        store=app.state.otp_store,
        identity_provider=identity_provider,
        email_service=app.state.email_service,
        expiry_minutes=config.otp_expiry_minutes,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle hook."""
    config: Settings = app.state.settings
    logger.info("Starting %s …", config.app_name)

    if app.state.otp_service is None:
        provider = await create_identity_provider(config)
        app.state.otp_service = _build_otp_service(app, provider)
    logger.info(
        "Identity provider: %s", app.state.otp_service.identity_provider.name
    )

    sweeper: ExpirySweeper = app.state.sweeper
    sweeper.start()

    # The SMTP check only logs; it must not hold up startup.
    smtp_check = asyncio.create_task(app.state.email_service.verify_connection())

    yield

    logger.info("Shutting down %s …", config.app_name)
    smtp_check.cancel()
    await sweeper.stop()


def create_app(
    config: Settings | None = None,
    *,
    identity_provider: IdentityProvider | None = None,
    email_service: EmailService | None = None,
) -> FastAPI:
    """Build the application.

    Collaborators not passed in are created from *config*; the identity
    provider is then built during startup, where a bad configuration aborts
    the process.
    """
    config = config or settings

    app = FastAPI(
        title=config.app_name,
        description="One-time passcodes for email verification and password reset",
        version="0.1.0",
        lifespan=lifespan,
    )

    store = OTPStore()
    app.state.settings = config
    app.state.otp_store = store
    app.state.email_service = email_service or EmailService(config)
    app.state.sweeper = ExpirySweeper(store, interval_seconds=config.sweep_interval_seconds)
    app.state.otp_service = None
    if identity_provider is not None:
        app.state.otp_service = _build_otp_service(app, identity_provider)

    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    app.add_exception_handler(OTPServiceError, otp_service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(otp_router)

    @app.get("/health")
    async def health_check():
        """Simple liveness probe."""
        return {
            "status": "healthy",
            "app": config.app_name,
            "pending_otps": len(store),
        }

    return app


app = create_app()


def run() -> None:
    """Console-script entry point."""
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
