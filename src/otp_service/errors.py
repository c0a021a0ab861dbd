"""Error taxonomy and the FastAPI handlers that render it.

Every failure a request can hit maps to one ``OTPServiceError`` subclass.
Each carries its HTTP status and a short message; the handlers below turn
them into ``{"error": "<message>"}`` JSON bodies.
"""

from __future__ import annotations

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ConfigurationError(RuntimeError):
    """Required configuration is missing or malformed (fatal at startup)."""


class OTPServiceError(Exception):
    """Base class for all request-terminal errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail: str = "Internal server error"

    def __init__(self, detail: str | None = None) -> None:
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class InvalidInputError(OTPServiceError):
    """The identity key is not shaped like an email address."""

    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Invalid email"


class IdentityNotFoundError(OTPServiceError):
    """Reset requested for an email the identity provider does not know.

    Kept at 500 for compatibility with existing clients.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Email not registered"


class NotificationFailedError(OTPServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Failed to send OTP"


class InvalidOTPError(OTPServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Invalid OTP"


class OTPExpiredError(OTPServiceError):
    status_code = status.HTTP_410_GONE
    detail = "OTP expired"


class InvalidRequestError(OTPServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Invalid request"


class ProviderError(OTPServiceError):
    """The identity provider rejected or failed an operation."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Identity provider error"


# ──────────────────────────────────────────────────────────────
# Handlers
# ──────────────────────────────────────────────────────────────
async def otp_service_error_handler(request: Request, exc: OTPServiceError) -> JSONResponse:
    logger.info(
        "%s %s → %s %s", request.method, request.url.path, exc.status_code, exc.detail
    )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed bodies are reported as a plain 400, like any other bad input."""
    logger.warning("Validation error on %s: %s", request.url.path, exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": InvalidRequestError.detail},
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": OTPServiceError.detail},
    )
