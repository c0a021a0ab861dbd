"""OTP endpoints — issue and verify one-time passcodes.

Endpoints
---------
GET  /                 → liveness string
POST /api/send-otp     → email a fresh code
POST /api/verify-otp   → check a code and apply its action
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field

from otp_service.services.otp_service import OTPService
from otp_service.services.otp_store import Action

router = APIRouter(tags=["otp"])

LIVENESS_TEXT = "OTP service is running"


# ── Request / response models ────────────────────────────

class SendOTPRequest(BaseModel):
    email: str | None = None
    action: Action = Action.VERIFY


class VerifyOTPRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str | None = None
    otp: str | None = None
    new_password: str | None = Field(default=None, alias="newPassword")


class SuccessResponse(BaseModel):
    success: bool = True


def get_otp_service(request: Request) -> OTPService:
    """Return the app-wide ``OTPService`` built at startup."""
    return request.app.state.otp_service


# ── Endpoints ────────────────────────────────────────────

@router.get("/", response_class=PlainTextResponse)
async def index() -> str:
    return LIVENESS_TEXT


@router.post("/api/send-otp", response_model=SuccessResponse)
async def send_otp(
    body: SendOTPRequest, service: OTPService = Depends(get_otp_service)
) -> SuccessResponse:
    """Issue an OTP for ``body.email`` and email it.

    Success only means the mail server accepted the message.
    """
    await service.issue(body.email, body.action)
    return SuccessResponse()


@router.post("/api/verify-otp", response_model=SuccessResponse)
async def verify_otp(
    body: VerifyOTPRequest, service: OTPService = Depends(get_otp_service)
) -> SuccessResponse:
    """Validate an OTP and mark the email verified or set the new password."""
    await service.verify(body.email, body.otp, body.new_password)
    return SuccessResponse()
