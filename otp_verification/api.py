"""
Auth API
========
HTTP endpoints for register, request-OTP, verify-OTP and login.

Errors are rendered as ``{"success": false, "message": ..., "code": ...}``
with the status code of the error type. No stack traces leave the process.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
import structlog

from otp_verification.audit import CLIENT_IP_KEY
from otp_verification.errors import AuthError, UnexpectedError
from otp_verification.models import AuthResult, UserView
from otp_verification.service import AuthOrchestrator

logger = structlog.get_logger(__name__)


# =============================================================================
# Schemas
# =============================================================================

class RegisterRequest(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1, max_length=128)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)


class OtpRequest(BaseModel):
    email: str = Field(min_length=3, max_length=255)


class OtpVerificationRequest(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    otp: str = Field(min_length=1, max_length=32)


class LoginRequest(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1, max_length=128)


class UserDto(BaseModel):
    id: Optional[int] = None
    email: str
    first_name: str
    last_name: str
    email_verified: bool

    @classmethod
    def from_view(cls, view: UserView) -> "UserDto":
        return cls(
            id=view.id,
            email=view.email,
            first_name=view.first_name,
            last_name=view.last_name,
            email_verified=view.email_verified,
        )


class AuthResponse(BaseModel):
    message: str
    success: bool
    token: Optional[str] = None
    user: Optional[UserDto] = None

    @classmethod
    def from_result(cls, result: AuthResult) -> "AuthResponse":
        return cls(
            message=result.message,
            success=result.success,
            token=result.token,
            user=UserDto.from_view(result.user) if result.user else None,
        )


class OtpResponse(BaseModel):
    message: str
    success: bool
    email: str
    token: str
    expires_at: datetime


# =============================================================================
# Request context
# =============================================================================

def client_ip(request: Request) -> Optional[str]:
    """First hop of X-Forwarded-For, else the peer address."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


async def bind_client_ip(request: Request) -> None:
    # Must stay async: sync dependencies run in a worker thread and the binding would be lost
    structlog.contextvars.bind_contextvars(**{CLIENT_IP_KEY: client_ip(request)})


# =============================================================================
# Routes
# =============================================================================

def create_auth_router(orchestrator: AuthOrchestrator) -> APIRouter:
    """Create the /v1/auth router bound to an orchestrator."""
    router = APIRouter(prefix="/v1/auth", tags=["Auth"], dependencies=[Depends(bind_client_ip)])

    @router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
    async def register(payload: RegisterRequest) -> AuthResponse:
        logger.info("Register request received")
        result = await orchestrator.register(
            payload.email, payload.password, payload.first_name, payload.last_name
        )
        return AuthResponse.from_result(result)

    @router.post("/request-otp", response_model=OtpResponse)
    async def request_otp(payload: OtpRequest) -> OtpResponse:
        logger.info("OTP request received")
        issued = await orchestrator.request_otp(payload.email)
        return OtpResponse(
            message=issued.message,
            success=issued.success,
            email=issued.email,
            token=issued.token,
            expires_at=issued.expires_at,
        )

    @router.post("/verify-otp", response_model=AuthResponse)
    async def verify_otp(payload: OtpVerificationRequest) -> AuthResponse:
        logger.info("OTP verification request received")
        result = await orchestrator.verify_otp(payload.email, payload.otp)
        return AuthResponse.from_result(result)

    @router.post("/login", response_model=AuthResponse)
    async def login(payload: LoginRequest) -> AuthResponse:
        logger.info("Login request received")
        result = await orchestrator.login(payload.email, payload.password)
        return AuthResponse.from_result(result)

    return router


# =============================================================================
# Error handlers
# =============================================================================

async def _auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"success": False, "message": "Invalid request", "code": "VALIDATION_ERROR"},
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", path=request.url.path)
    error = UnexpectedError()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AuthError, _auth_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
