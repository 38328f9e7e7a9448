"""
Auth routes.

Defines REST endpoints for registration, approval and sessions:
- POST /auth/register          - Begin registration, email confirmation link
- POST /auth/approve-register  - Redeem confirmation token, open first session
- POST /auth/login             - Open a session with login + password
- POST /auth/logout            - Delete the bearer session
- GET  /auth/me                - Identity behind the bearer session
"""

import logging

from fastapi import APIRouter, Depends, status

from src.api.dependencies import (
    get_approval_service,
    get_bearer_token,
    get_current_identity,
    get_registration_service,
    get_session_manager,
)
from src.api.errors import ApiError
from src.api.models import (
    ApproveRequest,
    CurrentUser,
    CurrentUserResponse,
    ErrorResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    SessionResponse,
    UserSummary,
)
from src.domain.approval import ApprovalService
from src.domain.exceptions import AuthError, InvalidCredentials, MissingFields, MissingToken
from src.domain.ports import SessionIdentity
from src.domain.registration import RegistrationService
from src.domain.sessions import SessionManager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

_ERRORS = {
    400: {"model": ErrorResponse, "description": "Invalid input or business rule violation"},
    401: {"model": ErrorResponse, "description": "Authentication failed"},
    500: {"model": ErrorResponse, "description": "Server or upstream failure"},
}


@router.post(
    "/register",
    response_model=MessageResponse,
    responses={400: _ERRORS[400], 500: _ERRORS[500]},
    summary="Register a new user",
    description="Submit email, login and password. A confirmation link "
    "valid for 24 hours is emailed to the address.",
)
async def register(
    request_data: RegisterRequest | None = None,
    service: RegistrationService = Depends(get_registration_service),
) -> MessageResponse:
    """
    Start registration and send the confirmation email.

    - **email**: Address to confirm
    - **login**: 3-32 characters from letters, digits and '_'
    - **password**: 8+ characters, uppercase letter, number, special character
    """
    request_data = request_data or RegisterRequest()
    try:
        await service.register(request_data.email, request_data.login, request_data.password)
    except AuthError:
        raise
    except Exception as e:
        logger.exception("Registration error")
        raise ApiError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "REGISTRATION_FAILED",
            "Registration failed. Please try again later.",
        ) from e

    return MessageResponse(
        message="Registration initiated. Please check your email for confirmation."
    )


@router.post(
    "/approve-register",
    response_model=SessionResponse,
    responses={400: _ERRORS[400], 500: _ERRORS[500]},
    summary="Confirm a registration",
    description="Redeem the token from the confirmation email. Creates the "
    "account and returns a session token.",
)
async def approve_register(
    request_data: ApproveRequest | None = None,
    service: ApprovalService = Depends(get_approval_service),
) -> SessionResponse:
    token = request_data.token if request_data else None
    result = await service.approve(token)
    return SessionResponse(token=result.session_token, user=UserSummary(login=result.login))


@router.post(
    "/login",
    response_model=SessionResponse,
    responses=_ERRORS,
    summary="Log in",
    description="Exchange login and password for a session token.",
)
async def login(
    request_data: LoginRequest | None = None,
    sessions: SessionManager = Depends(get_session_manager),
) -> SessionResponse:
    request_data = request_data or LoginRequest()
    if not request_data.login or not request_data.password:
        raise MissingFields("Login and password are required")

    try:
        result = await sessions.login(request_data.login, request_data.password)
    except InvalidCredentials:
        raise
    except Exception as e:
        logger.exception("Login error")
        raise ApiError(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "LOGIN_FAILED", "Login failed"
        ) from e

    return SessionResponse(token=result.token, user=UserSummary(login=result.login))


@router.post(
    "/logout",
    response_model=MessageResponse,
    responses={400: _ERRORS[400], 500: _ERRORS[500]},
    summary="Log out",
    description="Delete the session named by the bearer token. "
    "Unknown tokens are accepted.",
)
async def logout(
    token: str | None = Depends(get_bearer_token),
    sessions: SessionManager = Depends(get_session_manager),
) -> MessageResponse:
    if token is None:
        raise MissingToken()

    try:
        await sessions.revoke(token)
    except Exception as e:
        logger.exception("Logout error")
        raise ApiError(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "LOGOUT_FAILED", "Logout failed"
        ) from e

    return MessageResponse(message="Successfully logged out")


@router.get(
    "/me",
    response_model=CurrentUserResponse,
    responses={401: _ERRORS[401]},
    summary="Current user",
    description="Return the identity behind the bearer session token.",
)
async def me(
    identity: SessionIdentity = Depends(get_current_identity),
) -> CurrentUserResponse:
    return CurrentUserResponse(user=CurrentUser(id=identity.user_id, login=identity.login))
