"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.

Shared resources (settings, connection pool, HTTP client) live on
app.state and are created by the application lifespan.
"""

import logging
from datetime import timedelta

import httpx
from fastapi import Depends, Header, Request
from psycopg_pool import AsyncConnectionPool

from src.adapters.email_check.abstract_api import AbstractApiEmailChecker
from src.adapters.repository.postgres import PostgresAccountRepository
from src.adapters.smtp.console import ConsoleEmailSender
from src.adapters.smtp.relay import SmtpEmailSender
from src.api.errors import ApiError
from src.config.settings import Settings
from src.domain.approval import ApprovalService
from src.domain.ports import AccountRepository, EmailQualityChecker, EmailSender, SessionIdentity
from src.domain.registration import RegistrationService
from src.domain.security import PasswordHasher
from src.domain.sessions import SessionManager

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    """Settings assembled at startup and stored in app state."""
    return request.app.state.settings


def get_pool(request: Request) -> AsyncConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def get_repository(request: Request) -> AccountRepository:
    """Create repository with connection pool from app state."""
    return PostgresAccountRepository(get_pool(request))


def get_email_checker(
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_app_settings),
) -> EmailQualityChecker:
    return AbstractApiEmailChecker(
        client,
        api_key=settings.email_validation_api_key,
        url=settings.email_validation_url,
        quality_threshold=settings.email_quality_threshold,
        timeout=settings.email_validation_timeout,
    )


def get_email_sender(settings: Settings = Depends(get_app_settings)) -> EmailSender:
    """SMTP relay when configured, console logging otherwise."""
    if settings.email_mode == "console" or not settings.smtp_host:
        return ConsoleEmailSender(base_url=settings.base_url)
    return SmtpEmailSender(
        host=settings.smtp_host,
        port=settings.smtp_port,
        username=settings.smtp_user,
        password=settings.smtp_password,
        base_url=settings.base_url,
        from_name=settings.smtp_from_name,
        ttl_hours=settings.registration_ttl_hours,
    )


def get_password_hasher(settings: Settings = Depends(get_app_settings)) -> PasswordHasher:
    return PasswordHasher(rounds=settings.bcrypt_cost)


def get_registration_service(
    repository: AccountRepository = Depends(get_repository),
    email_checker: EmailQualityChecker = Depends(get_email_checker),
    email_sender: EmailSender = Depends(get_email_sender),
    hasher: PasswordHasher = Depends(get_password_hasher),
    settings: Settings = Depends(get_app_settings),
) -> RegistrationService:
    """
    Create registration service with injected dependencies.

    Wires together the repository, email checker and email sender.
    """
    return RegistrationService(
        repository=repository,
        email_checker=email_checker,
        email_sender=email_sender,
        hasher=hasher,
        ttl=timedelta(hours=settings.registration_ttl_hours),
    )


def get_approval_service(
    repository: AccountRepository = Depends(get_repository),
) -> ApprovalService:
    return ApprovalService(repository=repository)


def get_session_manager(
    repository: AccountRepository = Depends(get_repository),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> SessionManager:
    return SessionManager(repository=repository, hasher=hasher)


def get_bearer_token(authorization: str | None = Header(None)) -> str | None:
    """
    Extract the token from an ``Authorization: Bearer <token>`` header.

    Returns None when the header is absent or has no token part.
    """
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


async def get_current_identity(
    request: Request,
    token: str | None = Depends(get_bearer_token),
    sessions: SessionManager = Depends(get_session_manager),
) -> SessionIdentity:
    """
    Authentication dependency for protected routes.

    Verifies the bearer token (touching the session) and attaches the
    identity to request.state.user. Misses are answered with 401.
    """
    if token is None:
        raise ApiError(401, "NO_TOKEN", "Authentication token is required")

    try:
        identity = await sessions.verify(token)
    except Exception as e:
        logger.error(f"Session authentication error: {e}")
        raise ApiError(500, "AUTH_ERROR", "Authentication failed") from e

    if identity is None:
        raise ApiError(401, "INVALID_TOKEN", "Invalid or expired session token")

    request.state.user = identity
    return identity
