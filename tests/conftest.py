"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- An in-memory AccountRepository with the same transactional contract
  as the Postgres adapter
- Stub email-quality checker and recording email sender (mail stub)
- A controllable clock
- A fast bcrypt hasher (cost 4) for tests that hash many passwords
- PostgreSQL pool and repository for integration tests (skipped when
  the database is unreachable)
"""

import asyncio
import itertools
from collections.abc import AsyncIterator
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta

import psycopg
import pytest
from psycopg_pool import AsyncConnectionPool

from src.adapters.repository.postgres import PostgresAccountRepository, run_migrations
from src.config.settings import Settings
from src.domain.exceptions import EmailValidationFailed, StorageError
from src.domain.ports import (
    ApprovalOutcome,
    ApproveResult,
    EmailCheckResult,
    PendingRegistration,
    SessionIdentity,
    User,
)
from src.domain.security import PasswordHasher


class FakeClock:
    """Clock returning a fixed instant until advanced."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@dataclass
class SessionRow:
    token: str
    user_id: int
    created_at: datetime
    last_used_at: datetime


@dataclass
class InMemoryAccountRepository:
    """
    Dict-backed AccountRepository.

    approve_registration holds a lock for the whole unit so concurrent
    approvals of one token serialize like SELECT ... FOR UPDATE. Setting
    fail_on_session_insert simulates a failure mid-transaction; the
    in-progress changes are then discarded.
    """

    users: dict[int, User] = field(default_factory=dict)
    pending: dict[str, PendingRegistration] = field(default_factory=dict)
    sessions: dict[str, SessionRow] = field(default_factory=dict)
    fail_on_session_insert: bool = False
    touches: int = 0
    _ids: itertools.count = field(default_factory=lambda: itertools.count(1))
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    async def ping(self) -> None:
        return None

    async def get_user_by_email(self, email: str) -> User | None:
        return next((u for u in self.users.values() if u.email == email), None)

    async def get_user_by_login(self, login: str) -> User | None:
        return next((u for u in self.users.values() if u.login == login), None)

    async def has_pending_registration(self, email: str, created_after: datetime) -> bool:
        return any(
            p.email == email and p.created_at > created_after for p in self.pending.values()
        )

    async def create_pending_registration(self, registration: PendingRegistration) -> None:
        if registration.token in self.pending:
            raise StorageError()
        self.pending[registration.token] = registration

    async def approve_registration(
        self, token: str, session_token: str, now: datetime
    ) -> ApprovalOutcome:
        async with self._lock:
            registration = self.pending.get(token)
            if registration is None:
                return ApprovalOutcome(ApproveResult.NOT_FOUND)
            if registration.expires_at < now:
                return ApprovalOutcome(ApproveResult.EXPIRED)

            if await self.get_user_by_email(registration.email) or await self.get_user_by_login(
                registration.login
            ):
                raise StorageError()

            user = User(
                id=next(self._ids),
                email=registration.email,
                login=registration.login,
                password_hash=registration.password_hash,
                created_at=now,
            )
            if self.fail_on_session_insert:
                raise StorageError()

            self.users[user.id] = user
            del self.pending[token]
            self.sessions[session_token] = SessionRow(session_token, user.id, now, now)
            return ApprovalOutcome(ApproveResult.SUCCESS, user_id=user.id, login=user.login)

    async def create_session(self, token: str, user_id: int, now: datetime) -> None:
        if token in self.sessions or user_id not in self.users:
            raise StorageError()
        self.sessions[token] = SessionRow(token, user_id, now, now)

    async def get_session_identity(self, token: str) -> SessionIdentity | None:
        row = self.sessions.get(token)
        if row is None:
            return None
        return SessionIdentity(user_id=row.user_id, login=self.users[row.user_id].login)

    async def touch_session(self, token: str, now: datetime) -> None:
        self.touches += 1
        if token in self.sessions:
            self.sessions[token] = replace(self.sessions[token], last_used_at=now)

    async def delete_session(self, token: str) -> None:
        self.sessions.pop(token, None)

    def add_user(self, email: str, login: str, password_hash: str = "$2b$04$x") -> User:
        user = User(
            id=next(self._ids),
            email=email,
            login=login,
            password_hash=password_hash,
            created_at=datetime(2024, 1, 1, tzinfo=UTC),
        )
        self.users[user.id] = user
        return user


class StubEmailChecker:
    """EmailQualityChecker returning a canned verdict or raising."""

    def __init__(self, result: EmailCheckResult | None = None, fail: bool = False) -> None:
        self.result = result or EmailCheckResult(valid=True)
        self.fail = fail
        self.checked: list[str] = []

    async def check(self, email: str) -> EmailCheckResult:
        self.checked.append(email)
        if self.fail:
            raise EmailValidationFailed()
        return self.result


class RecordingEmailSender:
    """Mail stub: remembers every confirmation it was asked to send."""

    def __init__(self, succeed: bool = True) -> None:
        self.succeed = succeed
        self.sent: list[tuple[str, str]] = []

    async def send_confirmation(self, email: str, token: str) -> bool:
        if self.succeed:
            self.sent.append((email, token))
        return self.succeed

    @property
    def last_token(self) -> str:
        return self.sent[-1][1]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repository() -> InMemoryAccountRepository:
    return InMemoryAccountRepository()


@pytest.fixture
def email_checker() -> StubEmailChecker:
    return StubEmailChecker()


@pytest.fixture
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def database_url() -> str:
    """DATABASE_URL from settings; skips the test when PostgreSQL is down."""
    url = Settings().database_url
    try:
        with psycopg.connect(url, connect_timeout=3):
            pass
    except psycopg.OperationalError:
        pytest.skip("PostgreSQL is not reachable")
    return url


@pytest.fixture
async def pg_pool(database_url: str) -> AsyncIterator[AsyncConnectionPool]:
    """Migrated, emptied database behind an open async pool."""
    pool = AsyncConnectionPool(conninfo=database_url, min_size=1, max_size=10, open=False)
    await pool.open()
    await run_migrations(pool)
    async with pool.connection() as conn:
        await conn.execute("TRUNCATE sessions, registration_tokens, users RESTART IDENTITY")
    yield pool
    await pool.close()


@pytest.fixture
def pg_repository(pg_pool: AsyncConnectionPool) -> PostgresAccountRepository:
    return PostgresAccountRepository(pg_pool)
