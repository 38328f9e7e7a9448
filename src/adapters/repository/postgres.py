"""
PostgreSQL repository adapter - Implements AccountRepository protocol.

This module provides the PostgreSQL implementation of the domain's
repository port using psycopg3 (async) with raw SQL.

Transaction Design:
-------------------
Every method borrows one pooled connection. Leaving the pool's
connection() context commits; an exception rolls back. Approval uses an
explicit transaction with SELECT ... FOR UPDATE on the pending row, so
two concurrent approvals of the same token serialize: the first inserts
the user, deletes the token and creates the session; the second wakes up
to a deleted row and reports NOT_FOUND.

Any psycopg error is logged here and re-raised as StorageError so that
internal details never reach the client.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path

import psycopg
from psycopg_pool import AsyncConnectionPool

from src.domain.exceptions import StorageError
from src.domain.ports import (
    ApprovalOutcome,
    ApproveResult,
    PendingRegistration,
    SessionIdentity,
    User,
)

logger = logging.getLogger(__name__)

_USER_COLUMNS = "id, email, login, password_hash, created_at"


class PostgresAccountRepository:
    """
    Implements AccountRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: AsyncConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 AsyncConnectionPool for database connections
        """
        self._pool = pool

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[psycopg.AsyncConnection]:
        try:
            async with self._pool.connection() as conn:
                yield conn
        except psycopg.Error as e:
            logger.error(f"Database error: {e}")
            raise StorageError() from e

    async def ping(self) -> None:
        async with self._connection() as conn:
            await conn.execute("SELECT 1")

    async def get_user_by_email(self, email: str) -> User | None:
        return await self._fetch_user(
            f"SELECT {_USER_COLUMNS} FROM users WHERE email = %s", email
        )

    async def get_user_by_login(self, login: str) -> User | None:
        return await self._fetch_user(
            f"SELECT {_USER_COLUMNS} FROM users WHERE login = %s", login
        )

    async def _fetch_user(self, sql: str, value: str) -> User | None:
        async with self._connection() as conn, conn.cursor() as cursor:
            await cursor.execute(sql, (value,))
            row = await cursor.fetchone()
        return User(*row) if row is not None else None

    async def has_pending_registration(self, email: str, created_after: datetime) -> bool:
        sql = """
            SELECT 1 FROM registration_tokens
            WHERE email = %s AND created_at > %s
            LIMIT 1
        """
        async with self._connection() as conn, conn.cursor() as cursor:
            await cursor.execute(sql, (email, created_after))
            return await cursor.fetchone() is not None

    async def create_pending_registration(self, registration: PendingRegistration) -> None:
        sql = """
            INSERT INTO registration_tokens
                (token, email, login, password_hash, created_at, expires_at)
            VALUES (%s, %s, %s, %s, %s, %s)
        """
        async with self._connection() as conn:
            await conn.execute(
                sql,
                (
                    registration.token,
                    registration.email,
                    registration.login,
                    registration.password_hash,
                    registration.created_at,
                    registration.expires_at,
                ),
            )

    async def approve_registration(
        self, token: str, session_token: str, now: datetime
    ) -> ApprovalOutcome:
        """
        Redeem a registration token in one transaction.

        Lock the pending row, check expiry, then insert the user, delete
        the token and create the session. A failure at any point rolls
        the whole transaction back.
        """
        select_sql = """
            SELECT email, login, password_hash, expires_at
            FROM registration_tokens
            WHERE token = %s
            FOR UPDATE
        """

        insert_user_sql = """
            INSERT INTO users (email, login, password_hash, created_at)
            VALUES (%s, %s, %s, %s)
            RETURNING id
        """

        delete_token_sql = "DELETE FROM registration_tokens WHERE token = %s"

        insert_session_sql = """
            INSERT INTO sessions (token, user_id, created_at, last_used_at)
            VALUES (%s, %s, %s, %s)
        """

        async with self._connection() as conn, conn.transaction():
            async with conn.cursor() as cursor:
                await cursor.execute(select_sql, (token,))
                row = await cursor.fetchone()

                if row is None:
                    return ApprovalOutcome(ApproveResult.NOT_FOUND)

                email, login, password_hash, expires_at = row
                if expires_at < now:
                    return ApprovalOutcome(ApproveResult.EXPIRED)

                await cursor.execute(insert_user_sql, (email, login, password_hash, now))
                user_id = (await cursor.fetchone())[0]
                await cursor.execute(delete_token_sql, (token,))
                await cursor.execute(insert_session_sql, (session_token, user_id, now, now))

        return ApprovalOutcome(ApproveResult.SUCCESS, user_id=user_id, login=login)

    async def create_session(self, token: str, user_id: int, now: datetime) -> None:
        sql = """
            INSERT INTO sessions (token, user_id, created_at, last_used_at)
            VALUES (%s, %s, %s, %s)
        """
        async with self._connection() as conn:
            await conn.execute(sql, (token, user_id, now, now))

    async def get_session_identity(self, token: str) -> SessionIdentity | None:
        sql = """
            SELECT s.user_id, u.login
            FROM sessions s
            JOIN users u ON u.id = s.user_id
            WHERE s.token = %s
        """
        async with self._connection() as conn, conn.cursor() as cursor:
            await cursor.execute(sql, (token,))
            row = await cursor.fetchone()
        return SessionIdentity(user_id=row[0], login=row[1]) if row is not None else None

    async def touch_session(self, token: str, now: datetime) -> None:
        async with self._connection() as conn:
            await conn.execute(
                "UPDATE sessions SET last_used_at = %s WHERE token = %s", (now, token)
            )

    async def delete_session(self, token: str) -> None:
        async with self._connection() as conn:
            await conn.execute("DELETE FROM sessions WHERE token = %s", (token,))


async def run_migrations(pool: AsyncConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 AsyncConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            sql_content = sql_file.read_text()

            async with pool.connection() as conn:
                await conn.execute(sql_content)

            logger.info(f"Migration complete: {sql_file.name}")
        except Exception as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
