"""
Unit tests for RegistrationService domain logic.

Tests the registration workflow against the in-memory repository to verify:
- Step ordering and first-failure error codes
- Email normalization
- Mail-before-persist (no record when sending fails)
- The 24-hour pending-registration window (simulated clock)
"""

import logging
from datetime import timedelta

import pytest

from src.domain.exceptions import (
    EmailExists,
    EmailSendFailed,
    EmailValidationFailed,
    InvalidEmail,
    InvalidLogin,
    InvalidPassword,
    LoginExists,
    MissingFields,
    StorageError,
    TokenExists,
)
from src.domain.ports import EmailCheckResult
from src.domain.registration import RegistrationService


@pytest.fixture
def service(repository, email_checker, email_sender, hasher, clock) -> RegistrationService:
    return RegistrationService(
        repository=repository,
        email_checker=email_checker,
        email_sender=email_sender,
        hasher=hasher,
        clock=clock,
    )


class TestMissingFields:
    """Step 1: all fields required."""

    @pytest.mark.parametrize(
        ("email", "login", "password"),
        [
            (None, "alice_01", "Sup3r$ecret"),
            ("a@b.com", None, "Sup3r$ecret"),
            ("a@b.com", "alice_01", None),
            ("", "alice_01", "Sup3r$ecret"),
            ("a@b.com", "alice_01", ""),
        ],
    )
    async def test_missing_field_rejected(
        self, service: RegistrationService, email_checker, email, login, password
    ) -> None:
        with pytest.raises(MissingFields):
            await service.register(email, login, password)
        assert email_checker.checked == []


class TestEmailCheck:
    """Step 2: format pre-check and external quality check."""

    async def test_malformed_email_skips_external_call(
        self, service: RegistrationService, email_checker
    ) -> None:
        with pytest.raises(InvalidEmail):
            await service.register("not-an-email", "alice_01", "Sup3r$ecret")
        assert email_checker.checked == []

    async def test_external_rejection_carries_reason(
        self, service: RegistrationService, email_checker
    ) -> None:
        email_checker.result = EmailCheckResult(
            valid=False, reason="Disposable email addresses are not allowed"
        )
        with pytest.raises(InvalidEmail) as exc_info:
            await service.register("a@b.com", "alice_01", "Sup3r$ecret")
        assert exc_info.value.message == "Disposable email addresses are not allowed"

    async def test_service_failure_is_not_a_pass(
        self, service: RegistrationService, email_checker, repository
    ) -> None:
        email_checker.fail = True
        with pytest.raises(EmailValidationFailed):
            await service.register("a@b.com", "alice_01", "Sup3r$ecret")
        assert repository.pending == {}

    async def test_external_check_runs_before_login_validation(
        self, service: RegistrationService, email_checker
    ) -> None:
        """A bad login is only reported after the email was checked."""
        with pytest.raises(InvalidLogin):
            await service.register("a@b.com", "x", "Sup3r$ecret")
        assert email_checker.checked == ["a@b.com"]

    async def test_email_normalized_before_check(
        self, service: RegistrationService, email_checker, email_sender
    ) -> None:
        await service.register("  A@B.COM  ", "alice_01", "Sup3r$ecret")
        assert email_checker.checked == ["a@b.com"]
        assert email_sender.sent[0][0] == "a@b.com"


class TestLocalValidation:
    """Steps 3-4: login and password."""

    async def test_invalid_login(self, service: RegistrationService) -> None:
        with pytest.raises(InvalidLogin):
            await service.register("a@b.com", "alice-01", "Sup3r$ecret")

    async def test_invalid_password_lists_missing(self, service: RegistrationService) -> None:
        with pytest.raises(InvalidPassword) as exc_info:
            await service.register("a@b.com", "alice_01", "password")
        assert "an uppercase letter" in exc_info.value.message
        assert "a number" in exc_info.value.message
        assert "a special character" in exc_info.value.message

    async def test_login_checked_before_password(self, service: RegistrationService) -> None:
        with pytest.raises(InvalidLogin):
            await service.register("a@b.com", "!!", "weak")


class TestDuplicateChecks:
    """Steps 5-6: existing users and pending registrations."""

    async def test_email_exists(self, service: RegistrationService, repository) -> None:
        repository.add_user("a@b.com", "someone")
        with pytest.raises(EmailExists):
            await service.register("a@b.com", "alice_01", "Sup3r$ecret")

    async def test_login_exists(self, service: RegistrationService, repository) -> None:
        repository.add_user("other@b.com", "alice_01")
        with pytest.raises(LoginExists):
            await service.register("a@b.com", "alice_01", "Sup3r$ecret")

    async def test_email_conflict_reported_before_login_conflict(
        self, service: RegistrationService, repository
    ) -> None:
        repository.add_user("a@b.com", "first")
        repository.add_user("other@b.com", "alice_01")
        with pytest.raises(EmailExists):
            await service.register("a@b.com", "alice_01", "Sup3r$ecret")

    async def test_user_conflict_reported_before_pending_conflict(
        self, service: RegistrationService, repository
    ) -> None:
        await service.register("a@b.com", "alice_01", "Sup3r$ecret")
        repository.add_user("a@b.com", "someone")
        with pytest.raises(EmailExists):
            await service.register("a@b.com", "alice_02", "Sup3r$ecret")

    async def test_second_registration_within_window_is_token_exists(
        self, service: RegistrationService, clock, email_sender
    ) -> None:
        await service.register("a@b.com", "alice_01", "Sup3r$ecret")
        clock.advance(timedelta(hours=23, minutes=59))

        with pytest.raises(TokenExists):
            await service.register("a@b.com", "alice_02", "Sup3r$ecret")
        assert len(email_sender.sent) == 1

    async def test_registration_after_window_succeeds(
        self, service: RegistrationService, clock, repository, email_sender
    ) -> None:
        await service.register("a@b.com", "alice_01", "Sup3r$ecret")
        clock.advance(timedelta(hours=24, seconds=1))

        await service.register("a@b.com", "alice_01", "Sup3r$ecret")
        assert len(email_sender.sent) == 2
        assert len(repository.pending) == 2

    async def test_pending_for_other_email_does_not_block(
        self, service: RegistrationService, repository
    ) -> None:
        await service.register("a@b.com", "alice_01", "Sup3r$ecret")
        await service.register("c@d.com", "carol_01", "Sup3r$ecret")
        assert len(repository.pending) == 2


class TestSendThenPersist:
    """Steps 7-9: token, hash, mail, persist."""

    async def test_success_persists_pending_registration(
        self, service: RegistrationService, repository, email_sender, clock, hasher
    ) -> None:
        result = await service.register("a@b.com", "alice_01", "Sup3r$ecret")

        assert result == "a@b.com"
        token = email_sender.last_token
        registration = repository.pending[token]
        assert registration.email == "a@b.com"
        assert registration.login == "alice_01"
        assert registration.created_at == clock.now
        assert registration.expires_at == clock.now + timedelta(hours=24)
        assert registration.password_hash != "Sup3r$ecret"
        assert hasher.verify("Sup3r$ecret", registration.password_hash)

    async def test_send_failure_persists_nothing(
        self, service: RegistrationService, repository, email_sender
    ) -> None:
        email_sender.succeed = False
        with pytest.raises(EmailSendFailed):
            await service.register("a@b.com", "alice_01", "Sup3r$ecret")
        assert repository.pending == {}

    async def test_send_failure_is_logged(
        self, service: RegistrationService, email_sender, caplog: pytest.LogCaptureFixture
    ) -> None:
        email_sender.succeed = False
        with caplog.at_level(logging.WARNING), pytest.raises(EmailSendFailed):
            await service.register("A@B.com", "alice_01", "Sup3r$ecret")
        assert "Confirmation email could not be sent to a@b.com" in caplog.text

    async def test_success_is_logged(
        self, service: RegistrationService, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.INFO):
            await service.register("a@b.com", "alice_01", "Sup3r$ecret")
        assert "Registration pending confirmation for a@b.com" in caplog.text
        assert "Sup3r$ecret" not in caplog.text

    async def test_send_failure_does_not_block_retry(
        self, service: RegistrationService, repository, email_sender
    ) -> None:
        email_sender.succeed = False
        with pytest.raises(EmailSendFailed):
            await service.register("a@b.com", "alice_01", "Sup3r$ecret")

        email_sender.succeed = True
        await service.register("a@b.com", "alice_01", "Sup3r$ecret")
        assert len(repository.pending) == 1

    async def test_token_collision_surfaces_as_storage_error(
        self, service: RegistrationService, repository, email_sender, monkeypatch
    ) -> None:
        monkeypatch.setattr(
            "src.domain.registration.generate_registration_token", lambda: "same-token"
        )
        await service.register("a@b.com", "alice_01", "Sup3r$ecret")
        with pytest.raises(StorageError):
            await service.register("c@d.com", "carol_01", "Sup3r$ecret")

    async def test_custom_ttl(self, repository, email_checker, email_sender, hasher, clock) -> None:
        service = RegistrationService(
            repository=repository,
            email_checker=email_checker,
            email_sender=email_sender,
            hasher=hasher,
            ttl=timedelta(hours=1),
            clock=clock,
        )
        await service.register("a@b.com", "alice_01", "Sup3r$ecret")
        registration = repository.pending[email_sender.last_token]
        assert registration.expires_at - registration.created_at == timedelta(hours=1)
