"""
Abstract API email-quality adapter - Implements EmailQualityChecker protocol.

Calls the Abstract API email-validation endpoint and turns its verdict into
an EmailCheckResult. Timeouts, connection errors, non-2xx responses and
malformed payloads all raise EmailValidationFailed: a check that did not
complete is never reported as valid.
"""

import logging
from typing import Any

import httpx

from src.domain.exceptions import EmailValidationFailed
from src.domain.ports import EmailCheckResult

logger = logging.getLogger(__name__)


class AbstractApiEmailChecker:
    """
    Implements EmailQualityChecker protocol via httpx.

    Uses structural subtyping - no explicit inheritance from Protocol.
    The AsyncClient is owned by the application lifespan and shared.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        api_key: str,
        url: str = "https://emailvalidation.abstractapi.com/v1/",
        quality_threshold: float = 0.7,
        timeout: float = 10.0,
    ) -> None:
        self._client = client
        self._api_key = api_key
        self._url = url
        self._quality_threshold = quality_threshold
        self._timeout = timeout

    async def check(self, email: str) -> EmailCheckResult:
        """
        Assess deliverability and risk of an email address.

        Raises:
            EmailValidationFailed: service unreachable or response unusable
        """
        try:
            response = await self._client.get(
                self._url,
                params={"api_key": self._api_key, "email": email},
                timeout=self._timeout,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            logger.warning(f"Email validation API timed out: {e}")
            raise EmailValidationFailed() from e
        except httpx.HTTPStatusError as e:
            logger.warning(
                f"Email validation API returned {e.response.status_code}"
            )
            raise EmailValidationFailed() from e
        except (httpx.RequestError, ValueError) as e:
            logger.warning(f"Email validation API request failed: {e}")
            raise EmailValidationFailed() from e

        try:
            return self._evaluate(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Email validation API returned malformed payload: {e}")
            raise EmailValidationFailed() from e

    def _evaluate(self, data: dict[str, Any]) -> EmailCheckResult:
        if not data["is_valid_format"]["value"]:
            return EmailCheckResult(valid=False, reason="Invalid email format")

        if data["deliverability"] == "UNDELIVERABLE":
            return EmailCheckResult(
                valid=False, reason="Email address appears to be undeliverable"
            )

        if data["is_disposable_email"]["value"]:
            return EmailCheckResult(
                valid=False, reason="Disposable email addresses are not allowed"
            )

        if float(data["quality_score"]) < self._quality_threshold:
            return EmailCheckResult(
                valid=False, reason="This email address appears to be invalid or risky"
            )

        return EmailCheckResult(valid=True)
