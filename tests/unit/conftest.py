"""
Fixtures for API tests.

Builds the real application around in-memory adapters. The lifespan is
not entered (TestClient is not used as a context manager), so no pool or
HTTP client is created.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.dependencies import (
    get_email_checker,
    get_email_sender,
    get_password_hasher,
    get_repository,
)
from src.api.main import create_app
from src.config.settings import Settings


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="development",
        email_mode="console",
        bcrypt_cost=4,
        register_rate_limit=50,
        api_rate_limit=500,
    )


@pytest.fixture
def app(settings, repository, email_checker, email_sender, hasher) -> FastAPI:
    test_app = create_app(settings)
    test_app.dependency_overrides[get_repository] = lambda: repository
    test_app.dependency_overrides[get_email_checker] = lambda: email_checker
    test_app.dependency_overrides[get_email_sender] = lambda: email_sender
    test_app.dependency_overrides[get_password_hasher] = lambda: hasher
    return test_app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)