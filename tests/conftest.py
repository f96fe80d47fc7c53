"""Pytest configuration and fixtures"""
import os
from datetime import timedelta
from typing import Generator

# Settings are read once at import time
os.environ["JWT_PRIVATE_KEY"] = "test-signing-secret-0123456789abcdef"
os.environ["JWT_ALGORITHM"] = "HS256"
os.environ["REVOCATION_BACKEND"] = "memory"
os.environ["RATE_LIMIT_LOGIN"] = "10000/minute"
os.environ["RATE_LIMIT_REFRESH"] = "10000/minute"

import pytest
from fastapi.testclient import TestClient

from tokenguard.api.deps import get_token_service
from tokenguard.main import app
from tokenguard.tokens import (
    InMemoryRevocationStore,
    ManualClock,
    Signer,
    TokenService,
    TokenSettings,
    load_signer,
)

TEST_SECRET = os.environ["JWT_PRIVATE_KEY"]


@pytest.fixture
def signing_secret() -> str:
    return TEST_SECRET


@pytest.fixture
def clock() -> ManualClock:
    """Clock frozen at 2024-01-01T00:00:00Z; advance it explicitly"""
    return ManualClock()


@pytest.fixture
def signer(clock: ManualClock) -> Signer:
    return load_signer("HS256", TEST_SECRET, clock)


@pytest.fixture
def store() -> InMemoryRevocationStore:
    return InMemoryRevocationStore()


@pytest.fixture
def token_settings() -> TokenSettings:
    """5 second tokens, refreshable for 10 seconds after expiry"""
    return TokenSettings(validity=timedelta(seconds=5), refresh_grace=timedelta(seconds=10))


@pytest.fixture
def service(
    signer: Signer,
    store: InMemoryRevocationStore,
    clock: ManualClock,
    token_settings: TokenSettings,
) -> TokenService:
    return TokenService(signer=signer, store=store, clock=clock, settings=token_settings)


@pytest.fixture
def client(service: TokenService) -> Generator[TestClient, None, None]:
    """Test client whose routes use the manual-clock token service"""
    app.dependency_overrides[get_token_service] = lambda: service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


