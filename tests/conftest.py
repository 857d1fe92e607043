import pytest
from fastapi.testclient import TestClient

from betterbet.core.rng import SeededRNG
from betterbet.core.session import CasinoSession
from betterbet.main import create_app
from betterbet.routers import api


@pytest.fixture
def seeded_rng():
    return SeededRNG(42)


@pytest.fixture
def session(seeded_rng):
    return CasinoSession.in_memory(1000.0, rng=seeded_rng)


@pytest.fixture
def client(session):
    api.limiter.reset()
    app = create_app(session=session)
    with TestClient(app) as test_client:
        yield test_client
