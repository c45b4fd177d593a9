import pytest

from bnetapi.config import ClientConfig
from tests.mocks.battlenet import FakeBattleNetAPI, FakeClock


@pytest.fixture(autouse=True)
def test_set_env(monkeypatch):
    for name in (
        "BNET_API_KEY",
        "BNET_REGION",
        "BNET_LOCALE",
        "BNET_THROTTLE_PER_SECOND",
        "BNET_THROTTLE_PER_HOUR",
        "BNET_MAX_CONNECTIONS",
        "BNET_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)
    # Keep a developer's .env file out of the tests.
    monkeypatch.setattr("bnetapi.config.load_dotenv", lambda *args, **kwargs: False)


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(api_key="test-key")


@pytest.fixture
def fake_api() -> FakeBattleNetAPI:
    return FakeBattleNetAPI()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
