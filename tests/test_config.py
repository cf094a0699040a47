import pytest
from pydantic import ValidationError

from app.core.config import Settings


def test_defaults():
    s = Settings()
    assert s.HEARTBEAT_INTERVAL_SECONDS == 5.0
    assert s.HEARTBEAT_TIMEOUT_SECONDS == 1.0
    assert s.HEARTBEAT_CLOSE_CODE == 4408
    assert s.SESSION_COOKIE_NAME == "token"


def test_env_override(monkeypatch):
    monkeypatch.setenv("HEARTBEAT_INTERVAL_SECONDS", "2.5")
    monkeypatch.setenv("USE_IN_MEMORY_STORE", "true")
    s = Settings()
    assert s.HEARTBEAT_INTERVAL_SECONDS == 2.5
    assert s.USE_IN_MEMORY_STORE is True


@pytest.mark.parametrize("overrides", [
    {"HEARTBEAT_INTERVAL_SECONDS": 1.0, "HEARTBEAT_TIMEOUT_SECONDS": 1.0},
    {"HEARTBEAT_TIMEOUT_SECONDS": 0},
    {"SECRET_KEY": "short"},
    {"MONGODB_URL": "postgres://localhost"},
    {"PASSWORD_MIN_LENGTH": 3},
    {"LOG_LEVEL": "chatty"},
])
def test_invalid_settings_rejected(overrides):
    with pytest.raises(ValidationError):
        Settings(**overrides)


def test_log_level_normalized():
    assert Settings(LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"
