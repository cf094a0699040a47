from datetime import datetime, timedelta, timezone

from jose import jwt

from app.core.config import settings
from app.models.presence import Identity, Unauthenticated
from app.services.security import security_service
from app.websocket.auth import Authenticator


def test_valid_token_resolves_identity():
    token = security_service.create_session_token("1", "alice")
    result = Authenticator().resolve({"token": token})
    assert result == Identity(user_id="1", username="alice")


def test_raw_cookie_header_is_parsed():
    token = security_service.create_session_token("2", "bob")
    result = Authenticator().resolve(f"theme=dark; token={token}; lang=en")
    assert isinstance(result, Identity)
    assert result.username == "bob"


def test_missing_token():
    auth = Authenticator()
    assert auth.resolve({}) == Unauthenticated(reason="missing_token")
    assert auth.resolve(None) == Unauthenticated(reason="missing_token")
    assert auth.resolve("theme=dark") == Unauthenticated(reason="missing_token")


def test_expired_token():
    token = security_service.create_session_token("1", "alice", expires_delta=timedelta(minutes=-5))
    result = Authenticator().resolve({"token": token})
    assert result == Unauthenticated(reason="expired")


def test_wrong_signature():
    token = jwt.encode(
        {"userId": "1", "username": "alice", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        "x" * 40,
        algorithm=settings.ALGORITHM,
    )
    result = Authenticator().resolve({"token": token})
    assert result == Unauthenticated(reason="invalid_signature")


def test_garbage_token():
    result = Authenticator().resolve({"token": "not-a-jwt"})
    assert isinstance(result, Unauthenticated)
    assert result.reason == "invalid_signature"


def test_token_without_identity_claims():
    token = jwt.encode(
        {"exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
    )
    result = Authenticator().resolve({"token": token})
    assert result == Unauthenticated(reason="malformed")


def test_verifier_errors_become_failure_values():
    def boom(token):
        raise RuntimeError("verifier down")

    result = Authenticator(verify=boom).resolve({"token": "abc"})
    assert isinstance(result, Unauthenticated)


def test_custom_cookie_name():
    token = security_service.create_session_token("3", "carol")
    auth = Authenticator(cookie_name="session")
    assert isinstance(auth.resolve({"session": token}), Identity)
    assert auth.resolve({"token": token}) == Unauthenticated(reason="missing_token")
