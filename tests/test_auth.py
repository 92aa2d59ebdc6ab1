from fastapi.testclient import TestClient

from src.ideacrafter.security.auth import JwtConfig, User, create_access_token, decode_token

from .utils import TEST_SECRET, auth_headers, make_app


def test_token_round_trip():
    cfg = JwtConfig(secret=TEST_SECRET)
    token = create_access_token(User(id="abc", email="a@example.com"), cfg)
    user = decode_token(token, cfg)
    assert user.id == "abc"
    assert user.email == "a@example.com"
    assert user.role == "authenticated"


def test_wrong_secret_and_expired_tokens_are_rejected():
    client = TestClient(make_app())
    r = client.get("/api/profile", headers=auth_headers(secret="other-secret"))
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid token"

    r = client.get("/api/profile", headers=auth_headers(expires_min=-5))
    assert r.status_code == 401
    assert r.json()["detail"] == "Token expired"


def test_missing_token_is_rejected_unless_public_mode():
    assert TestClient(make_app()).get("/api/conversations").status_code == 401
    public = TestClient(make_app(public_mode=True))
    r = public.get("/api/conversations")
    assert r.status_code == 200
    assert r.json() == []
