import time
from types import SimpleNamespace

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from sqlalchemy import func, select

from app.config import settings
from app.main import app
from app.models import User
from app.routers.auth import get_current_user
from app.services.clerk import AuthError, ClerkService

ISSUER = "https://clerk.tripfolio.test"


@pytest.fixture(scope="module")
def signing_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def clerk(monkeypatch, signing_key):
    """Route token verification to a local key pair instead of Clerk's JWKS"""
    jwk_client = SimpleNamespace(
        get_signing_key_from_jwt=lambda token: SimpleNamespace(key=signing_key.public_key())
    )
    monkeypatch.setattr(ClerkService, "get_jwk_client", classmethod(lambda cls: jwk_client))
    monkeypatch.setattr(settings, "CLERK_ISSUER", ISSUER)
    monkeypatch.setattr(settings, "FREE_AI_USES", 5)

    def issue(sub, expires_in=300, issuer=ISSUER):
        now = int(time.time())
        claims = {"sub": sub, "iss": issuer, "iat": now, "exp": now + expires_in}
        return jwt.encode(claims, signing_key, algorithm="RS256")

    return issue


@pytest.fixture
def real_auth(client):
    """Use the real session-token dependency instead of the test override"""
    app.dependency_overrides.pop(get_current_user, None)
    return client


async def test_verify_session_token(clerk):
    claims = await ClerkService.verify_session_token(clerk("user_alice"))
    assert claims["sub"] == "user_alice"


@pytest.mark.parametrize("kwargs", [{"expires_in": -60}, {"issuer": "https://evil.example"}])
async def test_rejects_expired_or_foreign_tokens(clerk, kwargs):
    with pytest.raises(AuthError):
        await ClerkService.verify_session_token(clerk("user_alice", **kwargs))


async def test_rejects_tokens_signed_by_another_key(clerk):
    other_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    now = int(time.time())
    forged = jwt.encode({"sub": "user_alice", "iss": ISSUER, "exp": now + 300}, other_key, algorithm="RS256")

    with pytest.raises(AuthError):
        await ClerkService.verify_session_token(forged)


async def test_bearer_token_resolves_existing_user(real_auth, clerk, users):
    response = await real_auth.get(
        "/api/auth/user", headers={"Authorization": f"Bearer {clerk('user_alice')}"}
    )

    assert response.status_code == 200
    assert response.json()["id"] == str(users["alice"].id)


async def test_session_cookie_is_accepted(real_auth, clerk, users):
    response = await real_auth.get("/api/auth/user", headers={"Cookie": f"__session={clerk('user_bob')}"})

    assert response.json()["firstName"] == "Bob"


async def test_missing_or_invalid_token_is_unauthorized(real_auth, clerk):
    assert (await real_auth.get("/api/auth/user")).status_code == 401

    response = await real_auth.get(
        "/api/auth/user", headers={"Authorization": f"Bearer {clerk('user_alice', expires_in=-60)}"}
    )
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


async def test_first_sign_in_provisions_user(real_auth, clerk, session_factory, monkeypatch):
    fetched = []

    async def fake_fetch_user(clerk_id):
        fetched.append(clerk_id)
        return {
            "id": clerk_id,
            "first_name": "Carmen",
            "last_name": "Viajera",
            "image_url": "https://img.clerk.com/carmen.png",
            "email_addresses": [{"email_address": "carmen@example.com"}],
        }

    monkeypatch.setattr(ClerkService, "fetch_user", fake_fetch_user)
    headers = {"Authorization": f"Bearer {clerk('user_carmen')}"}

    first = await real_auth.get("/api/auth/user", headers=headers)
    second = await real_auth.get("/api/auth/user", headers=headers)

    assert first.status_code == 200
    assert first.json()["email"] == "carmen@example.com"
    assert first.json()["profileImageUrl"] == "https://img.clerk.com/carmen.png"
    assert second.json()["id"] == first.json()["id"]
    assert fetched == ["user_carmen"]

    async with session_factory() as session:
        count = (await session.execute(
            select(func.count()).select_from(User).where(User.clerk_id == "user_carmen")
        )).scalar()
        user = (await session.execute(select(User).where(User.clerk_id == "user_carmen"))).scalar_one()
    assert count == 1
    assert user.ai_uses_remaining == 5


def test_profile_fields_from_clerk_payload():
    fields = ClerkService.profile_fields({"first_name": None, "email_addresses": []})
    assert fields == {"email": "", "first_name": "", "last_name": "", "profile_image_url": ""}


def test_jwks_url_falls_back_to_issuer(monkeypatch):
    monkeypatch.setattr(settings, "CLERK_JWKS_URL", "")
    monkeypatch.setattr(settings, "CLERK_ISSUER", "https://clerk.tripfolio.test/")
    assert ClerkService.jwks_url() == "https://clerk.tripfolio.test/.well-known/jwks.json"
