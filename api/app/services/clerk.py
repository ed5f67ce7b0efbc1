"""
Clerk Identity Service - session token verification & user lookup
https://clerk.com/docs/backend-requests/handling/manual-jwt
"""
from typing import Any, Dict, Optional
import asyncio
import logging

import httpx
import jwt
from jwt import PyJWKClient
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from app.config import settings

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Session token missing, malformed, expired or signed by the wrong key"""


class ClerkConfigurationError(AuthError):
    """Clerk credentials are not configured on the server"""


class ClerkService:
    """
    Verifies Clerk session JWTs (RS256, keys from the instance JWKS) and
    fetches user profiles from the Clerk Backend API.
    """

    _jwk_client: Optional[PyJWKClient] = None

    @staticmethod
    def jwks_url() -> str:
        if settings.CLERK_JWKS_URL:
            return settings.CLERK_JWKS_URL
        if settings.CLERK_ISSUER:
            return f"{settings.CLERK_ISSUER.rstrip('/')}/.well-known/jwks.json"
        return ""

    @classmethod
    def get_jwk_client(cls) -> PyJWKClient:
        if cls._jwk_client is None:
            url = cls.jwks_url()
            if not url:
                raise ClerkConfigurationError("CLERK_JWKS_URL or CLERK_ISSUER must be set")
            cls._jwk_client = PyJWKClient(url, cache_keys=True)
        return cls._jwk_client

    @classmethod
    async def verify_session_token(cls, token: str) -> Dict[str, Any]:
        """
        Verify a session token and return its claims.

        Raises:
            ClerkConfigurationError: JWKS location not configured
            AuthError: token invalid for any reason
        """
        jwk_client = cls.get_jwk_client()
        try:
            # PyJWKClient fetches over blocking urllib
            signing_key = await asyncio.to_thread(jwk_client.get_signing_key_from_jwt, token)
            options = {"require": ["exp", "sub"], "verify_aud": False}
            claims = jwt.decode(
                token,
                signing_key.key,
                algorithms=["RS256"],
                issuer=settings.CLERK_ISSUER or None,
                options=options,
            )
        except jwt.PyJWTError as e:
            logger.debug(f"Session token rejected: {e}")
            raise AuthError(str(e)) from e
        return claims

    @staticmethod
    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=5),
        reraise=True,
    )
    async def fetch_user(clerk_id: str) -> Dict[str, Any]:
        """Fetch a user's profile from the Clerk Backend API"""
        if not settings.CLERK_SECRET_KEY:
            raise ClerkConfigurationError("CLERK_SECRET_KEY is not set")

        async with httpx.AsyncClient() as client:
            response = await client.get(
                f"{settings.CLERK_API_URL}/users/{clerk_id}",
                headers={"Authorization": f"Bearer {settings.CLERK_SECRET_KEY}"},
                timeout=10.0,
            )
            response.raise_for_status()
            return response.json()

    @staticmethod
    def profile_fields(clerk_user: Dict[str, Any]) -> Dict[str, Any]:
        """Map a Clerk user payload onto User columns"""
        addresses = clerk_user.get("email_addresses") or []
        return {
            "email": addresses[0].get("email_address", "") if addresses else "",
            "first_name": clerk_user.get("first_name") or "",
            "last_name": clerk_user.get("last_name") or "",
            "profile_image_url": clerk_user.get("image_url") or "",
        }
