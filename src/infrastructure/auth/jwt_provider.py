"""JWT authentication provider implementation.

Accepts identity-provider JWTs signed with ES256 (public keys from a JWKS
endpoint) and locally issued HS256 tokens (shared secret, used by tests and
local development).

Expected payload:
    {
        "sub": "user-uuid",
        "email": "user@example.com",
        "role": "authenticated",
        "user_metadata": { "display_name": "Alice" },
        "exp": 1234567890
    }
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Optional
from uuid import UUID

import httpx
from jose import JWTError, jwt
from jose.backends import ECKey

from core.config import settings
from infrastructure.auth.provider import TokenUser

logger = logging.getLogger(__name__)


class JWKSCache:
    """kid -> JWK mapping, fetched lazily and refetched on an unknown kid."""

    def __init__(self, url: str, timeout: float = 10.0) -> None:
        self._url = url
        self._timeout = timeout
        self._keys: dict[str, dict[str, Any]] | None = None

    async def get(self, kid: str) -> dict[str, Any] | None:
        if self._keys is None or kid not in self._keys:
            # Unknown kid usually means the provider rotated its keys
            self._keys = await self._fetch()
        return self._keys.get(kid)

    async def _fetch(self) -> dict[str, dict[str, Any]]:
        if not self._url:
            return {}
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(self._url)
                response.raise_for_status()
                keys = {k["kid"]: k for k in response.json().get("keys", []) if k.get("kid")}
        except (httpx.HTTPError, ValueError):
            logger.exception("Failed to fetch JWKS from %s", self._url)
            return {}
        logger.info("Fetched %d JWKS keys", len(keys))
        return keys


class JWTAuthProvider:
    """JWT-based authentication provider."""

    def __init__(
        self,
        secret_key: str = settings.jwt_secret_key,
        algorithm: str = settings.jwt_algorithm,
        expire_minutes: int = settings.jwt_expire_minutes,
        jwks: JWKSCache | None = None,
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes
        self._jwks = jwks or JWKSCache(settings.supabase_jwks_url)

    async def validate_token(self, token: str) -> Optional[TokenUser]:
        """Verify the signature and expiry, then map claims to a TokenUser."""
        try:
            header = jwt.get_unverified_header(token)
            if header.get("alg") == "ES256":
                payload = await self._decode_es256(token, header.get("kid"))
            else:
                payload = jwt.decode(
                    token,
                    self._secret_key,
                    algorithms=[self._algorithm],
                    options={"verify_aud": False},
                )
        except JWTError:
            return None

        if payload is None:
            return None
        return self._to_user(payload)

    async def _decode_es256(self, token: str, kid: str | None) -> Optional[dict[str, Any]]:
        if not kid:
            return None
        key_data = await self._jwks.get(kid)
        if not key_data:
            logger.warning("JWKS key not found for kid=%s", kid)
            return None
        return jwt.decode(
            token,
            ECKey(key_data, algorithm="ES256"),
            algorithms=["ES256"],
            options={"verify_aud": False},
        )

    @staticmethod
    def _to_user(payload: dict[str, Any]) -> Optional[TokenUser]:
        subject = payload.get("sub")
        email = payload.get("email")
        if not subject or not email:
            return None
        try:
            user_id = UUID(subject)
        except ValueError:
            return None

        metadata = payload.get("user_metadata") or {}
        display_name = (
            metadata.get("display_name")
            or metadata.get("name")
            or metadata.get("full_name")
            or payload.get("name")
        )
        return TokenUser(
            id=user_id,
            email=email.lower(),
            display_name=display_name,
            role=payload.get("role"),
        )

    def create_token(self, user: TokenUser) -> str:
        """Issue an HS256 token for ``user``. Used by tests and local tooling."""
        payload: dict[str, Any] = {
            "sub": str(user.id),
            "email": user.email,
            "aud": "authenticated",
            "role": user.role or "authenticated",
            "exp": datetime.utcnow() + timedelta(minutes=self._expire_minutes),
            "user_metadata": {"display_name": user.display_name},
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)
