"""Unit tests for JWTAuthProvider and the JWKS key cache.

Covers:
- HS256 round trip through create_token / validate_token
- validate_token returning None when payload lacks sub or email
- JWKSCache fetching, refetch on unknown kid, and error handling
- the ES256 decode path with a mocked key set
"""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import httpx
import pytest
from jose import jwt as jose_jwt

from infrastructure.auth import jwt_provider as jwt_provider_module
from infrastructure.auth.jwt_provider import JWKSCache, JWTAuthProvider
from infrastructure.auth.provider import TokenUser

JWKS_URL = "https://auth.example.com/auth/v1/.well-known/jwks.json"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_hs256_token(payload: dict, secret: str = "test-secret") -> str:
    """Create an HS256-signed JWT with a given payload."""
    return jose_jwt.encode(payload, secret, algorithm="HS256")


def _mock_async_client(response_json: dict | None = None, error: Exception | None = None):
    response = MagicMock()
    response.json.return_value = response_json or {}
    response.raise_for_status = MagicMock()

    client = AsyncMock()
    if error:
        client.get.side_effect = error
    else:
        client.get.return_value = response
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    return client


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def hs256_provider() -> JWTAuthProvider:
    """JWTAuthProvider configured for HS256 with JWKS disabled."""
    return JWTAuthProvider(
        secret_key="test-secret", algorithm="HS256", expire_minutes=30, jwks=JWKSCache("")
    )


# ---------------------------------------------------------------------------
# Tests: HS256
# ---------------------------------------------------------------------------


class TestHs256:
    async def test_should_round_trip_created_token(self, hs256_provider: JWTAuthProvider):
        user = TokenUser(id=uuid4(), email="Alice@Example.com", display_name="Alice")

        result = await hs256_provider.validate_token(hs256_provider.create_token(user))

        assert result is not None
        assert result.id == user.id
        assert result.email == "alice@example.com"
        assert result.display_name == "Alice"

    async def test_should_reject_wrong_secret(self, hs256_provider: JWTAuthProvider):
        token = _make_hs256_token({"sub": str(uuid4()), "email": "a@b.c"}, secret="other")

        assert await hs256_provider.validate_token(token) is None

    async def test_should_read_display_name_fallbacks(self, hs256_provider: JWTAuthProvider):
        token = _make_hs256_token(
            {"sub": str(uuid4()), "email": "a@b.c", "user_metadata": {"full_name": "Ann B"}}
        )

        result = await hs256_provider.validate_token(token)

        assert result.display_name == "Ann B"


class TestValidateTokenMissingClaims:
    """validate_token should return None when the decoded payload is missing
    the required 'sub' or 'email' claims, or 'sub' is not a UUID."""

    @pytest.mark.parametrize(
        "payload",
        [
            {"email": "test@example.com"},
            {"sub": str(uuid4())},
            {"sub": "", "email": "test@example.com"},
            {"sub": str(uuid4()), "email": ""},
            {"sub": "not-a-uuid", "email": "test@example.com"},
        ],
    )
    async def test_should_return_none(self, hs256_provider: JWTAuthProvider, payload: dict):
        assert await hs256_provider.validate_token(_make_hs256_token(payload)) is None


# ---------------------------------------------------------------------------
# Tests: JWKSCache
# ---------------------------------------------------------------------------


class TestJwksCache:
    async def test_should_return_none_when_no_url(self):
        assert await JWKSCache("").get("any") is None

    async def test_should_fetch_once_and_cache(self):
        client = _mock_async_client(
            {
                "keys": [
                    {"kid": "key-1", "kty": "EC"},
                    {"kty": "EC"},  # no kid
                ]
            }
        )
        cache = JWKSCache(JWKS_URL)

        with patch.object(jwt_provider_module.httpx, "AsyncClient", return_value=client):
            assert (await cache.get("key-1"))["kty"] == "EC"
            assert (await cache.get("key-1"))["kty"] == "EC"

        client.get.assert_awaited_once_with(JWKS_URL)

    async def test_should_refetch_on_unknown_kid(self):
        first = _mock_async_client({"keys": [{"kid": "old"}]})
        second = _mock_async_client({"keys": [{"kid": "old"}, {"kid": "rotated"}]})
        cache = JWKSCache(JWKS_URL)

        with patch.object(jwt_provider_module.httpx, "AsyncClient", side_effect=[first, second]):
            assert await cache.get("old") is not None
            assert await cache.get("rotated") == {"kid": "rotated"}

    async def test_should_return_none_on_http_error(self):
        client = _mock_async_client(error=httpx.ConnectError("Connection refused"))

        with patch.object(jwt_provider_module.httpx, "AsyncClient", return_value=client):
            assert await JWKSCache(JWKS_URL).get("key-1") is None


# ---------------------------------------------------------------------------
# Tests: ES256 path
# ---------------------------------------------------------------------------


class TestDecodeEs256:
    async def test_should_return_none_without_kid(self, hs256_provider: JWTAuthProvider):
        assert await hs256_provider._decode_es256("dummy.token.value", None) is None

    async def test_should_return_none_when_kid_unknown(self):
        jwks = AsyncMock()
        jwks.get.return_value = None
        provider = JWTAuthProvider(secret_key="unused", jwks=jwks)

        assert await provider._decode_es256("dummy.token.value", "missing") is None
        jwks.get.assert_awaited_once_with("missing")

    async def test_should_decode_with_ec_key(self):
        key_data = {"kid": "test-kid", "kty": "EC", "crv": "P-256"}
        payload = {"sub": str(uuid4()), "email": "test@example.com"}
        jwks = AsyncMock()
        jwks.get.return_value = key_data
        provider = JWTAuthProvider(secret_key="unused", jwks=jwks)

        with (
            patch.object(jwt_provider_module, "ECKey") as mock_eckey_cls,
            patch.object(jwt_provider_module.jwt, "decode", return_value=payload) as mock_decode,
        ):
            result = await provider._decode_es256("es256.token.value", "test-kid")

        assert result == payload
        mock_eckey_cls.assert_called_once_with(key_data, algorithm="ES256")
        mock_decode.assert_called_once_with(
            "es256.token.value",
            mock_eckey_cls.return_value,
            algorithms=["ES256"],
            options={"verify_aud": False},
        )

    async def test_validate_token_routes_es256_by_header(self):
        user_id = uuid4()
        provider = JWTAuthProvider(secret_key="unused", jwks=AsyncMock())

        with (
            patch.object(
                jwt_provider_module.jwt,
                "get_unverified_header",
                return_value={"alg": "ES256", "kid": "k"},
            ),
            patch.object(
                JWTAuthProvider,
                "_decode_es256",
                new_callable=AsyncMock,
                return_value={"sub": str(user_id), "email": "es@example.com"},
            ) as mock_decode,
        ):
            result = await provider.validate_token("es256.token.value")

        assert result.id == user_id
        mock_decode.assert_awaited_once_with("es256.token.value", "k")
