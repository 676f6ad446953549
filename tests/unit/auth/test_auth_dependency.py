"""Unit tests for authentication dependencies."""

import os
import subprocess
import sys
from pathlib import Path
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from fastapi.security import HTTPAuthorizationCredentials

from api.dependencies.auth import (
    get_current_user,
    get_initialized_user,
    get_profile_service,
    require_csrf_header,
)
from core.exceptions import AuthenticationError, AuthorizationError, ErrorCode
from infrastructure.auth.jwt_provider import JWKSCache, JWTAuthProvider
from infrastructure.auth.provider import TokenUser


@pytest.fixture
def mock_auth_provider() -> JWTAuthProvider:
    return JWTAuthProvider(
        secret_key="test-secret", algorithm="HS256", expire_minutes=30, jwks=JWKSCache("")
    )


@pytest.fixture
def test_token_user() -> TokenUser:
    return TokenUser(id=uuid4(), email="test@example.com", display_name="Test User")


# --- get_current_user ---


class TestGetCurrentUser:
    async def test_returns_user_with_valid_token(
        self, mock_auth_provider: JWTAuthProvider, test_token_user: TokenUser
    ):
        token = mock_auth_provider.create_token(test_token_user)
        credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)

        result = await get_current_user(credentials, mock_auth_provider)

        assert result.email == test_token_user.email
        assert result.id == test_token_user.id

    async def test_raises_when_no_credentials(self, mock_auth_provider: JWTAuthProvider):
        with pytest.raises(AuthenticationError) as exc_info:
            await get_current_user(None, mock_auth_provider)

        assert exc_info.value.error_code == ErrorCode.UNAUTHORIZED

    async def test_raises_when_invalid_token(self, mock_auth_provider: JWTAuthProvider):
        credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials="invalid.jwt.token")

        with pytest.raises(AuthenticationError) as exc_info:
            await get_current_user(credentials, mock_auth_provider)

        assert exc_info.value.error_code == ErrorCode.INVALID_TOKEN

    async def test_raises_when_expired_token(
        self, mock_auth_provider: JWTAuthProvider, test_token_user: TokenUser
    ):
        # Negative expiry issues tokens that are already expired
        provider = JWTAuthProvider(
            secret_key="test-secret", algorithm="HS256", expire_minutes=-1, jwks=JWKSCache("")
        )
        token = provider.create_token(test_token_user)
        credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)

        with pytest.raises(AuthenticationError) as exc_info:
            await get_current_user(credentials, mock_auth_provider)

        assert exc_info.value.error_code == ErrorCode.INVALID_TOKEN


# --- get_initialized_user ---


class TestGetInitializedUser:
    async def test_provisions_profile(self, test_token_user: TokenUser):
        profile_service = AsyncMock()

        result = await get_initialized_user(test_token_user, profile_service)

        assert result is test_token_user
        profile_service.ensure_profile.assert_awaited_once_with(
            test_token_user.id, test_token_user.email, test_token_user.display_name
        )


# --- require_csrf_header ---


class TestRequireCsrfHeader:
    async def test_accepts_xmlhttprequest(self):
        await require_csrf_header("XMLHttpRequest")

    @pytest.mark.parametrize("value", [None, "", "fetch", "xmlhttprequest"])
    async def test_rejects_missing_or_wrong_value(self, value):
        with pytest.raises(AuthorizationError) as exc_info:
            await require_csrf_header(value)

        assert exc_info.value.error_code == ErrorCode.CSRF_CHECK_FAILED


# --- module wiring ---


class TestModuleImport:
    @pytest.mark.parametrize("module", ["api.dependencies.auth", "api.v1.routes.ai"])
    def test_imports_in_fresh_interpreter(self, module):
        src = Path(__file__).resolve().parents[3] / "src"
        env = {**os.environ, "PYTHONPATH": str(src)}

        result = subprocess.run(
            [sys.executable, "-c", f"import {module}"],
            capture_output=True,
            text=True,
            env=env,
        )

        assert result.returncode == 0, result.stderr

    def test_profile_service_is_singleton(self):
        assert get_profile_service() is get_profile_service()
