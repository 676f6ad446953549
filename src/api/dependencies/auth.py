"""Authentication and request-origin dependencies for FastAPI."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.exceptions import AuthenticationError, AuthorizationError, ErrorCode
from domain.services.profile_service import ProfileService
from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.auth.provider import TokenUser
from infrastructure.database.session import async_session_factory
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork

# Security scheme for OpenAPI docs
security = HTTPBearer(auto_error=False)

CSRF_HEADER_VALUE = "XMLHttpRequest"


@lru_cache
def get_auth_provider() -> JWTAuthProvider:
    """Get the auth provider singleton."""
    return JWTAuthProvider()


@lru_cache
def get_profile_service() -> ProfileService:
    """Get Profile service instance."""
    return ProfileService(lambda: SQLAlchemyUnitOfWork(async_session_factory))


async def get_current_user(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None,
        Depends(security),
    ],
    auth_provider: JWTAuthProvider = Depends(get_auth_provider),
) -> TokenUser:
    """
    Dependency to get the current authenticated user.

    Raises:
        AuthenticationError: If no token provided or token is invalid
    """
    if not credentials:
        raise AuthenticationError(
            message="Authorization header required",
            error_code=ErrorCode.UNAUTHORIZED,
        )

    user = await auth_provider.validate_token(credentials.credentials)
    if not user:
        raise AuthenticationError(
            message="Invalid or expired token",
            error_code=ErrorCode.INVALID_TOKEN,
        )

    return user


async def get_initialized_user(
    user: Annotated[TokenUser, Depends(get_current_user)],
    profile_service: ProfileService = Depends(get_profile_service),
) -> TokenUser:
    """Authenticated user whose local profile row is guaranteed to exist.

    Membership and assignment rows reference profiles, so every route that
    writes on behalf of the caller depends on this.
    """
    await profile_service.ensure_profile(user.id, user.email, user.display_name)
    return user


async def require_csrf_header(
    x_requested_with: Annotated[str | None, Header()] = None,
) -> None:
    """Reject state-changing requests that lack the XMLHttpRequest indicator.

    Browsers do not attach custom headers to cross-site form posts, so its
    presence shows the request came from the application's own scripts.
    """
    if x_requested_with != CSRF_HEADER_VALUE:
        raise AuthorizationError(
            message="Missing or invalid X-Requested-With header",
            error_code=ErrorCode.CSRF_CHECK_FAILED,
        )


# Type aliases for convenience in route handlers
CurrentUser = Annotated[TokenUser, Depends(get_current_user)]
InitializedUser = Annotated[TokenUser, Depends(get_initialized_user)]
CsrfChecked = Depends(require_csrf_header)
