"""FastAPI authentication dependencies for route protection."""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.jwt import decode_token
from app.database import get_db
from app.models.user import User
from app.services.user_service import sync_user_from_claims

# Missing credentials are turned into 401 below rather than FastAPI's default
_bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _claims_from_credentials(credentials: HTTPAuthorizationCredentials | None) -> dict | None:
    """Return verified claims with a usable ``sub``, or None."""
    if credentials is None:
        return None
    try:
        payload = decode_token(credentials.credentials)
    except JWTError:
        return None
    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub:
        return None
    return payload


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Validate the Bearer token and return the (synced) local user.

    Raises:
        HTTPException 401: If the token is missing, invalid, expired, or the user is inactive.
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")

    claims = _claims_from_credentials(credentials)
    if claims is None:
        raise _unauthorized()

    user = await sync_user_from_claims(db, claims["sub"], claims)

    if not user.is_active:
        raise _unauthorized("User account is inactive")

    return user


async def get_current_active_user(
    user: User = Depends(get_current_user),
) -> User:
    """Return the current user only if their account is active.

    Raises:
        HTTPException 403: If the user account is inactive or banned.
    """
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )
    return user


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User | None:
    """Optionally authenticate a user from a Bearer token.

    Returns ``None`` instead of raising when no (valid) token is provided.
    Used by public community endpoints that show extra info to signed-in users.
    """
    claims = _claims_from_credentials(credentials)
    if claims is None:
        return None

    user = await sync_user_from_claims(db, claims["sub"], claims)
    if not user.is_active:
        return None
    return user
