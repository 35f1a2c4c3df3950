"""Identity-provider token verification (and issuance for local development)."""

from datetime import datetime, timedelta, timezone

from jose import jwt

from app.config import settings


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create a token in the same shape the identity provider issues.

    Args:
        data: Payload data. Must include ``sub`` (the external user id); may
            include ``email`` and ``name``.
        expires_delta: Custom expiration duration. Defaults to
            ``settings.auth_token_expire_minutes`` minutes.

    Returns:
        Encoded JWT string.
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.auth_token_expire_minutes))
    to_encode.update({"exp": expire, "iat": now})
    if settings.auth_jwt_audience:
        to_encode.setdefault("aud", settings.auth_jwt_audience)
    if settings.auth_jwt_issuer:
        to_encode.setdefault("iss", settings.auth_jwt_issuer)
    return jwt.encode(to_encode, settings.auth_jwt_secret, algorithm=settings.auth_jwt_algorithm)


def decode_token(token: str) -> dict:
    """Decode and verify an identity-provider JWT.

    Audience and issuer are checked only when configured.

    Raises:
        jose.JWTError: If the token is invalid, expired, or malformed.
    """
    return jwt.decode(
        token,
        settings.auth_jwt_secret,
        algorithms=[settings.auth_jwt_algorithm],
        audience=settings.auth_jwt_audience,
        issuer=settings.auth_jwt_issuer,
        options={"verify_aud": settings.auth_jwt_audience is not None},
    )
