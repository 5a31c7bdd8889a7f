from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from pydantic import ValidationError
from starlette.requests import HTTPConnection

from constants.permissions import Role
from core.config import get_signing_keys, settings
from core.logging_config import get_logger
from schemas.auth import TokenPayload

logger = get_logger(__name__)

BEARER_PREFIX = "Bearer "


def sign_claims(
    claims: Dict[str, Any],
    expires_in: int = settings.JWT_TOKEN_EXPIRE_SECONDS,
    issuer: str = settings.JWT_ISSUER,
) -> str:
    """RS256-sign ``claims`` with ``iat``, ``exp`` and ``iss`` added."""
    now = datetime.now(timezone.utc)
    payload = {
        **claims,
        "iat": now,
        "exp": now + timedelta(seconds=expires_in),
        "iss": issuer,
    }
    private_key = get_signing_keys().private_key.get_secret_value()
    return jwt.encode(payload, private_key, algorithm=settings.JWT_ALGORITHM)


def generate_token(
    user_id: str,
    email: str,
    role: Role | str,
    expires_in: Optional[int] = None,
) -> str:
    """Sign a storefront auth token for the given user (7 days unless overridden)."""
    return sign_claims(
        {
            "userId": user_id,
            "email": email,
            "role": role.value if isinstance(role, Role) else role,
        },
        expires_in=settings.JWT_TOKEN_EXPIRE_SECONDS if expires_in is None else expires_in,
    )


def verify_token(token: str) -> Optional[TokenPayload]:
    """
    Return the token's claims, or None when it is malformed, expired,
    badly signed, from another issuer, or missing required claims.
    """
    public_key = get_signing_keys().public_key.get_secret_value()
    try:
        claims = jwt.decode(
            token,
            public_key,
            algorithms=[settings.JWT_ALGORITHM],
            issuer=settings.JWT_ISSUER,
            options={"require": ["exp", "iat", "iss"]},
        )
    except jwt.ExpiredSignatureError:
        logger.warning("Token has expired.")
        return None
    except jwt.InvalidTokenError as exc:
        logger.warning(f"Token verification failed: {exc}")
        return None

    try:
        return TokenPayload.model_validate(claims)
    except ValidationError:
        logger.warning("Token payload is missing required claims.")
        return None


def extract_token_from_request(request: HTTPConnection) -> Optional[str]:
    # Try Authorization header first
    auth_header = request.headers.get("authorization")
    if auth_header and auth_header.startswith(BEARER_PREFIX):
        token = auth_header[len(BEARER_PREFIX):].strip()
        if token:
            return token

    # Try cookie
    token = request.cookies.get(settings.AUTH_COOKIE_NAME)
    if token:
        return token

    return None


def get_user_from_request(request: HTTPConnection) -> Optional[TokenPayload]:
    token = extract_token_from_request(request)
    if not token:
        return None

    return verify_token(token)
