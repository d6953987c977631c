"""
Security utilities for JWT token handling and identity-provider tokens.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any

from jose import jwt, JWTError

from .config import get_settings
from .exceptions import AuthenticationError


def create_access_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        data: Payload data to encode in the token
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    settings = get_settings()

    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(days=settings.jwt_expire_days)

    to_encode.update({
        "exp": expire,
        "iat": datetime.now(timezone.utc),
    })

    return jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )


def create_user_token(
    user_id: str,
    apple_id: Optional[str] = None,
    email: Optional[str] = None,
) -> str:
    """Create the session token handed to clients after login."""
    return create_access_token({
        "userId": user_id,
        "appleId": apple_id,
        "email": email,
    })


def verify_token(token: str) -> Dict[str, Any]:
    """
    Verify and decode a JWT token.

    Args:
        token: JWT token string

    Returns:
        Decoded payload

    Raises:
        AuthenticationError: If token is invalid or expired
    """
    settings = get_settings()

    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        raise AuthenticationError(
            message="Invalid or expired token",
            details={"error": str(e)},
        )

    if not payload.get("userId"):
        raise AuthenticationError(message="Invalid or expired token")
    return payload


def extract_token_from_header(authorization: Optional[str]) -> Optional[str]:
    """
    Extract JWT token from Authorization header.

    Supports "Bearer <token>" format.

    Args:
        authorization: Authorization header value

    Returns:
        Token string or None if not present/invalid format
    """
    if not authorization:
        return None

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None

    return parts[1]


def _read_unverified_claims(token: str) -> Dict[str, Any]:
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError as e:
        raise AuthenticationError(
            message="Invalid identity token",
            details={"error": str(e)},
        )
    if not isinstance(claims, dict):
        raise AuthenticationError(message="Invalid identity token")
    return claims


def decode_apple_id_token(id_token: str) -> Dict[str, Any]:
    """
    Read the claims of a Sign in with Apple identity token.

    The signature is not checked against Apple's keys; the token must still
    be well formed, carry a subject and not be expired.

    Raises:
        AuthenticationError: If the token cannot be used
    """
    claims = _read_unverified_claims(id_token)

    if not claims.get("sub"):
        raise AuthenticationError(message="Invalid Apple ID token")

    exp = claims.get("exp")
    if exp is not None and float(exp) < datetime.now(timezone.utc).timestamp():
        raise AuthenticationError(message="Apple ID token has expired")

    return claims


def decode_google_credential(credential: str) -> Dict[str, Any]:
    """
    Best-effort read of a Google Identity Services credential.

    Returns an empty dict for opaque credentials that are not JWTs.
    """
    if credential.count(".") != 2:
        return {}
    try:
        return _read_unverified_claims(credential)
    except AuthenticationError:
        return {}
