"""
Security Module

Password hashing and JWT issue/verify. The access engine only ever sees the
numeric user id carried in the token's "sub" claim.

SECURITY NOTES:
- Passwords are hashed with bcrypt (passlib)
- Access tokens expire after ACCESS_TOKEN_EXPIRE_MINUTES; refresh tokens
  after REFRESH_TOKEN_EXPIRE_DAYS. The "type" claim keeps the two apart
- The signing key comes from Settings, loaded once at startup
"""
from datetime import datetime, timedelta
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from passlib.context import CryptContext
from taskhub.config import get_settings

settings = get_settings()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt.

    NOTE: This is intentionally slow. Don't call it in hot paths.
    """
    return pwd_context.hash(password)


ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    data must carry "sub" as a string (the user id); exp, iat and type are added.
    """
    to_encode = data.copy()
    if "sub" in to_encode:
        to_encode["sub"] = str(to_encode["sub"])
    to_encode.setdefault("type", ACCESS_TOKEN_TYPE)

    expire = datetime.utcnow() + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({
        "exp": expire,
        "iat": datetime.utcnow()
    })

    return jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )


def create_refresh_token(user_id: int) -> str:
    """Long-lived token that can only be exchanged for a new access token."""
    return create_access_token(
        {"sub": str(user_id), "type": REFRESH_TOKEN_TYPE},
        expires_delta=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    )


def decode_access_token(token: str, token_type: str = ACCESS_TOKEN_TYPE) -> Optional[Dict[str, Any]]:
    """
    Decode and verify a JWT token.

    Returns the payload if valid and of the requested type, None if
    invalid, expired or of another type.
    """
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
    except JWTError:
        return None

    if payload.get("type") != token_type:
        return None
    return payload


def user_id_from_payload(payload: Dict[str, Any]) -> Optional[int]:
    """Numeric user id from the "sub" claim, or None if missing or malformed."""
    try:
        return int(payload.get("sub"))
    except (TypeError, ValueError):
        return None
