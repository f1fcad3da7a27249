import jwt
from datetime import datetime, timedelta, timezone
from enum import Enum

from .config import settings


class Role(str, Enum):
    DOCTOR = "doctor"
    PATIENT = "patient"
    PUBLIC = "public"


# =========================
# JWT Token Handling
# =========================
def create_jwt_token(data: dict):
    """Create JWT access token carrying the caller's role"""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire, "type": "access"})

    # Ensure SECRET_KEY is properly set
    if not settings.SECRET_KEY or settings.SECRET_KEY == "change-me-in-prod":
        raise ValueError("SECRET_KEY not properly configured")

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_jwt_token(token: str):
    """Decode and verify JWT token"""
    if not settings.SECRET_KEY or settings.SECRET_KEY == "change-me-in-prod":
        return None
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None
