"""
FasalPlanner - JWT bearer authentication for the API.
A single operator account is configured through the environment.
"""
import hmac
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

import config


def verify_user(username: str, password: str) -> bool:
    """Check credentials against the configured operator account."""
    return hmac.compare_digest(username.encode(), config.API_USERNAME.encode()) and hmac.compare_digest(
        password.encode(), config.API_PASSWORD.encode()
    )


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def verify_token(token: str) -> Optional[dict]:
    """Decoded payload, or None for a bad or expired token."""
    try:
        return jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])
    except JWTError:
        return None
