from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext

from config import get_settings
from errors import Unauthorized

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
# Missing credentials are reported by require_user as Unauthorized, not by FastAPI's 403.
auth_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    if not hashed:
        return False
    return pwd_context.verify(password, hashed)


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    return jwt.encode({"sub": user_id, "exp": expire}, settings.jwt_secret, algorithm=settings.jwt_alg)


def decode_token(token: str) -> dict:
    settings = get_settings()
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_alg])
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Token expired")
    except jwt.InvalidTokenError:
        raise Unauthorized("Invalid token")


def user_id_from_token(token: str) -> str:
    """Resolve the caller id from signature and expiry alone; no database lookup."""
    payload = decode_token(token)
    user_id = payload.get("sub")
    if not user_id:
        raise Unauthorized("Invalid token payload")
    return user_id


async def require_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(auth_scheme),
) -> str:
    """Dependency guarding every protected route; yields the caller's user id."""
    if credentials is None or not credentials.credentials:
        raise Unauthorized("No token, authorization denied")
    return user_id_from_token(credentials.credentials)
