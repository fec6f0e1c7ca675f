from __future__ import annotations

from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import settings
from .db import get_conn
from .errors import NotAuthorized
from .stores import users as user_store

JWT_ALGORITHM = "HS256"
BCRYPT_ROUNDS = 10

_bearer = HTTPBearer(auto_error=False)

def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")

def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False

def create_token(user_id: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {"sub": user_id, "iat": now, "exp": now + timedelta(days=settings.jwt_expires_days)}
    return jwt.encode(payload, settings.jwt_secret, algorithm=JWT_ALGORITHM)

def decode_token(token: str) -> str:
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError:
        raise NotAuthorized("Not authorized, token failed")
    user_id = payload.get("sub")
    if not user_id:
        raise NotAuthorized("Not authorized, token failed")
    return user_id

async def current_user(creds: HTTPAuthorizationCredentials | None = Depends(_bearer)) -> dict:
    """Resolve the bearer token to a user document before the handler runs."""
    if creds is None or not creds.credentials:
        raise NotAuthorized("Not authorized, no token")
    user_id = decode_token(creds.credentials)
    conn = await get_conn()
    user = await user_store.get_user(conn, user_id)
    if user is None:
        raise NotAuthorized("Not authorized, user not found")
    return user
