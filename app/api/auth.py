import re

from fastapi import APIRouter, Depends
import structlog

from .schemas import ProfileUpdate, SigninRequest, SignupRequest, ok
from ..auth import create_token, current_user, hash_password, verify_password
from ..config import settings
from ..db import get_conn
from ..errors import Conflict, NotAuthorized, ValidationFailed
from ..stores import users as user_store

router = APIRouter(prefix="/auth", tags=["Auth"])
log = structlog.get_logger()

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LEN = 6

def _check_email(email: str) -> str:
    email = email.strip().lower()
    if not _EMAIL_RE.match(email):
        raise ValidationFailed("Please provide a valid email")
    return email

def _check_password(password: str):
    if len(password) < MIN_PASSWORD_LEN:
        raise ValidationFailed(f"Password must be at least {MIN_PASSWORD_LEN} characters")

@router.post('/signup', status_code=201, summary="Create an account")
async def signup(body: SignupRequest):
    username = body.username.strip()
    if not username:
        raise ValidationFailed("Please provide a username")
    email = _check_email(body.email)
    _check_password(body.password)
    conn = await get_conn()
    if await user_store.get_user_by_email(conn, email):
        raise Conflict("User already exists")
    user = await user_store.create_user(conn, username, email, hash_password(body.password), settings.default_avatar_url)
    log.info("user_signed_up", user_id=user["id"])
    return ok({"user": user_store.public_user(user), "token": create_token(user["id"])})

@router.post('/signin', summary="Sign in with email and password")
async def signin(body: SigninRequest):
    if not body.email or not body.password:
        raise ValidationFailed("Please provide email and password")
    conn = await get_conn()
    user = await user_store.get_user_by_email(conn, body.email.strip().lower())
    if user is None or not verify_password(body.password, user["password_hash"]):
        raise NotAuthorized("Invalid credentials")
    return ok({"user": user_store.public_user(user), "token": create_token(user["id"])})

@router.get('/me', summary="Current user")
async def me(user: dict = Depends(current_user)):
    return ok(user_store.public_user(user))

@router.put('/profile', summary="Update username, email, avatar or password")
async def update_profile(body: ProfileUpdate, user: dict = Depends(current_user)):
    conn = await get_conn()
    fields = {}
    if body.username is not None:
        if not body.username.strip():
            raise ValidationFailed("Username cannot be empty")
        fields["username"] = body.username.strip()
    if body.email is not None:
        email = _check_email(body.email)
        existing = await user_store.get_user_by_email(conn, email)
        if existing and existing["id"] != user["id"]:
            raise Conflict("Email already in use")
        fields["email"] = email
    if body.avatar is not None:
        fields["avatar"] = body.avatar
    if body.password is not None:
        _check_password(body.password)
        fields["password_hash"] = hash_password(body.password)
    updated = await user_store.update_user(conn, user["id"], fields)
    return ok(user_store.public_user(updated), message="Profile updated")
