"""Security utilities for JWT, password hashing and the current user."""
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from docdot.core.config import settings
from docdot.core.errors import Unauthenticated
from docdot.db.sessions import get_db
from docdot.models.user import User


# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Bearer token is optional: browsers authenticate with the session cookie
security = HTTPBearer(auto_error=False)

SESSION_USER_KEY = "user_id"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a hashed password."""
    return pwd_context.verify(_truncate_for_bcrypt(plain_password), hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(_truncate_for_bcrypt(password))


def random_password_hash() -> str:
    """Hash of a throwaway password for accounts that only log in via Telegram."""
    return get_password_hash(secrets.token_hex(16))


def _truncate_for_bcrypt(password: str) -> str:
    """Truncate password to bcrypt's 72-byte limit.

    Truncates on the UTF-8 encoded bytes and decodes with 'ignore' so a
    multi-byte character is never split.
    """
    if not isinstance(password, str):
        return password
    b = password.encode("utf-8")[:72]
    return b.decode("utf-8", "ignore")


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded_jwt


def decode_token(token: str) -> dict:
    """Decode and validate a JWT token."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise Unauthenticated("Could not validate credentials")


def _resolve_user_id(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[int]:
    if credentials is not None:
        payload = decode_token(credentials.credentials)
        subject = payload.get("sub")
        if subject is None:
            raise Unauthenticated("Invalid authentication credentials")
        try:
            return int(subject)
        except (TypeError, ValueError):
            raise Unauthenticated("Invalid authentication credentials")
    return request.session.get(SESSION_USER_KEY)


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Current user from a bearer token or the session cookie, or None for guests."""
    user_id = _resolve_user_id(request, credentials)
    if user_id is None:
        return None
    return db.get(User, user_id)


async def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    """
    Dependency to get the current authenticated user.

    Usage:
        @router.get("/protected")
        def protected_route(current_user: User = Depends(get_current_user)):
            return {"user_id": current_user.id}
    """
    if user is None:
        raise Unauthenticated()
    return user


def log_in(request: Request, user: User) -> str:
    """Bind `user` to the web session and return a bearer token for API clients."""
    request.session[SESSION_USER_KEY] = user.id
    return create_access_token(
        data={"sub": str(user.id)},
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )
