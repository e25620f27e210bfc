"""Authentication routes."""
from typing import Optional
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field

from docdot.db.repository import Repository
from docdot.db.sessions import get_db
from docdot.models.user import User
from docdot.core.errors import Conflict, Unauthenticated
from docdot.core.security import (
    get_optional_user,
    get_password_hash,
    log_in,
    verify_password,
)
from docdot.services.handshake import AuthHandshakeCoordinator


router = APIRouter(prefix="/api", tags=["Authentication"])


# Request/Response schemas
class RegisterRequest(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1)
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    id: int
    name: str
    username: str
    is_guest: bool = False


class UserResponse(BaseModel):
    id: int
    name: str
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar: Optional[str] = None
    is_guest: bool


def _token_response(user: User, access_token: str) -> TokenResponse:
    return TokenResponse(
        access_token=access_token,
        id=user.id,
        name=user.display_name,
        username=user.username,
    )


@router.get("/user", response_model=UserResponse)
def get_user(current_user: Optional[User] = Depends(get_optional_user)):
    """Current user, or a guest placeholder when nobody is logged in."""
    if current_user is None:
        return UserResponse(id=0, name="Guest User", is_guest=True)
    return UserResponse(
        id=current_user.id,
        name=current_user.display_name,
        username=current_user.username,
        first_name=current_user.first_name,
        last_name=current_user.last_name,
        avatar=current_user.avatar,
        is_guest=False,
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(body: RegisterRequest, request: Request, db: Session = Depends(get_db)):
    """
    Register a new user.

    - Creates user account with hashed password and empty stats
    - Logs the browser in and returns a JWT access token
    """
    repo = Repository(db)
    if repo.get_user_by_username(body.username):
        raise Conflict("Username already exists")

    user = repo.create_user(
        username=body.username,
        password_hash=get_password_hash(body.password),
        first_name=body.first_name,
        last_name=body.last_name,
    )
    repo.create_stats(user.id)
    repo.commit()

    return _token_response(user, log_in(request, user))


@router.post("/login", response_model=TokenResponse)
def login(body: LoginRequest, request: Request, db: Session = Depends(get_db)):
    """Login with username and password."""
    user = Repository(db).get_user_by_username(body.username)
    if not user or not verify_password(body.password, user.password_hash):
        raise Unauthenticated("Invalid credentials")

    return _token_response(user, log_in(request, user))


@router.post("/logout")
def logout(request: Request):
    request.session.clear()
    return {"message": "Logout successful"}


@router.get("/telegram/login")
def telegram_login(request: Request, db: Session = Depends(get_db)):
    """Start the Telegram handshake and send the browser to the bot."""
    link = AuthHandshakeCoordinator(Repository(db)).begin_handshake(request.session)
    return RedirectResponse(link.url, status_code=status.HTTP_302_FOUND)


@router.get("/telegram/callback")
def telegram_callback(
    request: Request,
    id: Optional[str] = None,
    state: Optional[str] = None,
    redirect: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """
    Finish the Telegram handshake.

    Logs the browser in as the Telegram user (creating the account on first
    visit) and redirects to `redirect` when it is a safe local path.
    """
    coordinator = AuthHandshakeCoordinator(Repository(db))
    result = coordinator.complete_handshake(
        request.session, external_id=id, token=state, redirect_path=redirect
    )
    return RedirectResponse(result.redirect_path, status_code=status.HTTP_302_FOUND)
