"""Telegram deep-link login handshake.

1. The web client asks for a login link. A random token is stored in its
   session and persisted with a short TTL; the link opens the bot with
   `/start auth_<token>`.
2. The bot records who opened the link and replies with a callback URL
   carrying the Telegram id and the token.
3. The callback resolves (or creates) the user and logs the browser in.

A token that was issued here is single use and expires after
`HANDSHAKE_TTL_MINUTES`. Tokens that were never issued (or no token at all)
are let through on the Telegram id alone so plain links built by the bot still
work. This trusts the id in the callback URL; `HANDSHAKE_ACCEPT_UNISSUED=False`
turns it off and requires an issued token.
"""
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import MutableMapping, Optional
from urllib.parse import urlencode

from docdot.core.config import settings
from docdot.core.errors import BadRequest, Conflict, Internal, Unauthenticated
from docdot.core.security import SESSION_USER_KEY, random_password_hash
from docdot.db.repository import Repository
from docdot.models import User

logger = logging.getLogger(__name__)

SESSION_STATE_KEY = "telegram_state"
AUTH_PREFIX = "auth_"


@dataclass
class HandshakeLink:
    token: str
    url: str


@dataclass
class HandshakeResult:
    user: User
    redirect_path: str
    created: bool


def new_token() -> str:
    """128 bits of randomness, hex encoded."""
    return secrets.token_hex(16)


def parse_external_id(raw) -> int:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise BadRequest("Missing Telegram ID")
    if isinstance(raw, bool):
        raise BadRequest("Invalid Telegram ID")
    if isinstance(raw, int):
        return raw
    try:
        return int(str(raw).strip())
    except ValueError:
        raise BadRequest("Invalid Telegram ID")


def safe_redirect(path: Optional[str], default: Optional[str] = None) -> str:
    """Only same-site absolute paths; anything else falls back to the landing page."""
    fallback = default or settings.DEFAULT_LANDING_PATH
    if not path or not path.startswith("/") or "//" in path or "\\" in path:
        return fallback
    return path


class AuthHandshakeCoordinator:
    def __init__(self, repo: Repository):
        self.repo = repo

    def deep_link(self, token: str) -> str:
        return f"https://{settings.TELEGRAM_LINK_HOST}/{settings.TELEGRAM_BOT_USERNAME}?start={AUTH_PREFIX}{token}"

    def callback_url(self, telegram_id: int, token: str, redirect: Optional[str] = None) -> str:
        params = {"id": telegram_id, "state": token}
        if redirect:
            params["redirect"] = redirect
        return f"{settings.WEB_BASE_URL.rstrip('/')}/api/telegram/callback?{urlencode(params)}"

    def _expiry(self) -> datetime:
        return datetime.utcnow() + timedelta(minutes=settings.HANDSHAKE_TTL_MINUTES)

    def begin_handshake(self, web_session: MutableMapping) -> HandshakeLink:
        token = new_token()
        self.repo.create_handshake(token=token, expires_at=self._expiry())
        self.repo.commit()
        web_session[SESSION_STATE_KEY] = token
        return HandshakeLink(token=token, url=self.deep_link(token))

    def issue_bot_token(self, telegram_id: int) -> str:
        """Token for a login link the bot hands out to `telegram_id` directly."""
        token = new_token()
        self.repo.create_handshake(token=token, expires_at=self._expiry(), telegram_id=telegram_id)
        self.repo.commit()
        return token

    def attach_identity(self, token: str, telegram_id: int) -> bool:
        """Record which Telegram user opened the deep link for `token`."""
        handshake = self.repo.get_handshake(token, for_update=True)
        if handshake is None or handshake.consumed_at is not None:
            return False
        if handshake.telegram_id is not None and handshake.telegram_id != telegram_id:
            logger.warning("Handshake token already bound to another Telegram user")
            return False
        handshake.telegram_id = telegram_id
        self.repo.commit()
        return True

    def complete_handshake(
        self,
        web_session: MutableMapping,
        external_id,
        token: Optional[str] = None,
        redirect_path: Optional[str] = None,
    ) -> HandshakeResult:
        telegram_id = parse_external_id(external_id)

        # trust-the-id policy: see settings.HANDSHAKE_ACCEPT_UNISSUED
        if token:
            self._consume(token, telegram_id)
        elif not settings.HANDSHAKE_ACCEPT_UNISSUED:
            raise Unauthenticated("Login link required")

        created = False
        user = self.repo.get_user_by_external_id(telegram_id)
        if user is None:
            try:
                user = self.repo.create_user(
                    username=f"telegram_{telegram_id}",
                    password_hash=random_password_hash(),
                    telegram_id=telegram_id,
                    first_name=f"Telegram User {telegram_id}",
                )
                self.repo.create_stats(user.id)
            except Conflict as e:
                logger.error("Could not create user for Telegram id %s: %s", telegram_id, e.detail)
                raise Internal("Authentication failed") from e
            created = True
        self.repo.commit()

        if created:
            logger.info("Created user %s for Telegram id %s", user.id, telegram_id)

        web_session[SESSION_USER_KEY] = user.id
        web_session.pop(SESSION_STATE_KEY, None)

        return HandshakeResult(user=user, redirect_path=safe_redirect(redirect_path), created=created)

    def _consume(self, token: str, telegram_id: int) -> None:
        handshake = self.repo.get_handshake(token, for_update=True)
        if handshake is None:
            if not settings.HANDSHAKE_ACCEPT_UNISSUED:
                raise Unauthenticated("Unknown login link")
            logger.info("Login with unissued handshake token for Telegram id %s", telegram_id)
            return
        if handshake.consumed_at is not None:
            raise Unauthenticated("Login link already used")
        now = datetime.utcnow()
        if handshake.is_expired(now):
            raise Unauthenticated("Login link expired")
        if handshake.telegram_id is not None and handshake.telegram_id != telegram_id:
            raise Unauthenticated("Login link belongs to another account")
        handshake.consumed_at = now
