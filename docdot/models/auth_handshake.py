"""AuthHandshake model."""
from datetime import datetime
from sqlalchemy import Column, Integer, BigInteger, String, DateTime
from docdot.db.base import Base


class AuthHandshake(Base):
    """Correlation token linking a Telegram identity to a web login."""

    __tablename__ = "auth_handshakes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    token = Column(String(64), unique=True, nullable=False, index=True)
    telegram_id = Column(BigInteger)  # set once the bot has seen the token
    created_at = Column(DateTime, default=datetime.utcnow)
    expires_at = Column(DateTime, nullable=False)
    consumed_at = Column(DateTime)

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at
