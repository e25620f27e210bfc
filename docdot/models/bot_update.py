"""BotUpdate model."""
from datetime import datetime
from sqlalchemy import Column, Integer, BigInteger, DateTime, JSON
from docdot.db.base import Base


class BotUpdate(Base):
    """Raw inbound Telegram update, kept for replay and auditing."""

    __tablename__ = "bot_updates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    telegram_id = Column(BigInteger, index=True)
    data = Column(JSON, nullable=False)
    received_at = Column(DateTime, default=datetime.utcnow)
    processed_at = Column(DateTime)
