"""User model."""
from datetime import datetime
from sqlalchemy import Column, Integer, BigInteger, String, DateTime
from sqlalchemy.orm import relationship
from docdot.db.base import Base


class User(Base):
    """Account shared by the web app and the Telegram bot."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    telegram_id = Column(BigInteger, unique=True, index=True)
    first_name = Column(String(100))
    last_name = Column(String(100))
    avatar = Column(String(500))
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    stats = relationship("UserStats", back_populates="user", uselist=False)
    quiz_sessions = relationship("QuizSession", back_populates="user")
    activities = relationship("ActivityRecord", back_populates="user")

    @property
    def display_name(self) -> str:
        return self.first_name or self.username
