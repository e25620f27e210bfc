"""QuizSession model."""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from docdot.db.base import Base


class QuizSession(Base):
    """One quiz attempt. A user has at most one row with is_active=True."""

    __tablename__ = "quiz_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    category = Column(String(100), nullable=False)
    subcategory = Column(String(100))
    questions_completed = Column(Integer, nullable=False, default=0)
    total_questions = Column(Integer, nullable=False, default=0)
    started_at = Column(DateTime, default=datetime.utcnow)
    ended_at = Column(DateTime)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    # Relationships
    user = relationship("User", back_populates="quiz_sessions")

    @property
    def title(self) -> str:
        return f"{self.subcategory or self.category} Quiz"
