"""ActivityRecord model."""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, JSON, ForeignKey
from sqlalchemy.orm import relationship
from docdot.db.base import Base

ACTIVITY_QUIZ_ANSWER = "quiz_answer"
ACTIVITY_IMAGE_ANSWER = "image_answer"
ACTIVITY_ASK_AI = "ask_ai"

RESULT_SUCCESS = "success"
RESULT_FAILURE = "failure"


class ActivityRecord(Base):
    """Append-only activity log entry."""

    __tablename__ = "user_activity"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    activity_type = Column(String(30), nullable=False)
    category = Column(String(100))
    subcategory = Column(String(100))
    result = Column(String(20))  # success / failure
    score = Column(Integer)
    details = Column(JSON)
    session_id = Column(Integer, ForeignKey("quiz_sessions.id", ondelete="SET NULL"), index=True)
    item_id = Column(Integer)
    timestamp = Column(DateTime, default=datetime.utcnow, index=True)

    # Relationships
    user = relationship("User", back_populates="activities")
