"""UserStats model."""
from sqlalchemy import Column, Integer, Date, JSON, ForeignKey
from sqlalchemy.orm import relationship
from docdot.db.base import Base


class UserStats(Base):
    """Running totals for one user.

    `category_stats` maps a category key ("Anatomy-Thorax", "Anatomy") to
    {"attempts": int, "correct": int}.
    """

    __tablename__ = "user_stats"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    total_attempts = Column(Integer, nullable=False, default=0)
    correct_answers = Column(Integer, nullable=False, default=0)
    streak = Column(Integer, nullable=False, default=0)
    max_streak = Column(Integer, nullable=False, default=0)
    last_activity_date = Column(Date)
    category_stats = Column(JSON, nullable=False, default=dict)

    # Relationships
    user = relationship("User", back_populates="stats")
