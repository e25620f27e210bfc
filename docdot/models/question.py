"""True/false question model."""
from sqlalchemy import Column, Integer, String, Text, Boolean, JSON
from docdot.db.base import Base


class Question(Base):
    """True/false prompt with its answer and explanation."""

    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    question = Column(Text, nullable=False)
    answer = Column(Boolean, nullable=False)
    explanation = Column(Text)
    ai_explanation = Column(Text)
    reference_data = Column(JSON)
    category = Column(String(100), nullable=False, index=True)
    subcategory = Column(String(100), index=True)
