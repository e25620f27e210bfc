"""Image identification item model."""
from sqlalchemy import Column, Integer, String, Text, JSON
from docdot.db.base import Base


class ImageItem(Base):
    """Image with one correct label and an ordered list of options."""

    __tablename__ = "image_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    category = Column(String(100), nullable=False, index=True)
    subcategory = Column(String(100), index=True)
    image_url = Column(String(500), nullable=False)
    correct_answer = Column(Text, nullable=False)
    options = Column(JSON, nullable=False, default=list)  # display order matters
    explanation = Column(Text)
