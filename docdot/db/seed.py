"""Sample quiz content for a fresh database."""
import logging

from docdot.core.config import CATEGORIES
from docdot.db.repository import Repository

logger = logging.getLogger(__name__)

QUESTIONS_PER_SUBCATEGORY = 5
IMAGE_SUBCATEGORIES = ["Head and Neck", "Thorax", "Abdomen", "Neuroanatomy"]
IMAGES_PER_SUBCATEGORY = 3


def seed_sample_content(repo: Repository) -> bool:
    """Insert sample questions and image items unless content already exists."""
    if repo.count_questions() > 0:
        return False

    for category, subcategories in CATEGORIES.items():
        for subcategory in subcategories:
            for i in range(QUESTIONS_PER_SUBCATEGORY):
                repo.create_question(
                    question=f"Sample {category} {subcategory} question {i + 1}",
                    answer=i % 2 == 0,
                    explanation=f"This is an explanation for the {category} {subcategory} question {i + 1}",
                    ai_explanation=f"AI explanation for {category} {subcategory} question {i + 1}",
                    reference_data={"source": "Medical textbook"},
                    category=category,
                    subcategory=subcategory,
                )

    for subcategory in IMAGE_SUBCATEGORIES:
        for i in range(IMAGES_PER_SUBCATEGORY):
            repo.create_image_item(
                category="Anatomy",
                subcategory=subcategory,
                image_url=f"https://via.placeholder.com/500x300?text={subcategory.replace(' ', '+')}+Image+{i + 1}",
                correct_answer=f"Structure {i + 1}",
                options=[f"Structure {i + n}" for n in range(1, 5)],
                explanation=f"This is an explanation for the {subcategory} structure {i + 1}",
            )

    repo.commit()
    logger.info("Seeded sample quiz content")
    return True
