"""Answer scoring.

Checks a submitted answer against a question or image item, folds the result
into the user's running stats and logs it as activity. The engine keeps no
state of its own between calls; everything goes through the repository and is
committed once per answer.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional, Union

from docdot.core.errors import NotFound, Unauthenticated
from docdot.db.repository import ITEM_IMAGE, ITEM_QUESTION, Repository
from docdot.models import ImageItem, Question, UserStats
from docdot.models.activity import (
    ACTIVITY_IMAGE_ANSWER,
    ACTIVITY_QUIZ_ANSWER,
    RESULT_FAILURE,
    RESULT_SUCCESS,
)
from docdot.services.session_manager import SessionLifecycleManager

logger = logging.getLogger(__name__)

NO_EXPLANATION = "No explanation available"

Item = Union[Question, ImageItem]


@dataclass
class Verdict:
    is_correct: bool
    explanation: str
    correct_answer: Union[bool, str]


def category_key(item: Item) -> str:
    """Bucket used in UserStats.category_stats for this item."""
    if isinstance(item, ImageItem):
        return item.category
    if item.subcategory:
        return f"{item.category}-{item.subcategory}"
    return item.category


def correct_answer_for(item: Item) -> Union[bool, str]:
    if isinstance(item, ImageItem):
        return item.correct_answer
    return item.answer


def explanation_for(item: Item) -> str:
    if isinstance(item, Question):
        return item.explanation or item.ai_explanation or NO_EXPLANATION
    return item.explanation or NO_EXPLANATION


def apply_answer(stats: UserStats, key: str, is_correct: bool, today: date) -> Dict[str, Any]:
    """Return the stats fields that change when one answer is folded in."""
    # fresh dict so the JSON column is seen as dirty
    categories = dict(stats.category_stats or {})
    bucket = dict(categories.get(key) or {"attempts": 0, "correct": 0})
    bucket["attempts"] = bucket.get("attempts", 0) + 1
    if is_correct:
        bucket["correct"] = bucket.get("correct", 0) + 1
    categories[key] = bucket

    streak = (stats.streak or 0) + 1 if is_correct else 0
    correct_answers = (stats.correct_answers or 0) + (1 if is_correct else 0)
    return {
        "total_attempts": (stats.total_attempts or 0) + 1,
        "correct_answers": correct_answers,
        "streak": streak,
        "max_streak": max(stats.max_streak or 0, streak),
        "last_activity_date": today,
        "category_stats": categories,
    }


class ScoringEngine:
    def __init__(self, repo: Repository, sessions: Optional[SessionLifecycleManager] = None):
        self.repo = repo
        self.sessions = sessions or SessionLifecycleManager(repo)

    def answer_question(self, user_id: Optional[int], question_id: int, answer: bool) -> Verdict:
        return self._answer(user_id, ITEM_QUESTION, question_id, answer, "Question not found")

    def answer_image(self, user_id: Optional[int], image_id: int, answer: str) -> Verdict:
        return self._answer(user_id, ITEM_IMAGE, image_id, answer, "Image data not found")

    def _answer(self, user_id: Optional[int], kind: str, item_id: int, answer, missing: str) -> Verdict:
        if user_id is None:
            raise Unauthenticated()
        item = self.repo.get_item_by_id(kind, item_id)
        if item is None:
            raise NotFound(missing)
        return self.submit_answer(user_id, item, answer)

    def submit_answer(self, user_id: Optional[int], item: Item, submitted_answer) -> Verdict:
        """Score `submitted_answer` against `item` and record the outcome.

        Within one active session an item is only counted once; resubmitting
        it returns the verdict of the first submission and changes nothing.
        """
        if user_id is None:
            raise Unauthenticated()

        correct_answer = correct_answer_for(item)
        activity_type = ACTIVITY_IMAGE_ANSWER if isinstance(item, ImageItem) else ACTIVITY_QUIZ_ANSWER

        session = self.sessions.get_active_session(user_id)
        if session is not None:
            previous = self.repo.find_session_answer(session.id, activity_type, item.id)
            if previous is not None:
                logger.info(
                    "Duplicate answer for %s %s in session %s ignored", activity_type, item.id, session.id
                )
                return Verdict(
                    is_correct=previous.result == RESULT_SUCCESS,
                    explanation=explanation_for(item),
                    correct_answer=correct_answer,
                )

        is_correct = submitted_answer == correct_answer

        stats = self.repo.get_stats(user_id, for_update=True)
        if stats is None:
            stats = self.repo.create_stats(user_id)
        stats = self.repo.update_stats(
            user_id, apply_answer(stats, category_key(item), is_correct, date.today())
        )

        if session is not None:
            self.sessions.record_progress(session.id, commit=False)

        self.repo.append_activity(
            user_id=user_id,
            activity_type=activity_type,
            category=item.category,
            subcategory=item.subcategory,
            result=RESULT_SUCCESS if is_correct else RESULT_FAILURE,
            score=1 if is_correct else 0,
            session_id=session.id if session is not None else None,
            item_id=item.id,
            details={
                "item_id": item.id,
                "user_answer": submitted_answer,
                "correct_answer": correct_answer,
                "streak": stats.streak,
            },
        )
        self.repo.commit()

        return Verdict(
            is_correct=is_correct,
            explanation=explanation_for(item),
            correct_answer=correct_answer,
        )
