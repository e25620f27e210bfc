"""Read-side views over user stats: summaries, category breakdowns,
leaderboard and the activity feed."""
import math
from datetime import datetime
from typing import Any, Dict, List, Optional

from docdot.db.repository import Repository
from docdot.models import ActivityRecord, UserStats
from docdot.models.activity import (
    ACTIVITY_ASK_AI,
    ACTIVITY_IMAGE_ANSWER,
    ACTIVITY_QUIZ_ANSWER,
    RESULT_SUCCESS,
)

ALL = "all"
RECENT_ACTIVITY_LIMIT = 10


def round_half_up(value: float) -> int:
    """Nearest integer, halves rounded up (12.5 -> 13)."""
    return int(math.floor(value + 0.5))


def accuracy(correct: int, attempts: int) -> int:
    """Rounded percentage, 0 when nothing was attempted."""
    if not attempts:
        return 0
    return round_half_up(correct / attempts * 100)


def format_activity(activity: ActivityRecord) -> Dict[str, Any]:
    details = activity.details or {}
    topic = " ".join(part for part in (activity.category, activity.subcategory) if part)
    feed_type = "default"
    title = "Activity"
    description = ""
    badge = ""

    if activity.activity_type == ACTIVITY_QUIZ_ANSWER:
        is_correct = activity.result == RESULT_SUCCESS
        feed_type = "success" if is_correct else "failure"
        title = "Completed Quiz" if is_correct else "Challenging Quiz"
        description = (
            f"You scored well on {topic} quiz"
            if is_correct
            else f"You might need more practice with {topic}"
        )
        badge = f"+{details.get('streak', 1)} streak" if is_correct else "Streak reset"
    elif activity.activity_type == ACTIVITY_IMAGE_ANSWER:
        is_correct = activity.result == RESULT_SUCCESS
        feed_type = "image"
        title = "Attempted Image Quiz"
        description = (
            f"You identified {details.get('correct_answer')} correctly"
            if is_correct
            else f"You missed {details.get('correct_answer')} in {topic}"
        )
        badge = f"+{details.get('streak', 1)} streak" if is_correct else "Streak reset"
    elif activity.activity_type == ACTIVITY_ASK_AI:
        feed_type = "success"
        title = "AI Tutor Question"
        description = f"You asked about: {(details.get('question') or '')[:50]}..."
        badge = "Knowledge"

    timestamp = activity.timestamp or datetime.utcnow()
    return {
        "id": activity.id,
        "type": feed_type,
        "title": title,
        "description": description,
        "badge": badge,
        "timestamp": timestamp.isoformat(),
    }


def _subcategory_name(key: str, category: str) -> str:
    if key == category or "-" not in key:
        return "General"
    return key.split("-", 1)[1] or "General"


class StatsService:
    def __init__(self, repo: Repository):
        self.repo = repo

    def summary(self, user_id: int) -> Optional[Dict[str, Any]]:
        stats = self.repo.get_stats(user_id)
        if stats is None:
            return None
        return {
            "total_quizzes": stats.total_attempts,
            "correct_answers": stats.correct_answers,
            "accuracy": accuracy(stats.correct_answers, stats.total_attempts),
            "current_streak": stats.streak,
            "best_streak": stats.max_streak,
            "recent_activity": self.recent_activity(user_id, RECENT_ACTIVITY_LIMIT),
        }

    def category_stats(self, user_id: int, category: str) -> Dict[str, Any]:
        stats = self.repo.get_stats(user_id)
        return self._category_stats(stats, category)

    def _category_stats(self, stats: Optional[UserStats], category: str) -> Dict[str, Any]:
        subcategories = []
        total_attempts = 0
        total_correct = 0
        buckets = (stats.category_stats or {}) if stats is not None else {}

        for key, value in buckets.items():
            if category != ALL and key != category and not key.startswith(f"{category}-"):
                continue
            attempts = value.get("attempts", 0)
            correct = value.get("correct", 0)
            total_attempts += attempts
            total_correct += correct
            subcategories.append({
                "name": key if category == ALL else _subcategory_name(key, category),
                "attempts": attempts,
                "correct": correct,
                "accuracy": accuracy(correct, attempts),
            })

        return {
            "category": category,
            "total_quizzes": total_attempts,
            "correct_answers": total_correct,
            "accuracy": accuracy(total_correct, total_attempts),
            "subcategories": subcategories,
        }

    def progress(self, user_id: int) -> Dict[str, Dict[str, int]]:
        stats = self.repo.get_stats(user_id)
        if stats is None:
            return {}
        return {
            key: {"attempts": value.get("attempts", 0), "correct": value.get("correct", 0)}
            for key, value in (stats.category_stats or {}).items()
        }

    def leaderboard(self, category: Optional[str] = None) -> List[Dict[str, Any]]:
        """Users ranked by accuracy weighted with log(attempts + 1)."""
        entries = []
        for stats in self.repo.all_stats():
            user = self.repo.get_user(stats.user_id)
            if user is None:
                continue
            if category and category != ALL:
                breakdown = self._category_stats(stats, category)
                user_accuracy = breakdown["accuracy"]
                total = breakdown["total_quizzes"]
            else:
                user_accuracy = accuracy(stats.correct_answers, stats.total_attempts)
                total = stats.total_attempts
            entries.append({
                "id": user.id,
                "name": user.display_name,
                "username": user.username,
                "accuracy": user_accuracy,
                "total_quizzes": total,
                "score": round_half_up(user_accuracy * math.log(total + 1)),
            })
        entries.sort(key=lambda e: (e["score"], e["accuracy"]), reverse=True)
        return entries

    def recent_activity(self, user_id: int, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        return [format_activity(a) for a in self.repo.list_activity(user_id, limit)]

    def record_ai_question(self, user_id: int, question: str, response: str) -> ActivityRecord:
        activity = self.repo.append_activity(
            user_id=user_id,
            activity_type=ACTIVITY_ASK_AI,
            details={"question": question, "response": response},
        )
        self.repo.commit()
        return activity
