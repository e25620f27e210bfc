"""Quiz session lifecycle.

A session goes active -> inactive exactly once and is never reactivated.
Starting a session always ends whatever the user had open, so a user never
holds more than one active session.
"""
import logging
from datetime import datetime
from typing import Optional

from docdot.core.config import settings
from docdot.core.errors import BadRequest, Unauthenticated
from docdot.db.repository import Repository
from docdot.models import QuizSession

logger = logging.getLogger(__name__)


class SessionLifecycleManager:
    def __init__(self, repo: Repository):
        self.repo = repo

    def start_session(
        self,
        user_id: Optional[int],
        category: Optional[str],
        subcategory: Optional[str] = None,
        total_questions: Optional[int] = None,
    ) -> QuizSession:
        if user_id is None:
            raise Unauthenticated()
        if not category:
            raise BadRequest("Category is required")

        self._deactivate_all(user_id)
        session = self.repo.create_session(
            user_id=user_id,
            category=category,
            subcategory=subcategory,
            questions_completed=0,
            total_questions=total_questions or settings.DEFAULT_QUIZ_LENGTH,
            started_at=datetime.utcnow(),
            is_active=True,
        )
        self.repo.commit()
        logger.info("Started quiz session %s for user %s (%s)", session.id, user_id, session.title)
        return session

    def get_active_session(self, user_id: Optional[int]) -> Optional[QuizSession]:
        if user_id is None:
            return None
        return self.repo.get_active_session(user_id)

    def record_progress(self, session_id: int, commit: bool = True) -> Optional[QuizSession]:
        """Count one more answered question; unknown ids are ignored."""
        session = self.repo.get_session(session_id)
        if session is None:
            logger.warning("Progress for unknown quiz session %s ignored", session_id)
            return None
        session = self.repo.update_session(
            session_id, {"questions_completed": (session.questions_completed or 0) + 1}
        )
        if commit:
            self.repo.commit()
        return session

    def end_session(self, user_id: Optional[int]) -> None:
        if user_id is None:
            raise Unauthenticated()
        if self._deactivate_all(user_id):
            self.repo.commit()

    def _deactivate_all(self, user_id: int) -> int:
        now = datetime.utcnow()
        sessions = self.repo.list_active_sessions(user_id)
        for session in sessions:
            self.repo.update_session(session.id, {"is_active": False, "ended_at": now})
            logger.info("Ended quiz session %s for user %s", session.id, user_id)
        return len(sessions)
