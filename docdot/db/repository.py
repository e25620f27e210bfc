"""Data access for users, content, stats, sessions and activity.

Every service goes through `Repository`; nothing else issues queries. Methods
add and flush but never commit: the calling service commits once per
operation so an operation's writes land together.
"""
import logging
import random
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from docdot.core.errors import Conflict, Internal
from docdot.models import (
    ActivityRecord,
    AuthHandshake,
    BotUpdate,
    ImageItem,
    Question,
    QuizSession,
    User,
    UserStats,
)

logger = logging.getLogger(__name__)

ITEM_QUESTION = "question"
ITEM_IMAGE = "image"

ALL_CATEGORIES = "All Categories"


class Repository:
    def __init__(self, db: Session):
        self.db = db

    def commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Commit failed")
            raise Internal("Failed to persist changes") from e

    def rollback(self) -> None:
        self.db.rollback()

    def _flush(self, conflict_detail: str) -> None:
        try:
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            raise Conflict(conflict_detail) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Flush failed")
            raise Internal("Failed to persist changes") from e

    # Users

    def get_user(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(User.username == username).first()

    def get_user_by_external_id(self, telegram_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.telegram_id == telegram_id).first()

    def create_user(self, **data) -> User:
        user = User(**data)
        self.db.add(user)
        self._flush("User already exists")
        return user

    # Stats

    def get_stats(self, user_id: int, for_update: bool = False) -> Optional[UserStats]:
        query = self.db.query(UserStats).filter(UserStats.user_id == user_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def create_stats(self, user_id: int, **data) -> UserStats:
        stats = UserStats(
            user_id=user_id,
            total_attempts=data.get("total_attempts", 0),
            correct_answers=data.get("correct_answers", 0),
            streak=data.get("streak", 0),
            max_streak=data.get("max_streak", 0),
            last_activity_date=data.get("last_activity_date"),
            category_stats=dict(data.get("category_stats") or {}),
        )
        self.db.add(stats)
        self._flush("Stats already exist for user")
        return stats

    def update_stats(self, user_id: int, partial: Dict[str, Any]) -> Optional[UserStats]:
        stats = self.get_stats(user_id)
        if stats is None:
            return None
        for key, value in partial.items():
            setattr(stats, key, value)
        self.db.flush()
        return stats

    def all_stats(self) -> List[UserStats]:
        return self.db.query(UserStats).order_by(UserStats.user_id).all()

    # Quiz sessions

    def get_session(self, session_id: int) -> Optional[QuizSession]:
        return self.db.get(QuizSession, session_id)

    def get_active_session(self, user_id: int) -> Optional[QuizSession]:
        return self.db.query(QuizSession).filter(
            QuizSession.user_id == user_id,
            QuizSession.is_active.is_(True),
        ).order_by(QuizSession.started_at.desc(), QuizSession.id.desc()).first()

    def list_active_sessions(self, user_id: int) -> List[QuizSession]:
        return self.db.query(QuizSession).filter(
            QuizSession.user_id == user_id,
            QuizSession.is_active.is_(True),
        ).with_for_update().all()

    def create_session(self, **data) -> QuizSession:
        session = QuizSession(**data)
        self.db.add(session)
        self._flush("Could not create quiz session")
        return session

    def update_session(self, session_id: int, partial: Dict[str, Any]) -> Optional[QuizSession]:
        session = self.get_session(session_id)
        if session is None:
            return None
        for key, value in partial.items():
            setattr(session, key, value)
        self.db.flush()
        return session

    # Content

    def get_question(self, question_id: int) -> Optional[Question]:
        return self.db.get(Question, question_id)

    def get_image_item(self, image_id: int) -> Optional[ImageItem]:
        return self.db.get(ImageItem, image_id)

    def get_item_by_id(self, kind: str, item_id: int) -> Optional[Union[Question, ImageItem]]:
        if kind == ITEM_QUESTION:
            return self.get_question(item_id)
        if kind == ITEM_IMAGE:
            return self.get_image_item(item_id)
        raise ValueError(f"Unknown item kind: {kind}")

    def create_question(self, **data) -> Question:
        question = Question(**data)
        self.db.add(question)
        self.db.flush()
        return question

    def create_image_item(self, **data) -> ImageItem:
        item = ImageItem(**data)
        self.db.add(item)
        self.db.flush()
        return item

    def count_questions(self) -> int:
        return self.db.query(Question).count()

    def list_questions(
        self,
        category: Optional[str] = None,
        subcategory: Optional[str] = None,
        limit: Optional[int] = None,
        shuffle: bool = True,
    ) -> List[Question]:
        query = self.db.query(Question)
        if category and category != ALL_CATEGORIES:
            query = query.filter(Question.category == category)
            if subcategory:
                query = query.filter(Question.subcategory == subcategory)
        questions = query.order_by(Question.id).all()
        if shuffle:
            random.shuffle(questions)
        if limit and limit > 0:
            questions = questions[:limit]
        return questions

    def list_image_items(
        self,
        category: Optional[str] = None,
        limit: Optional[int] = None,
        shuffle: bool = True,
    ) -> List[ImageItem]:
        query = self.db.query(ImageItem)
        if category:
            query = query.filter(
                (ImageItem.category == category) | (ImageItem.subcategory == category)
            )
        items = query.order_by(ImageItem.id).all()
        if shuffle:
            random.shuffle(items)
        if limit and limit > 0:
            items = items[:limit]
        return items

    def image_categories(self) -> List[str]:
        categories: List[str] = []
        for category, subcategory in self.db.query(ImageItem.category, ImageItem.subcategory).order_by(ImageItem.id):
            name = subcategory or category
            if name not in categories:
                categories.append(name)
        return categories

    # Activity

    def append_activity(self, **data) -> ActivityRecord:
        activity = ActivityRecord(**data)
        self.db.add(activity)
        self.db.flush()
        return activity

    def list_activity(self, user_id: int, limit: Optional[int] = None) -> List[ActivityRecord]:
        query = self.db.query(ActivityRecord).filter(
            ActivityRecord.user_id == user_id
        ).order_by(ActivityRecord.timestamp.desc(), ActivityRecord.id.desc())
        if limit:
            query = query.limit(limit)
        return query.all()

    def find_session_answer(self, session_id: int, activity_type: str, item_id: int) -> Optional[ActivityRecord]:
        return self.db.query(ActivityRecord).filter(
            ActivityRecord.session_id == session_id,
            ActivityRecord.activity_type == activity_type,
            ActivityRecord.item_id == item_id,
        ).order_by(ActivityRecord.id).first()

    # Auth handshakes

    def create_handshake(self, token: str, expires_at: datetime, telegram_id: Optional[int] = None) -> AuthHandshake:
        handshake = AuthHandshake(token=token, expires_at=expires_at, telegram_id=telegram_id)
        self.db.add(handshake)
        self._flush("Handshake token collision")
        return handshake

    def get_handshake(self, token: str, for_update: bool = False) -> Optional[AuthHandshake]:
        query = self.db.query(AuthHandshake).filter(AuthHandshake.token == token)
        if for_update:
            query = query.with_for_update()
        return query.first()

    # Bot updates

    def save_bot_update(self, telegram_id: Optional[int], data: Dict[str, Any]) -> BotUpdate:
        update = BotUpdate(telegram_id=telegram_id, data=data)
        self.db.add(update)
        self.db.flush()
        return update

    def mark_bot_update_processed(self, update_id: int) -> None:
        update = self.db.get(BotUpdate, update_id)
        if update is not None:
            update.processed_at = datetime.utcnow()
            self.db.flush()
