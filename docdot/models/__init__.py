"""Database models."""
from docdot.models.user import User
from docdot.models.question import Question
from docdot.models.image_item import ImageItem
from docdot.models.user_stats import UserStats
from docdot.models.quiz_session import QuizSession
from docdot.models.activity import ActivityRecord
from docdot.models.auth_handshake import AuthHandshake
from docdot.models.bot_update import BotUpdate

__all__ = [
    "User",
    "Question",
    "ImageItem",
    "UserStats",
    "QuizSession",
    "ActivityRecord",
    "AuthHandshake",
    "BotUpdate",
]
