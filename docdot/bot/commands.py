"""Telegram bot commands.

The replies are built here, independent of the Telegram SDK, so the same logic
serves the webhook handlers in `telegram_bot.py` and the tests.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from docdot.core.config import CATEGORIES, settings
from docdot.core.errors import Conflict
from docdot.core.security import random_password_hash
from docdot.db.repository import Repository
from docdot.models import User
from docdot.services.handshake import AUTH_PREFIX, AuthHandshakeCoordinator
from docdot.services.stats_service import StatsService, accuracy
from docdot.services.tutor import TutorService

logger = logging.getLogger(__name__)


@dataclass
class TelegramIdentity:
    id: int
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


@dataclass
class BotReply:
    text: str
    # (label, url) pairs, one button per row
    buttons: List[Tuple[str, str]] = field(default_factory=list)
    markdown: bool = True


COMMANDS = [
    ("start", "Start the bot"),
    ("stats", "View your stats"),
    ("categories", "Browse quiz categories"),
    ("help", "Get help"),
    ("ask", "Ask the AI medical tutor"),
    ("web", "Open web interface"),
]


def web_url() -> str:
    return settings.WEB_BASE_URL.rstrip("/")


class BotCommands:
    def __init__(self, repo: Repository, tutor: Optional[TutorService] = None):
        self.repo = repo
        self.handshakes = AuthHandshakeCoordinator(repo)
        self.tutor = tutor or TutorService()

    def _login_url(self, identity: TelegramIdentity, redirect: Optional[str] = None) -> str:
        token = self.handshakes.issue_bot_token(identity.id)
        return self.handshakes.callback_url(identity.id, token, redirect)

    def ensure_user(self, identity: TelegramIdentity) -> User:
        """Find the account for this Telegram user, creating it on first contact."""
        user = self.repo.get_user_by_external_id(identity.id)
        if user is not None:
            return user

        username = identity.username or f"user_{identity.id}"
        if self.repo.get_user_by_username(username) is not None:
            username = f"telegram_{identity.id}"
        try:
            user = self.repo.create_user(
                username=username,
                password_hash=random_password_hash(),
                telegram_id=identity.id,
                first_name=identity.first_name or "Telegram User",
                last_name=identity.last_name,
            )
            self.repo.create_stats(user.id)
            self.repo.commit()
        except Conflict:
            # created concurrently by another update
            user = self.repo.get_user_by_external_id(identity.id)
            if user is None:
                raise
        logger.info("Registered Telegram user %s as %s", identity.id, user.username)
        return user

    def start(self, identity: TelegramIdentity, payload: Optional[str] = None) -> BotReply:
        if payload and payload.startswith(AUTH_PREFIX):
            token = payload[len(AUTH_PREFIX):]
            self.handshakes.attach_identity(token, identity.id)
            return BotReply(
                text=(
                    "🔐 *Linking Your Telegram Account* 🔐\n\n"
                    "We're connecting your Telegram account to the Docdot web interface.\n\n"
                    "Click the button below to complete the authentication:"
                ),
                buttons=[("Complete Authentication", self.handshakes.callback_url(identity.id, token))],
            )

        self.ensure_user(identity)
        return BotReply(text=(
            f"🩺 *Hi, {identity.first_name or 'there'}! Welcome to Docdot* 🩺\n\n"
            "Your interactive medical learning companion!\n\n"
            "🎯 *KEY FEATURES*\n"
            "📚 Comprehensive Anatomy & Physiology Quizzes\n"
            "📊 Performance Tracking\n"
            "🧠 AI-Powered Explanations\n"
            "💭 Ask Medical Questions\n\n"
            "⚡️ *QUICK COMMANDS*\n"
            "📋 /stats - Your Performance\n"
            "🗂 /categories - Browse Topics\n"
            "❓ /help - Get Assistance\n"
            "💬 /ask - Ask Medical Questions\n"
            "🌐 /web - Open Web Interface\n\n"
            "*Ready to test your medical knowledge?*"
        ))

    def web(self, identity: TelegramIdentity) -> BotReply:
        return BotReply(
            text=(
                "🌐 *Access the Docdot Web Interface* 🌐\n\n"
                "Continue your learning on our web platform with more features "
                "and a better viewing experience."
            ),
            buttons=[
                ("🖥️ Open Web Interface", web_url()),
                ("🔑 Login Automatically", self._login_url(identity)),
            ],
        )

    def help(self, identity: TelegramIdentity) -> BotReply:
        return BotReply(
            text=(
                "❓ *Docdot Help Guide* ❓\n\n"
                "📋 */stats* - View your learning statistics\n"
                "🗂 */categories* - Browse quiz categories\n"
                "💬 */ask* [question] - Ask an AI tutor a medical question\n"
                "🌐 */web* - Access the web interface\n"
                "❓ */help* - Show this help message\n\n"
                "*Example:*\n"
                "/ask What are the branches of the facial nerve?\n\n"
                "*Web Interface*\nImage quizzes, detailed statistics and more:"
            ),
            buttons=[("🌐 Open Web Interface", self._login_url(identity))],
        )

    def categories(self, identity: TelegramIdentity) -> BotReply:
        listing = "\n".join(f"• *{name}*" for name in CATEGORIES)
        return BotReply(
            text=(
                "🗂 *Medical Quiz Categories* 🗂\n\n"
                "Choose a category to test your knowledge:\n\n"
                f"{listing}\n\n"
                "For subcategories and detailed content, use our web interface:"
            ),
            buttons=[("🌐 Open Web Interface", self._login_url(identity, "/categories"))],
        )

    def stats(self, identity: TelegramIdentity) -> BotReply:
        user = self.repo.get_user_by_external_id(identity.id)
        if user is None:
            return BotReply(text=(
                "⚠️ *User not found* ⚠️\n\n"
                "It seems like you haven't started any quizzes yet.\n"
                "Use the /categories command to browse topics and start learning!"
            ))

        stats = self.repo.get_stats(user.id)
        if stats is None or not stats.total_attempts:
            return BotReply(text=(
                "📊 *Your Statistics* 📊\n\n"
                "You haven't attempted any quizzes yet.\n"
                "Use the /categories command to start learning!"
            ))

        return BotReply(
            text=(
                "📊 *Your Learning Statistics* 📊\n\n"
                f"Total Quizzes: *{stats.total_attempts}*\n"
                f"Correct Answers: *{stats.correct_answers}*\n"
                f"Accuracy: *{accuracy(stats.correct_answers, stats.total_attempts)}%*\n"
                f"Current Streak: *{stats.streak}*\n"
                f"Best Streak: *{stats.max_streak}*\n\n"
                "Keep up the good work! Regular practice is key to mastering medical knowledge."
            ),
            buttons=[("📈 View Detailed Stats on Web", self._login_url(identity, "/stats"))],
        )

    def ask(self, identity: TelegramIdentity, question: str) -> BotReply:
        question = (question or "").strip()
        if not question:
            return BotReply(
                text=(
                    "Please provide a medical question after the /ask command.\n\n"
                    "Example: /ask What are the branches of the brachial plexus?"
                ),
                markdown=False,
            )

        response = self.tutor.ask(question, markdown=True)
        user = self.repo.get_user_by_external_id(identity.id)
        if user is not None:
            StatsService(self.repo).record_ai_question(user.id, question, response)
        return BotReply(text=response)
