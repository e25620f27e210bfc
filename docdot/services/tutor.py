"""AI tutor backed by an OpenAI-compatible chat completion endpoint."""
import logging
from typing import Optional
from openai import OpenAI
from docdot.core.config import settings

logger = logging.getLogger(__name__)

TUTOR_UNAVAILABLE = "Sorry, the AI tutor is not available at the moment."
TUTOR_FALLBACK = (
    "I'm sorry, I'm having trouble processing your question right now. "
    "Please try again later."
)

SYSTEM_PROMPT = (
    "You are an AI medical tutor helping medical students learn. "
    "Provide accurate, educational responses to medical questions. "
    "Be thorough but concise. Include key facts and concepts that would be "
    "important for a medical student to know."
)


class TutorService:
    """Answers free-text questions. Never raises: failures become a fixed apology."""

    def __init__(self, client: Optional[OpenAI] = None):
        """Initialize the client from settings unless one is injected."""
        self.model = settings.OPENAI_MODEL
        if client is not None:
            self.client = client
        elif settings.OPENAI_API_KEY:
            self.client = OpenAI(
                api_key=settings.OPENAI_API_KEY,
                base_url=settings.OPENAI_BASE_URL,
                timeout=settings.AI_TIMEOUT_SECONDS,
            )
        else:
            self.client = None

    def ask(self, question: str, markdown: bool = False) -> str:
        """
        Ask the tutor a question.

        Args:
            question: The student's question
            markdown: Ask for a Markdown-formatted answer (used by the bot)

        Returns:
            The tutor's answer, or a fixed message if the call fails
        """
        if self.client is None:
            return TUTOR_UNAVAILABLE

        system_prompt = SYSTEM_PROMPT
        if markdown:
            system_prompt += " Format your response using Markdown."

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": question},
                ],
                max_tokens=settings.AI_MAX_TOKENS,
            )
            content = response.choices[0].message.content
            if not content:
                raise ValueError("Empty response from AI service")
            return content
        except Exception:
            logger.exception("AI tutor request failed")
            return TUTOR_FALLBACK
