"""AI tutor routes."""
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from pydantic import BaseModel

from docdot.core.errors import BadRequest
from docdot.core.security import get_optional_user
from docdot.db.repository import Repository
from docdot.db.sessions import get_db
from docdot.models.user import User
from docdot.services.stats_service import StatsService
from docdot.services.tutor import TutorService


router = APIRouter(prefix="/api", tags=["AI Tutor"])


class AskRequest(BaseModel):
    question: Optional[str] = None


class AskResponse(BaseModel):
    response: str


def get_tutor_service() -> TutorService:
    return TutorService()


@router.post("/ask", response_model=AskResponse)
def ask(
    body: AskRequest,
    current_user: Optional[User] = Depends(get_optional_user),
    tutor: TutorService = Depends(get_tutor_service),
    db: Session = Depends(get_db),
):
    """Ask the AI tutor. Logged-in users get the question in their activity feed."""
    question = (body.question or "").strip()
    if not question:
        raise BadRequest("Question is required")

    response = tutor.ask(question)
    if current_user is not None:
        StatsService(Repository(db)).record_ai_question(current_user.id, question, response)
    return AskResponse(response=response)
