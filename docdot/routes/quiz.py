"""Quiz routes."""
from typing import Dict, List, Optional, Union
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field

from docdot.core.config import CATEGORIES
from docdot.core.errors import BadRequest
from docdot.core.security import get_current_user, get_optional_user
from docdot.db.repository import Repository
from docdot.db.sessions import get_db
from docdot.models.user import User
from docdot.services.scoring import ScoringEngine, Verdict
from docdot.services.session_manager import SessionLifecycleManager


router = APIRouter(prefix="/api", tags=["Quiz"])


# Request/Response schemas
class QuestionResponse(BaseModel):
    id: int
    question: str
    category: str
    subcategory: Optional[str]


class QuestionListResponse(BaseModel):
    questions: List[QuestionResponse]


class StartQuizRequest(BaseModel):
    category: Optional[str] = None
    subcategory: Optional[str] = None
    total_questions: Optional[int] = Field(default=None, ge=1, le=100)


class StartQuizResponse(BaseModel):
    session_id: int


class AnswerRequest(BaseModel):
    question_id: int
    answer: bool


class AnswerResponse(BaseModel):
    is_correct: bool
    explanation: str
    correct_answer: Union[bool, str]


class CurrentSessionResponse(BaseModel):
    id: int
    category: str
    subcategory: Optional[str]
    completed: int
    total: int
    title: str


def verdict_response(verdict: Verdict) -> AnswerResponse:
    return AnswerResponse(
        is_correct=verdict.is_correct,
        explanation=verdict.explanation,
        correct_answer=verdict.correct_answer,
    )


@router.get("/categories", response_model=Dict[str, List[str]])
def list_categories():
    return CATEGORIES


@router.get("/quiz", response_model=QuestionListResponse)
def list_questions(
    category: Optional[str] = None,
    subcategory: Optional[str] = None,
    limit: Optional[int] = None,
    db: Session = Depends(get_db),
):
    """Questions for a category (shuffled). Answers are not included."""
    if not category:
        raise BadRequest("Category is required")
    questions = Repository(db).list_questions(category, subcategory, limit)
    return QuestionListResponse(questions=[
        QuestionResponse(
            id=q.id,
            question=q.question,
            category=q.category,
            subcategory=q.subcategory,
        )
        for q in questions
    ])


@router.post("/quiz/start", response_model=StartQuizResponse)
def start_quiz(
    body: StartQuizRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Start a quiz, ending whatever session the user had open."""
    session = SessionLifecycleManager(Repository(db)).start_session(
        current_user.id, body.category, body.subcategory, body.total_questions
    )
    return StartQuizResponse(session_id=session.id)


@router.post("/quiz/answer", response_model=AnswerResponse)
def answer_question(
    body: AnswerRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    verdict = ScoringEngine(Repository(db)).answer_question(
        current_user.id, body.question_id, body.answer
    )
    return verdict_response(verdict)


@router.post("/quiz/end")
def end_quiz(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    SessionLifecycleManager(Repository(db)).end_session(current_user.id)
    return {"message": "Quiz session ended"}


@router.get("/session/current", response_model=Optional[CurrentSessionResponse])
def current_session(
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    if current_user is None:
        return None
    session = SessionLifecycleManager(Repository(db)).get_active_session(current_user.id)
    if session is None:
        return None
    return CurrentSessionResponse(
        id=session.id,
        category=session.category,
        subcategory=session.subcategory,
        completed=session.questions_completed,
        total=session.total_questions,
        title=session.title,
    )
