"""Image identification quiz routes."""
from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field

from docdot.core.security import get_current_user
from docdot.db.repository import Repository
from docdot.db.sessions import get_db
from docdot.models.user import User
from docdot.routes.quiz import AnswerResponse, StartQuizResponse, verdict_response
from docdot.services.scoring import ScoringEngine
from docdot.services.session_manager import SessionLifecycleManager


router = APIRouter(prefix="/api/image-quiz", tags=["Image Quiz"])

IMAGE_QUIZ_CATEGORY = "ImageQuiz"


class ImageResponse(BaseModel):
    id: int
    image_url: str
    options: List[str]
    category: str
    subcategory: Optional[str]


class ImageListResponse(BaseModel):
    images: List[ImageResponse]


class StartImageQuizRequest(BaseModel):
    category: Optional[str] = None
    total_questions: Optional[int] = Field(default=None, ge=1, le=100)


class ImageAnswerRequest(BaseModel):
    image_id: int
    answer: str = Field(min_length=1)


@router.get("/categories", response_model=List[str])
def list_image_categories(db: Session = Depends(get_db)):
    return Repository(db).image_categories()


@router.get("/images", response_model=ImageListResponse)
def list_images(category: Optional[str] = None, limit: Optional[int] = None, db: Session = Depends(get_db)):
    items = Repository(db).list_image_items(category, limit)
    return ImageListResponse(images=[
        ImageResponse(
            id=item.id,
            image_url=item.image_url,
            options=list(item.options or []),
            category=item.category,
            subcategory=item.subcategory,
        )
        for item in items
    ])


@router.post("/start", response_model=StartQuizResponse)
def start_image_quiz(
    body: StartImageQuizRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    session = SessionLifecycleManager(Repository(db)).start_session(
        current_user.id, IMAGE_QUIZ_CATEGORY, body.category, body.total_questions
    )
    return StartQuizResponse(session_id=session.id)


@router.post("/answer", response_model=AnswerResponse)
def answer_image(
    body: ImageAnswerRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    verdict = ScoringEngine(Repository(db)).answer_image(current_user.id, body.image_id, body.answer)
    return verdict_response(verdict)
