"""Stats, progress, leaderboard and activity routes."""
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from pydantic import BaseModel

from docdot.core.errors import NotFound
from docdot.core.security import get_optional_user
from docdot.db.repository import Repository
from docdot.db.sessions import get_db
from docdot.models.user import User
from docdot.services.stats_service import ALL, StatsService


router = APIRouter(prefix="/api", tags=["Stats"])


class ActivityItem(BaseModel):
    id: int
    type: str
    title: str
    description: str
    badge: str
    timestamp: str


class StatsResponse(BaseModel):
    total_quizzes: int
    correct_answers: int
    accuracy: int
    current_streak: int
    best_streak: int
    recent_activity: List[ActivityItem]


class SubcategoryStats(BaseModel):
    name: str
    attempts: int
    correct: int
    accuracy: int


class CategoryStatsResponse(BaseModel):
    category: str
    total_quizzes: int
    correct_answers: int
    accuracy: int
    subcategories: List[SubcategoryStats]


class LeaderboardEntry(BaseModel):
    id: int
    name: str
    username: str
    accuracy: int
    total_quizzes: int
    score: int


EMPTY_STATS = StatsResponse(
    total_quizzes=0,
    correct_answers=0,
    accuracy=0,
    current_streak=0,
    best_streak=0,
    recent_activity=[],
)


@router.get("/stats", response_model=StatsResponse)
def get_stats(current_user: Optional[User] = Depends(get_optional_user), db: Session = Depends(get_db)):
    if current_user is None:
        return EMPTY_STATS
    summary = StatsService(Repository(db)).summary(current_user.id)
    if summary is None:
        raise NotFound("User stats not found")
    return StatsResponse(**summary)


@router.get("/stats/category", response_model=CategoryStatsResponse)
def get_category_stats(
    category: str = ALL,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    if current_user is None:
        return CategoryStatsResponse(
            category=category, total_quizzes=0, correct_answers=0, accuracy=0, subcategories=[]
        )
    return CategoryStatsResponse(**StatsService(Repository(db)).category_stats(current_user.id, category))


@router.get("/progress", response_model=Dict[str, Dict[str, int]])
def get_progress(current_user: Optional[User] = Depends(get_optional_user), db: Session = Depends(get_db)):
    if current_user is None:
        return {}
    return StatsService(Repository(db)).progress(current_user.id)


@router.get("/leaderboard", response_model=List[LeaderboardEntry])
def get_leaderboard(category: Optional[str] = None, db: Session = Depends(get_db)):
    return StatsService(Repository(db)).leaderboard(category)


@router.get("/activity", response_model=List[ActivityItem])
def get_activity(
    limit: int = Query(default=5, ge=1, le=100),
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
) -> List[Dict[str, Any]]:
    if current_user is None:
        return []
    return StatsService(Repository(db)).recent_activity(current_user.id, limit)
