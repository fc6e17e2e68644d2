from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from portfolio.core.security import get_current_user
from portfolio.db.session import get_db
from portfolio.models.user import User
from portfolio.schemas.stats import DashboardStats
from portfolio.services.stats import dashboard_stats

router = APIRouter(prefix="/api", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStats)
def my_stats(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return dashboard_stats(db, user_id=user.id)
