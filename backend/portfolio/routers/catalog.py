from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from portfolio.core.security import get_current_user
from portfolio.db.session import get_db
from portfolio.models.catalog import Capability, Change
from portfolio.models.strategy import Strategy, UserStrategy
from portfolio.models.user import User
from portfolio.schemas.catalog import CatalogItem, StrategyPublic, UserStrategiesRequest

router = APIRouter(prefix="/api", tags=["catalog"])


def _selected_strategies(db: Session, user: User) -> list[Strategy]:
    return list(
        db.scalars(
            select(Strategy)
            .join(UserStrategy, UserStrategy.strategy_id == Strategy.id)
            .where(UserStrategy.user_id == user.id)
            .order_by(Strategy.name.asc())
        )
    )


@router.get("/strategies", response_model=list[StrategyPublic])
def list_strategies(db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return db.scalars(select(Strategy).where(Strategy.is_active.is_(True)).order_by(Strategy.name.asc())).all()


@router.get("/user-strategies", response_model=list[StrategyPublic])
def list_user_strategies(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return _selected_strategies(db, user)


@router.post("/user-strategies", response_model=list[StrategyPublic])
def set_user_strategies(
    body: UserStrategiesRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    wanted = list(dict.fromkeys(body.strategy_ids))
    if wanted:
        known = set(db.scalars(select(Strategy.id).where(Strategy.id.in_(wanted))).all())
        missing = [str(sid) for sid in wanted if sid not in known]
        if missing:
            raise HTTPException(status_code=400, detail=f"unknown strategy: {missing[0]}")

    # The posted list replaces the previous selection.
    db.execute(delete(UserStrategy).where(UserStrategy.user_id == user.id))
    for sid in wanted:
        db.add(UserStrategy(user_id=user.id, strategy_id=sid))
    db.commit()

    return _selected_strategies(db, user)


@router.get("/capabilities", response_model=list[CatalogItem])
def list_capabilities(db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return db.scalars(select(Capability).order_by(Capability.order.asc())).all()


@router.get("/changes", response_model=list[CatalogItem])
def list_changes(db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return db.scalars(select(Change).order_by(Change.order.asc())).all()
