from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from portfolio.core.ids import parse_uuid
from portfolio.core.rate_limit import rate_limit
from portfolio.core.security import require_creator
from portfolio.core.security_audit_log import audit_log
from portfolio.db.session import get_db
from portfolio.models.user import User
from portfolio.schemas.user import RoleUpdateRequest, UserPublic

router = APIRouter(prefix="/api/creator", tags=["creator"])


@router.get("/users", response_model=list[UserPublic])
def list_users(db: Session = Depends(get_db), _: User = Depends(require_creator)):
    return db.scalars(select(User).order_by(User.created_at.asc())).all()


@router.patch("/users/{user_id}/role", response_model=UserPublic)
def update_role(
    request: Request,
    user_id: str,
    body: RoleUpdateRequest,
    db: Session = Depends(get_db),
    current: User = Depends(require_creator),
    _: object = rate_limit(key_prefix="creator_update_role", limit=30, window_seconds=60),
):
    uid = parse_uuid(user_id, field="user_id")
    if uid == current.id:
        raise HTTPException(status_code=400, detail="cannot change own role")

    user = db.scalar(select(User).where(User.id == uid))
    if user is None:
        raise HTTPException(status_code=404, detail="user not found")

    before = user.role
    user.role = body.role
    user.updated_at = datetime.utcnow()
    db.add(user)
    audit_log(
        db=db,
        request=request,
        event_type="creator_update_role",
        actor_user_id=current.id,
        target_user_id=user.id,
        meta={"from": before.value, "to": body.role.value},
    )
    db.commit()
    db.refresh(user)
    return user
