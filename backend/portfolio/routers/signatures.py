from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from portfolio.core.rate_limit import rate_limit
from portfolio.core.security import get_current_user
from portfolio.core.security_audit_log import audit_log
from portfolio.db.session import get_db
from portfolio.models.signature import Signature
from portfolio.models.user import User
from portfolio.schemas.signature import SignaturePublic, SignatureSubmitRequest, SignatureWithDetails
from portfolio.services import approvals
from portfolio.services.indicators import IndicatorService

router = APIRouter(prefix="/api/signatures", tags=["signatures"])


@router.get("", response_model=list[SignatureWithDetails])
def my_signatures(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    rows = db.scalars(
        select(Signature).where(Signature.teacher_id == user.id).order_by(Signature.submitted_at.desc())
    ).all()
    return approvals.with_details(db, list(rows))


@router.post("", response_model=SignaturePublic)
def submit_for_approval(
    request: Request,
    body: SignatureSubmitRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    _: object = rate_limit(key_prefix="signature_submit", limit=30, window_seconds=60),
):
    indicator = IndicatorService(db).get_for(body.indicator_id, user, write=True)
    try:
        signature = approvals.submit(db, indicator=indicator, teacher=user, notes=body.notes)
    except approvals.ApprovalError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e

    audit_log(
        db=db,
        request=request,
        event_type="signature_submitted",
        actor_user_id=user.id,
        target_user_id=user.id,
        subject_id=signature.id,
        meta={"indicator_id": str(indicator.id)},
    )
    db.commit()
    db.refresh(signature)
    return signature
