from __future__ import annotations

import secrets
import string

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from portfolio.core.config import settings
from portfolio.core.ids import parse_uuid
from portfolio.core.rate_limit import rate_limit
from portfolio.core.security import hash_password, require_principal
from portfolio.core.security_audit_log import audit_log
from portfolio.db.session import get_db
from portfolio.models.indicator import Criteria, Indicator
from portfolio.models.security_audit import SecurityAuditEvent
from portfolio.models.signature import Signature, SignatureStatus
from portfolio.models.strategy import UserStrategy
from portfolio.models.user import STAFF_ROLES, User, UserRole
from portfolio.models.witness import Witness
from portfolio.schemas.base import OkResponse
from portfolio.schemas.indicator import IndicatorWithCriteria
from portfolio.schemas.signature import SignatureDecisionRequest, SignaturePublic, SignatureWithDetails
from portfolio.schemas.stats import PrincipalDashboardStats, TeacherWithStats
from portfolio.schemas.user import TeacherCreateRequest, TeacherCreateResponse, UserPublic
from portfolio.services import approvals
from portfolio.services.indicators import IndicatorService
from portfolio.services.stats import principal_stats, teachers_with_stats

router = APIRouter(prefix="/api/principal", tags=["principal"])


def _random_password(length: int = 12) -> str:
    alphabet = string.ascii_letters + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(int(length)))


def _load_signature(db: Session, signature_id: str) -> Signature:
    sid = parse_uuid(signature_id, field="signature_id")
    signature = db.scalar(select(Signature).where(Signature.id == sid))
    if signature is None:
        raise HTTPException(status_code=404, detail="signature not found")
    return signature


def _load_teacher(db: Session, teacher_id: str) -> User:
    uid = parse_uuid(teacher_id, field="teacher_id")
    teacher = db.scalar(select(User).where(User.id == uid))
    if teacher is None:
        raise HTTPException(status_code=404, detail="teacher not found")
    return teacher


@router.get("/stats", response_model=PrincipalDashboardStats)
def stats(db: Session = Depends(get_db), _: User = Depends(require_principal)):
    return principal_stats(db)


@router.get("/teachers", response_model=list[TeacherWithStats])
def list_teachers(db: Session = Depends(get_db), _: User = Depends(require_principal)):
    return [
        TeacherWithStats(
            **UserPublic.model_validate(row["user"]).model_dump(),
            indicator_count=row["indicator_count"],
            completed_count=row["completed_count"],
            pending_approval_count=row["pending_approval_count"],
        )
        for row in teachers_with_stats(db)
    ]


@router.get("/teachers/{teacher_id}/indicators", response_model=list[IndicatorWithCriteria])
def teacher_indicators(teacher_id: str, db: Session = Depends(get_db), _: User = Depends(require_principal)):
    teacher = _load_teacher(db, teacher_id)
    return IndicatorService(db).list_for_user(teacher.id)


@router.post("/teachers", response_model=TeacherCreateResponse)
def create_teacher(
    request: Request,
    body: TeacherCreateRequest,
    db: Session = Depends(get_db),
    current: User = Depends(require_principal),
    _: object = rate_limit(key_prefix="principal_create_teacher", limit=20, window_seconds=60),
):
    email = str(body.email).strip().lower()
    existing = db.scalar(select(User).where(User.email == email))
    if existing is not None:
        raise HTTPException(status_code=409, detail="user already exists")

    temp_password = (body.password or "").strip() or _random_password(12)
    if len(temp_password) < int(settings.password_min_length or 0):
        raise HTTPException(status_code=400, detail="password too short")

    user = User(
        email=email,
        first_name=body.first_name,
        last_name=body.last_name,
        school_name=body.school_name or current.school_name,
        subject=body.subject,
        principal_name=" ".join(p for p in (current.first_name, current.last_name) if p) or None,
        role=UserRole.teacher,
        password_hash=hash_password(temp_password),
        must_change_password=bool(body.must_change_password),
    )
    db.add(user)
    db.flush()
    audit_log(db=db, request=request, event_type="principal_create_teacher", actor_user_id=current.id, target_user_id=user.id)
    db.commit()
    db.refresh(user)

    return TeacherCreateResponse(user=UserPublic.model_validate(user), temp_password=temp_password)


@router.delete("/teachers/{teacher_id}", response_model=OkResponse)
def delete_teacher(
    request: Request,
    teacher_id: str,
    db: Session = Depends(get_db),
    current: User = Depends(require_principal),
    _: object = rate_limit(key_prefix="principal_delete_teacher", limit=10, window_seconds=60),
):
    teacher = _load_teacher(db, teacher_id)
    if teacher.id == current.id:
        raise HTTPException(status_code=400, detail="cannot delete self")
    if teacher.role not in STAFF_ROLES:
        raise HTTPException(status_code=403, detail="forbidden")

    uid = teacher.id
    email = teacher.email
    try:
        indicator_ids = db.scalars(select(Indicator.id).where(Indicator.user_id == uid)).all()
        if indicator_ids:
            db.execute(delete(Signature).where(Signature.indicator_id.in_(indicator_ids)))
            db.execute(delete(Witness).where(Witness.indicator_id.in_(indicator_ids)))
            db.execute(delete(Criteria).where(Criteria.indicator_id.in_(indicator_ids)))
            db.execute(delete(Indicator).where(Indicator.id.in_(indicator_ids)))

        db.execute(delete(Signature).where(Signature.teacher_id == uid))
        db.execute(delete(Witness).where(Witness.user_id == uid))
        db.execute(delete(UserStrategy).where(UserStrategy.user_id == uid))
        db.execute(update(Signature).where(Signature.principal_id == uid).values(principal_id=None))

        # Keep the audit trail but drop references to the deleted account.
        db.execute(update(SecurityAuditEvent).where(SecurityAuditEvent.actor_user_id == uid).values(actor_user_id=None))
        db.execute(update(SecurityAuditEvent).where(SecurityAuditEvent.target_user_id == uid).values(target_user_id=None))

        db.execute(delete(User).where(User.id == uid))

        audit_log(
            db=db,
            request=request,
            event_type="principal_delete_teacher",
            actor_user_id=current.id,
            meta={"deleted_user_id": str(uid), "email": email},
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise HTTPException(status_code=500, detail="failed to delete teacher") from e

    return OkResponse()


@router.get("/pending-signatures", response_model=list[SignatureWithDetails])
def pending_signatures(db: Session = Depends(get_db), _: User = Depends(require_principal)):
    rows = db.scalars(
        select(Signature)
        .where(Signature.status == SignatureStatus.pending)
        .order_by(Signature.submitted_at.asc())
    ).all()
    return approvals.with_details(db, list(rows))


def _decide(request: Request, db: Session, principal: User, signature_id: str, body: SignatureDecisionRequest, *, approve: bool):
    signature = _load_signature(db, signature_id)
    try:
        if approve:
            approvals.approve(db, signature=signature, principal=principal, notes=body.notes)
        else:
            approvals.reject(db, signature=signature, principal=principal, notes=body.notes)
    except approvals.ApprovalError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e

    audit_log(
        db=db,
        request=request,
        event_type="signature_approved" if approve else "signature_rejected",
        actor_user_id=principal.id,
        target_user_id=signature.teacher_id,
        subject_id=signature.id,
        meta={"indicator_id": str(signature.indicator_id)},
    )
    db.commit()
    db.refresh(signature)
    return signature


@router.post("/signatures/{signature_id}/approve", response_model=SignaturePublic)
def approve_signature(
    request: Request,
    signature_id: str,
    body: SignatureDecisionRequest | None = None,
    db: Session = Depends(get_db),
    principal: User = Depends(require_principal),
):
    return _decide(request, db, principal, signature_id, body or SignatureDecisionRequest(), approve=True)


@router.post("/signatures/{signature_id}/reject", response_model=SignaturePublic)
def reject_signature(
    request: Request,
    signature_id: str,
    body: SignatureDecisionRequest | None = None,
    db: Session = Depends(get_db),
    principal: User = Depends(require_principal),
):
    return _decide(request, db, principal, signature_id, body or SignatureDecisionRequest(), approve=False)
