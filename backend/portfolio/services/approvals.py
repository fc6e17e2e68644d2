"""Signature workflow: a teacher submits an indicator, a principal decides it.

pending -> approved | rejected. Decided signatures are final; a teacher may
submit the same indicator again once its previous signature is decided.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from portfolio.models.indicator import Indicator
from portfolio.models.signature import Signature, SignatureStatus
from portfolio.models.user import User
from portfolio.schemas.indicator import IndicatorWithCriteria
from portfolio.schemas.signature import SignaturePublic, SignatureWithDetails
from portfolio.schemas.user import UserPublic
from portfolio.services.indicators import IndicatorService, to_payload

logger = logging.getLogger(__name__)


class ApprovalError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotesRequired(ApprovalError):
    status_code = 400


class AlreadyPending(ApprovalError):
    status_code = 409


class AlreadyDecided(ApprovalError):
    status_code = 409


def pending_signature_for(db: Session, indicator_id: uuid.UUID) -> Signature | None:
    return db.scalar(
        select(Signature).where(
            Signature.indicator_id == indicator_id,
            Signature.status == SignatureStatus.pending,
        )
    )


def submit(db: Session, *, indicator: Indicator, teacher: User, notes: str | None = None) -> Signature:
    if pending_signature_for(db, indicator.id) is not None:
        raise AlreadyPending("indicator already awaiting approval")

    signature = Signature(
        indicator_id=indicator.id,
        teacher_id=teacher.id,
        status=SignatureStatus.pending,
        notes=(notes or "").strip() or None,
        submitted_at=datetime.utcnow(),
    )
    db.add(signature)
    db.flush()
    logger.info("signature %s submitted for indicator %s by %s", signature.id, indicator.id, teacher.id)
    return signature


def _decide(
    db: Session,
    *,
    signature: Signature,
    principal: User,
    status: SignatureStatus,
    notes: str | None,
) -> Signature:
    if signature.status != SignatureStatus.pending:
        raise AlreadyDecided(f"signature already {signature.status.value}")

    signature.status = status
    signature.principal_id = principal.id
    signature.notes = notes
    signature.signed_at = datetime.utcnow()
    db.add(signature)
    logger.info("signature %s %s by %s", signature.id, status.value, principal.id)
    return signature


def approve(db: Session, *, signature: Signature, principal: User, notes: str | None = None) -> Signature:
    return _decide(
        db,
        signature=signature,
        principal=principal,
        status=SignatureStatus.approved,
        notes=(notes or "").strip() or None,
    )


def reject(db: Session, *, signature: Signature, principal: User, notes: str | None) -> Signature:
    cleaned = (notes or "").strip()
    if not cleaned:
        raise NotesRequired("notes are required when rejecting")
    return _decide(db, signature=signature, principal=principal, status=SignatureStatus.rejected, notes=cleaned)


def with_details(db: Session, signatures: list[Signature]) -> list[SignatureWithDetails]:
    """Attach teacher, principal and indicator (with criteria) to each signature."""
    if not signatures:
        return []

    user_ids = {s.teacher_id for s in signatures} | {s.principal_id for s in signatures if s.principal_id}
    users = {u.id: u for u in db.scalars(select(User).where(User.id.in_(user_ids))).all()}

    service = IndicatorService(db)
    indicators: dict[uuid.UUID, IndicatorWithCriteria] = {}
    for iid in {s.indicator_id for s in signatures}:
        indicator = service.get(iid)
        if indicator is not None:
            indicators[iid] = to_payload(indicator, service.criteria_for(iid))

    out: list[SignatureWithDetails] = []
    for s in signatures:
        teacher = users.get(s.teacher_id)
        principal = users.get(s.principal_id) if s.principal_id else None
        out.append(
            SignatureWithDetails(
                **SignaturePublic.model_validate(s).model_dump(),
                teacher=UserPublic.model_validate(teacher) if teacher is not None else None,
                principal=UserPublic.model_validate(principal) if principal is not None else None,
                indicator=indicators.get(s.indicator_id),
            )
        )
    return out
