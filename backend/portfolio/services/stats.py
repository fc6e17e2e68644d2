from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from portfolio.models.catalog import Capability, Change
from portfolio.models.indicator import Indicator, IndicatorStatus
from portfolio.models.signature import Signature, SignatureStatus
from portfolio.models.user import STAFF_ROLES, User
from portfolio.models.witness import Witness


def _count(db: Session, stmt) -> int:
    return int(db.scalar(stmt) or 0)


def dashboard_stats(db: Session, user_id: uuid.UUID | None = None) -> dict[str, Any]:
    """Indicator and evidence counts, for one teacher or (user_id=None) everyone."""
    by_status = select(Indicator.status, func.count(Indicator.id)).group_by(Indicator.status)
    witnesses = select(func.count(Witness.id))
    if user_id is not None:
        by_status = by_status.where(Indicator.user_id == user_id)
        witnesses = witnesses.where(Witness.user_id == user_id)

    counts = {status: int(n) for status, n in db.execute(by_status).all()}

    return {
        "total_capabilities": _count(db, select(func.count(Capability.id))),
        "total_changes": _count(db, select(func.count(Change.id))),
        "total_indicators": sum(counts.values()),
        "completed_indicators": counts.get(IndicatorStatus.completed, 0),
        "pending_indicators": counts.get(IndicatorStatus.pending, 0),
        "in_progress_indicators": counts.get(IndicatorStatus.in_progress, 0),
        "total_witnesses": _count(db, witnesses),
    }


def principal_stats(db: Session) -> dict[str, Any]:
    out = dashboard_stats(db)

    sig_counts = {
        status: int(n)
        for status, n in db.execute(select(Signature.status, func.count(Signature.id)).group_by(Signature.status)).all()
    }
    out.update(
        {
            "total_teachers": _count(db, select(func.count(User.id)).where(User.role.in_(STAFF_ROLES))),
            "pending_approvals": sig_counts.get(SignatureStatus.pending, 0),
            "approved_indicators": sig_counts.get(SignatureStatus.approved, 0),
            "rejected_indicators": sig_counts.get(SignatureStatus.rejected, 0),
        }
    )
    return out


def teachers_with_stats(db: Session) -> list[dict[str, Any]]:
    teachers = db.scalars(
        select(User).where(User.role.in_(STAFF_ROLES)).order_by(User.first_name.asc(), User.last_name.asc())
    ).all()
    if not teachers:
        return []
    ids = [t.id for t in teachers]

    indicator_rows = db.execute(
        select(
            Indicator.user_id,
            func.count(Indicator.id),
            func.sum(case((Indicator.status == IndicatorStatus.completed, 1), else_=0)),
        )
        .where(Indicator.user_id.in_(ids))
        .group_by(Indicator.user_id)
    ).all()
    indicator_counts = {uid: (int(total or 0), int(done or 0)) for uid, total, done in indicator_rows}

    pending_rows = db.execute(
        select(Signature.teacher_id, func.count(Signature.id))
        .where(Signature.teacher_id.in_(ids), Signature.status == SignatureStatus.pending)
        .group_by(Signature.teacher_id)
    ).all()
    pending_counts = {uid: int(n) for uid, n in pending_rows}

    out: list[dict[str, Any]] = []
    for t in teachers:
        total, done = indicator_counts.get(t.id, (0, 0))
        out.append(
            {
                "user": t,
                "indicator_count": total,
                "completed_count": done,
                "pending_approval_count": pending_counts.get(t.id, 0),
            }
        )
    return out
