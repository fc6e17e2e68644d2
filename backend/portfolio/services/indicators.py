from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from datetime import datetime

from fastapi import HTTPException
from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from portfolio.core.security import is_principal
from portfolio.models.indicator import Criteria, Indicator, IndicatorStatus
from portfolio.models.signature import Signature
from portfolio.models.user import User
from portfolio.models.witness import Witness, WitnessFileType
from portfolio.schemas.indicator import CriteriaPublic, IndicatorPublic, IndicatorWithCriteria, WitnessPublic

logger = logging.getLogger(__name__)


def derive_status(completed_flags: Iterable[bool]) -> IndicatorStatus:
    """Status implied by a criteria set. No criteria means nothing is done yet."""
    flags = [bool(f) for f in completed_flags]
    if flags and all(flags):
        return IndicatorStatus.completed
    if any(flags):
        return IndicatorStatus.in_progress
    return IndicatorStatus.pending


def to_payload(
    indicator: Indicator,
    criteria: list[Criteria],
    witnesses: list[Witness] | None = None,
) -> IndicatorWithCriteria:
    base = IndicatorPublic.model_validate(indicator)
    return IndicatorWithCriteria(
        **base.model_dump(),
        criteria=[CriteriaPublic.model_validate(c) for c in criteria],
        witnesses=[WitnessPublic.model_validate(w) for w in witnesses] if witnesses is not None else None,
    )


class IndicatorService:
    def __init__(self, db: Session):
        self.db = db

    # -- lookups ---------------------------------------------------------

    def get(self, indicator_id: uuid.UUID) -> Indicator | None:
        return self.db.scalar(select(Indicator).where(Indicator.id == indicator_id))

    def get_for(self, indicator_id: uuid.UUID, user: User, *, write: bool = False) -> Indicator:
        """Load an indicator the user may see (or change, with write=True).

        Owners may do anything with their indicators; principals may read any.
        """
        indicator = self.get(indicator_id)
        if indicator is None:
            raise HTTPException(status_code=404, detail="indicator not found")
        if indicator.user_id == user.id:
            return indicator
        if not write and is_principal(user):
            return indicator
        raise HTTPException(status_code=403, detail="forbidden")

    def criteria_for(self, indicator_id: uuid.UUID) -> list[Criteria]:
        return list(
            self.db.scalars(
                select(Criteria)
                .where(Criteria.indicator_id == indicator_id)
                .order_by(Criteria.order.asc(), Criteria.created_at.asc())
            )
        )

    def witnesses_for(self, indicator_id: uuid.UUID) -> list[Witness]:
        return list(
            self.db.scalars(
                select(Witness).where(Witness.indicator_id == indicator_id).order_by(Witness.created_at.asc())
            )
        )

    def list_for_user(self, user_id: uuid.UUID) -> list[IndicatorWithCriteria]:
        indicators = self.db.scalars(
            select(Indicator)
            .where(Indicator.user_id == user_id)
            .order_by(Indicator.order.asc(), Indicator.created_at.asc())
        ).all()
        if not indicators:
            return []

        # Batch load criteria for all indicators at once.
        by_indicator: dict[uuid.UUID, list[Criteria]] = {}
        rows = self.db.scalars(
            select(Criteria)
            .where(Criteria.indicator_id.in_([i.id for i in indicators]))
            .order_by(Criteria.order.asc(), Criteria.created_at.asc())
        ).all()
        for c in rows:
            by_indicator.setdefault(c.indicator_id, []).append(c)

        return [to_payload(i, by_indicator.get(i.id, [])) for i in indicators]

    # -- indicator CRUD --------------------------------------------------

    def create(
        self,
        *,
        user: User,
        title: str,
        description: str | None,
        criteria_titles: Iterable[str] = (),
    ) -> Indicator:
        next_order = self.db.scalar(
            select(func.coalesce(func.max(Indicator.order), 0)).where(Indicator.user_id == user.id)
        )
        indicator = Indicator(
            user_id=user.id,
            title=title,
            description=description,
            status=IndicatorStatus.pending,
            witness_count=0,
            order=int(next_order or 0) + 1,
        )
        self.db.add(indicator)
        self.db.flush()

        order = 0
        for raw in criteria_titles:
            t = str(raw or "").strip()
            if not t:
                continue
            order += 1
            self.db.add(Criteria(indicator_id=indicator.id, title=t, is_completed=False, order=order))
        self.db.flush()
        return indicator

    def update(self, indicator: Indicator, *, fields: dict) -> Indicator:
        for key in ("title", "description", "order"):
            if key in fields:
                setattr(indicator, key, fields[key])
        indicator.updated_at = datetime.utcnow()
        self.db.add(indicator)
        return indicator

    def delete(self, indicator: Indicator) -> None:
        iid = indicator.id
        self.db.execute(delete(Signature).where(Signature.indicator_id == iid))
        self.db.execute(delete(Witness).where(Witness.indicator_id == iid))
        self.db.execute(delete(Criteria).where(Criteria.indicator_id == iid))
        self.db.execute(delete(Indicator).where(Indicator.id == iid))

    # -- criteria and status --------------------------------------------

    def refresh_status(self, indicator: Indicator) -> IndicatorStatus:
        self.db.flush()
        flags = self.db.scalars(select(Criteria.is_completed).where(Criteria.indicator_id == indicator.id)).all()
        status = derive_status(flags)
        if indicator.status != status:
            logger.info("indicator %s status %s -> %s", indicator.id, indicator.status.value, status.value)
        indicator.status = status
        indicator.updated_at = datetime.utcnow()
        self.db.add(indicator)
        return status

    def get_criterion(self, indicator: Indicator, criteria_id: uuid.UUID) -> Criteria:
        criterion = self.db.scalar(
            select(Criteria).where(Criteria.id == criteria_id, Criteria.indicator_id == indicator.id)
        )
        if criterion is None:
            raise HTTPException(status_code=404, detail="criteria not found")
        return criterion

    def add_criterion(self, indicator: Indicator, *, title: str) -> Criteria:
        last = self.db.scalar(
            select(func.coalesce(func.max(Criteria.order), 0)).where(Criteria.indicator_id == indicator.id)
        )
        criterion = Criteria(indicator_id=indicator.id, title=title, is_completed=False, order=int(last or 0) + 1)
        self.db.add(criterion)
        self.refresh_status(indicator)
        return criterion

    def remove_criterion(self, indicator: Indicator, criterion: Criteria) -> None:
        # Evidence linked to the criterion goes with it.
        self.db.execute(delete(Witness).where(Witness.criteria_id == criterion.id))
        self.db.execute(delete(Criteria).where(Criteria.id == criterion.id))
        self.refresh_witness_count(indicator)
        self.refresh_status(indicator)

    def set_criterion_completed(self, indicator: Indicator, criterion: Criteria, completed: bool) -> Criteria:
        criterion.is_completed = bool(completed)
        self.db.add(criterion)
        self.refresh_status(indicator)
        return criterion

    # -- witnesses -------------------------------------------------------

    def refresh_witness_count(self, indicator: Indicator) -> int:
        self.db.flush()
        count = self.db.scalar(select(func.count(Witness.id)).where(Witness.indicator_id == indicator.id))
        indicator.witness_count = max(0, int(count or 0))
        indicator.updated_at = datetime.utcnow()
        self.db.add(indicator)
        return indicator.witness_count

    def add_witness(
        self,
        indicator: Indicator,
        *,
        user: User,
        title: str,
        description: str | None = None,
        criteria_id: uuid.UUID | None = None,
        file_type: WitnessFileType | None = None,
        file_url: str | None = None,
        file_name: str | None = None,
    ) -> Witness:
        if criteria_id is not None:
            owned = self.db.scalar(
                select(Criteria.id).where(Criteria.id == criteria_id, Criteria.indicator_id == indicator.id)
            )
            if owned is None:
                raise HTTPException(status_code=400, detail="criteria does not belong to indicator")

        witness = Witness(
            indicator_id=indicator.id,
            criteria_id=criteria_id,
            user_id=user.id,
            title=title,
            description=description,
            file_type=file_type,
            file_url=file_url,
            file_name=file_name,
        )
        self.db.add(witness)
        self.refresh_witness_count(indicator)
        return witness

    def remove_witness(self, witness: Witness) -> None:
        indicator = self.get(witness.indicator_id)
        self.db.execute(delete(Witness).where(Witness.id == witness.id))
        if indicator is not None:
            self.refresh_witness_count(indicator)

    # -- re-evaluation ---------------------------------------------------

    def re_evaluate(self, indicators: list[Indicator]) -> None:
        """Start the listed indicators over: pending, no completed criteria, no evidence.

        Signature history is left alone.
        """
        ids = [i.id for i in indicators]
        if not ids:
            return
        now = datetime.utcnow()
        self.db.execute(delete(Witness).where(Witness.indicator_id.in_(ids)))
        self.db.execute(update(Criteria).where(Criteria.indicator_id.in_(ids)).values(is_completed=False))
        self.db.execute(
            update(Indicator)
            .where(Indicator.id.in_(ids))
            .values(status=IndicatorStatus.pending, witness_count=0, updated_at=now)
        )
