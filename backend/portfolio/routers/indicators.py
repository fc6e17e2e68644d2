from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from portfolio.core.ids import parse_uuid
from portfolio.core.security import get_current_user
from portfolio.db.session import get_db
from portfolio.models.user import User
from portfolio.schemas.base import OkResponse
from portfolio.schemas.indicator import (
    CriteriaCreateRequest,
    CriteriaPublic,
    CriteriaToggleRequest,
    IndicatorCreateRequest,
    IndicatorUpdateRequest,
    IndicatorWithCriteria,
    ReEvaluateRequest,
)
from portfolio.services.indicators import IndicatorService, to_payload

router = APIRouter(prefix="/api/indicators", tags=["indicators"])


@router.get("", response_model=list[IndicatorWithCriteria])
def list_indicators(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return IndicatorService(db).list_for_user(user.id)


@router.post("", response_model=IndicatorWithCriteria)
def create_indicator(
    body: IndicatorCreateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    service = IndicatorService(db)
    indicator = service.create(
        user=user,
        title=body.title,
        description=body.description,
        criteria_titles=body.criteria,
    )
    # No criteria are completed yet, so the derived status is pending.
    service.refresh_status(indicator)
    db.commit()
    db.refresh(indicator)
    return to_payload(indicator, service.criteria_for(indicator.id))


@router.post("/re-evaluate", response_model=OkResponse)
def re_evaluate(
    body: ReEvaluateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    service = IndicatorService(db)
    indicators = [service.get_for(iid, user, write=True) for iid in dict.fromkeys(body.indicator_ids)]
    service.re_evaluate(indicators)
    db.commit()
    return OkResponse()


@router.get("/{indicator_id}", response_model=IndicatorWithCriteria)
def get_indicator(indicator_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    service = IndicatorService(db)
    indicator = service.get_for(parse_uuid(indicator_id, field="indicator_id"), user)
    return to_payload(indicator, service.criteria_for(indicator.id), service.witnesses_for(indicator.id))


@router.patch("/{indicator_id}", response_model=IndicatorWithCriteria)
def update_indicator(
    indicator_id: str,
    body: IndicatorUpdateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    service = IndicatorService(db)
    indicator = service.get_for(parse_uuid(indicator_id, field="indicator_id"), user, write=True)
    fields = body.model_dump(exclude_unset=True)
    if fields.get("title") is None:
        fields.pop("title", None)
    if fields.get("order") is None:
        fields.pop("order", None)
    service.update(indicator, fields=fields)
    db.commit()
    db.refresh(indicator)
    return to_payload(indicator, service.criteria_for(indicator.id))


@router.delete("/{indicator_id}", response_model=OkResponse)
def delete_indicator(indicator_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    service = IndicatorService(db)
    indicator = service.get_for(parse_uuid(indicator_id, field="indicator_id"), user, write=True)
    service.delete(indicator)
    db.commit()
    return OkResponse()


@router.post("/{indicator_id}/criteria", response_model=CriteriaPublic)
def add_criteria(
    indicator_id: str,
    body: CriteriaCreateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    service = IndicatorService(db)
    indicator = service.get_for(parse_uuid(indicator_id, field="indicator_id"), user, write=True)
    criterion = service.add_criterion(indicator, title=body.title)
    db.commit()
    db.refresh(criterion)
    return criterion


@router.patch("/{indicator_id}/criteria/{criteria_id}", response_model=CriteriaPublic)
def toggle_criteria(
    indicator_id: str,
    criteria_id: str,
    body: CriteriaToggleRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    service = IndicatorService(db)
    indicator = service.get_for(parse_uuid(indicator_id, field="indicator_id"), user, write=True)
    criterion = service.get_criterion(indicator, parse_uuid(criteria_id, field="criteria_id"))
    service.set_criterion_completed(indicator, criterion, body.is_completed)
    db.commit()
    db.refresh(criterion)
    return criterion


@router.delete("/{indicator_id}/criteria/{criteria_id}", response_model=OkResponse)
def delete_criteria(
    indicator_id: str,
    criteria_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    service = IndicatorService(db)
    indicator = service.get_for(parse_uuid(indicator_id, field="indicator_id"), user, write=True)
    criterion = service.get_criterion(indicator, parse_uuid(criteria_id, field="criteria_id"))
    service.remove_criterion(indicator, criterion)
    db.commit()
    return OkResponse()
