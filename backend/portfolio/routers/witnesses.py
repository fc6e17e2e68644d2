from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from portfolio.core.ids import parse_uuid
from portfolio.core.security import get_current_user
from portfolio.db.session import get_db
from portfolio.models.user import User
from portfolio.models.witness import Witness
from portfolio.schemas.base import OkResponse
from portfolio.schemas.indicator import WitnessCreateRequest, WitnessPublic
from portfolio.services.indicators import IndicatorService

router = APIRouter(prefix="/api", tags=["witnesses"])


@router.get("/indicators/{indicator_id}/witnesses", response_model=list[WitnessPublic])
def list_witnesses(indicator_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    service = IndicatorService(db)
    indicator = service.get_for(parse_uuid(indicator_id, field="indicator_id"), user)
    return service.witnesses_for(indicator.id)


@router.post("/indicators/{indicator_id}/witnesses", response_model=WitnessPublic)
def create_witness(
    indicator_id: str,
    body: WitnessCreateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    service = IndicatorService(db)
    indicator = service.get_for(parse_uuid(indicator_id, field="indicator_id"), user, write=True)
    witness = service.add_witness(
        indicator,
        user=user,
        title=body.title,
        description=body.description,
        criteria_id=body.criteria_id,
        file_type=body.file_type,
        file_url=body.file_url,
        file_name=body.file_name,
    )
    db.commit()
    db.refresh(witness)
    return witness


@router.delete("/witnesses/{witness_id}", response_model=OkResponse)
def delete_witness(witness_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    wid = parse_uuid(witness_id, field="witness_id")
    witness = db.scalar(select(Witness).where(Witness.id == wid))
    if witness is None:
        raise HTTPException(status_code=404, detail="witness not found")

    service = IndicatorService(db)
    # Ownership follows the indicator, not whoever uploaded the file.
    service.get_for(witness.indicator_id, user, write=True)
    service.remove_witness(witness)
    db.commit()
    return OkResponse()
