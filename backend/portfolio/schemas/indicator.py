from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, Field

from portfolio.models.indicator import IndicatorStatus
from portfolio.models.witness import WitnessFileType
from portfolio.schemas.base import ApiModel


def _strip_required(value: str) -> str:
    value = str(value or "").strip()
    if not value:
        raise ValueError("must not be blank")
    return value


Title = Annotated[str, Field(max_length=255), AfterValidator(_strip_required)]


class CriteriaPublic(ApiModel):
    id: uuid.UUID
    indicator_id: uuid.UUID
    title: str
    is_completed: bool
    order: int
    created_at: datetime | None = None


class WitnessPublic(ApiModel):
    id: uuid.UUID
    indicator_id: uuid.UUID
    criteria_id: uuid.UUID | None = None
    user_id: uuid.UUID
    title: str
    description: str | None = None
    file_url: str | None = None
    file_type: WitnessFileType | None = None
    file_name: str | None = None
    created_at: datetime | None = None


class IndicatorPublic(ApiModel):
    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    description: str | None = None
    status: IndicatorStatus
    witness_count: int
    order: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


class IndicatorWithCriteria(IndicatorPublic):
    criteria: list[CriteriaPublic] = []
    witnesses: list[WitnessPublic] | None = None


class IndicatorCreateRequest(ApiModel):
    title: Title
    description: str | None = None
    # Criterion titles in display order; blank entries are skipped.
    criteria: list[Annotated[str, Field(max_length=255)]] = []


class IndicatorUpdateRequest(ApiModel):
    title: Title | None = None
    description: str | None = None
    order: int | None = Field(default=None, ge=0)


class CriteriaCreateRequest(ApiModel):
    title: Title


class CriteriaToggleRequest(ApiModel):
    is_completed: bool


class WitnessCreateRequest(ApiModel):
    title: Title
    description: str | None = None
    criteria_id: uuid.UUID | None = None
    file_type: WitnessFileType | None = None
    file_url: str | None = Field(default=None, max_length=2000)
    file_name: str | None = Field(default=None, max_length=500)


class ReEvaluateRequest(ApiModel):
    indicator_ids: list[uuid.UUID] = Field(min_length=1)
