from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import Field

from portfolio.models.signature import SignatureStatus
from portfolio.schemas.base import ApiModel
from portfolio.schemas.indicator import IndicatorWithCriteria
from portfolio.schemas.user import UserPublic


class SignaturePublic(ApiModel):
    id: uuid.UUID
    indicator_id: uuid.UUID
    teacher_id: uuid.UUID
    principal_id: uuid.UUID | None = None
    status: SignatureStatus
    notes: str | None = None
    submitted_at: datetime | None = None
    signed_at: datetime | None = None
    created_at: datetime | None = None


class SignatureWithDetails(SignaturePublic):
    teacher: UserPublic | None = None
    principal: UserPublic | None = None
    indicator: IndicatorWithCriteria | None = None


class SignatureSubmitRequest(ApiModel):
    indicator_id: uuid.UUID
    notes: str | None = Field(default=None, max_length=5000)


class SignatureDecisionRequest(ApiModel):
    notes: str | None = Field(default=None, max_length=5000)
