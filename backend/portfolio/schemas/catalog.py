from __future__ import annotations

import uuid

from portfolio.schemas.base import ApiModel


class StrategyPublic(ApiModel):
    id: uuid.UUID
    name: str
    description: str | None = None
    is_active: bool


class UserStrategiesRequest(ApiModel):
    strategy_ids: list[uuid.UUID]


class CatalogItem(ApiModel):
    id: uuid.UUID
    name: str
    description: str | None = None
    category: str | None = None
    order: int
