from __future__ import annotations

from portfolio.schemas.base import ApiModel
from portfolio.schemas.user import UserPublic


class DashboardStats(ApiModel):
    total_capabilities: int
    total_changes: int
    total_indicators: int
    completed_indicators: int
    pending_indicators: int
    in_progress_indicators: int
    total_witnesses: int


class PrincipalDashboardStats(DashboardStats):
    total_teachers: int
    pending_approvals: int
    approved_indicators: int
    rejected_indicators: int


class TeacherWithStats(UserPublic):
    indicator_count: int = 0
    completed_count: int = 0
    pending_approval_count: int = 0
