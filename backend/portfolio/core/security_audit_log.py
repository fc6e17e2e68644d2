from __future__ import annotations

import json

from fastapi import Request
from sqlalchemy.orm import Session

from portfolio.core.request_context import client_ip, request_id
from portfolio.models.security_audit import SecurityAuditEvent


def audit_log(
    *,
    db: Session,
    request: Request,
    event_type: str,
    actor_user_id=None,
    target_user_id=None,
    subject_id=None,
    meta: dict | str | None = None,
) -> None:
    """Stage an audit row on the session; the caller's commit persists it."""
    if isinstance(meta, dict):
        meta_str = json.dumps(meta, ensure_ascii=False, default=str)
    elif isinstance(meta, str):
        meta_str = meta
    else:
        meta_str = None

    db.add(
        SecurityAuditEvent(
            actor_user_id=actor_user_id,
            target_user_id=target_user_id,
            subject_id=subject_id,
            event_type=str(event_type),
            meta=meta_str,
            request_id=request_id(request),
            ip=client_ip(request),
        )
    )
