from __future__ import annotations

from fastapi import Request

from portfolio.core.config import settings


def request_id(request: Request) -> str | None:
    rid = getattr(getattr(request, "state", None), "request_id", None)
    rid = str(rid or "").strip()
    return rid or None


def client_ip(request: Request) -> str | None:
    if bool(settings.trust_proxy_headers):
        xri = str(request.headers.get("x-real-ip") or "").strip()
        if xri:
            return xri

        xff = str(request.headers.get("x-forwarded-for") or "")
        if xff:
            ip = xff.split(",")[0].strip()
            if ip:
                return ip
    if request.client and request.client.host:
        return request.client.host
    return None
