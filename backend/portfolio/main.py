import json
import logging
import time
import uuid
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from portfolio.core.config import settings
from portfolio.core.request_context import request_id
from portfolio.routers import auth, catalog, creator, dashboard, health, indicators, principal, signatures, witnesses

_ERROR_CODES = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    409: "conflict",
    429: "rate_limited",
}


def _error_payload(request: Request, status_code: int, message: str, error_code: str | None = None) -> dict:
    return {
        "ok": False,
        "message": message,
        "error_code": error_code or _ERROR_CODES.get(int(status_code), "http_error"),
        "request_id": request_id(request),
    }


def create_app() -> FastAPI:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    app = FastAPI(title="Teacher Portfolio API", version="1.0.0")

    logger = logging.getLogger("portfolio")

    allow_origins = [o.strip() for o in str(settings.cors_allow_origins or "").split(",") if o.strip()]
    if "*" in allow_origins:
        raise RuntimeError("CORS_ALLOW_ORIGINS must not include '*' when allow_credentials=true")

    is_prod = (settings.app_env or "").strip().lower() in {"prod", "production"}

    def _parse_csv(value: str) -> list[str]:
        return [x.strip() for x in str(value or "").split(",") if x.strip()]

    allow_methods_raw = str(settings.cors_allow_methods or "*").strip()
    allow_headers_raw = str(settings.cors_allow_headers or "*").strip()
    if is_prod:
        allow_methods = ["GET", "POST", "PATCH", "DELETE", "OPTIONS"] if allow_methods_raw == "*" else _parse_csv(allow_methods_raw)
        allow_headers = (
            ["authorization", "content-type", "x-request-id"] if allow_headers_raw == "*" else _parse_csv(allow_headers_raw)
        )
    else:
        allow_methods = ["*"] if allow_methods_raw == "*" else _parse_csv(allow_methods_raw)
        allow_headers = ["*"] if allow_headers_raw == "*" else _parse_csv(allow_headers_raw)

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        t0 = time.perf_counter()
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = rid
        status_code: int | None = None
        try:
            # Cookie sessions make cross-site writes dangerous.
            origin = (request.headers.get("origin") or "").strip()
            if request.method in {"POST", "PUT", "PATCH", "DELETE"} and origin and origin not in allow_origins:
                response = JSONResponse(status_code=403, content=_error_payload(request, 403, "invalid origin"))
            else:
                response = await call_next(request)
            status_code = int(getattr(response, "status_code", 0) or 0)
        except Exception:
            status_code = 500
            raise
        finally:
            path = request.url.path
            if not path.startswith("/health"):
                logger.info(
                    json.dumps(
                        {
                            "ts": datetime.utcnow().isoformat(),
                            "rid": rid,
                            "user_id": getattr(request.state, "user_id", None),
                            "method": request.method,
                            "path": path,
                            "status": status_code,
                            "duration_ms": int((time.perf_counter() - t0) * 1000),
                        },
                        ensure_ascii=False,
                    )
                )
        response.headers["X-Request-ID"] = rid

        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        if is_prod:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        detail = exc.detail
        if isinstance(detail, dict):
            payload = _error_payload(
                request,
                exc.status_code,
                str(detail.get("message") or detail.get("detail") or "request failed"),
                detail.get("error_code"),
            )
        else:
            payload = _error_payload(request, exc.status_code, str(detail or "request failed"))
        return JSONResponse(status_code=int(exc.status_code), content=payload, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{loc}: {first.get('msg')}" if loc else str(first.get("msg") or "invalid request")
        payload = _error_payload(request, 400, message, "validation_error")
        payload["errors"] = [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in errors]
        return JSONResponse(status_code=400, content=payload)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("unhandled exception", extra={"rid": request_id(request)})
        return JSONResponse(status_code=500, content=_error_payload(request, 500, "internal server error", "internal_error"))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=True,
        allow_methods=allow_methods,
        allow_headers=allow_headers,
    )

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(dashboard.router)
    app.include_router(indicators.router)
    app.include_router(witnesses.router)
    app.include_router(catalog.router)
    app.include_router(signatures.router)
    app.include_router(principal.router)
    app.include_router(creator.router)

    return app


app = create_app()
