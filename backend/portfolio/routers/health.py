import redis
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from portfolio.core import redis_client
from portfolio.db.session import get_db

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/health/live")
def live():
    return {"status": "live"}


@router.get("/health/ready")
def ready(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        raise HTTPException(status_code=503, detail="db not ready") from e

    # Redis only backs rate limiting, so it is reported but not required.
    try:
        redis_ok = bool(redis_client.get_redis().ping())
    except redis.RedisError:
        redis_ok = False

    return {"status": "ready", "redis": redis_ok}
