from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import select
from sqlalchemy.orm import Session

from portfolio.core.config import creator_emails, settings
from portfolio.core.rate_limit import rate_limit
from portfolio.core.security import (
    create_access_token,
    get_current_user,
    get_optional_user,
    hash_password,
    verify_password,
)
from portfolio.core.security_audit_log import audit_log
from portfolio.db.session import get_db
from portfolio.models.user import User, UserRole
from portfolio.schemas.base import OkResponse
from portfolio.schemas.user import (
    ChangePasswordRequest,
    ProfileUpdateRequest,
    RegisterRequest,
    TokenResponse,
    UserPublic,
)

router = APIRouter(prefix="/api", tags=["auth"])


def _is_prod() -> bool:
    return (settings.app_env or "").strip().lower() in {"prod", "production"}


def _issue_session(response: Response, user: User) -> TokenResponse:
    token = create_access_token(user_id=str(user.id), role=user.role.value)
    max_age = int(settings.jwt_access_token_minutes) * 60
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=max_age,
        httponly=True,
        secure=_is_prod(),
        samesite="lax",
        path="/",
    )
    return TokenResponse(access_token=token, expires_in=max_age, user=UserPublic.model_validate(user))


def _check_password(password: str) -> None:
    if not password or len(password) < int(settings.password_min_length or 0):
        raise HTTPException(status_code=400, detail="password too short")


@router.post("/register", response_model=TokenResponse)
def register(
    request: Request,
    response: Response,
    payload: RegisterRequest,
    db: Session = Depends(get_db),
    _: object = rate_limit(key_prefix="auth_register", limit=10, window_seconds=60),
):
    if not settings.allow_public_register:
        raise HTTPException(status_code=403, detail="registration disabled")

    _check_password(payload.password)

    email = str(payload.email).strip().lower()
    existing = db.scalar(select(User).where(User.email == email))
    if existing is not None:
        audit_log(db=db, request=request, event_type="auth_register_failed", meta={"reason": "user_exists", "email": email})
        db.commit()
        raise HTTPException(status_code=409, detail="user already exists")

    role = UserRole.creator if email in creator_emails() else UserRole.teacher
    user = User(
        email=email,
        first_name=payload.first_name,
        last_name=payload.last_name,
        role=role,
        password_hash=hash_password(payload.password),
    )
    db.add(user)
    db.flush()
    audit_log(
        db=db,
        request=request,
        event_type="auth_register_success",
        actor_user_id=user.id,
        target_user_id=user.id,
        meta={"role": role.value},
    )
    db.commit()
    db.refresh(user)

    return _issue_session(response, user)


@router.post("/login", response_model=TokenResponse)
def login(
    request: Request,
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
    _: object = rate_limit(key_prefix="auth_login", limit=20, window_seconds=60),
):
    email = (form_data.username or "").strip().lower()
    user = db.scalar(select(User).where(User.email == email))
    if user is None or not verify_password(form_data.password, user.password_hash):
        audit_log(db=db, request=request, event_type="auth_login_failed", meta={"email": email})
        db.commit()
        raise HTTPException(status_code=401, detail="invalid credentials")

    audit_log(
        db=db,
        request=request,
        event_type="auth_login_success",
        actor_user_id=user.id,
        target_user_id=user.id,
        meta={"user_agent": str(request.headers.get("user-agent") or "")},
    )
    db.commit()

    return _issue_session(response, user)


@router.post("/logout", response_model=OkResponse)
def logout(response: Response):
    response.delete_cookie(key=settings.session_cookie_name, path="/")
    return OkResponse()


@router.get("/user", response_model=UserPublic | None)
def current_user(user: User | None = Depends(get_optional_user)):
    return user


@router.patch("/user", response_model=UserPublic)
def update_profile(
    body: ProfileUpdateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    for field, value in body.model_dump(exclude_unset=True).items():
        if isinstance(value, str):
            value = value.strip() or None
        setattr(user, field, value)
    user.updated_at = datetime.utcnow()
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@router.post("/user/change-password", response_model=OkResponse)
def change_password(
    request: Request,
    body: ChangePasswordRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    _: object = rate_limit(key_prefix="auth_change_password", limit=10, window_seconds=60),
):
    if not body.current_password or not verify_password(body.current_password, user.password_hash):
        audit_log(db=db, request=request, event_type="auth_change_password_failed", actor_user_id=user.id, target_user_id=user.id)
        db.commit()
        raise HTTPException(status_code=401, detail="invalid credentials")

    _check_password(body.new_password)

    user.password_hash = hash_password(body.new_password)
    user.must_change_password = False
    user.updated_at = datetime.utcnow()
    db.add(user)
    audit_log(db=db, request=request, event_type="auth_change_password_success", actor_user_id=user.id, target_user_id=user.id)
    db.commit()
    return OkResponse()
