from __future__ import annotations

import uuid
from datetime import datetime, timedelta

from fastapi import Depends, HTTPException, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.orm import Session

from portfolio.core.config import settings
from portfolio.db.session import get_db
from portfolio.models.user import PRINCIPAL_ROLES, User, UserRole


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/login", auto_error=False)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(*, user_id: str, role: str) -> str:
    now = datetime.utcnow()
    expire = now + timedelta(minutes=settings.jwt_access_token_minutes)
    payload = {
        "sub": user_id,
        "role": role,
        "iat": now,
        "exp": expire,
        "iss": settings.jwt_issuer,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def _user_from_token(db: Session, token: str) -> User:
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
        )
        user_id = payload.get("sub")
        if not user_id:
            raise HTTPException(status_code=401, detail="invalid session")
    except JWTError as e:
        raise HTTPException(status_code=401, detail="invalid session") from e

    try:
        user_id = uuid.UUID(str(user_id))
    except ValueError as e:
        raise HTTPException(status_code=401, detail="invalid session") from e

    user = db.scalar(select(User).where(User.id == user_id))
    if user is None:
        raise HTTPException(status_code=401, detail="invalid session")
    return user


def _session_token(request: Request, token: str | None) -> str | None:
    return token or request.cookies.get(settings.session_cookie_name) or None


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    token: str | None = Depends(oauth2_scheme),
) -> User:
    token = _session_token(request, token)
    if not token:
        raise HTTPException(status_code=401, detail="not authenticated")

    user = _user_from_token(db, token)
    request.state.user_id = str(user.id)
    return user


def get_optional_user(
    request: Request,
    db: Session = Depends(get_db),
    token: str | None = Depends(oauth2_scheme),
) -> User | None:
    token = _session_token(request, token)
    if not token:
        return None
    try:
        user = _user_from_token(db, token)
    except HTTPException:
        return None
    request.state.user_id = str(user.id)
    return user


def require_roles(*roles: UserRole):
    def _dep(user: User = Depends(get_current_user)) -> User:
        # creator sits above every other role
        if user.role == UserRole.creator:
            return user

        if user.role not in roles:
            raise HTTPException(status_code=403, detail="forbidden")
        return user

    return _dep


require_principal = require_roles(*PRINCIPAL_ROLES)
require_creator = require_roles(UserRole.creator)


def is_principal(user: User) -> bool:
    return user.role in PRINCIPAL_ROLES
