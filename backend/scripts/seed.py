from __future__ import annotations

import argparse
import json
import os
import pathlib
import sys

# Allow running as `python scripts/seed.py` from the backend directory.
sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from sqlalchemy import select
from sqlalchemy.orm import Session

from portfolio.core.security import hash_password
from portfolio.db.session import SessionLocal
from portfolio.models.catalog import Capability, Change
from portfolio.models.strategy import Strategy
from portfolio.models.user import User, UserRole

DEFAULT_CATALOG = pathlib.Path(__file__).resolve().parent / "catalog.sample.json"


def ensure_user(db: Session, *, email: str, password: str, role: UserRole) -> User:
    email = email.strip().lower()
    user = db.scalar(select(User).where(User.email == email))
    if user is None:
        user = User(email=email, role=role, password_hash=hash_password(password))
        db.add(user)
        db.commit()
        db.refresh(user)
        print(f"created {role.value}: {email}")
    elif user.role != role:
        user.role = role
        db.commit()
        print(f"updated role of {email} -> {role.value}")
    return user


def seed_catalog(db: Session, data: dict) -> dict[str, int]:
    """Insert catalog rows missing by name; existing rows are left untouched."""
    added = {"strategies": 0, "capabilities": 0, "changes": 0}

    existing = set(db.scalars(select(Strategy.name)).all())
    for item in data.get("strategies") or []:
        name = str(item.get("name") or "").strip()
        if not name or name in existing:
            continue
        db.add(Strategy(name=name, description=item.get("description"), is_active=bool(item.get("is_active", True))))
        existing.add(name)
        added["strategies"] += 1

    for key, model in (("capabilities", Capability), ("changes", Change)):
        existing = set(db.scalars(select(model.name)).all())
        for order, item in enumerate(data.get(key) or [], start=1):
            name = str(item.get("name") or "").strip()
            if not name or name in existing:
                continue
            db.add(
                model(
                    name=name,
                    description=item.get("description"),
                    category=item.get("category"),
                    order=int(item.get("order") or order),
                )
            )
            existing.add(name)
            added[key] += 1

    db.commit()
    return added


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the portfolio database with a creator account and catalog data")
    parser.add_argument("--catalog", default=str(DEFAULT_CATALOG), help="JSON file with strategies/capabilities/changes")
    parser.add_argument("--creator-email", default=os.environ.get("PORTFOLIO_SEED_CREATOR_EMAIL"))
    parser.add_argument("--creator-password", default=os.environ.get("PORTFOLIO_SEED_CREATOR_PASSWORD"))
    args = parser.parse_args()

    with SessionLocal() as db:
        if args.creator_email:
            if not args.creator_password:
                parser.error("--creator-password is required with --creator-email")
            ensure_user(db, email=args.creator_email, password=args.creator_password, role=UserRole.creator)

        path = pathlib.Path(args.catalog)
        if not path.is_file():
            print(f"Catalog file not found: {path}")
            return
        data = json.loads(path.read_text(encoding="utf-8"))
        added = seed_catalog(db, data)
        print("Catalog seeded: " + ", ".join(f"{k}={v}" for k, v in added.items()))


if __name__ == "__main__":
    main()
