import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from portfolio.db.base import Base


class UserRole(str, enum.Enum):
    teacher = "teacher"
    supervisor = "supervisor"
    admin = "admin"
    creator = "creator"


# Roles allowed on the principal dashboard.
PRINCIPAL_ROLES = frozenset({UserRole.admin, UserRole.creator})
# Accounts a principal lists and manages.
STAFF_ROLES = frozenset({UserRole.teacher, UserRole.supervisor})

DEFAULT_EDUCATIONAL_LEVEL = "معلم"


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(320), unique=True, index=True)
    first_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    profile_image_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    role: Mapped[UserRole] = mapped_column(Enum(UserRole), index=True, default=UserRole.teacher)
    educational_level: Mapped[str | None] = mapped_column(String(50), nullable=True, default=DEFAULT_EDUCATIONAL_LEVEL)

    school_name: Mapped[str | None] = mapped_column(String(300), nullable=True)
    education_department: Mapped[str | None] = mapped_column(String(300), nullable=True)
    subject: Mapped[str | None] = mapped_column(String(200), nullable=True)
    principal_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    years_of_service: Mapped[int | None] = mapped_column(Integer, nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String(320), nullable=True)

    password_hash: Mapped[str] = mapped_column(String(255))
    must_change_password: Mapped[bool] = mapped_column(default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
