"""create catalog tables and signatures

Revision ID: 0003
Revises: 0002
Create Date: 2026-10-17

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "0003"
down_revision = "0002"
branch_labels = None
depends_on = None


def _catalog_table(name: str) -> None:
    op.create_table(
        name,
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )


def upgrade() -> None:
    op.create_table(
        "strategies",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_strategies_name", "strategies", ["name"], unique=False)

    op.create_table(
        "user_strategies",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "strategy_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("strategies.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("user_id", "strategy_id", name="uq_user_strategy"),
    )
    op.create_index("ix_user_strategies_user_id", "user_strategies", ["user_id"], unique=False)
    op.create_index("ix_user_strategies_strategy_id", "user_strategies", ["strategy_id"], unique=False)

    _catalog_table("capabilities")
    _catalog_table("changes")

    op.create_table(
        "signatures",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "indicator_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("indicators.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("teacher_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("principal_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column(
            "status",
            sa.Enum("pending", "approved", "rejected", name="signaturestatus"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("signed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_signatures_indicator_id", "signatures", ["indicator_id"], unique=False)
    op.create_index("ix_signatures_teacher_id", "signatures", ["teacher_id"], unique=False)
    op.create_index("ix_signatures_principal_id", "signatures", ["principal_id"], unique=False)
    op.create_index("ix_signatures_status", "signatures", ["status"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_signatures_status", table_name="signatures")
    op.drop_index("ix_signatures_principal_id", table_name="signatures")
    op.drop_index("ix_signatures_teacher_id", table_name="signatures")
    op.drop_index("ix_signatures_indicator_id", table_name="signatures")
    op.drop_table("signatures")
    op.execute("DROP TYPE IF EXISTS signaturestatus")

    op.drop_table("changes")
    op.drop_table("capabilities")

    op.drop_index("ix_user_strategies_strategy_id", table_name="user_strategies")
    op.drop_index("ix_user_strategies_user_id", table_name="user_strategies")
    op.drop_table("user_strategies")

    op.drop_index("ix_strategies_name", table_name="strategies")
    op.drop_table("strategies")
