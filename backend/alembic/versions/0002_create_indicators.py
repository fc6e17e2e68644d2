"""create indicators, criteria and witnesses

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-17

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "indicators",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "status",
            sa.Enum("pending", "in_progress", "completed", name="indicatorstatus"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("witness_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_indicators_user_id", "indicators", ["user_id"], unique=False)
    op.create_index("ix_indicators_status", "indicators", ["status"], unique=False)

    op.create_table(
        "criteria",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "indicator_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("indicators.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_criteria_indicator_id", "criteria", ["indicator_id"], unique=False)

    op.create_table(
        "witnesses",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "indicator_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("indicators.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("criteria_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("criteria.id", ondelete="CASCADE"), nullable=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("file_url", sa.String(length=2000), nullable=True),
        sa.Column("file_type", sa.Enum("pdf", "image", "video", "document", name="witnessfiletype"), nullable=True),
        sa.Column("file_name", sa.String(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_witnesses_indicator_id", "witnesses", ["indicator_id"], unique=False)
    op.create_index("ix_witnesses_criteria_id", "witnesses", ["criteria_id"], unique=False)
    op.create_index("ix_witnesses_user_id", "witnesses", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_witnesses_user_id", table_name="witnesses")
    op.drop_index("ix_witnesses_criteria_id", table_name="witnesses")
    op.drop_index("ix_witnesses_indicator_id", table_name="witnesses")
    op.drop_table("witnesses")
    op.execute("DROP TYPE IF EXISTS witnessfiletype")

    op.drop_index("ix_criteria_indicator_id", table_name="criteria")
    op.drop_table("criteria")

    op.drop_index("ix_indicators_status", table_name="indicators")
    op.drop_index("ix_indicators_user_id", table_name="indicators")
    op.drop_table("indicators")
    op.execute("DROP TYPE IF EXISTS indicatorstatus")
