# dietplanner/migrations/versions/20251115_user_preferences.py
"""user preferences (language, theme, ai model, terms acceptance)

Revision ID: d8e9f0a1b2c3
Revises: c4d5e6f7a8b9
Create Date: 2025-11-15 23:26:33.000000
"""

from alembic import op
import sqlalchemy as sa

revision = "d8e9f0a1b2c3"
down_revision = "c4d5e6f7a8b9"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "user_preferences",
        sa.Column("user_id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("language", sa.String(length=2), nullable=False, server_default="en"),
        sa.Column("theme", sa.String(length=5), nullable=False, server_default="light"),
        sa.Column("ai_model", sa.String(length=100), nullable=True),
        sa.Column("terms_accepted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("terms_accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def downgrade():
    op.drop_table("user_preferences")
