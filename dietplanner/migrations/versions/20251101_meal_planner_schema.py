# dietplanner/migrations/versions/20251101_meal_planner_schema.py
"""ai chat sessions, meal plans and multi-day plans

Revision ID: c4d5e6f7a8b9
Revises:
Create Date: 2025-11-01 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "c4d5e6f7a8b9"
down_revision = None
branch_labels = None
depends_on = None

JsonType = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")
activity_level = sa.Enum("sedentary", "light", "moderate", "high", name="activity_level_enum")


def upgrade():
    op.create_table(
        "ai_chat_sessions",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("message_history", JsonType, nullable=False),
        sa.Column("prompt_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("startup_data", JsonType, nullable=True),
        sa.Column("model", sa.String(length=100), nullable=True),
        # optimistic lock counter (SQLAlchemy version_id_col)
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_ai_chat_sessions_user_id", "ai_chat_sessions", ["user_id"])

    op.create_table(
        "meal_plans",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("source_chat_session_id", sa.String(length=36), nullable=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("plan_content", JsonType, nullable=False),
        sa.Column("patient_age", sa.Integer(), nullable=True),
        sa.Column("patient_weight", sa.Float(), nullable=True),
        sa.Column("patient_height", sa.Float(), nullable=True),
        sa.Column("activity_level", activity_level, nullable=True),
        sa.Column("target_kcal", sa.Integer(), nullable=True),
        sa.Column("target_macro_distribution", JsonType, nullable=True),
        sa.Column("meal_names", sa.Text(), nullable=True),
        sa.Column("exclusions_guidelines", sa.Text(), nullable=True),
        sa.Column("is_day_plan", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["source_chat_session_id"], ["ai_chat_sessions.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_meal_plans_user_id", "meal_plans", ["user_id"])
    op.create_index("ix_meal_plans_source_chat_session_id", "meal_plans", ["source_chat_session_id"])
    op.create_index("ix_meal_plans_user_updated_at", "meal_plans", ["user_id", "updated_at"])

    op.create_table(
        "multi_day_plans",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("source_chat_session_id", sa.String(length=36), nullable=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("number_of_days", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("average_kcal", sa.Float(), nullable=True),
        sa.Column("average_proteins", sa.Float(), nullable=True),
        sa.Column("average_fats", sa.Float(), nullable=True),
        sa.Column("average_carbs", sa.Float(), nullable=True),
        sa.Column("common_exclusions_guidelines", sa.Text(), nullable=True),
        sa.Column("common_allergens", JsonType, nullable=True),
        sa.Column("is_draft", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["source_chat_session_id"], ["ai_chat_sessions.id"], ondelete="SET NULL"),
        sa.CheckConstraint("number_of_days >= 0 AND number_of_days <= 7", name="ck_multi_day_plans_number_of_days"),
    )
    op.create_index("ix_multi_day_plans_user_id", "multi_day_plans", ["user_id"])
    op.create_index("ix_multi_day_plans_source_chat_session_id", "multi_day_plans", ["source_chat_session_id"])

    op.create_table(
        "multi_day_plan_days",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("multi_day_plan_id", sa.String(length=36), nullable=False),
        sa.Column("day_plan_id", sa.String(length=36), nullable=False),
        sa.Column("day_number", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["multi_day_plan_id"], ["multi_day_plans.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["day_plan_id"], ["meal_plans.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("multi_day_plan_id", "day_number", name="uq_multi_day_plan_days_day"),
        sa.UniqueConstraint("day_plan_id", name="uq_multi_day_plan_days_day_plan_id"),
        sa.CheckConstraint("day_number > 0 AND day_number <= 7", name="ck_multi_day_plan_days_day_number"),
    )
    op.create_index("ix_multi_day_plan_days_multi_day_plan_id", "multi_day_plan_days", ["multi_day_plan_id"])


def downgrade():
    op.drop_index("ix_multi_day_plan_days_multi_day_plan_id", table_name="multi_day_plan_days")
    op.drop_table("multi_day_plan_days")
    op.drop_index("ix_multi_day_plans_source_chat_session_id", table_name="multi_day_plans")
    op.drop_index("ix_multi_day_plans_user_id", table_name="multi_day_plans")
    op.drop_table("multi_day_plans")
    op.drop_index("ix_meal_plans_user_updated_at", table_name="meal_plans")
    op.drop_index("ix_meal_plans_source_chat_session_id", table_name="meal_plans")
    op.drop_index("ix_meal_plans_user_id", table_name="meal_plans")
    op.drop_table("meal_plans")
    activity_level.drop(op.get_bind(), checkfirst=True)
    op.drop_index("ix_ai_chat_sessions_user_id", table_name="ai_chat_sessions")
    op.drop_table("ai_chat_sessions")
