from __future__ import annotations

# SQLAlchemy models for chat sessions, meal plans, multi-day plans and preferences.
# - Uses string UUIDs (36 chars) for cross-DB portability.
# - user_id columns hold Supabase auth user ids; the auth schema lives in Supabase.
# - JSON columns become JSONB on Postgres.
# - FKs use ON DELETE CASCADE / SET NULL; for SQLite we enable PRAGMA foreign_keys.

import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
    event,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .config import db

ActivityLevel = Enum("sedentary", "light", "moderate", "high", name="activity_level_enum")

JsonType = JSON().with_variant(JSONB(), "postgresql")


def _uuid() -> str:
    """Generate a RFC4122 string UUID."""
    return str(uuid.uuid4())


class ChatSession(db.Model):
    __tablename__ = "ai_chat_sessions"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    message_history = Column(JsonType, nullable=False, default=list)
    prompt_count = Column(Integer, nullable=False, default=0)
    startup_data = Column(JsonType, nullable=True)
    model = Column(String(100), nullable=True)
    # Optimistic lock: UPDATE ... WHERE version = <read version>
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<ChatSession id={self.id} user_id={self.user_id} prompts={self.prompt_count}>"


class MealPlan(db.Model):
    __tablename__ = "meal_plans"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    source_chat_session_id = Column(
        String(36),
        ForeignKey("ai_chat_sessions.id", ondelete="SET NULL"),  # deleting a session keeps the plan
        nullable=True,
        index=True,
    )
    name = Column(Text, nullable=False)
    plan_content = Column(JsonType, nullable=False)

    # Startup form columns
    patient_age = Column(Integer, nullable=True)
    patient_weight = Column(Float, nullable=True)
    patient_height = Column(Float, nullable=True)
    activity_level = Column(ActivityLevel, nullable=True)
    target_kcal = Column(Integer, nullable=True)
    target_macro_distribution = Column(JsonType, nullable=True)
    meal_names = Column(Text, nullable=True)
    exclusions_guidelines = Column(Text, nullable=True)

    is_day_plan = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<MealPlan id={self.id} name={self.name!r}>"


class MultiDayPlan(db.Model):
    __tablename__ = "multi_day_plans"
    __table_args__ = (
        CheckConstraint("number_of_days >= 0 AND number_of_days <= 7", name="number_of_days"),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    source_chat_session_id = Column(
        String(36),
        ForeignKey("ai_chat_sessions.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    name = Column(Text, nullable=False)

    # Summary (recalculated from day plans)
    number_of_days = Column(Integer, nullable=False, default=0)
    average_kcal = Column(Float, nullable=True)
    average_proteins = Column(Float, nullable=True)
    average_fats = Column(Float, nullable=True)
    average_carbs = Column(Float, nullable=True)

    common_exclusions_guidelines = Column(Text, nullable=True)
    common_allergens = Column(JsonType, nullable=True)
    is_draft = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    days = relationship(
        "MultiDayPlanDay",
        back_populates="multi_day_plan",
        cascade="all, delete-orphan",
        order_by="MultiDayPlanDay.day_number.asc()",
    )

    def __repr__(self) -> str:
        return f"<MultiDayPlan id={self.id} days={self.number_of_days}>"


class MultiDayPlanDay(db.Model):
    __tablename__ = "multi_day_plan_days"
    __table_args__ = (
        UniqueConstraint("multi_day_plan_id", "day_number", name="uq_multi_day_plan_days_day"),
        CheckConstraint("day_number > 0 AND day_number <= 7", name="day_number"),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    multi_day_plan_id = Column(
        String(36),
        ForeignKey("multi_day_plans.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    day_plan_id = Column(
        String(36),
        ForeignKey("meal_plans.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    day_number = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    multi_day_plan = relationship("MultiDayPlan", back_populates="days")
    day_plan = relationship("MealPlan", cascade="all, delete-orphan", single_parent=True)


class UserPreference(db.Model):
    __tablename__ = "user_preferences"

    user_id = Column(String(36), primary_key=True)
    language = Column(String(2), nullable=False, default="en")
    theme = Column(String(5), nullable=False, default="light")
    ai_model = Column(String(100), nullable=True)
    terms_accepted = Column(Boolean, nullable=False, default=False)
    terms_accepted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<UserPreference user_id={self.user_id} language={self.language}>"


# Composite index for the dashboard listing (owner + recency)
Index("ix_meal_plans_user_updated_at", MealPlan.user_id, MealPlan.updated_at)


# Register PRAGMA on generic Engine (NOT db.engine) so we don't require an
# application context at import time; only acts for SQLite connections.
from sqlalchemy.engine import Engine  # noqa: E402


@event.listens_for(Engine, "connect")
def _set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable foreign key constraints for SQLite (no-op for Postgres)."""
    from sqlite3 import Connection as SQLite3Connection

    if isinstance(dbapi_connection, SQLite3Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
