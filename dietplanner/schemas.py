# dietplanner/schemas.py
# Purpose: Pydantic v2 models for validating API requests & shaping responses.
# Notes:
# - Keep DTOs close to the route surface; easy to re-use in docs/tests.
# - Startup data is shared by AI sessions and saved plans.

from __future__ import annotations

import re
from datetime import datetime
from typing import Annotated, List, Literal, Optional
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator, model_validator

ActivityLevel = Literal["sedentary", "light", "moderate", "high"]
LanguageCode = Literal["en", "pl"]
Theme = Literal["light", "dark"]

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PASSWORD_POLICY_MESSAGE = "Password must be at least 8 characters and include letters and numbers."


# ---------------------- Startup data ----------------------
class MacroDistribution(BaseModel):
    p_perc: float = Field(..., ge=0, le=100)
    f_perc: float = Field(..., ge=0, le=100)
    c_perc: float = Field(..., ge=0, le=100)

    @model_validator(mode="after")
    def _sums_to_hundred(self) -> "MacroDistribution":
        total = self.p_perc + self.f_perc + self.c_perc
        if abs(total - 100) > 1:
            raise ValueError(f"Macro percentages must add up to 100 (got {total:g})")
        return self


class StartupData(BaseModel):
    patient_age: Optional[int] = Field(default=None, gt=0, le=150)
    patient_weight: Optional[float] = Field(default=None, gt=0, le=1000)
    patient_height: Optional[float] = Field(default=None, gt=0, le=300)
    activity_level: Optional[ActivityLevel] = None
    target_kcal: Optional[int] = Field(default=None, gt=0, le=10000)
    target_macro_distribution: Optional[MacroDistribution] = None
    meal_names: Optional[str] = Field(default=None, max_length=500)
    exclusions_guidelines: Optional[str] = Field(default=None, max_length=2000)


class CreateAiSessionRequest(StartupData):
    # multi-day options; number_of_days > 1 switches the prompts to the multi-day format
    number_of_days: Optional[int] = Field(default=None, ge=1, le=7)
    ensure_meal_variety: Optional[bool] = None
    different_guidelines_per_day: Optional[bool] = None
    per_day_guidelines: Optional[str] = Field(default=None, max_length=2000)


# ---------------------- Chat messages ----------------------
class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class UserMessage(BaseModel):
    role: Literal["user"]
    content: str = Field(..., min_length=1)


class SendAiMessageRequest(BaseModel):
    message: UserMessage


class AiSessionResponse(BaseModel):
    session_id: str
    message: ChatMessage
    prompt_count: int


# ---------------------- Meal plans ----------------------
class DailySummary(BaseModel):
    kcal: float = Field(..., gt=0)
    proteins: float = Field(..., gt=0)
    fats: float = Field(..., gt=0)
    carbs: float = Field(..., gt=0)


class MealSummary(BaseModel):
    kcal: float = Field(..., gt=0)
    p: float = Field(..., ge=0)
    f: float = Field(..., ge=0)
    c: float = Field(..., ge=0)


class Meal(BaseModel):
    name: str = Field(..., min_length=1)
    ingredients: str
    preparation: str
    summary: MealSummary

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Meal name is required")
        return v


class PlanContent(BaseModel):
    daily_summary: DailySummary
    meals: List[Meal] = Field(..., min_length=1)


class CreateMealPlanRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    source_chat_session_id: Optional[UUID] = None
    plan_content: PlanContent
    startup_data: StartupData


class UpdateMealPlanRequest(StartupData):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    source_chat_session_id: Optional[UUID] = None
    plan_content: Optional[PlanContent] = None


class ListPlansQuery(BaseModel):
    search: Optional[str] = Field(default=None, max_length=100)
    sort: Literal["created_at", "updated_at", "name"] = "updated_at"
    order: Literal["asc", "desc"] = "desc"


class ExportQuery(BaseModel):
    format: Literal["doc", "md", "json"] = "doc"


# ---------------------- Multi-day plans ----------------------
class DayPlanInput(BaseModel):
    day_number: int = Field(..., ge=1, le=7)
    name: Optional[str] = Field(default=None, max_length=255)
    plan_content: PlanContent
    startup_data: StartupData


def _check_days(days: List[DayPlanInput]) -> List[DayPlanInput]:
    numbers = [d.day_number for d in days]
    if len(set(numbers)) != len(numbers):
        raise ValueError("day_number values must be unique")
    return days


class CreateMultiDayPlanRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    source_chat_session_id: Optional[UUID] = None
    number_of_days: Optional[int] = Field(default=None, ge=1, le=7)
    common_exclusions_guidelines: Optional[str] = Field(default=None, max_length=2000)
    common_allergens: Optional[List[str]] = None
    is_draft: bool = False
    day_plans: List[DayPlanInput] = Field(..., min_length=1, max_length=7)

    @field_validator("day_plans")
    @classmethod
    def _unique_days(cls, v: List[DayPlanInput]) -> List[DayPlanInput]:
        return _check_days(v)

    @model_validator(mode="after")
    def _days_match_count(self) -> "CreateMultiDayPlanRequest":
        if self.number_of_days is not None and self.number_of_days != len(self.day_plans):
            raise ValueError("number_of_days must equal the number of day_plans")
        return self


class UpdateMultiDayPlanRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    common_exclusions_guidelines: Optional[str] = Field(default=None, max_length=2000)
    common_allergens: Optional[List[str]] = None
    is_draft: Optional[bool] = None
    day_plans: Optional[List[DayPlanInput]] = Field(default=None, min_length=1, max_length=7)

    @field_validator("day_plans")
    @classmethod
    def _unique_days(cls, v: Optional[List[DayPlanInput]]) -> Optional[List[DayPlanInput]]:
        return _check_days(v) if v is not None else v


# ---------------------- Preferences ----------------------
class UpdatePreferencesRequest(BaseModel):
    language: Optional[LanguageCode] = None
    theme: Optional[Theme] = None
    ai_model: Optional[str] = Field(default=None, max_length=100)
    terms_accepted: Optional[bool] = None

    @model_validator(mode="after")
    def _at_least_one(self) -> "UpdatePreferencesRequest":
        if not self.model_fields_set:
            raise ValueError("At least one preference must be provided")
        return self


class PreferencesResponse(BaseModel):
    language: LanguageCode
    theme: Theme
    ai_model: str
    terms_accepted: bool
    terms_accepted_at: Optional[datetime] = None


# ---------------------- Auth ----------------------
def _check_email(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Email is required.")
    if not EMAIL_RE.match(v):
        raise ValueError("Please enter a valid email address.")
    return v


def _check_password_policy(v: str) -> str:
    if len(v) < 8 or not re.search(r"[A-Za-z]", v) or not re.search(r"\d", v):
        raise ValueError(PASSWORD_POLICY_MESSAGE)
    return v


EmailStr = Annotated[str, AfterValidator(_check_email)]
PolicyPassword = Annotated[str, AfterValidator(_check_password_policy)]


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    password: PolicyPassword
    confirm_password: str = Field(..., min_length=1, alias="confirmPassword")
    terms_accepted: Literal[True] = Field(..., alias="termsAccepted")

    @model_validator(mode="after")
    def _passwords_match(self) -> "RegisterRequest":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match.")
        return self


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    new_password: PolicyPassword = Field(..., alias="newPassword")
    confirm_password: str = Field(..., min_length=1, alias="confirmPassword")
    # Recovery session from the emailed link (URL fragment); cookies are used when absent
    access_token: Optional[str] = Field(default=None, min_length=1, alias="accessToken")
    refresh_token: Optional[str] = Field(default=None, min_length=1, alias="refreshToken")

    @model_validator(mode="after")
    def _passwords_match(self) -> "ResetPasswordRequest":
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords do not match.")
        if (self.access_token is None) != (self.refresh_token is None):
            raise ValueError("accessToken and refreshToken must be sent together.")
        return self


class ErrorResponse(BaseModel):
    error: str
    code: int
    request_id: Optional[str] = None
    details: Optional[list] = None
