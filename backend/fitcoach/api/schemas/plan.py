"""Schemas for fitness plan requests and responses."""
from __future__ import annotations

from typing import Optional

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from fitcoach.api.schemas.base import CamelModel


class PlanInput(CamelModel):
    """Profile input; numbers sent by clients are kept as strings for the prompts."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        str_strip_whitespace=True,
    )


class PlanRequest(PlanInput):
    """User profile and goals that drive a complete plan."""

    goal: str = Field(..., min_length=1, description="e.g. muscle gain, fat loss, endurance")
    experience: str = Field(..., min_length=1, description="beginner, intermediate or advanced")
    days_per_week: str = Field(..., min_length=1)
    target_calories: str = Field(..., min_length=1)
    dietary_preference: str = Field(..., min_length=1, description="e.g. vegetarian, keto, balanced")
    age: Optional[str] = None
    gender: Optional[str] = None
    current_weight: Optional[str] = None
    target_weight: Optional[str] = None
    height: Optional[str] = None
    additional_info: Optional[str] = None


class WorkoutPlanRequest(PlanInput):
    goal: str = Field(..., min_length=1)
    experience: str = Field(..., min_length=1)
    days_per_week: str = Field(..., min_length=1)
    additional_info: Optional[str] = None


class MealPlanRequest(PlanInput):
    goal: str = Field(..., min_length=1)
    calories: str = Field(..., min_length=1)
    dietary_preference: str = Field(..., min_length=1)
    additional_info: Optional[str] = None


class ExerciseFormRequest(PlanInput):
    exercise_name: str = Field(..., min_length=1, description="e.g. bench press, squat, deadlift")


class SupplementRequest(PlanInput):
    goal: str = Field(..., min_length=1)
    diet_type: str = Field(..., min_length=1, description="e.g. omnivore, vegetarian, vegan")
    additional_info: Optional[str] = None


class PlanTextResponse(CamelModel):
    plan: str
    request_id: str


class PlanPdfResponse(CamelModel):
    success: bool
    pdf_path: str
    file_name: str
    file_size_bytes: int
    generation_time_ms: int


class ParseRequest(CamelModel):
    text: str = Field(..., max_length=50000)
    current_day: int = Field(default=1, ge=1)


class AskResponse(CamelModel):
    answer: str
    conversation_id: Optional[str] = None
    request_id: str


class ConversationClearedResponse(CamelModel):
    success: bool
    conversation_id: str
    message: str
