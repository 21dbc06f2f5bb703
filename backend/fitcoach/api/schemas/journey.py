"""Structured day-plan and journey payloads.

Every field carries a display-ready default so a partially parsed plan is
still complete when rendered.
"""
from __future__ import annotations

from typing import List

from pydantic import Field

from fitcoach.api.schemas.base import CamelModel

DEFAULT_WORKOUT_TITLE = "Full Body Workout"
DEFAULT_DURATION = "45 minutes"
DEFAULT_EXERCISES = (
    "Warm-up: 5 min light cardio",
    "Strength training exercises",
    "Cool-down stretches",
)
DEFAULT_WORKOUT_NOTES = "Focus on proper form and listen to your body."
DEFAULT_MEAL = "Balanced meal with protein, carbs, and healthy fats"
DEFAULT_CALORIES = "1800 cal"
DEFAULT_PROTEIN = "120g"
DEFAULT_CARBS = "180g"
DEFAULT_FATS = "60g"
DEFAULT_TIPS = "Stay hydrated! Aim for at least 8 glasses of water today."
DEFAULT_WEEKLY_GOAL = "Build strength and improve endurance"
DEFAULT_ESTIMATED_PROGRESS = "Expected to see initial improvements in energy and strength"


def format_macros(protein: str = DEFAULT_PROTEIN, carbs: str = DEFAULT_CARBS, fats: str = DEFAULT_FATS) -> str:
    return f"Protein: {protein} | Carbs: {carbs} | Fats: {fats}"


class Workout(CamelModel):
    title: str = DEFAULT_WORKOUT_TITLE
    duration: str = DEFAULT_DURATION
    exercises: List[str] = Field(default_factory=lambda: list(DEFAULT_EXERCISES), min_length=1)
    notes: str = DEFAULT_WORKOUT_NOTES


class Meal(CamelModel):
    breakfast: str = DEFAULT_MEAL
    lunch: str = DEFAULT_MEAL
    dinner: str = DEFAULT_MEAL
    snacks: str = DEFAULT_MEAL
    total_calories: str = DEFAULT_CALORIES
    macros: str = Field(default_factory=format_macros)


class DayPlan(CamelModel):
    day_number: int = Field(default=1, ge=1, alias="day")
    workout: Workout = Field(default_factory=Workout)
    meal: Meal = Field(default_factory=Meal)
    tips: str = DEFAULT_TIPS


class JourneyOverview(CamelModel):
    weekly_goal: str = DEFAULT_WEEKLY_GOAL
    estimated_progress: str = DEFAULT_ESTIMATED_PROGRESS


class Journey(CamelModel):
    """Envelope around the day plans returned to a caller.

    ``days`` currently holds only the requested day even though
    ``total_days`` describes the whole journey length.
    """

    current_day: int = Field(default=1, ge=1)
    total_days: int = Field(default=7, ge=1)
    overview: JourneyOverview = Field(default_factory=JourneyOverview)
    days: List[DayPlan] = Field(default_factory=list)
