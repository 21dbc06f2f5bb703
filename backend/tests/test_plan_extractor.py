"""Tests for free-text plan extraction."""
from __future__ import annotations

import pytest

from fitcoach.api.schemas.journey import (
    DEFAULT_CALORIES,
    DEFAULT_DURATION,
    DEFAULT_EXERCISES,
    DEFAULT_MEAL,
    DEFAULT_TIPS,
    DEFAULT_WORKOUT_NOTES,
    DEFAULT_WORKOUT_TITLE,
    format_macros,
)
from fitcoach.services import plan_extractor
from fitcoach.services.plan_extractor import (
    extract_calories,
    extract_day_plan,
    extract_duration,
    extract_exercises,
    extract_macros,
    extract_meal_item,
    extract_workout_title,
)

SAMPLE_PLAN = """
=== SECTION 1: WORKOUT PLAN ===
Today's Workout: Upper Body Strength
Duration: 45-60 minutes

- Bench press: 4 sets x 8 reps
- Bent-over rows: 4 sets x 10 reps
- Overhead press: 3 sets x 10 reps
- Pull-ups: 3 sets to failure
- Plank: 3 x 45 seconds

Note: Keep your core braced on every rep.

=== SECTION 2: MEAL PLAN ===
Breakfast: Oats with whey and banana
Lunch: Chicken breast, brown rice and broccoli
Dinner: Salmon with quinoa and asparagus
Snacks: Greek yogurt and almonds
Total: 2200 calories
Protein: 160g
Carbs: 220g
Fats: 70g

=== SECTION 3: SUPPLEMENT RECOMMENDATIONS ===
Tip: Drink water before every meal.
"""


def test_extract_day_plan_reads_every_section() -> None:
    day = extract_day_plan(SAMPLE_PLAN, day_number=2)

    assert day.day_number == 2
    assert day.workout.title == "Upper Body Strength"
    assert day.workout.duration == "45-60 minutes"
    assert day.workout.exercises == [
        "Bench press: 4 sets x 8 reps",
        "Bent-over rows: 4 sets x 10 reps",
        "Overhead press: 3 sets x 10 reps",
        "Pull-ups: 3 sets to failure",
        "Plank: 3 x 45 seconds",
    ]
    assert day.workout.notes == "Keep your core braced on every rep."
    assert day.meal.breakfast == "Oats with whey and banana"
    assert day.meal.lunch == "Chicken breast, brown rice and broccoli"
    assert day.meal.dinner == "Salmon with quinoa and asparagus"
    assert day.meal.snacks == "Greek yogurt and almonds"
    assert day.meal.total_calories == "2200 cal"
    assert day.meal.macros == "Protein: 160g | Carbs: 220g | Fats: 70g"
    assert day.tips == "Drink water before every meal."


@pytest.mark.parametrize(
    "text",
    [
        None,
        "",
        "   \n\n\t",
        "random words without any structure at all",
        "### \n - \n * \n 1.",
        "Breakfast:\nLunch:\n",
    ],
)
def test_malformed_input_yields_documented_defaults(text) -> None:
    day = extract_day_plan(text)

    assert day.day_number == 1
    assert day.workout.title == DEFAULT_WORKOUT_TITLE
    assert day.workout.duration == DEFAULT_DURATION
    assert day.workout.exercises == list(DEFAULT_EXERCISES)
    assert day.workout.notes == DEFAULT_WORKOUT_NOTES
    assert day.meal.breakfast == DEFAULT_MEAL
    assert day.meal.lunch == DEFAULT_MEAL
    assert day.meal.dinner == DEFAULT_MEAL
    assert day.meal.snacks == DEFAULT_MEAL
    assert day.meal.total_calories == DEFAULT_CALORIES
    assert day.meal.macros == format_macros()
    assert day.tips == DEFAULT_TIPS


def test_macros_default_independently() -> None:
    assert extract_macros("Aim for Protein: 150g every day") == "Protein: 150g | Carbs: 180g | Fats: 60g"
    assert extract_macros("Fats: 55g") == "Protein: 120g | Carbs: 180g | Fats: 55g"


def test_exercises_stop_at_meal_heading() -> None:
    text = """WORKOUT PLAN
- Squats 3x10
- Lunges 3x12
- Deadlifts 3x8
- Push-ups 3x15
- Plank 60 seconds

MEAL PLAN
- Breakfast: eggs on toast
- Lunch: chicken wrap
"""
    exercises = extract_exercises(text)

    assert exercises == ["Squats 3x10", "Lunges 3x12", "Deadlifts 3x8", "Push-ups 3x15", "Plank 60 seconds"]


def test_exercises_accept_numbered_items_and_drop_short_fragments() -> None:
    text = "Exercise plan\n1. Goblet squat 3x12\n2) Row 3x10\n3. ok\nSupplement section\n- Creatine 5g"

    assert extract_exercises(text) == ["Goblet squat 3x12", "Row 3x10"]


def test_exercises_missing_section_returns_none() -> None:
    assert extract_exercises("- Squats\n- Lunges") is None


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Duration: 45-60 minutes", "45-60 minutes"),
        ("Plan on 40 to 50 minutes of work", "40-50 minutes"),
        ("Session length: 30 min", "30 minutes"),
        ("Cardio block 20 - min", "20 minutes"),
        ("Workout Plan\n- Warm-up: 5 min light cardio\n- Squats 3x12\nTotal workout about 45 minutes", None),
        ("Rest 90 seconds, stretch 10 minutes", None),
        ("No timing given", None),
    ],
)
def test_extract_duration(text, expected) -> None:
    assert extract_duration(text) == expected


def test_warm_up_minutes_do_not_become_workout_duration() -> None:
    text = "Workout Plan\n- Warm-up: 5 min light cardio\n- Squats 3x12\n- Lunges 3x10\nTotal workout about 45 minutes"

    assert extract_day_plan(text).workout.duration == DEFAULT_DURATION


def test_workout_title_skips_empty_heading_remainder() -> None:
    text = "=== WORKOUT PLAN ===\nToday's workout: **Leg Day**"

    assert extract_workout_title(text) == "Leg Day"


def test_meal_item_joins_bulleted_continuation_lines() -> None:
    text = "Breakfast:\n- 3 eggs\n- 2 slices toast\nLunch: rice bowl"

    assert extract_meal_item(text, "breakfast") == "3 eggs, 2 slices toast"
    assert extract_meal_item(text, "lunch") == "rice bowl"


def test_calories_prefers_total_line() -> None:
    text = "Breakfast: oats (350 calories)\nTotal calories: 2,100"

    assert extract_calories(text) == "2100 cal"


def test_calories_ignore_gram_values() -> None:
    assert extract_calories("Protein: 150g") is None


def test_failing_field_extractor_falls_back_without_blanking_others(monkeypatch) -> None:
    def _boom(text):
        raise RuntimeError("regex engine exploded")

    monkeypatch.setattr(plan_extractor, "extract_duration", _boom)

    day = extract_day_plan(SAMPLE_PLAN)

    assert day.workout.duration == DEFAULT_DURATION
    assert day.workout.title == "Upper Body Strength"
    assert len(day.workout.exercises) == 5


def test_workout_assembly_error_uses_fallback_workout(monkeypatch) -> None:
    def _boom(*args, **kwargs):
        raise RuntimeError("unexpected")

    monkeypatch.setattr(plan_extractor, "_extract_or_default", _boom)

    workout = plan_extractor.extract_workout(SAMPLE_PLAN)

    assert workout == plan_extractor.fallback_workout()
