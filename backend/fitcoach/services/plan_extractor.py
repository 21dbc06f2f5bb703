"""Heuristics for pulling workout and meal sections out of free-text plans.

LLM output has no guaranteed structure, so every field is extracted by its
own function that returns None on a miss. ``_extract_or_default`` turns a
miss or an unexpected error into the field's documented default, which keeps
one bad field from blanking the others.
"""
from __future__ import annotations

import logging
import re
from typing import Callable, List, Optional, TypeVar

from fitcoach.api.schemas.journey import (
    DEFAULT_CALORIES,
    DEFAULT_CARBS,
    DEFAULT_DURATION,
    DEFAULT_EXERCISES,
    DEFAULT_FATS,
    DEFAULT_MEAL,
    DEFAULT_PROTEIN,
    DEFAULT_TIPS,
    DEFAULT_WORKOUT_NOTES,
    DEFAULT_WORKOUT_TITLE,
    DayPlan,
    Meal,
    Workout,
    format_macros,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")

MIN_EXERCISE_LENGTH = 4

# Leading markdown noise allowed before a label: indentation, bullets, headings, bold.
_LEAD = r"[ \t>#*\-•=]*"

TITLE_RE = re.compile(r"(?i)(workout plan|today'?s workout|exercise plan)[: \t]*([^\n]+)")
DURATION_LABEL_RE = re.compile(
    r"(?i)\b(?:duration|session length|total time)[^\n\d]{0,20}(\d{1,3})(?:\s*(?:to|-|–)\s*(\d{1,3}))?\s*min(?:ute)?s?\b"
)
DURATION_RANGE_RE = re.compile(r"(?i)\b(\d{1,3})\s*(?:to|-|–)\s*(\d{1,3})\s*min(?:ute)?s?\b")
# "45 - min": a range connector with the upper bound missing.
DURATION_OPEN_RANGE_RE = re.compile(r"(?i)\b(\d{1,3})\s*(?:to|-|–)\s*min(?:ute)?s?\b")
WORKOUT_SECTION_RE = re.compile(
    r"(?ims)(?:workout|exercise)\s*plan.*?"
    r"(?=^" + _LEAD + r"(?:\d+[.)]\s*)?(?:section\s*\d+\s*[:.\-]?\s*)?(?:meal|diet|nutrition|supplement)|\Z)"
)
LIST_ITEM_RE = re.compile(r"(?m)^[ \t]*(?:[•\-*]|\d+[.)])[ \t]+(\S.*?)[ \t]*$")
LIST_MARKER_RE = re.compile(r"^[ \t]*(?:[•\-*]|\d+[.)])[ \t]+")
# A continuation line ends at the next meal label or at any other "Label:" line.
MEAL_STOP_RE = (
    r"(?!" + _LEAD + r"\**\s*(?:breakfast|lunch|dinner|snacks?)\b)"
    r"(?![ \t]*\**[A-Za-z][A-Za-z '()/]{0,40}\**:)"
)
_KCAL = r"k?cal(?:orie)?s?\b"
_KCAL_NUMBER = r"(\d{1,2},\d{3}|\d{3,4})(?!\d)"
TOTAL_CALORIES_RES = (
    re.compile(r"(?i)\btotal[^\n\d]{0,40}?\b" + _KCAL + r"[^\n\d]{0,10}" + _KCAL_NUMBER),
    re.compile(r"(?i)\btotal[^\n\d]{0,40}?\b" + _KCAL_NUMBER + r"\s*" + _KCAL),
)
CALORIES_RE = re.compile(r"(?i)\b" + _KCAL_NUMBER + r"\s*(?:total\s*)?" + _KCAL)
PROTEIN_RE = re.compile(r"(?i)\bprotein\**[:\s~\-]*(\d+)\s*g\b")
CARBS_RE = re.compile(r"(?i)\bcarb(?:ohydrate)?s?\**[:\s~\-]*(\d+)\s*g\b")
FATS_RE = re.compile(r"(?i)\bfats?\**[:\s~\-]*(\d+)\s*g\b")
NOTES_RE = re.compile(
    r"(?im)^" + _LEAD + r"\**(?:notes?|tips?|important|remember)\b\**[ \t]*[:\-]?\**[ \t]*(\S[^\n]*)$"
)
TIPS_RE = re.compile(
    r"(?im)^" + _LEAD + r"\**(?:tips?|advice|recommendations?)\b\**[ \t]*[:\-]?\**[ \t]*(\S[^\n]*)$"
)


def extract_day_plan(text: Optional[str], day_number: int = 1) -> DayPlan:
    """Build a fully populated DayPlan from raw plan text. Never raises."""
    source = text or ""
    return DayPlan(
        day_number=max(day_number, 1),
        workout=extract_workout(source),
        meal=extract_meal(source),
        tips=_extract_or_default(extract_tips, source, DEFAULT_TIPS, "tips"),
    )


def extract_workout(text: str) -> Workout:
    try:
        return Workout(
            title=_extract_or_default(extract_workout_title, text, DEFAULT_WORKOUT_TITLE, "workout.title"),
            duration=_extract_or_default(extract_duration, text, DEFAULT_DURATION, "workout.duration"),
            exercises=_extract_or_default(extract_exercises, text, list(DEFAULT_EXERCISES), "workout.exercises"),
            notes=_extract_or_default(extract_workout_notes, text, DEFAULT_WORKOUT_NOTES, "workout.notes"),
        )
    except Exception:
        logger.warning("Workout section could not be assembled; using fallback workout", exc_info=True)
        return fallback_workout()


def extract_meal(text: str) -> Meal:
    try:
        return Meal(
            breakfast=_extract_or_default(_meal_extractor("breakfast"), text, DEFAULT_MEAL, "meal.breakfast"),
            lunch=_extract_or_default(_meal_extractor("lunch"), text, DEFAULT_MEAL, "meal.lunch"),
            dinner=_extract_or_default(_meal_extractor("dinner"), text, DEFAULT_MEAL, "meal.dinner"),
            snacks=_extract_or_default(_meal_extractor("snack"), text, DEFAULT_MEAL, "meal.snacks"),
            total_calories=_extract_or_default(extract_calories, text, DEFAULT_CALORIES, "meal.total_calories"),
            macros=extract_macros(text),
        )
    except Exception:
        logger.warning("Meal section could not be assembled; using fallback meals", exc_info=True)
        return fallback_meal()


def extract_workout_title(text: str) -> Optional[str]:
    for match in TITLE_RE.finditer(text):
        title = _clean_inline(match.group(2))
        if title:
            return title
    return None


def extract_duration(text: str) -> Optional[str]:
    """Prefer an explicitly labelled duration, then the first range. Bare "N min" mentions are ignored."""
    for pattern in (DURATION_LABEL_RE, DURATION_RANGE_RE, DURATION_OPEN_RANGE_RE):
        match = pattern.search(text)
        if not match:
            continue
        low = match.group(1)
        high = match.group(2) if pattern.groups > 1 else None
        return f"{low}-{high} minutes" if high else f"{low} minutes"
    return None


def extract_exercises(text: str) -> Optional[List[str]]:
    """Return list items found between the workout heading and the next meal/diet/supplement heading."""
    section = WORKOUT_SECTION_RE.search(text)
    if not section:
        return None
    exercises = []
    for item in LIST_ITEM_RE.findall(section.group(0)):
        cleaned = _clean_inline(item)
        if len(cleaned) >= MIN_EXERCISE_LENGTH:
            exercises.append(cleaned)
    return exercises or None


def extract_meal_item(text: str, meal_type: str) -> Optional[str]:
    """Return the text after ``<meal_type>:`` up to the next meal label or blank line."""
    pattern = re.compile(
        r"(?im)\b" + re.escape(meal_type) + r"\w*\**[ \t]*(?:\([^)\n]*\))?[ \t]*:\**[ \t]*"
        r"(?P<body>[^\n]*(?:\n" + MEAL_STOP_RE + r"[^\n]*\S[^\n]*)*)"
    )
    match = pattern.search(text)
    if not match:
        return None

    pieces: List[str] = []
    for line in match.group("body").splitlines():
        item = _clean_inline(LIST_MARKER_RE.sub("", line))
        if not item:
            continue
        if pieces and LIST_MARKER_RE.match(line) and not pieces[-1].endswith((",", ";")):
            pieces[-1] += ","
        pieces.append(item)
    return " ".join(pieces) or None


def extract_calories(text: str) -> Optional[str]:
    for pattern in (*TOTAL_CALORIES_RES, CALORIES_RE):
        match = pattern.search(text)
        if match:
            return f"{match.group(1).replace(',', '')} cal"
    return None


def extract_macros(text: str) -> str:
    """Protein, carbs and fats are matched independently; each misses to its own default."""
    protein = _extract_or_default(_grams(PROTEIN_RE), text, DEFAULT_PROTEIN, "meal.macros.protein")
    carbs = _extract_or_default(_grams(CARBS_RE), text, DEFAULT_CARBS, "meal.macros.carbs")
    fats = _extract_or_default(_grams(FATS_RE), text, DEFAULT_FATS, "meal.macros.fats")
    return format_macros(protein, carbs, fats)


def extract_workout_notes(text: str) -> Optional[str]:
    return _first_line_match(NOTES_RE, text)


def extract_tips(text: str) -> Optional[str]:
    return _first_line_match(TIPS_RE, text)


def fallback_workout() -> Workout:
    return Workout(
        title=DEFAULT_WORKOUT_TITLE,
        duration=DEFAULT_DURATION,
        exercises=[
            "Warm-up: 5 min light cardio",
            "Squats: 3 sets x 12 reps",
            "Push-ups: 3 sets x 10 reps",
            "Plank: 3 sets x 30 seconds",
        ],
        notes="Focus on proper form.",
    )


def fallback_meal() -> Meal:
    return Meal(
        breakfast="Oatmeal with berries and almonds (350 cal)",
        lunch="Grilled chicken salad with quinoa (450 cal)",
        dinner="Baked salmon with sweet potato and broccoli (500 cal)",
        snacks="Greek yogurt, apple, protein shake",
        total_calories=DEFAULT_CALORIES,
        macros=format_macros(),
    )


def _extract_or_default(extractor: Callable[[str], Optional[T]], text: str, default: T, field: str) -> T:
    try:
        value = extractor(text)
    except Exception:
        logger.warning("Extraction of %s failed; using default", field, exc_info=True)
        return default
    if not value:
        logger.debug("No match for %s; using default", field)
        return default
    return value


def _meal_extractor(meal_type: str) -> Callable[[str], Optional[str]]:
    return lambda text: extract_meal_item(text, meal_type)


def _grams(pattern: re.Pattern) -> Callable[[str], Optional[str]]:
    def _extract(text: str) -> Optional[str]:
        match = pattern.search(text)
        return f"{match.group(1)}g" if match else None

    return _extract


def _first_line_match(pattern: re.Pattern, text: str) -> Optional[str]:
    for match in pattern.finditer(text):
        value = _clean_inline(match.group(1))
        if value:
            return value
    return None


def _clean_inline(value: str) -> str:
    value = value.replace("**", "").replace("__", "")
    return re.sub(r"\s+", " ", value).strip().strip("*#:=_").strip()
