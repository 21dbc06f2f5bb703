"""LLM-backed fitness plan and advice generation."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import openai

from fitcoach.api.schemas.plan import (
    ExerciseFormRequest,
    MealPlanRequest,
    PlanRequest,
    SupplementRequest,
    WorkoutPlanRequest,
)
from fitcoach.core.config import settings
from fitcoach.core.errors import GenerationFailure
from fitcoach.observability.metrics import log_metric
from fitcoach.observability.tracing import trace


logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a certified personal trainer and sports nutritionist. "
    "Only answer fitness, training, nutrition and supplement questions. "
    "Give practical, safe and specific advice with concrete sets, reps, portions and timings."
)


def build_complete_plan_prompt(request: PlanRequest) -> str:
    """Prompt asking for workout, meal and supplement sections in one answer."""
    lines: List[str] = [
        "Create a COMPLETE and COMPREHENSIVE fitness plan for me with the following details:",
        "",
        "=== PERSONAL INFORMATION ===",
        f"Goal: {request.goal}",
        f"Experience Level: {request.experience}",
        *_optional_profile_lines(request),
    ]
    if request.additional_info:
        lines.append(f"Note: {request.additional_info}")
    lines += [
        "",
        "=== REQUIREMENTS ===",
        f"Training Days per Week: {request.days_per_week}",
        f"Target Daily Calories: {request.target_calories}",
        f"Dietary Preference: {request.dietary_preference}",
        "",
        "Please provide a DETAILED plan with the following THREE sections:",
        "",
        "1. WORKOUT PLAN:",
        "   - Complete weekly schedule (Day 1, Day 2, etc.)",
        "   - Specific exercises for each day",
        "   - Sets, reps, and rest periods",
        "   - Warm-up and cool-down routines",
        "   - Progression strategy",
        "",
        "2. MEAL PLAN:",
        "   - Daily meal breakdown (Breakfast, Lunch, Dinner, Snacks)",
        "   - Specific food items and portion sizes",
        "   - Macronutrient breakdown (Protein, Carbs, Fats)",
        "   - Meal timing recommendations",
        "   - Meal prep tips",
        "",
        "3. SUPPLEMENT RECOMMENDATIONS:",
        "   - Essential supplements for my goal",
        "   - Dosage recommendations",
        "   - Timing (when to take each supplement)",
        "   - Why each supplement is recommended",
        "",
        f"Make the plan practical, sustainable, and aligned with my goal of {request.goal}.",
    ]
    return "\n".join(lines)


def build_structured_plan_prompt(request: PlanRequest) -> str:
    """Variant that asks for explicit ``=== SECTION N ===`` markers, which parse more reliably."""
    lines: List[str] = [
        "Create a COMPLETE fitness plan with CLEAR SECTION MARKERS.",
        "",
        "=== USER DETAILS ===",
        f"Goal: {request.goal}",
        f"Experience: {request.experience}",
        f"Training Days: {request.days_per_week} per week",
        f"Target Calories: {request.target_calories}",
        f"Diet: {request.dietary_preference}",
        *_optional_profile_lines(request),
        "",
        "Provide a comprehensive plan with these THREE SECTIONS clearly marked:",
        "",
        "=== SECTION 1: WORKOUT PLAN ===",
        "- Today's workout title and total duration in minutes",
        f"- Weekly training schedule for {request.days_per_week} days",
        "- Specific exercises as a bulleted list with sets, reps, and rest periods",
        "- Warm-up and cool-down routines",
        "- A line starting with 'Note:' for form cues",
        "",
        "=== SECTION 2: MEAL PLAN ===",
        f"- Breakfast:, Lunch:, Dinner:, Snacks: lines totaling {request.target_calories} calories",
        "- Total calories and macros as 'Protein: Xg', 'Carbs: Xg', 'Fats: Xg'",
        "- Meal timing and prep tips",
        "",
        "=== SECTION 3: SUPPLEMENT RECOMMENDATIONS ===",
        f"- Essential supplements for {request.goal}",
        "- Dosage and timing for each",
        "- A line starting with 'Tip:' with one habit for today",
        "",
        "IMPORTANT: Start each section with the exact markers shown above (=== SECTION X: NAME ===)",
    ]
    return "\n".join(lines)


def build_workout_plan_prompt(request: WorkoutPlanRequest) -> str:
    lines = [
        "Create a detailed workout plan with the following specifications:",
        f"- Goal: {request.goal}",
        f"- Experience Level: {request.experience}",
        f"- Days per week: {request.days_per_week}",
    ]
    if request.additional_info:
        lines.append(f"- Notes: {request.additional_info}")
    lines += [
        "",
        "Please include:",
        "1. Weekly schedule with specific exercises",
        "2. Sets and reps for each exercise",
        "3. Rest periods",
        "4. Progression tips",
    ]
    return "\n".join(lines)


def build_meal_plan_prompt(request: MealPlanRequest) -> str:
    lines = [
        "Create a daily meal plan with these requirements:",
        f"- Goal: {request.goal}",
        f"- Target Calories: {request.calories}",
        f"- Dietary Preference: {request.dietary_preference}",
    ]
    if request.additional_info:
        lines.append(f"- Notes: {request.additional_info}")
    lines += [
        "",
        "Please provide:",
        "1. Breakfast, lunch, dinner, and 2 snacks",
        "2. Macronutrient breakdown for each meal",
        "3. Portion sizes",
        "4. Meal prep tips",
    ]
    return "\n".join(lines)


def build_exercise_form_prompt(request: ExerciseFormRequest) -> str:
    return (
        f"Provide detailed form tips and common mistakes to avoid for the exercise: {request.exercise_name}. "
        "Include muscle groups worked and safety considerations."
    )


def build_supplement_prompt(request: SupplementRequest) -> str:
    prompt = (
        f"What supplements would you recommend for someone with a goal of {request.goal} "
        f"following a {request.diet_type} diet? Include dosage recommendations and timing."
    )
    if request.additional_info:
        prompt += f" Also consider: {request.additional_info}"
    return prompt


def build_question_prompt(question: str, context: str = "") -> str:
    """Prefix earlier turns of a conversation, when there are any."""
    if not context:
        return question
    return f"{context}\n\nCurrent question: {question}"


def _optional_profile_lines(request: PlanRequest) -> List[str]:
    fields = (
        ("Age", request.age),
        ("Gender", request.gender),
        ("Current Weight", request.current_weight),
        ("Target Weight", request.target_weight),
        ("Height", request.height),
    )
    return [f"{label}: {value}" for label, value in fields if value]


class PlanGenerator:
    """Sends plan prompts to an OpenAI-compatible chat endpoint (Ollama by default)."""

    def __init__(self, client: Optional[openai.OpenAI] = None, model: Optional[str] = None):
        self._client = client or openai.OpenAI(
            base_url=settings.llm_base_url,
            api_key=settings.llm_api_key,
            timeout=settings.llm_timeout_seconds,
        )
        self._model = model or settings.llm_model

    def generate(self, request: PlanRequest, *, structured: bool = False) -> str:
        """Return the raw complete-plan text; raises GenerationFailure."""
        prompt = build_structured_plan_prompt(request) if structured else build_complete_plan_prompt(request)
        logger.info(
            "Generating %s plan goal=%s experience=%s days=%s",
            "structured" if structured else "complete",
            request.goal,
            request.experience,
            request.days_per_week,
        )
        return self.complete(prompt, kind="structured" if structured else "complete", metadata={"goal": request.goal})

    def workout_plan(self, request: WorkoutPlanRequest) -> str:
        logger.info("Generating workout plan goal=%s experience=%s", request.goal, request.experience)
        return self.complete(build_workout_plan_prompt(request), kind="workout", metadata={"goal": request.goal})

    def meal_plan(self, request: MealPlanRequest) -> str:
        logger.info("Generating meal plan goal=%s calories=%s", request.goal, request.calories)
        return self.complete(build_meal_plan_prompt(request), kind="meal", metadata={"goal": request.goal})

    def exercise_form(self, request: ExerciseFormRequest) -> str:
        logger.info("Fetching form tips for %s", request.exercise_name)
        return self.complete(
            build_exercise_form_prompt(request),
            kind="exercise_form",
            metadata={"exercise": request.exercise_name},
        )

    def supplements(self, request: SupplementRequest) -> str:
        logger.info("Generating supplement advice goal=%s diet=%s", request.goal, request.diet_type)
        return self.complete(build_supplement_prompt(request), kind="supplements", metadata={"goal": request.goal})

    def ask(self, question: str, context: str = "") -> str:
        return self.complete(build_question_prompt(question, context), kind="ask")

    def complete(self, prompt: str, *, kind: str, metadata: Optional[Dict[str, Any]] = None) -> str:
        """Send one user prompt; raises GenerationFailure on SDK errors or an empty answer."""
        trace_metadata = {"model": self._model, "kind": kind, **(metadata or {})}
        logger.debug("Sending %s prompt (%s chars)", kind, len(prompt))
        with trace("plans.generate", metadata=trace_metadata) as span:
            try:
                completion = self._client.chat.completions.create(
                    model=self._model,
                    temperature=settings.llm_temperature,
                    messages=[
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": prompt},
                    ],
                )
            except openai.OpenAIError as exc:
                log_metric("plans.generate.failed", 1, metadata={"model": self._model, "kind": kind})
                raise GenerationFailure(f"Plan generation failed: {exc}") from exc

            content = (completion.choices[0].message.content or "").strip() if completion.choices else ""
            if not content:
                log_metric("plans.generate.failed", 1, metadata={"model": self._model, "kind": kind})
                raise GenerationFailure("Plan generation returned an empty response")
            if span:
                span.update(metadata={**trace_metadata, "llm_output_chars": len(content)})

        log_metric("plans.generate.success", 1, metadata={"model": self._model, "kind": kind})
        return content
