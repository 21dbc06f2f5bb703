from __future__ import annotations

from pathlib import Path

import openai
import pytest
from fastapi.testclient import TestClient

from fitcoach.api.routes.conversation import get_conversation_memory
from fitcoach.api.routes.plans import get_pdf_renderer, get_plan_generator
from fitcoach.core.config import settings
from fitcoach.main import app
from fitcoach.services.conversation_memory import ConversationMemory
from fitcoach.services.pdf_renderer import PdfRenderer
from fitcoach.services.plan_generator import PlanGenerator

from tests.fakes import FakeCompletions, fake_openai_client

ADVICE_TEXT = "WORKOUT PLAN\n- Push-ups 3x12\n- Plank 3x45s"


@pytest.fixture()
def completions() -> FakeCompletions:
    return FakeCompletions(content=ADVICE_TEXT)


@pytest.fixture()
def memory() -> ConversationMemory:
    return ConversationMemory()


@pytest.fixture()
def client(completions, memory, tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "scheduler_enabled", False)
    generator = PlanGenerator(client=fake_openai_client(completions), model="test-model")
    app.dependency_overrides[get_plan_generator] = lambda: generator
    app.dependency_overrides[get_pdf_renderer] = lambda: PdfRenderer(str(tmp_path / "reports"))
    app.dependency_overrides[get_conversation_memory] = lambda: memory
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _prompt(completions: FakeCompletions, index: int = -1) -> str:
    return completions.calls[index]["messages"][1]["content"]


@pytest.mark.parametrize(
    "path, payload, expected",
    [
        (
            "/fitness/workout-plan",
            {"goal": "strength", "experience": "beginner", "daysPerWeek": 3},
            "- Days per week: 3",
        ),
        (
            "/fitness/meal-plan",
            {"goal": "fat loss", "calories": 1900, "dietaryPreference": "keto"},
            "- Target Calories: 1900",
        ),
        ("/fitness/exercise-form", {"exerciseName": "bench press"}, "for the exercise: bench press."),
        ("/fitness/supplements", {"goal": "endurance", "dietType": "vegan"}, "following a vegan diet?"),
    ],
)
def test_single_topic_endpoints_return_text(client, completions, path, payload, expected) -> None:
    resp = client.post(path, json=payload, headers={"X-Request-Id": "req-9"})

    assert resp.status_code == 200
    assert resp.json() == {"plan": ADVICE_TEXT, "requestId": "req-9"}
    assert expected in _prompt(completions)


def test_single_topic_endpoint_validates_input(client) -> None:
    resp = client.post("/fitness/exercise-form", json={"exerciseName": ""})

    assert resp.status_code == 422


def test_single_topic_generation_failure_is_bad_gateway(client, completions) -> None:
    completions.error = openai.OpenAIError("model offline")

    resp = client.post("/fitness/supplements", json={"goal": "endurance", "dietType": "vegan"})

    assert resp.status_code == 502
    assert "model offline" in resp.json()["detail"]


def test_workout_pdf_uses_default_name(client, tmp_path) -> None:
    resp = client.post(
        "/fitness/workout-plan/pdf",
        json={"goal": "strength", "experience": "beginner", "daysPerWeek": 3},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["fileName"].startswith("workout_plan_")
    assert Path(body["pdfPath"]).parent == (tmp_path / "reports").resolve()
    assert body["fileSizeBytes"] > 0


def test_meal_pdf_keeps_file_name_inside_report_dir(client, tmp_path) -> None:
    resp = client.post(
        "/fitness/meal-plan/pdf?fileName=../../week%201",
        json={"goal": "fat loss", "calories": 1900, "dietaryPreference": "keto"},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["fileName"] == "week_1.pdf"
    assert Path(body["pdfPath"]) == (tmp_path / "reports" / "week_1.pdf").resolve()


def test_ask_without_conversation_is_stateless(client, completions, memory) -> None:
    resp = client.get("/fitness/ask", params={"question": "How much protein do I need?"})

    assert resp.status_code == 200
    assert resp.json()["answer"] == ADVICE_TEXT
    assert resp.json()["conversationId"] is None
    assert _prompt(completions) == "How much protein do I need?"
    assert memory.conversation_ids() == []


def test_ask_replays_earlier_turns(client, completions) -> None:
    client.get("/fitness/ask", params={"question": "I train 4 days a week", "conversationId": "c1"})
    resp = client.get("/fitness/ask", params={"question": "What should I eat after workouts?", "conversationId": "c1"})

    assert resp.status_code == 200
    assert resp.json()["conversationId"] == "c1"
    assert _prompt(completions) == (
        "Previous conversation:\n"
        "user: I train 4 days a week\n"
        f"assistant: {ADVICE_TEXT}\n\n"
        "Current question: What should I eat after workouts?"
    )


def test_ask_rejects_blank_question(client, completions) -> None:
    resp = client.get("/fitness/ask", params={"question": "   "})

    assert resp.status_code == 400
    assert completions.calls == []


def test_failed_answer_is_not_remembered(client, completions, memory) -> None:
    completions.error = openai.OpenAIError("timeout")

    resp = client.get("/fitness/ask", params={"question": "Best cardio for fat loss?", "conversationId": "c2"})

    assert resp.status_code == 502
    assert memory.history("c2") == []


def test_clear_conversation_drops_history(client, completions, memory) -> None:
    client.get("/fitness/ask", params={"question": "Is creatine safe?", "conversationId": "c3"})

    resp = client.delete("/fitness/conversation/c3")

    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "conversationId": "c3",
        "message": "Conversation history cleared successfully",
    }
    assert memory.history("c3") == []
    client.get("/fitness/ask", params={"question": "And whey protein?", "conversationId": "c3"})
    assert _prompt(completions) == "And whey protein?"
