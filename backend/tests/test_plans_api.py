from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fitcoach.api.routes.plans import get_pdf_renderer, get_plan_generator
from fitcoach.core.config import settings
from fitcoach.core.errors import GenerationFailure
from fitcoach.db.deps import get_db
from fitcoach.db.models.daily_routine import DailyRoutine
from fitcoach.main import app
from fitcoach.services.pdf_renderer import PdfRenderer

from tests.fakes import FakeGenerator

PLAN_TEXT = """=== SECTION 1: WORKOUT PLAN ===
Today's Workout: Lower Body Power
Duration: 50 minutes
- Back squat 5x5
- Romanian deadlift 3x8
- Walking lunges 3x12

=== SECTION 2: MEAL PLAN ===
Breakfast: Eggs and avocado toast
Lunch: Turkey rice bowl
Dinner: Beef stir fry
Snacks: Cottage cheese
Total: 2400 calories
Protein: 180g

=== SECTION 3: SUPPLEMENT RECOMMENDATIONS ===
Tip: Sleep at least 8 hours tonight.
"""

PLAN_REQUEST = {
    "goal": "strength",
    "experience": "intermediate",
    "daysPerWeek": "4",
    "targetCalories": "2400",
    "dietaryPreference": "omnivore",
}


@pytest.fixture()
def generator() -> FakeGenerator:
    return FakeGenerator(text=PLAN_TEXT)


@pytest.fixture()
def client(generator, tmp_path, monkeypatch):
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    DailyRoutine.__table__.create(bind=engine)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    monkeypatch.setattr(settings, "scheduler_enabled", False)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_plan_generator] = lambda: generator
    app.dependency_overrides[get_pdf_renderer] = lambda: PdfRenderer(str(tmp_path))
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_complete_plan_returns_raw_text(client, generator) -> None:
    resp = client.post("/fitness/complete-plan", json=PLAN_REQUEST, headers={"X-Request-Id": "req-1"})

    assert resp.status_code == 200
    assert resp.json() == {"plan": PLAN_TEXT, "requestId": "req-1"}
    assert generator.calls[0].goal == "strength"


def test_complete_plan_requires_core_fields(client) -> None:
    resp = client.post("/fitness/complete-plan", json={"goal": "strength"})

    assert resp.status_code == 422


def test_structured_plan_returns_journey(client) -> None:
    resp = client.post("/fitness/complete-plan/structured", json=PLAN_REQUEST)

    assert resp.status_code == 200
    body = resp.json()
    assert body["currentDay"] == 1
    assert body["totalDays"] == 7
    day = body["days"][0]
    assert day["workout"]["title"] == "Lower Body Power"
    assert day["workout"]["duration"] == "50 minutes"
    assert day["workout"]["exercises"] == ["Back squat 5x5", "Romanian deadlift 3x8", "Walking lunges 3x12"]
    assert day["meal"]["snacks"] == "Cottage cheese"
    assert day["meal"]["totalCalories"] == "2400 cal"
    assert day["meal"]["macros"] == "Protein: 180g | Carbs: 180g | Fats: 60g"
    assert day["tips"] == "Sleep at least 8 hours tonight."


def test_structured_plan_with_user_persists_next_day(client) -> None:
    first = client.post("/fitness/complete-plan/structured?user_id=lifter", json=PLAN_REQUEST).json()
    second = client.post("/fitness/complete-plan/structured?user_id=lifter", json=PLAN_REQUEST).json()

    assert first["currentDay"] == 1
    assert second["currentDay"] == 2
    assert second["days"][0]["day"] == 2
    routines = client.get("/fitness/routines/lifter").json()
    assert [routine["dayNumber"] for routine in routines["routines"]] == [1, 2]
    assert routines["routines"][1]["structuredPlan"]["currentDay"] == 2


def test_pdf_endpoint_writes_document(client) -> None:
    resp = client.post("/fitness/complete-plan/pdf", json=PLAN_REQUEST)

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["fileName"].startswith("fitness_plan_")
    assert body["fileName"].endswith(".pdf")
    path = Path(body["pdfPath"])
    assert path.is_file()
    assert body["fileSizeBytes"] == path.stat().st_size > 0


def test_generation_failure_maps_to_bad_gateway(client, generator) -> None:
    generator.error = GenerationFailure("Plan generation failed: connection refused")

    resp = client.post("/fitness/complete-plan", json=PLAN_REQUEST)

    assert resp.status_code == 502
    assert resp.json()["detail"] == "Plan generation failed: connection refused"


def test_parse_endpoint_skips_generation(client, generator) -> None:
    resp = client.post("/fitness/parse", json={"text": PLAN_TEXT, "currentDay": 4})

    assert resp.status_code == 200
    assert resp.json()["currentDay"] == 4
    assert resp.json()["days"][0]["meal"]["breakfast"] == "Eggs and avocado toast"
    assert generator.calls == []


def test_parse_endpoint_falls_back_on_unstructured_text(client) -> None:
    resp = client.post("/fitness/parse", json={"text": "just keep moving"})

    day = resp.json()["days"][0]
    assert day["workout"]["title"] == "Full Body Workout"
    assert day["meal"]["totalCalories"] == "1800 cal"
