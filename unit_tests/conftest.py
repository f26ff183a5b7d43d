import copy
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

# Add root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from tools.plan_schema import validate_plan, validate_profile


SAMPLE_PROFILE = {
    "age": 28,
    "gender": "Male",
    "weight": 70,
    "height": 175,
    "goal": "Muscle Gain",
    "dietPreference": "Veg",
    "lifestyle": "Office Worker",
}


def _day(n, exercises):
    return {"day": f"Day {n}", "title": f"Session {n}", "exercises": exercises}


SAMPLE_PLAN = {
    "workoutPlan": [
        _day(1, [
            {"name": "Push-up", "sets": "3", "reps": "10", "instruction": "Keep your core tight.",
             "videoUrl": "https://www.youtube.com/watch?v=IODxDxX7oi4"},
            {"name": "Squat", "sets": "3", "reps": "12", "instruction": "Sit back into your hips.",
             "videoUrl": "https://youtu.be/aclHkVaku9U"},
        ]),
        _day(2, [
            {"name": "Plank", "sets": "3", "reps": "30s", "instruction": "Hold a straight line.",
             "videoUrl": "https://example.com/plank.mp4"},
        ]),
        _day(3, []),
        _day(4, [
            {"name": "Lunge", "sets": "3", "reps": "10 each", "instruction": "Step forward.",
             "videoUrl": "https://www.youtube.com/embed/QOVaHwm-Q6U"},
        ]),
        _day(5, []),
        _day(6, []),
        _day(7, []),
    ],
    "dietPlan": {
        "breakfast": {"title": "Oats Bowl", "description": "Oats with banana and almonds.", "calories": "450 kcal"},
        "lunch": {"title": "Dal & Rice", "description": "Lentil curry with brown rice.", "calories": "650 kcal"},
        "snack": {"title": "Sprouts Chaat", "description": "Moong sprouts with lemon.", "calories": "200 kcal"},
        "dinner": {"title": "Tofu Stir Fry", "description": "Tofu, vegetables and quinoa.", "calories": "600 kcal"},
    },
    "nutritionGuidance": {
        "dailyCalories": 2400,
        "proteinGrams": 130,
        "fatsGrams": 70,
        "carbsGrams": 310,
        "proTip": "Spread protein across all meals.",
        "waterIntakeLiters": 2.5,
    },
    "safetyTips": ["Warm up for 5 minutes.", "Stop if you feel sharp pain."],
    "lifestyleTips": ["Take a walk every hour.", "Sleep 7-8 hours."],
    "motivation": "Consistency beats intensity.",
}


@pytest.fixture
def profile_dict():
    return dict(SAMPLE_PROFILE)


@pytest.fixture
def profile():
    return validate_profile(SAMPLE_PROFILE)


@pytest.fixture
def plan_dict():
    return copy.deepcopy(SAMPLE_PLAN)


@pytest.fixture
def plan():
    return validate_plan(copy.deepcopy(SAMPLE_PLAN))


# =============================================================================
# Fake Gemini client
# =============================================================================
def make_response(text, chunks=None):
    """Shape of a google-genai GenerateContentResponse, as far as the planner reads it."""
    candidate = SimpleNamespace(grounding_metadata=None)
    if chunks is not None:
        candidate.grounding_metadata = SimpleNamespace(grounding_chunks=[
            SimpleNamespace(web=SimpleNamespace(uri=uri, title=title)) for uri, title in chunks
        ])
    return SimpleNamespace(text=text, candidates=[candidate])


class _Models:
    def __init__(self, owner):
        self._owner = owner

    def generate_content(self, model, contents, config):
        return self._owner._handle(model, contents, config)


class _AsyncModels:
    def __init__(self, owner):
        self._owner = owner

    async def generate_content(self, model, contents, config):
        if self._owner.before_return is not None:
            self._owner.before_return()
        return self._owner._handle(model, contents, config)


class FakeGeminiClient:
    """Records calls and returns a canned response (or raises a canned error)."""

    def __init__(self, response=None, error=None, before_return=None):
        self.response = response
        self.error = error
        self.before_return = before_return
        self.calls = []
        self.models = _Models(self)
        self.aio = SimpleNamespace(models=_AsyncModels(self))

    def _handle(self, model, contents, config):
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def fake_client_factory():
    return FakeGeminiClient


@pytest.fixture
def response_factory():
    return make_response
