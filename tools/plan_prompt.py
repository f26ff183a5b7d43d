# tools/plan_prompt.py
"""
FitPlan AI — Plan Request Builder
=================================
Turns a UserProfile into everything Gemini needs to produce a plan:
  - the natural-language prompt
  - the fixed system instruction
  - a strict response schema covering every FitnessPlan field
  - the GenerateContentConfig (JSON output + Google Search grounding)

Pure functions only. Nothing here talks to the network.
"""

import os
from dataclasses import dataclass
from typing import Dict, List

from google.genai import types

from tools.plan_schema import MEAL_SLOTS, UserProfile


# =============================================================================
# CONFIGURATION
# =============================================================================
DEFAULT_MODEL = "gemini-3-flash-preview"

SYSTEM_INSTRUCTION = (
    "You are an expert fitness coach and nutritionist. "
    "Use Google Search to provide accurate exercise technique videos and nutritional data. "
    "You MUST return a valid JSON object matching the requested schema. "
    "Ensure dietary restrictions are strictly followed."
)


@dataclass(frozen=True)
class PlanRequest:
    """Everything sent to Gemini for a single plan."""
    model: str
    prompt: str
    system_instruction: str
    use_search: bool
    response_schema: types.Schema


# =============================================================================
# PROMPT
# =============================================================================
def build_plan_prompt(profile: UserProfile) -> str:
    """Build the instruction text for a personalised 7-day plan."""
    diet = profile.diet_preference.value
    lifestyle = profile.lifestyle.value

    return f"""
Generate a personalized 7-day workout and diet plan for a beginner based on the following profile:
Age: {profile.age}
Gender: {profile.gender.value}
Weight: {profile.weight:g} kg
Height: {profile.height:g} cm
Goal: {profile.goal.value}
Diet Preference: {diet}
Lifestyle: {lifestyle}

REQUIREMENT:
1. Diet plan MUST strictly follow the {diet} preference.
2. Workout intensity should be adjusted for a {lifestyle} lifestyle.
3. Use Google Search to find high-quality instructional YouTube video URLs for every exercise suggested.
4. Calculate an appropriate daily water intake (in liters) for this user based on their weight and lifestyle.

The plan should be safe, practical, and effective for beginners.
""".strip()


# =============================================================================
# RESPONSE SCHEMA
# =============================================================================
def _string() -> types.Schema:
    return types.Schema(type=types.Type.STRING)


def _number() -> types.Schema:
    return types.Schema(type=types.Type.NUMBER)


def _object(properties: Dict[str, types.Schema]) -> types.Schema:
    # Every property is required: no optional sections in the contract.
    return types.Schema(
        type=types.Type.OBJECT,
        properties=properties,
        required=list(properties.keys()),
    )


def _array(items: types.Schema) -> types.Schema:
    return types.Schema(type=types.Type.ARRAY, items=items)


def _meal_schema() -> types.Schema:
    return _object({
        "title": _string(),
        "description": _string(),
        "calories": _string(),
    })


def build_response_schema() -> types.Schema:
    """Schema Gemini must follow. Mirrors tools.plan_schema.FitnessPlan."""
    exercise = _object({
        "name": _string(),
        "sets": _string(),
        "reps": _string(),
        "instruction": _string(),
        "videoUrl": _string(),
    })
    day = _object({
        "day": _string(),
        "title": _string(),
        "exercises": _array(exercise),
    })
    diet_plan = _object({slot: _meal_schema() for slot in MEAL_SLOTS})
    nutrition = _object({
        "dailyCalories": _number(),
        "proteinGrams": _number(),
        "fatsGrams": _number(),
        "carbsGrams": _number(),
        "proTip": _string(),
        "waterIntakeLiters": _number(),
    })

    return _object({
        "workoutPlan": _array(day),
        "dietPlan": diet_plan,
        "nutritionGuidance": nutrition,
        "safetyTips": _array(_string()),
        "lifestyleTips": _array(_string()),
        "motivation": _string(),
    })


# =============================================================================
# REQUEST / CONFIG
# =============================================================================
def build_plan_request(profile: UserProfile, model: str = None) -> PlanRequest:
    return PlanRequest(
        model=model or os.getenv("FITPLAN_MODEL", DEFAULT_MODEL),
        prompt=build_plan_prompt(profile),
        system_instruction=SYSTEM_INSTRUCTION,
        use_search=True,
        response_schema=build_response_schema(),
    )


def build_generate_config(request: PlanRequest) -> types.GenerateContentConfig:
    """Map a PlanRequest onto the SDK's GenerateContentConfig."""
    tools: List[types.Tool] = []
    if request.use_search:
        tools.append(types.Tool(google_search=types.GoogleSearch()))

    return types.GenerateContentConfig(
        system_instruction=request.system_instruction,
        response_mime_type="application/json",
        response_schema=request.response_schema,
        tools=tools or None,
    )


__all__ = [
    "DEFAULT_MODEL",
    "SYSTEM_INSTRUCTION",
    "PlanRequest",
    "build_plan_prompt",
    "build_response_schema",
    "build_plan_request",
    "build_generate_config",
]
