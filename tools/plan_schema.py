# tools/plan_schema.py
"""
FitPlan AI — Profile & Plan Models
==================================
Pydantic models for everything that crosses the Gemini boundary:
  - UserProfile: what the user submits (validated before any call)
  - FitnessPlan: what Gemini returns (validated before anything renders it)
  - GroundingSource / FitnessPlanResult: the plan plus its cited sources

JSON uses camelCase keys (dietPreference, workoutPlan, ...); Python code
uses snake_case attributes.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from tools.plan_errors import MalformedPlanError, ValidationError


# =============================================================================
# ENUMERATIONS
# =============================================================================
class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class FitnessGoal(str, Enum):
    WEIGHT_LOSS = "Weight Loss"
    MUSCLE_GAIN = "Muscle Gain"
    GENERAL_FITNESS = "General Fitness"


class DietPreference(str, Enum):
    VEG = "Veg"
    NON_VEG = "Non-Veg"
    VEGAN = "Vegan"


class Lifestyle(str, Enum):
    STUDENT = "Student"
    OFFICE_WORKER = "Office Worker"
    ATHLETE = "Athlete"


MEAL_SLOTS = ("breakfast", "lunch", "snack", "dinner")


def _coerce_enum(enum_cls: Type[Enum], value: Any) -> Any:
    """Accept either the display value ("Weight Loss") or the member name ("WEIGHT_LOSS")."""
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        text = value.strip()
        for member in enum_cls:
            if text == member.value or text.upper().replace("-", "_").replace(" ", "_") == member.name:
                return member
    return value


# =============================================================================
# BASE CONFIG
# =============================================================================
class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# USER PROFILE
# =============================================================================
class UserProfile(_CamelModel):
    age: int = Field(..., gt=0, description="Age in years")
    gender: Gender
    weight: float = Field(..., gt=0, allow_inf_nan=False, description="Weight in kg")
    height: float = Field(..., gt=0, allow_inf_nan=False, description="Height in cm")
    goal: FitnessGoal
    diet_preference: DietPreference
    lifestyle: Lifestyle

    @field_validator("gender", mode="before")
    @classmethod
    def _gender(cls, v):
        return _coerce_enum(Gender, v)

    @field_validator("goal", mode="before")
    @classmethod
    def _goal(cls, v):
        return _coerce_enum(FitnessGoal, v)

    @field_validator("diet_preference", mode="before")
    @classmethod
    def _diet(cls, v):
        return _coerce_enum(DietPreference, v)

    @field_validator("lifestyle", mode="before")
    @classmethod
    def _lifestyle(cls, v):
        return _coerce_enum(Lifestyle, v)


# =============================================================================
# FITNESS PLAN
# =============================================================================
class Exercise(_CamelModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: str
    sets: str
    reps: str
    instruction: str
    video_url: Optional[str] = None

    @field_validator("video_url", mode="before")
    @classmethod
    def _blank_url(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class DayPlan(_CamelModel):
    day: str
    title: str
    exercises: List[Exercise]


class Meal(_CamelModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    title: str
    description: str
    calories: str


class DietPlan(_CamelModel):
    breakfast: Meal
    lunch: Meal
    snack: Meal
    dinner: Meal

    def meals(self) -> List[tuple]:
        """(slot, Meal) pairs in serving order."""
        return [(slot, getattr(self, slot)) for slot in MEAL_SLOTS]


class NutritionGuidance(_CamelModel):
    daily_calories: float = Field(..., ge=0, allow_inf_nan=False)
    protein_grams: float = Field(..., ge=0, allow_inf_nan=False)
    fats_grams: float = Field(..., ge=0, allow_inf_nan=False)
    carbs_grams: float = Field(..., ge=0, allow_inf_nan=False)
    pro_tip: str
    water_intake_liters: float = Field(..., ge=0, allow_inf_nan=False)


class FitnessPlan(_CamelModel):
    workout_plan: List[DayPlan]
    diet_plan: DietPlan
    nutrition_guidance: NutritionGuidance
    safety_tips: List[str]
    lifestyle_tips: List[str]
    motivation: str

    def exercise_names(self) -> List[str]:
        return [ex.name for day in self.workout_plan for ex in day.exercises]


class GroundingSource(_CamelModel):
    uri: str
    title: str


class FitnessPlanResult(_CamelModel):
    plan: FitnessPlan
    sources: List[GroundingSource] = Field(default_factory=list)


# =============================================================================
# VALIDATION ENTRY POINTS
# =============================================================================
def _summarize_errors(exc: PydanticValidationError) -> List[Dict[str, Any]]:
    return [
        {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg", "")}
        for err in exc.errors()
    ]


def validate_profile(data: Any) -> UserProfile:
    """
    Turn raw form/JSON input into a UserProfile.

    Raises:
        ValidationError: if a field is missing, unknown, or not a positive finite number
    """
    if isinstance(data, UserProfile):
        return data
    if not isinstance(data, dict):
        raise ValidationError(f"Profile must be an object, got {type(data).__name__}")
    try:
        return UserProfile.model_validate(data)
    except PydanticValidationError as e:
        errors = _summarize_errors(e)
        fields = ", ".join(err["field"] for err in errors)
        raise ValidationError(f"Invalid profile fields: {fields}", errors=errors) from e


def validate_plan(data: Any) -> FitnessPlan:
    """
    Turn decoded model output into a FitnessPlan.

    Raises:
        MalformedPlanError: if the payload is not an object or any required field is absent/invalid
    """
    if not isinstance(data, dict):
        raise MalformedPlanError(f"Plan must be a JSON object, got {type(data).__name__}")
    try:
        return FitnessPlan.model_validate(data)
    except PydanticValidationError as e:
        fields = ", ".join(err["field"] for err in _summarize_errors(e))
        raise MalformedPlanError(f"Plan failed schema validation: {fields}") from e


__all__ = [
    "Gender",
    "FitnessGoal",
    "DietPreference",
    "Lifestyle",
    "MEAL_SLOTS",
    "UserProfile",
    "Exercise",
    "DayPlan",
    "Meal",
    "DietPlan",
    "NutritionGuidance",
    "FitnessPlan",
    "GroundingSource",
    "FitnessPlanResult",
    "validate_profile",
    "validate_plan",
]
