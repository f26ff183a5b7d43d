# tools/body_metrics.py
"""
FitPlan AI — Body & Hydration Metrics
=====================================
Derived values shown next to a plan. Every function is pure: same inputs,
same outputs, no session or rendering context needed.
"""

from enum import Enum
from typing import Any, Dict, List

from tools.plan_schema import FitnessPlan, UserProfile


# =============================================================================
# CONSTANTS
# =============================================================================
WATER_CONFIG = {
    "default_goal_liters": 2.0,
    "step_liters": 0.25,      # one glass
    "overshoot_liters": 1.0,  # tracker may run this far past the goal
}


class BmiCategory(Enum):
    UNDERWEIGHT = "Underweight"
    HEALTHY = "Healthy Weight"
    OVERWEIGHT = "Overweight"
    HIGH = "High BMI"


# Upper bounds are exclusive.
BMI_BANDS = [
    (18.5, BmiCategory.UNDERWEIGHT),
    (25.0, BmiCategory.HEALTHY),
    (30.0, BmiCategory.OVERWEIGHT),
]


# =============================================================================
# BMI
# =============================================================================
def calculate_bmi(weight_kg: float, height_cm: float) -> float:
    """
    Body Mass Index rounded to one decimal.

    Args:
        weight_kg: Body weight in kilograms
        height_cm: Height in centimeters

    Returns:
        BMI, e.g. 70 kg / 175 cm -> 22.9
    """
    if weight_kg <= 0 or height_cm <= 0:
        raise ValueError("weight and height must be positive")
    height_m = height_cm / 100
    return round(weight_kg / (height_m ** 2), 1)


def bmi_category(bmi: float) -> BmiCategory:
    for upper, category in BMI_BANDS:
        if bmi < upper:
            return category
    return BmiCategory.HIGH


def body_summary(profile: UserProfile) -> Dict[str, Any]:
    bmi = calculate_bmi(profile.weight, profile.height)
    return {
        "bmi": bmi,
        "bmi_category": bmi_category(bmi).value,
    }


# =============================================================================
# HYDRATION
# =============================================================================
def water_goal(plan: FitnessPlan) -> float:
    """Daily water target in liters; falls back to 2 L when the plan gives 0."""
    liters = plan.nutrition_guidance.water_intake_liters
    return liters if liters > 0 else WATER_CONFIG["default_goal_liters"]


def water_progress(water_drunk: float, goal: float) -> float:
    """Fraction of the goal reached, clamped to [0, 1]."""
    if goal <= 0:
        goal = WATER_CONFIG["default_goal_liters"]
    return max(0.0, min(water_drunk / goal, 1.0))


def add_water(water_drunk: float, goal: float) -> float:
    return min(water_drunk + WATER_CONFIG["step_liters"], goal + WATER_CONFIG["overshoot_liters"])


def reset_water() -> float:
    return 0.0


# =============================================================================
# NUTRITION CARDS
# =============================================================================
def _fmt(value: float) -> str:
    return f"{value:g}"


def nutrition_stats(plan: FitnessPlan) -> List[Dict[str, str]]:
    """Label/value pairs for the four stat cards above the plan."""
    ng = plan.nutrition_guidance
    return [
        {"label": "Total Calories", "value": f"{_fmt(ng.daily_calories)} kcal", "icon": "🍽️"},
        {"label": "Daily Protein", "value": f"{_fmt(ng.protein_grams)}g", "icon": "🍗"},
        {"label": "Macros (C/F)", "value": f"{_fmt(ng.carbs_grams)}g / {_fmt(ng.fats_grams)}g", "icon": "🥗"},
        {"label": "Water Goal", "value": f"{_fmt(water_goal(plan))} L", "icon": "💧"},
    ]


__all__ = [
    "WATER_CONFIG",
    "BmiCategory",
    "calculate_bmi",
    "bmi_category",
    "body_summary",
    "water_goal",
    "water_progress",
    "add_water",
    "reset_water",
    "nutrition_stats",
]
