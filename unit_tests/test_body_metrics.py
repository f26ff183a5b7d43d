# unit_tests/test_body_metrics.py
"""
Unit Tests for Body & Hydration Metrics
=======================================
Run with: python -m pytest unit_tests/test_body_metrics.py -v
"""

import pytest

from tools.body_metrics import (
    BmiCategory,
    add_water,
    bmi_category,
    body_summary,
    calculate_bmi,
    nutrition_stats,
    reset_water,
    water_goal,
    water_progress,
)
from tools.plan_schema import validate_plan


def test_bmi_example():
    assert calculate_bmi(70, 175) == 22.9
    assert bmi_category(22.9) is BmiCategory.HEALTHY


def test_bmi_rejects_non_positive():
    with pytest.raises(ValueError):
        calculate_bmi(70, 0)


@pytest.mark.parametrize("bmi,expected", [
    (17.0, BmiCategory.UNDERWEIGHT),
    (18.49, BmiCategory.UNDERWEIGHT),
    (18.5, BmiCategory.HEALTHY),
    (24.999, BmiCategory.HEALTHY),
    (25.0, BmiCategory.OVERWEIGHT),
    (29.999, BmiCategory.OVERWEIGHT),
    (30.0, BmiCategory.HIGH),
    (41.2, BmiCategory.HIGH),
])
def test_bmi_category_bands(bmi, expected):
    assert bmi_category(bmi) is expected


def test_category_labels():
    assert [c.value for c in BmiCategory] == ["Underweight", "Healthy Weight", "Overweight", "High BMI"]


def test_body_summary(profile):
    assert body_summary(profile) == {"bmi": 22.9, "bmi_category": "Healthy Weight"}


def test_water_goal_from_plan(plan):
    assert water_goal(plan) == 2.5


def test_water_goal_defaults_when_zero(plan_dict):
    plan_dict["nutritionGuidance"]["waterIntakeLiters"] = 0
    assert water_goal(validate_plan(plan_dict)) == 2.0


def test_water_progress_never_exceeds_one():
    goal = 2.0
    drunk = 0.0
    for _ in range(9):
        drunk = add_water(drunk, goal)
    assert drunk == 2.25
    assert water_progress(drunk, goal) == 1.0


def test_add_water_caps_at_goal_plus_one():
    goal = 2.0
    drunk = 0.0
    for _ in range(50):
        drunk = add_water(drunk, goal)
    assert drunk == 3.0
    assert water_progress(drunk, goal) == 1.0


def test_water_progress_partial():
    assert water_progress(0.5, 2.0) == 0.25
    assert water_progress(0.0, 2.0) == 0.0


def test_reset_water():
    assert reset_water() == 0


def test_nutrition_stats(plan):
    stats = {s["label"]: s["value"] for s in nutrition_stats(plan)}
    assert stats == {
        "Total Calories": "2400 kcal",
        "Daily Protein": "130g",
        "Macros (C/F)": "310g / 70g",
        "Water Goal": "2.5 L",
    }
