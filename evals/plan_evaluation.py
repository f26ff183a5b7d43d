# evals/plan_evaluation.py
"""
FitPlan AI — Plan Evaluation Suite
==================================
Quality checks for generated plans. The checks are deterministic; the
plans come from the live planner (direct Gemini call or the running API)
or from a saved JSON file.

Checks and weights:
- Day count is 7                              (20%)
- Every exercise carries a video URL           (25%)
- Meals respect the diet preference            (30%)
- Water goal is plausible (1.5-6.0 L)          (10%)
- Macro calories match dailyCalories (+/-25%)  (15%)
"""

import json
import os
import re
import statistics
import sys
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from tools.plan_errors import PlanGenerationError
from tools.plan_schema import DietPreference, FitnessPlan, UserProfile, validate_plan, validate_profile


# =============================================================================
# EVALUATION DATA STRUCTURES
# =============================================================================
@dataclass
class EvalCase:
    """A profile to generate a plan for."""
    id: str
    category: str
    profile: Dict[str, Any]
    description: str = ""


@dataclass
class EvalResult:
    case_id: str
    passed: bool
    score: float  # 0.0 to 1.0
    latency_ms: float
    details: Dict[str, float] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)


@dataclass
class EvalSummary:
    total_cases: int
    passed_cases: int
    failed_cases: int
    pass_rate: float
    avg_score: float
    avg_latency_ms: float
    category_scores: Dict[str, float]
    timestamp: str
    duration_seconds: float


# =============================================================================
# EVALUATION CASES
# =============================================================================
EVAL_CASES: List[EvalCase] = [
    EvalCase(
        id="vegan_student_loss",
        category="diet_compliance",
        profile={"age": 21, "gender": "Female", "weight": 68, "height": 165,
                 "goal": "Weight Loss", "dietPreference": "Vegan", "lifestyle": "Student"},
        description="Vegan plan must avoid all animal products",
    ),
    EvalCase(
        id="veg_office_fitness",
        category="diet_compliance",
        profile={"age": 34, "gender": "Male", "weight": 82, "height": 178,
                 "goal": "General Fitness", "dietPreference": "Veg", "lifestyle": "Office Worker"},
        description="Vegetarian plan must avoid meat and fish",
    ),
    EvalCase(
        id="nonveg_athlete_gain",
        category="structure",
        profile={"age": 26, "gender": "Male", "weight": 75, "height": 182,
                 "goal": "Muscle Gain", "dietPreference": "Non-Veg", "lifestyle": "Athlete"},
        description="Athlete plan should be complete with videos and high water goal",
    ),
    EvalCase(
        id="other_office_loss",
        category="structure",
        profile={"age": 45, "gender": "Other", "weight": 95, "height": 170,
                 "goal": "Weight Loss", "dietPreference": "Non-Veg", "lifestyle": "Office Worker"},
        description="Beginner-safe plan for a higher-BMI profile",
    ),
]


# =============================================================================
# DIET RULES
# =============================================================================
MEAT_AND_FISH = [
    "chicken", "beef", "pork", "lamb", "mutton", "fish", "salmon", "tuna", "shrimp",
    "prawn", "prawns", "turkey", "bacon", "ham", "meat", "sardine", "sardines", "crab",
]
ANIMAL_PRODUCTS = MEAT_AND_FISH + [
    "egg", "eggs", "milk", "cheese", "yogurt", "yoghurt", "paneer", "butter", "ghee",
    "honey", "whey", "curd", "cream", "buttermilk",
]
FORBIDDEN_FOODS = {
    DietPreference.VEG: MEAT_AND_FISH,
    DietPreference.VEGAN: ANIMAL_PRODUCTS,
    DietPreference.NON_VEG: [],
}
# Plant-based names that would otherwise trip the word checks.
PLANT_BASED_PHRASES = [
    "peanut butter", "almond butter", "nut butter", "cocoa butter",
    "almond milk", "soy milk", "oat milk", "coconut milk", "rice milk", "cashew milk",
    "coconut cream", "cashew cream", "coconut yogurt", "soy yogurt",
    "vegan cheese", "vegan butter", "plant-based", "flax egg", "chia egg",
]

WATER_RANGE_LITERS = (1.5, 6.0)
MACRO_TOLERANCE = 0.25

WEIGHTS = {
    "days": 0.20,
    "videos": 0.25,
    "diet": 0.30,
    "water": 0.10,
    "macros": 0.15,
}


def find_forbidden_foods(text: str, diet: DietPreference) -> List[str]:
    """Forbidden food words present in text for this diet preference."""
    text = text.lower()
    for phrase in PLANT_BASED_PHRASES:
        text = text.replace(phrase, " ")
    return sorted({
        word for word in FORBIDDEN_FOODS[diet]
        if re.search(rf"\b{re.escape(word)}\b", text)
    })


# =============================================================================
# EVALUATION FUNCTIONS
# =============================================================================
def check_plan(
    plan: FitnessPlan,
    profile: UserProfile,
    case_id: str = "adhoc",
    latency_ms: float = 0.0,
) -> EvalResult:
    """Score a single plan against the profile it was generated for."""
    errors = []
    scores: Dict[str, float] = {}

    # 1. Day count
    scores["days"] = 1.0 if len(plan.workout_plan) == 7 else 0.0
    if scores["days"] < 1.0:
        errors.append(f"Expected 7 days, got {len(plan.workout_plan)}")

    # 2. Video coverage
    exercises = [ex for day in plan.workout_plan for ex in day.exercises]
    if exercises:
        with_video = sum(1 for ex in exercises if ex.video_url)
        scores["videos"] = with_video / len(exercises)
        if with_video < len(exercises):
            errors.append(f"{len(exercises) - with_video}/{len(exercises)} exercises lack a video")
    else:
        scores["videos"] = 0.0
        errors.append("Plan has no exercises")

    # 3. Diet compliance
    meal_text = " ".join(f"{m.title} {m.description}" for _, m in plan.diet_plan.meals())
    violations = find_forbidden_foods(meal_text, profile.diet_preference)
    scores["diet"] = 0.0 if violations else 1.0
    if violations:
        errors.append(f"{profile.diet_preference.value} plan mentions: {violations}")

    # 4. Water goal
    ng = plan.nutrition_guidance
    low, high = WATER_RANGE_LITERS
    scores["water"] = 1.0 if low <= ng.water_intake_liters <= high else 0.0
    if scores["water"] < 1.0:
        errors.append(f"Water goal {ng.water_intake_liters} L outside {low}-{high} L")

    # 5. Macro consistency
    macro_kcal = 4 * ng.protein_grams + 4 * ng.carbs_grams + 9 * ng.fats_grams
    if ng.daily_calories > 0 and abs(macro_kcal - ng.daily_calories) / ng.daily_calories <= MACRO_TOLERANCE:
        scores["macros"] = 1.0
    else:
        scores["macros"] = 0.0
        errors.append(f"Macros add up to {macro_kcal:.0f} kcal vs {ng.daily_calories:g} kcal target")

    total = sum(scores[k] * WEIGHTS[k] for k in WEIGHTS)
    return EvalResult(
        case_id=case_id,
        # A diet violation always fails the case.
        passed=total >= 0.7 and scores["diet"] == 1.0,
        score=round(total, 3),
        latency_ms=latency_ms,
        details=scores,
        errors=errors,
    )


def _generate_via_api(case: EvalCase, api_url: str) -> FitnessPlan:
    import requests

    response = requests.post(
        f"{api_url}/plan/submit",
        json=case.profile,
        params={"session_id": f"eval_{case.id}"},
        timeout=300,
    )
    response.raise_for_status()
    return validate_plan(response.json()["plan"])


def _generate_direct(case: EvalCase) -> FitnessPlan:
    from agents.planner_agent import generate_fitness_plan

    return generate_fitness_plan(case.profile).plan


def run_evaluation(
    cases: Optional[List[EvalCase]] = None,
    use_api: bool = False,
    api_url: str = "http://localhost:8000/api/v1",
    verbose: bool = True,
) -> Tuple[List[EvalResult], EvalSummary]:
    """
    Generate a plan for every case and score it.

    Args:
        cases: Cases to run (defaults to EVAL_CASES)
        use_api: Go through the running API instead of calling Gemini directly
        api_url: API base URL
        verbose: Print progress
    """
    import requests

    cases = cases or EVAL_CASES
    results = []
    start_time = time.time()

    if verbose:
        print("\n" + "=" * 60)
        print(f"🧪 FITPLAN AI EVALUATION ({len(cases)} cases, {'API' if use_api else 'direct'})")
        print("=" * 60)

    for case in cases:
        if verbose:
            print(f"\n▶ {case.id}: {case.description}")

        start = time.time()
        try:
            profile = validate_profile(case.profile)
            plan = _generate_via_api(case, api_url) if use_api else _generate_direct(case)
            result = check_plan(plan, profile, case.id, (time.time() - start) * 1000)
        except (PlanGenerationError, requests.RequestException) as e:
            result = EvalResult(
                case_id=case.id,
                passed=False,
                score=0.0,
                latency_ms=(time.time() - start) * 1000,
                errors=[f"Generation failed: {e}"],
            )

        results.append(result)

        if verbose:
            status = "✅ PASS" if result.passed else "❌ FAIL"
            print(f"   {status} (score: {result.score:.2f}, latency: {result.latency_ms:.0f}ms)")
            for err in result.errors[:3]:
                print(f"      ⚠️ {err}")

    summary = summarize(results, cases, time.time() - start_time)

    if verbose:
        print("\n" + "=" * 60)
        print("📊 EVALUATION SUMMARY")
        print("=" * 60)
        print(f"   Passed: {summary.passed_cases}/{summary.total_cases} ({summary.pass_rate:.1%})")
        print(f"   Avg Score: {summary.avg_score:.2f}")
        print(f"   Avg Latency: {summary.avg_latency_ms:.0f}ms")
        for cat, score in sorted(summary.category_scores.items()):
            print(f"      {cat}: {score:.2f}")
        print("=" * 60)

    return results, summary


def summarize(results: List[EvalResult], cases: List[EvalCase], duration: float) -> EvalSummary:
    passed = sum(1 for r in results if r.passed)

    category_scores = {}
    for cat in {c.category for c in cases}:
        cat_results = [r for r, c in zip(results, cases) if c.category == cat]
        if cat_results:
            category_scores[cat] = statistics.mean(r.score for r in cat_results)

    return EvalSummary(
        total_cases=len(results),
        passed_cases=passed,
        failed_cases=len(results) - passed,
        pass_rate=passed / len(results) if results else 0,
        avg_score=statistics.mean(r.score for r in results) if results else 0,
        avg_latency_ms=statistics.mean(r.latency_ms for r in results) if results else 0,
        category_scores=category_scores,
        timestamp=datetime.now().isoformat(),
        duration_seconds=round(duration, 2),
    )


# =============================================================================
# EXPORT RESULTS
# =============================================================================
def export_results(
    results: List[EvalResult],
    summary: EvalSummary,
    output_path: str = "evals/results",
):
    os.makedirs(output_path, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

    results_file = os.path.join(output_path, f"eval_results_{timestamp}.json")
    with open(results_file, "w") as f:
        json.dump([asdict(r) for r in results], f, indent=2)

    summary_file = os.path.join(output_path, f"eval_summary_{timestamp}.json")
    with open(summary_file, "w") as f:
        json.dump(asdict(summary), f, indent=2)

    print(f"\n📁 Results exported to: {output_path}")
    return results_file, summary_file


# =============================================================================
# CLI RUNNER
# =============================================================================
def main():
    import argparse

    parser = argparse.ArgumentParser(description="FitPlan AI Plan Evaluation")
    parser.add_argument("--api", action="store_true", help="Generate through the running API")
    parser.add_argument("--url", default="http://localhost:8000/api/v1", help="API URL")
    parser.add_argument("--plan-file", help="Score a saved plan JSON instead of generating")
    parser.add_argument("--profile-file", help="Profile JSON for --plan-file")
    parser.add_argument("--export", action="store_true", help="Export results to JSON")
    parser.add_argument("--quiet", action="store_true", help="Minimal output")

    args = parser.parse_args()

    if args.plan_file:
        if not args.profile_file:
            parser.error("--plan-file needs --profile-file")
        with open(args.plan_file) as f:
            plan = validate_plan(json.load(f))
        with open(args.profile_file) as f:
            profile = validate_profile(json.load(f))
        result = check_plan(plan, profile, case_id=Path(args.plan_file).stem)
        print(json.dumps(asdict(result), indent=2))
        return 0 if result.passed else 1

    results, summary = run_evaluation(
        use_api=args.api,
        api_url=args.url,
        verbose=not args.quiet,
    )

    if args.export:
        export_results(results, summary)

    if summary.pass_rate >= 0.75:
        print("\n✅ Evaluation PASSED")
        return 0
    print("\n❌ Evaluation FAILED")
    return 1


if __name__ == "__main__":
    sys.exit(main())
