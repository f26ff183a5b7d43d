# agents/planner_agent.py
"""
FitPlan AI — Planner Agent
==========================
One-shot plan generation against Gemini:
  - Builds the prompt + strict JSON schema (tools/plan_prompt.py)
  - Calls Gemini with Google Search grounding enabled
  - Parses the JSON into a validated FitnessPlan (or fails loudly)
  - Pulls cited web sources out of the grounding metadata

No retries and no caching: every submission is a single attempt.
"""

import json
import logging
import os
import re
from typing import Any, Dict, List, Optional, Tuple, Union

import httpx
from dotenv import load_dotenv
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from tools.plan_errors import (
    ConfigurationError,
    MalformedPlanError,
    PlanGenerationError,
    ServiceError,
    ValidationError,
)
from tools.plan_prompt import PlanRequest, build_generate_config, build_plan_request
from tools.plan_schema import (
    FitnessPlan,
    FitnessPlanResult,
    GroundingSource,
    UserProfile,
    validate_plan,
    validate_profile,
)

load_dotenv()
logger = logging.getLogger(__name__)

# =============================================================================
# CONFIGURATION
# =============================================================================
PLANNER_CONFIG = {
    "api_key_env": "GOOGLE_API_KEY",
    "expected_days": 7,
}

_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


def is_configured() -> bool:
    return bool(os.getenv(PLANNER_CONFIG["api_key_env"]))


def get_client(api_key: Optional[str] = None) -> genai.Client:
    """
    Build a Gemini client from the environment.

    Raises:
        ConfigurationError: if no API key is available
    """
    key = api_key or os.getenv(PLANNER_CONFIG["api_key_env"])
    if not key:
        raise ConfigurationError(f"{PLANNER_CONFIG['api_key_env']} is not set")
    return genai.Client(api_key=key)


# =============================================================================
# RESPONSE PARSING
# =============================================================================
def _strip_code_fence(text: str) -> str:
    text = text.strip()
    match = _CODE_FENCE.match(text)
    return match.group(1) if match else text


def parse_plan(text: Optional[str]) -> FitnessPlan:
    """
    Parse Gemini's text payload into a FitnessPlan.

    Raises:
        MalformedPlanError: empty text, invalid JSON, or missing required fields
    """
    if not text or not text.strip():
        raise MalformedPlanError("Empty response text")

    try:
        data = json.loads(_strip_code_fence(text))
    except json.JSONDecodeError as e:
        raise MalformedPlanError(f"Response is not valid JSON: {e}") from e

    return validate_plan(data)


def extract_grounding_sources(response: Any) -> List[GroundingSource]:
    """
    Collect distinct {uri, title} pairs from the first candidate's grounding chunks.
    A response without grounding metadata yields an empty list.
    """
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []

    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []

    sources: List[GroundingSource] = []
    seen = set()
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        uri = getattr(web, "uri", None)
        if not uri:
            continue
        title = getattr(web, "title", None) or uri
        if (uri, title) in seen:
            continue
        seen.add((uri, title))
        sources.append(GroundingSource(uri=uri, title=title))

    return sources


def find_plan_warnings(plan: FitnessPlan) -> List[str]:
    """Soft quality issues worth logging; never a reason to reject the plan."""
    warnings = []
    expected = PLANNER_CONFIG["expected_days"]
    if len(plan.workout_plan) != expected:
        warnings.append(f"plan has {len(plan.workout_plan)} days, expected {expected}")

    missing = [ex.name for day in plan.workout_plan for ex in day.exercises if not ex.video_url]
    if missing:
        warnings.append(f"{len(missing)} exercise(s) without a video: {', '.join(missing[:5])}")
    return warnings


def _build_result(response: Any) -> FitnessPlanResult:
    plan = parse_plan(getattr(response, "text", None))
    sources = extract_grounding_sources(response)

    for warning in find_plan_warnings(plan):
        logger.warning("⚠️ Plan quality: %s", warning)
    logger.info("✅ Plan ready: %d days, %d sources", len(plan.workout_plan), len(sources))

    return FitnessPlanResult(plan=plan, sources=sources)


# =============================================================================
# SERVICE CALL
# =============================================================================
def _service_error(exc: Exception) -> ServiceError:
    if isinstance(exc, genai_errors.APIError):
        return ServiceError(f"Gemini API error {exc.code} {exc.status}: {exc.message}", status_code=exc.code)
    return ServiceError(f"Network failure talking to Gemini: {exc}")


def _log_failure(error: PlanGenerationError) -> None:
    if isinstance(error, ValidationError):
        logger.warning("⚠️ Profile rejected [%s]: %s", error.kind.value, error.detail)
    else:
        logger.error("❌ Plan generation failed [%s]: %s", error.kind.value, error.detail)


def _prepare(
    profile: Union[UserProfile, Dict[str, Any]],
    client: Optional[genai.Client],
    model: Optional[str],
) -> Tuple[PlanRequest, types.GenerateContentConfig, genai.Client]:
    profile = validate_profile(profile)
    request = build_plan_request(profile, model=model)
    config = build_generate_config(request)
    client = client or get_client()
    logger.info(
        "📋 Requesting plan: model=%s goal=%s diet=%s lifestyle=%s",
        request.model, profile.goal.value, profile.diet_preference.value, profile.lifestyle.value,
    )
    return request, config, client


def generate_fitness_plan(
    profile: Union[UserProfile, Dict[str, Any]],
    client: Optional[genai.Client] = None,
    model: Optional[str] = None,
) -> FitnessPlanResult:
    """
    Submit a profile and return the validated plan with its sources.

    Args:
        profile: UserProfile or raw dict (validated before any call is made)
        client: Gemini client; built from GOOGLE_API_KEY when omitted
        model: Model id override

    Returns:
        FitnessPlanResult

    Raises:
        ValidationError, ConfigurationError, ServiceError, MalformedPlanError
    """
    try:
        request, config, client = _prepare(profile, client, model)
        try:
            response = client.models.generate_content(
                model=request.model,
                contents=request.prompt,
                config=config,
            )
        except (genai_errors.APIError, httpx.HTTPError, OSError) as e:
            raise _service_error(e) from e
        return _build_result(response)
    except PlanGenerationError as e:
        _log_failure(e)
        raise


async def generate_fitness_plan_async(
    profile: Union[UserProfile, Dict[str, Any]],
    client: Optional[genai.Client] = None,
    model: Optional[str] = None,
) -> FitnessPlanResult:
    """Async twin of generate_fitness_plan, used by the API."""
    try:
        request, config, client = _prepare(profile, client, model)
        try:
            response = await client.aio.models.generate_content(
                model=request.model,
                contents=request.prompt,
                config=config,
            )
        except (genai_errors.APIError, httpx.HTTPError, OSError) as e:
            raise _service_error(e) from e
        return _build_result(response)
    except PlanGenerationError as e:
        _log_failure(e)
        raise


__all__ = [
    "PLANNER_CONFIG",
    "is_configured",
    "get_client",
    "parse_plan",
    "extract_grounding_sources",
    "find_plan_warnings",
    "generate_fitness_plan",
    "generate_fitness_plan_async",
]
