# unit_tests/test_agent_planner.py
"""
Unit Tests for Planner Agent
============================
Run with: python -m pytest unit_tests/test_agent_planner.py -v

Gemini is replaced by a fake client; nothing here touches the network.
"""

import asyncio
import json

import httpx
import pytest
from google.genai import errors as genai_errors

from agents.planner_agent import (
    extract_grounding_sources,
    find_plan_warnings,
    generate_fitness_plan,
    generate_fitness_plan_async,
    get_client,
    parse_plan,
)
from tools.plan_errors import (
    ConfigurationError,
    ErrorKind,
    MalformedPlanError,
    ServiceError,
    ValidationError,
)


# =============================================================================
# parse_plan
# =============================================================================
def test_parse_plan(plan_dict):
    plan = parse_plan(json.dumps(plan_dict))
    assert plan.motivation == "Consistency beats intensity."
    assert plan.diet_plan.snack.title == "Sprouts Chaat"


def test_parse_plan_strips_code_fence(plan_dict):
    text = "```json\n" + json.dumps(plan_dict) + "\n```"
    assert len(parse_plan(text).workout_plan) == 7


@pytest.mark.parametrize("text", [None, "", "   ", "not json", "{\"workoutPlan\": [", "[]"])
def test_parse_plan_malformed(text):
    with pytest.raises(MalformedPlanError):
        parse_plan(text)


def test_parse_plan_rejects_infinite_water(plan_dict):
    text = json.dumps(plan_dict).replace('"waterIntakeLiters": 2.5', '"waterIntakeLiters": Infinity')
    assert "Infinity" in text
    with pytest.raises(MalformedPlanError):
        parse_plan(text)


def test_parse_plan_missing_snack(plan_dict):
    del plan_dict["dietPlan"]["snack"]
    with pytest.raises(MalformedPlanError):
        parse_plan(json.dumps(plan_dict))


# =============================================================================
# Grounding sources
# =============================================================================
def test_sources_extracted_in_order(response_factory):
    response = response_factory("{}", chunks=[
        ("https://a.example/squat", "Squat Guide"),
        ("https://b.example/plank", None),
        ("https://a.example/squat", "Squat Guide"),
    ])
    sources = extract_grounding_sources(response)
    assert [(s.uri, s.title) for s in sources] == [
        ("https://a.example/squat", "Squat Guide"),
        ("https://b.example/plank", "https://b.example/plank"),
    ]


def test_no_grounding_metadata_is_empty(response_factory):
    assert extract_grounding_sources(response_factory("{}")) == []


def test_chunks_without_web_are_skipped(response_factory):
    response = response_factory("{}", chunks=[(None, "No uri")])
    assert extract_grounding_sources(response) == []


def test_no_candidates_is_empty():
    class Bare:
        candidates = None

    assert extract_grounding_sources(Bare()) == []


# =============================================================================
# generate_fitness_plan
# =============================================================================
def test_generate_fitness_plan(profile, plan_dict, fake_client_factory, response_factory):
    client = fake_client_factory(response=response_factory(
        json.dumps(plan_dict), chunks=[("https://a.example", "A")],
    ))

    result = generate_fitness_plan(profile, client=client, model="test-model")

    assert len(result.plan.workout_plan) == 7
    assert [s.uri for s in result.sources] == ["https://a.example"]
    assert len(client.calls) == 1
    call = client.calls[0]
    assert call["model"] == "test-model"
    assert "Diet Preference: Veg" in call["contents"]
    assert call["config"].response_mime_type == "application/json"
    assert call["config"].tools[0].google_search is not None


def test_generate_accepts_profile_dict(profile_dict, plan_dict, fake_client_factory, response_factory):
    client = fake_client_factory(response=response_factory(json.dumps(plan_dict)))
    result = generate_fitness_plan(profile_dict, client=client)
    assert result.sources == []


def test_invalid_profile_blocks_the_call(profile_dict, fake_client_factory):
    profile_dict["weight"] = -1
    client = fake_client_factory()
    with pytest.raises(ValidationError):
        generate_fitness_plan(profile_dict, client=client)
    assert client.calls == []


def test_malformed_response(profile, plan_dict, fake_client_factory, response_factory):
    del plan_dict["dietPlan"]["snack"]
    client = fake_client_factory(response=response_factory(json.dumps(plan_dict)))
    with pytest.raises(MalformedPlanError) as exc:
        generate_fitness_plan(profile, client=client)
    assert exc.value.kind is ErrorKind.MALFORMED_PLAN


def test_network_failure_is_service_error(profile, fake_client_factory):
    client = fake_client_factory(error=httpx.ConnectError("connection refused"))
    with pytest.raises(ServiceError):
        generate_fitness_plan(profile, client=client)


def test_auth_failure_is_service_error(profile, fake_client_factory):
    error = genai_errors.ClientError(
        401, {"error": {"code": 401, "message": "API key not valid", "status": "UNAUTHENTICATED"}}
    )
    client = fake_client_factory(error=error)
    with pytest.raises(ServiceError) as exc:
        generate_fitness_plan(profile, client=client)
    assert exc.value.status_code == 401


def test_errors_share_one_user_message(profile, fake_client_factory, response_factory):
    messages = set()
    for client in (
        fake_client_factory(error=httpx.ConnectError("down")),
        fake_client_factory(response=response_factory("nope")),
    ):
        with pytest.raises(Exception) as exc:
            generate_fitness_plan(profile, client=client)
        messages.add(exc.value.user_message)
    assert len(messages) == 1


def test_missing_api_key(monkeypatch, profile):
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    with pytest.raises(ConfigurationError):
        get_client()
    with pytest.raises(ConfigurationError):
        generate_fitness_plan(profile)


def test_async_generate(profile, plan_dict, fake_client_factory, response_factory):
    client = fake_client_factory(response=response_factory(json.dumps(plan_dict)))
    result = asyncio.run(generate_fitness_plan_async(profile, client=client))
    assert result.plan.nutrition_guidance.daily_calories == 2400
    assert len(client.calls) == 1


def test_async_service_error(profile, fake_client_factory):
    client = fake_client_factory(error=httpx.ReadTimeout("timed out"))
    with pytest.raises(ServiceError):
        asyncio.run(generate_fitness_plan_async(profile, client=client))


# =============================================================================
# Quality warnings
# =============================================================================
def test_plan_warnings(plan_dict):
    from tools.plan_schema import validate_plan

    assert find_plan_warnings(validate_plan(plan_dict)) == []

    plan_dict["workoutPlan"] = plan_dict["workoutPlan"][:3]
    del plan_dict["workoutPlan"][0]["exercises"][0]["videoUrl"]
    warnings = find_plan_warnings(validate_plan(plan_dict))
    assert len(warnings) == 2
    assert "3 days" in warnings[0]
    assert "Push-up" in warnings[1]
