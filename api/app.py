"""
FitPlan AI — FastAPI Backend
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
import uvicorn

from dotenv import load_dotenv
load_dotenv()

from agents.planner_agent import generate_fitness_plan_async, is_configured
from memory.session_manager import (
    NoActivePlanError,
    SessionStore,
    SubmissionInProgressError,
)
from tools.body_metrics import bmi_category, calculate_bmi
from tools.plan_errors import USER_FACING_ERROR, PlanGenerationError, ValidationError
from tools.plan_prompt import DEFAULT_MODEL
from tools.plan_schema import validate_profile

logging.basicConfig(
    level=os.getenv("FITPLAN_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


# =============================================================================
# PYDANTIC MODELS
# =============================================================================
class SessionSnapshot(BaseModel):
    session_id: str
    status: str
    error: Optional[str] = None
    profile: Optional[Dict[str, Any]] = None
    plan: Optional[Dict[str, Any]] = None
    sources: List[Dict[str, Any]] = []
    view: Optional[Dict[str, Any]] = None
    updated_at: str


class VideoToggleRequest(BaseModel):
    exercise: str = Field(..., min_length=1)


class VideoToggleResponse(BaseModel):
    exercise: str
    expanded: bool


class WaterResponse(BaseModel):
    water_drunk: float
    water_goal: float
    water_progress: float


class BmiResponse(BaseModel):
    bmi: float
    bmi_category: str


class HealthResponse(BaseModel):
    status: str
    system: str
    version: str
    model: str
    gemini_configured: bool
    sessions: int
    timestamp: str = Field(default_factory=lambda: datetime.now().isoformat())


# =============================================================================
# APP SETUP
# =============================================================================
app = FastAPI(
    title="FitPlan AI API",
    version=API_VERSION,
    description="Personalised workout and diet plans generated by Gemini",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

SESSIONS = SessionStore()


# =============================================================================
# DEPENDENCIES
# =============================================================================
def get_session_store() -> SessionStore:
    return SESSIONS


def get_gemini_client() -> Optional[Any]:
    """Client hook for tests. None means the planner builds one from GOOGLE_API_KEY."""
    return None


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================
@app.exception_handler(SubmissionInProgressError)
async def submission_in_progress_handler(request: Request, exc: SubmissionInProgressError):
    logger.info("⏳ %s", exc)
    return JSONResponse(status_code=409, content={"detail": "A plan is already being generated. Please wait."})


@app.exception_handler(NoActivePlanError)
async def no_active_plan_handler(request: Request, exc: NoActivePlanError):
    return JSONResponse(status_code=404, content={"detail": "No plan yet. Submit your profile first."})


# -----------------------------------------------------------------------------
# Health & Root
# -----------------------------------------------------------------------------
@app.get("/")
async def root():
    """Root endpoint for health checking."""
    return {
        "status": "online",
        "system": "FitPlan AI",
        "version": API_VERSION,
        "docs": "/docs",
        "gemini_configured": is_configured(),
    }


@app.get("/api/v1/health", response_model=HealthResponse)
async def api_health(store: SessionStore = Depends(get_session_store)):
    return HealthResponse(
        status="online",
        system="FitPlan AI",
        version=API_VERSION,
        model=os.getenv("FITPLAN_MODEL", DEFAULT_MODEL),
        gemini_configured=is_configured(),
        sessions=len(store),
    )


# -----------------------------------------------------------------------------
# Plan lifecycle
# -----------------------------------------------------------------------------
@app.post("/api/v1/plan/submit", response_model=SessionSnapshot)
async def submit_plan(
    payload: Dict[str, Any] = Body(...),
    session_id: str = Query("default"),
    store: SessionStore = Depends(get_session_store),
    client: Optional[Any] = Depends(get_gemini_client),
):
    """Validate the profile, generate a plan and move the session to READY or FAILED."""
    session = store.get(session_id)

    try:
        profile = validate_profile(payload)
    except ValidationError as e:
        logger.warning("⚠️ Session %s: profile rejected: %s", session_id, e.detail)
        raise HTTPException(
            status_code=422,
            detail={"message": USER_FACING_ERROR, "fields": [err["field"] for err in e.errors]},
        )

    ticket = session.begin_submission(profile)

    try:
        result = await generate_fitness_plan_async(profile, client=client)
    except PlanGenerationError as e:
        session.fail_submission(ticket, e)
        raise HTTPException(status_code=502, detail=USER_FACING_ERROR)
    except Exception as e:
        logger.exception("❌ Session %s: unexpected failure during plan generation", session_id)
        session.fail_submission(ticket, e)
        raise HTTPException(status_code=502, detail=USER_FACING_ERROR)

    session.complete_submission(ticket, result)
    return session.snapshot()


@app.get("/api/v1/plan", response_model=SessionSnapshot)
async def get_plan(
    session_id: str = Query("default"),
    store: SessionStore = Depends(get_session_store),
):
    return store.get(session_id).snapshot()


@app.post("/api/v1/plan/reset", response_model=SessionSnapshot)
async def reset_plan(
    session_id: str = Query("default"),
    store: SessionStore = Depends(get_session_store),
):
    session = store.get(session_id)
    session.reset()
    return session.snapshot()


# -----------------------------------------------------------------------------
# View actions
# -----------------------------------------------------------------------------
@app.post("/api/v1/view/day", response_model=SessionSnapshot)
async def select_day(
    index: int = Query(..., ge=0),
    session_id: str = Query("default"),
    store: SessionStore = Depends(get_session_store),
):
    session = store.get(session_id)
    try:
        session.select_day(index)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return session.snapshot()


@app.post("/api/v1/view/video/toggle", response_model=VideoToggleResponse)
async def toggle_video(
    request: VideoToggleRequest,
    session_id: str = Query("default"),
    store: SessionStore = Depends(get_session_store),
):
    expanded = store.get(session_id).toggle_video(request.exercise)
    return VideoToggleResponse(exercise=request.exercise, expanded=expanded)


def _water_response(session) -> WaterResponse:
    view = session.snapshot()["view"]
    return WaterResponse(
        water_drunk=view["water_drunk"],
        water_goal=view["water_goal"],
        water_progress=view["water_progress"],
    )


@app.post("/api/v1/water/add", response_model=WaterResponse)
async def water_add(
    session_id: str = Query("default"),
    store: SessionStore = Depends(get_session_store),
):
    session = store.get(session_id)
    session.add_water()
    return _water_response(session)


@app.post("/api/v1/water/reset", response_model=WaterResponse)
async def water_reset(
    session_id: str = Query("default"),
    store: SessionStore = Depends(get_session_store),
):
    session = store.get(session_id)
    session.reset_water()
    return _water_response(session)


# -----------------------------------------------------------------------------
# Calculators
# -----------------------------------------------------------------------------
@app.get("/api/v1/bmi", response_model=BmiResponse)
async def get_bmi(
    weight: float = Query(..., gt=0, description="Weight in kg"),
    height: float = Query(..., gt=0, description="Height in cm"),
):
    bmi = calculate_bmi(weight, height)
    return BmiResponse(bmi=bmi, bmi_category=bmi_category(bmi).value)


# =============================================================================
# MAIN
# =============================================================================
if __name__ == "__main__":
    print("\n" + "=" * 50)
    print(f"🚀 FITPLAN AI API v{API_VERSION}")
    print("=" * 50)
    print(f"   • Model:  {os.getenv('FITPLAN_MODEL', DEFAULT_MODEL)}")
    print(f"   • Gemini: {'✅' if is_configured() else '❌ GOOGLE_API_KEY missing'}")
    print("=" * 50)
    print("🔗 API Docs: http://localhost:8000/docs")
    print("=" * 50 + "\n")
    uvicorn.run(app, host="0.0.0.0", port=8000)
