# memory/session_manager.py
"""
FitPlan AI — Session State Manager
==================================
- Explicit state machine per session: IDLE -> SUBMITTING -> READY | FAILED -> IDLE
- Single in-flight submission per session (no queue)
- Reset invalidates whatever submission is still pending
- In-memory only: nothing is persisted or sent back to Gemini
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from tools.body_metrics import (
    add_water,
    body_summary,
    nutrition_stats,
    reset_water,
    water_goal,
    water_progress,
)
from tools.plan_errors import USER_FACING_ERROR, ErrorKind, PlanGenerationError
from tools.plan_schema import FitnessPlan, FitnessPlanResult, GroundingSource, UserProfile
from tools.video_links import resolve_video_source

logger = logging.getLogger(__name__)


class PlanStatus(Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    READY = "ready"
    FAILED = "failed"


class SubmissionInProgressError(Exception):
    """A plan request is already running for this session."""


class NoActivePlanError(Exception):
    """A view action needs a plan, and the session has none."""


# =============================================================================
# VIEW STATE
# =============================================================================
@dataclass
class ViewState:
    """Per-plan view state. Created fresh for every new plan."""
    active_day: int = 0
    expanded_videos: Dict[str, bool] = field(default_factory=dict)
    water_drunk: float = 0.0

    def select_day(self, index: int, day_count: int) -> None:
        if not 0 <= index < day_count:
            raise ValueError(f"Day index {index} out of range [0, {day_count - 1}]")
        self.active_day = index

    def toggle_video(self, exercise_name: str) -> bool:
        expanded = not self.expanded_videos.get(exercise_name, False)
        self.expanded_videos[exercise_name] = expanded
        return expanded

    def is_video_expanded(self, exercise_name: str) -> bool:
        return self.expanded_videos.get(exercise_name, False)

    def add_water(self, goal: float) -> float:
        self.water_drunk = add_water(self.water_drunk, goal)
        return self.water_drunk

    def reset_water(self) -> float:
        self.water_drunk = reset_water()
        return self.water_drunk


# =============================================================================
# PLAN SESSION
# =============================================================================
class PlanSession:
    """
    Owns one user's profile, plan, sources, error and view state.

    Submissions are ticketed: begin_submission() hands out a ticket and only
    the holder of the current ticket may complete or fail it. reset() bumps
    the ticket, so a result arriving after a reset is dropped.

    The service call itself holds a separate in-flight slot. reset() hides a
    pending call from the visible state but does not free the slot; only the
    call finishing (complete or fail, stale or not) does.
    """

    def __init__(self, session_id: str = "default"):
        self.session_id = session_id
        self.status = PlanStatus.IDLE
        self.profile: Optional[UserProfile] = None
        self.plan: Optional[FitnessPlan] = None
        self.sources: List[GroundingSource] = []
        self.error: Optional[str] = None
        self.last_error_kind: Optional[ErrorKind] = None
        self.view: Optional[ViewState] = None
        self.updated_at = datetime.now()
        self._ticket = 0
        self._pending_profile: Optional[UserProfile] = None
        self._in_flight: Optional[int] = None

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------
    @property
    def is_submitting(self) -> bool:
        return self.status is PlanStatus.SUBMITTING

    def begin_submission(self, profile: UserProfile) -> int:
        if self._in_flight is not None:
            raise SubmissionInProgressError(f"Session {self.session_id} already has a plan request running")

        self._ticket += 1
        self._pending_profile = profile
        self._in_flight = self._ticket
        self.status = PlanStatus.SUBMITTING
        self.error = None
        self._touch()
        logger.info("🚀 Session %s: submission #%d started", self.session_id, self._ticket)
        return self._ticket

    def _is_current(self, ticket: int) -> bool:
        return self.is_submitting and ticket == self._ticket

    def _release(self, ticket: int) -> None:
        if self._in_flight == ticket:
            self._in_flight = None

    def complete_submission(self, ticket: int, result: FitnessPlanResult) -> bool:
        self._release(ticket)
        if not self._is_current(ticket):
            logger.info("🗑️ Session %s: dropping stale result #%d", self.session_id, ticket)
            return False

        self.profile = self._pending_profile
        self.plan = result.plan
        self.sources = list(result.sources)
        self.view = ViewState()
        self.error = None
        self.last_error_kind = None
        self.status = PlanStatus.READY
        self._pending_profile = None
        self._touch()
        return True

    def fail_submission(self, ticket: int, error: Exception) -> bool:
        """Record a failure. Any earlier successful plan is kept as-is."""
        self._release(ticket)
        if not self._is_current(ticket):
            logger.info("🗑️ Session %s: dropping stale failure #%d", self.session_id, ticket)
            return False

        if isinstance(error, PlanGenerationError):
            self.last_error_kind = error.kind
        else:
            self.last_error_kind = ErrorKind.SERVICE
        self.error = USER_FACING_ERROR
        self.status = PlanStatus.FAILED
        self._pending_profile = None
        self._touch()
        return True

    def reset(self) -> None:
        self._ticket += 1
        self.status = PlanStatus.IDLE
        self.profile = None
        self.plan = None
        self.sources = []
        self.error = None
        self.last_error_kind = None
        self.view = None
        self._pending_profile = None
        self._touch()
        logger.info("🔄 Session %s reset", self.session_id)

    # -------------------------------------------------------------------------
    # View actions
    # -------------------------------------------------------------------------
    def _require_plan(self) -> FitnessPlan:
        if self.plan is None or self.view is None:
            raise NoActivePlanError(f"Session {self.session_id} has no plan")
        return self.plan

    def select_day(self, index: int) -> int:
        plan = self._require_plan()
        self.view.select_day(index, len(plan.workout_plan))
        return self.view.active_day

    def toggle_video(self, exercise_name: str) -> bool:
        self._require_plan()
        return self.view.toggle_video(exercise_name)

    def add_water(self) -> float:
        plan = self._require_plan()
        return self.view.add_water(water_goal(plan))

    def reset_water(self) -> float:
        self._require_plan()
        return self.view.reset_water()

    # -------------------------------------------------------------------------
    # Snapshot
    # -------------------------------------------------------------------------
    def _view_snapshot(self) -> Optional[Dict[str, Any]]:
        if self.plan is None or self.view is None:
            return None

        goal = water_goal(self.plan)
        videos = {}
        for day in self.plan.workout_plan:
            for ex in day.exercises:
                if ex.video_url and ex.name not in videos:
                    source = resolve_video_source(ex.video_url)
                    videos[ex.name] = {"kind": source.kind, "url": source.url, "video_id": source.video_id}

        view = {
            "active_day": self.view.active_day,
            "expanded_videos": dict(self.view.expanded_videos),
            "water_drunk": self.view.water_drunk,
            "water_goal": goal,
            "water_progress": water_progress(self.view.water_drunk, goal),
            "stats": nutrition_stats(self.plan),
            "videos": videos,
        }
        if self.profile is not None:
            view.update(body_summary(self.profile))
        return view

    def snapshot(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "status": self.status.value,
            "error": self.error,
            "profile": self.profile.to_json_dict() if self.profile else None,
            "plan": self.plan.to_json_dict() if self.plan else None,
            "sources": [s.to_json_dict() for s in self.sources],
            "view": self._view_snapshot(),
            "updated_at": self.updated_at.isoformat(),
        }

    def _touch(self) -> None:
        self.updated_at = datetime.now()


# =============================================================================
# SESSION STORE
# =============================================================================
class SessionStore:
    """In-memory registry of sessions, keyed by session id."""

    def __init__(self):
        self._sessions: Dict[str, PlanSession] = {}

    def get(self, session_id: str) -> PlanSession:
        if session_id not in self._sessions:
            self._sessions[session_id] = PlanSession(session_id)
        return self._sessions[session_id]

    def drop(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._sessions)


__all__ = [
    "PlanStatus",
    "SubmissionInProgressError",
    "NoActivePlanError",
    "ViewState",
    "PlanSession",
    "SessionStore",
]
