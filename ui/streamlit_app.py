# ui/streamlit_app.py
"""
FitPlan AI — Streamlit Front-End
================================
Profile form + plan viewer. All state lives in the API session; this app
only renders snapshots and forwards user actions.
"""

import logging
import os
import sys
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import pandas as pd
import plotly.graph_objects as go
import requests
import streamlit as st

# ========================================
# PATH SETUP
# ========================================
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from tools.plan_errors import USER_FACING_ERROR
from tools.plan_schema import DietPreference, FitnessGoal, Gender, Lifestyle

# ========================================
# CONFIGURATION
# ========================================
API_BASE = os.environ.get("FITPLAN_API_URL", "http://localhost:8000/api/v1")
REQUEST_TIMEOUT_SHORT = 5
REQUEST_TIMEOUT_LONG = 180  # search-grounded generation is slow

logging.basicConfig(level=os.getenv("FITPLAN_LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)


@dataclass
class AppConfig:
    page_title: str = "FitPlan AI — Reach Your Health Goals"
    page_icon: str = "🧬"
    layout: str = "wide"


st.set_page_config(
    page_title=AppConfig.page_title,
    page_icon=AppConfig.page_icon,
    layout=AppConfig.layout,
)


# ========================================
# STYLING
# ========================================
def load_styles():
    st.markdown("""
    <style>
        .stButton>button {
            border-radius: 12px;
            font-weight: 700;
        }
        .metric-card {
            background: #ecfdf5;
            padding: 1.2rem;
            border-radius: 16px;
            text-align: center;
            border: 1px solid #a7f3d0;
            margin: 0.4rem 0;
        }
        .big-number { font-size: 1.6rem; font-weight: 800; margin: 0; color: #064e3b; }
        .label { font-size: 0.75rem; color: #059669; text-transform: uppercase; letter-spacing: 2px; }
        .quote {
            font-style: italic;
            font-size: 1.2rem;
            text-align: center;
            padding: 1rem;
            border-radius: 12px;
            background: rgba(16,185,129,0.08);
        }
    </style>
    """, unsafe_allow_html=True)


# ========================================
# SESSION STATE
# ========================================
def init_session_state():
    defaults = {
        "session_id": uuid.uuid4().hex,
        "snapshot": None,
        "submitting": False,
        "pending_profile": None,
        "error": None,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


# ========================================
# API CLIENT
# ========================================
class APIClient:
    """Handles all API communication."""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip("/")

    def _params(self, params: Optional[dict] = None) -> dict:
        params = dict(params or {})
        params["session_id"] = st.session_state.session_id
        return params

    def _handle(self, response: requests.Response) -> dict:
        if response.status_code == 200:
            return response.json()
        try:
            detail = response.json().get("detail")
        except ValueError:
            detail = None
        if isinstance(detail, dict):
            detail = detail.get("message")
        return {"error": detail or f"API Error: {response.status_code}", "status_code": response.status_code}

    def get(self, endpoint: str, params: Optional[dict] = None) -> dict:
        try:
            response = requests.get(
                f"{self.base_url}/{endpoint}",
                params=self._params(params),
                timeout=REQUEST_TIMEOUT_SHORT,
            )
            return self._handle(response)
        except requests.exceptions.ConnectionError:
            return {"error": "API Offline"}
        except requests.RequestException as e:
            return {"error": str(e)}

    def post(self, endpoint: str, data: Optional[dict] = None, params: Optional[dict] = None,
             timeout: int = REQUEST_TIMEOUT_SHORT) -> dict:
        try:
            response = requests.post(
                f"{self.base_url}/{endpoint}",
                json=data,
                params=self._params(params),
                timeout=timeout,
            )
            return self._handle(response)
        except requests.exceptions.ConnectionError:
            return {"error": "API Offline"}
        except requests.RequestException as e:
            return {"error": str(e)}


api = APIClient(API_BASE)


def refresh_snapshot() -> None:
    snapshot = api.get("plan")
    if "error" not in snapshot:
        st.session_state.snapshot = snapshot


# ========================================
# UI COMPONENTS
# ========================================
class UIComponents:
    @staticmethod
    def metric_card(label: str, value: str, icon: str = "") -> str:
        return f"""
        <div class="metric-card">
            <div class="big-number">{icon} {value}</div>
            <div class="label">{label}</div>
        </div>
        """

    @staticmethod
    def quote_box(text: str) -> None:
        st.markdown(f"""<div class='quote'>"{text}"</div>""", unsafe_allow_html=True)


# ========================================
# PROFILE FORM
# ========================================
class ProfileForm:
    """
    Two-phase submit: the button's on_click callback only marks the session
    as submitting, so the rerun that follows draws the button disabled
    before the (slow) POST runs in that same pass.
    """

    @staticmethod
    def render() -> None:
        st.title("Reach Your Health Goals.")
        st.caption("Get a custom workout and food plan made just for you by our AI.")

        with st.form("profile_form"):
            c1, c2 = st.columns(2)
            with c1:
                st.number_input("Age", min_value=1, max_value=120, value=25, step=1, key="form_age")
                st.number_input("Weight (kg)", min_value=1.0, max_value=400.0, value=70.0, key="form_weight")
                st.selectbox("Goal", [g.value for g in FitnessGoal], key="form_goal")
                st.selectbox("Lifestyle", [l.value for l in Lifestyle], key="form_lifestyle")
            with c2:
                st.selectbox("Gender", [g.value for g in Gender], key="form_gender")
                st.number_input("Height (cm)", min_value=1.0, max_value=272.0, value=170.0, key="form_height")
                st.selectbox("Diet Preference", [d.value for d in DietPreference], key="form_diet")

            st.form_submit_button(
                "⏳ Creating your plan..." if st.session_state.submitting else "🚀 Create My Plan",
                type="primary",
                use_container_width=True,
                disabled=st.session_state.submitting,
                on_click=ProfileForm._start_submission,
            )

        if st.session_state.submitting:
            ProfileForm._submit()

        if st.session_state.error:
            st.error(f"**Alert:** {st.session_state.error}")

    @staticmethod
    def _start_submission() -> None:
        if st.session_state.submitting:
            return
        st.session_state.pending_profile = {
            "age": int(st.session_state.form_age),
            "gender": st.session_state.form_gender,
            "weight": float(st.session_state.form_weight),
            "height": float(st.session_state.form_height),
            "goal": st.session_state.form_goal,
            "dietPreference": st.session_state.form_diet,
            "lifestyle": st.session_state.form_lifestyle,
        }
        st.session_state.submitting = True
        st.session_state.error = None

    @staticmethod
    def _submit() -> None:
        profile = st.session_state.pending_profile
        try:
            with st.spinner("🤖 Building your plan and finding exercise videos..."):
                result = api.post("plan/submit", profile, timeout=REQUEST_TIMEOUT_LONG)
        finally:
            st.session_state.submitting = False
            st.session_state.pending_profile = None

        if "error" in result:
            logger.warning("Plan submission failed: %s", result["error"])
            st.session_state.error = USER_FACING_ERROR
        else:
            st.session_state.snapshot = result
        st.rerun()


# ========================================
# PLAN VIEW
# ========================================
class PlanView:
    @staticmethod
    def render(snapshot: Dict[str, Any]) -> None:
        plan = snapshot["plan"]
        view = snapshot["view"] or {}

        col_title, col_reset = st.columns([4, 1])
        with col_title:
            st.caption("🟢 PLAN CREATED")
            st.title("Your New Plan")
        with col_reset:
            if st.button("Start Over", use_container_width=True):
                result = api.post("plan/reset")
                st.session_state.snapshot = None if "error" in result else result
                st.session_state.error = None
                st.rerun()

        UIComponents.quote_box(plan.get("motivation") or "Small steps lead to big changes. Let's go!")

        PlanView._render_body(view)
        PlanView._render_stats(view, plan)
        PlanView._render_water(view)
        PlanView._render_workouts(plan, view)
        PlanView._render_diet(plan)
        PlanView._render_tips(plan)
        PlanView._render_sources(snapshot.get("sources", []))

    @staticmethod
    def _render_body(view: Dict[str, Any]) -> None:
        if "bmi" not in view:
            return
        c1, c2 = st.columns(2)
        c1.metric("Your BMI", view["bmi"])
        c2.metric("Category", view["bmi_category"])

    @staticmethod
    def _render_stats(view: Dict[str, Any], plan: Dict[str, Any]) -> None:
        cols = st.columns(4)
        for col, item in zip(cols, view.get("stats", [])):
            col.markdown(
                UIComponents.metric_card(item["label"], item["value"], item["icon"]),
                unsafe_allow_html=True,
            )

        ng = plan["nutritionGuidance"]
        fig = go.Figure(go.Pie(
            labels=["Protein", "Carbs", "Fats"],
            values=[ng["proteinGrams"], ng["carbsGrams"], ng["fatsGrams"]],
            hole=0.55,
            marker={"colors": ["#059669", "#34d399", "#a7f3d0"]},
        ))
        fig.update_layout(height=260, margin={"t": 10, "b": 10, "l": 10, "r": 10})
        st.plotly_chart(fig, use_container_width=True)

    @staticmethod
    def _render_water(view: Dict[str, Any]) -> None:
        st.markdown("### 💧 Daily Water Tracker")
        st.progress(
            view.get("water_progress", 0.0),
            text=f"{view.get('water_drunk', 0):g} L / {view.get('water_goal', 2):g} L",
        )
        c1, c2 = st.columns(2)
        if c1.button("Add 250ml", use_container_width=True):
            api.post("water/add")
            refresh_snapshot()
            st.rerun()
        if c2.button("Reset", key="water_reset", use_container_width=True):
            api.post("water/reset")
            refresh_snapshot()
            st.rerun()

    @staticmethod
    def _render_workouts(plan: Dict[str, Any], view: Dict[str, Any]) -> None:
        st.markdown("## 🏋️ Workout Plan")
        days = plan.get("workoutPlan", [])
        if not days:
            st.info("No workout days in this plan.")
            return

        active = view.get("active_day", 0)
        labels = [f"Day {i + 1}" for i in range(len(days))]
        choice = st.radio("Day", labels, index=active, horizontal=True, label_visibility="collapsed")
        selected = labels.index(choice)
        if selected != active:
            api.post("view/day", params={"index": selected})
            refresh_snapshot()
            st.rerun()

        day = days[selected]
        st.subheader(f"{day['day']}: {day['title']}")

        expanded = view.get("expanded_videos", {})
        videos = view.get("videos", {})
        for idx, ex in enumerate(day.get("exercises", [])):
            with st.container(border=True):
                st.markdown(f"**{idx + 1}. {ex['name']}** · {ex['sets']} sets × {ex['reps']}")
                st.caption(ex["instruction"])

                video = videos.get(ex["name"])
                if not video:
                    continue
                is_open = expanded.get(ex["name"], False)
                if st.button("Hide video" if is_open else "▶ Watch video", key=f"video_{selected}_{idx}"):
                    api.post("view/video/toggle", {"exercise": ex["name"]})
                    refresh_snapshot()
                    st.rerun()
                if is_open:
                    if video["kind"] == "embed":
                        st.video(f"https://www.youtube.com/watch?v={video['video_id']}")
                    else:
                        st.link_button("Watch Tutorial", video["url"])

    @staticmethod
    def _render_diet(plan: Dict[str, Any]) -> None:
        st.markdown("## 🥗 Diet Plan")
        diet = plan["dietPlan"]
        rows = [
            {"Meal": slot.title(), "Dish": diet[slot]["title"], "Calories": diet[slot]["calories"]}
            for slot in ("breakfast", "lunch", "snack", "dinner")
        ]
        st.dataframe(pd.DataFrame(rows), hide_index=True, use_container_width=True)
        for slot in ("breakfast", "lunch", "snack", "dinner"):
            with st.expander(f"{slot.title()}: {diet[slot]['title']}"):
                st.write(diet[slot]["description"])

        st.info(f"💡 **Pro Tip:** {plan['nutritionGuidance']['proTip']}")

    @staticmethod
    def _render_tips(plan: Dict[str, Any]) -> None:
        c1, c2 = st.columns(2)
        with c1:
            st.markdown("### 🛡️ Safety Tips")
            for tip in plan.get("safetyTips", []):
                st.markdown(f"- {tip}")
        with c2:
            st.markdown("### 🌱 Lifestyle Tips")
            for tip in plan.get("lifestyleTips", []):
                st.markdown(f"- {tip}")

    @staticmethod
    def _render_sources(sources) -> None:
        if not sources:
            return
        st.markdown("### 🔎 Sources")
        for src in sources:
            st.markdown(f"- [{src['title']}]({src['uri']})")


# ========================================
# MAIN APPLICATION
# ========================================
def main():
    load_styles()
    init_session_state()

    if st.session_state.snapshot is None:
        refresh_snapshot()

    snapshot = st.session_state.snapshot
    if snapshot and snapshot.get("plan"):
        PlanView.render(snapshot)
    else:
        ProfileForm.render()


if __name__ == "__main__":
    main()
