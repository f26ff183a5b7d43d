# unit_tests/test_streamlit_app.py
"""
Unit Tests for the Streamlit Front-End
======================================
Run with: python -m pytest unit_tests/test_streamlit_app.py -v

The API is replaced by fake `requests` calls; the app runs under
Streamlit's AppTest harness.
"""

from pathlib import Path

import pytest
import requests
import streamlit as st
from streamlit.testing.v1 import AppTest

from tools.plan_errors import USER_FACING_ERROR

APP_PATH = str(Path(__file__).parent.parent / "ui" / "streamlit_app.py")


class FakeResponse:
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        return self._payload


IDLE_SNAPSHOT = {
    "session_id": "ui", "status": "idle", "error": None, "profile": None,
    "plan": None, "sources": [], "view": None, "updated_at": "2026-01-01T00:00:00",
}


@pytest.fixture
def fake_api(monkeypatch):
    """Failing plan/submit; records what the app looked like at POST time."""
    posts = []

    def fake_get(url, params=None, timeout=None):
        return FakeResponse(200, IDLE_SNAPSHOT)

    def fake_post(url, json=None, params=None, timeout=None):
        posts.append({
            "url": url,
            "json": json,
            "submitting": st.session_state.submitting,
        })
        return FakeResponse(502, {"detail": USER_FACING_ERROR})

    monkeypatch.setattr(requests, "get", fake_get)
    monkeypatch.setattr(requests, "post", fake_post)
    return posts


def test_form_renders_enabled(fake_api):
    at = AppTest.from_file(APP_PATH, default_timeout=10).run()
    assert not at.exception
    assert at.button[0].disabled is False
    assert fake_api == []


def test_submit_marks_pending_before_the_request(fake_api):
    at = AppTest.from_file(APP_PATH, default_timeout=10).run()
    at.button[0].click().run()

    assert len(fake_api) == 1
    post = fake_api[0]
    assert post["url"].endswith("/plan/submit")
    # The button is drawn with disabled=submitting in the same pass, before the POST.
    assert post["submitting"] is True
    assert post["json"]["age"] == 25
    assert post["json"]["dietPreference"] == "Veg"


def test_failed_submit_shows_generic_error_and_re_enables(fake_api):
    at = AppTest.from_file(APP_PATH, default_timeout=10).run()
    at.button[0].click().run()

    assert at.session_state.submitting is False
    assert at.button[0].disabled is False
    assert USER_FACING_ERROR in at.error[0].value
