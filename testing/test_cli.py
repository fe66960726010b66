"""Tests for the terminal runner."""

from __future__ import annotations

import argparse

import pytest
from conftest import LONG_REPLY, FakeGateway

from eduspace.main import resolve_challenge, run_session
from eduspace.models import AppStage, GradeLevel, Slide
from eduspace.services.storage import LocalStorage
from eduspace.state import SessionStore


def _args(**overrides) -> argparse.Namespace:
    values = dict(
        level=None,
        new_mission=False,
        message=[],
        decision=[],
        image_timeout=5.0,
    )
    values.update(overrides)
    return argparse.Namespace(**values)


def test_run_session_walks_every_stage(storage):
    gateway = FakeGateway(replies=[LONG_REPLY, "Good thinking.", "Logged."])
    gateway.thesis_fields = {"title": "Moon Base Plan", "proposed_solution": "Lava tubes."}
    gateway.slides = [Slide(id=f"slide-{i}", title=f"S{i}", points=["p"]) for i in range(1, 4)]
    store = SessionStore(storage)

    state = run_session(
        gateway,
        store,
        _args(
            level="High School",
            message=["Bring water and air."],
            decision=[["1", "Nuclear", "Higher energy density."]],
        ),
    )

    assert state.stage == AppStage.LAUNCHPAD
    assert state.grade_level == GradeLevel.HIGH_SCHOOL
    assert state.mission.difficulty == "Expert"
    assert [m.role for m in state.history] == ["mentor", "student", "mentor", "mentor"]
    assert state.history[0].images
    assert state.decisions[0].question == state.mission.decision_challenges[0]
    assert state.thesis.title == "Moon Base Plan"
    assert len(state.slides) == 4
    assert state.slides[0].title == "Moon Base Plan"


def test_run_session_resumes_saved_mission(tmp_path, mission):
    storage = LocalStorage(tmp_path / "storage.json")
    saved = mission.model_copy(update={"id": "saved"})
    SessionStore(storage).select_mission(saved)

    store = SessionStore.rehydrate(storage)
    gateway = FakeGateway(replies=[LONG_REPLY])
    state = run_session(gateway, store, _args())

    assert state.mission.id == "saved"
    # Not enough conversation for a draft, so no thesis title and no deck.
    assert gateway.thesis_calls == 0
    assert state.thesis.title == ""
    assert state.slides == []


def test_resolve_challenge():
    challenges = ["A", "B", "C"]
    assert resolve_challenge(0, challenges) is None
    assert resolve_challenge(3, challenges) == "C"
    with pytest.raises(ValueError):
        resolve_challenge(4, challenges)
