import pytest
from conftest import FakeGateway

from eduspace.exceptions import PreconditionError
from eduspace.models import Message
from eduspace.thesis import THESIS_LABELS, ThesisSynthesizer


def _chat(store, turns):
    for i in range(turns):
        role = "mentor" if i % 2 == 0 else "student"
        store.append_message(Message(id=f"m{i}", role=role, text=f"turn {i}", timestamp=i))


def test_draft_requires_two_turns(store, mission):
    gateway = FakeGateway()
    store.select_mission(mission)
    _chat(store, 1)

    with pytest.raises(PreconditionError) as exc:
        ThesisSynthesizer(store, gateway).draft()

    assert "Orienteering" in exc.value.message
    assert gateway.thesis_calls == 0


def test_draft_requires_mission(store):
    gateway = FakeGateway()
    with pytest.raises(PreconditionError):
        ThesisSynthesizer(store, gateway).draft()
    assert gateway.thesis_calls == 0


def test_draft_merges_returned_fields(store, mission):
    gateway = FakeGateway()
    gateway.thesis_fields = {"title": "Moon Base Plan", "proposed_solution": "Bury it."}
    store.select_mission(mission)
    _chat(store, 3)
    store.merge_thesis({"conclusion": "My own words."})

    thesis = ThesisSynthesizer(store, gateway).draft()

    assert gateway.thesis_calls == 1
    assert thesis.title == "Moon Base Plan"
    assert thesis.proposed_solution == "Bury it."
    assert thesis.conclusion == "My own words."
    assert store.thesis() == thesis


def test_update_field(store):
    synth = ThesisSynthesizer(store, FakeGateway())
    assert synth.update_field("abstract", "Context").abstract == "Context"

    with pytest.raises(ValueError):
        synth.update_field("bibliography", "none")


def test_labels_cover_all_fields():
    assert list(THESIS_LABELS) == [
        "title",
        "abstract",
        "problem_analysis",
        "alternatives",
        "proposed_solution",
        "conclusion",
    ]
