"""Tests for the mentor conversation engine."""

import concurrent.futures

import pytest
from conftest import LONG_REPLY, FakeGateway

from eduspace.conversation import ERROR_REPLY, ConversationEngine
from eduspace.exceptions import PreconditionError
from eduspace.models import GradeLevel
from eduspace.services.gateway import fallback_mission
from eduspace.state import SessionStore


@pytest.fixture
def engine(store, mission, fake_gateway):
    store.select_mission(mission)
    engine = ConversationEngine(store, fake_gateway)
    yield engine
    engine.wait_for_illustrations(timeout=5)
    engine.close()


def test_bootstrap_turn_is_hidden(engine, store, fake_gateway, mission):
    engine.ensure_session()

    history = store.history()
    assert len(history) == 1
    assert history[0].role == "mentor"
    assert history[0].text == LONG_REPLY
    assert fake_gateway.sent == [
        f'Mission Start. Please ask me the Warm-Up Question: "{mission.warm_up_question}"'
    ]


def test_ensure_session_requires_mission(storage):
    engine = ConversationEngine(SessionStore(storage), FakeGateway())
    with pytest.raises(PreconditionError):
        engine.ensure_session()
    engine.close()


def test_history_grows_by_pairs(engine, store, fake_gateway):
    engine.ensure_session()
    for text in ("Water, air, food", "Underground", "Ice mining"):
        engine.send(text)

    history = store.history()
    assert len(history) == 1 + 2 * 3
    assert [m.role for m in history[1:]] == ["student", "mentor"] * 3
    assert history[1].text == "Water, air, food"


def test_failed_turn_appends_error_reply(engine, store, fake_gateway):
    engine.ensure_session()
    fake_gateway.fail_next = 1

    engine.send("Is solar enough?")
    engine.send("What about nuclear?")

    history = store.history()
    assert len(history) == 5
    assert history[1].role == "student"
    assert history[2].text == ERROR_REPLY
    assert history[4].role == "mentor"
    assert history[4].text != ERROR_REPLY


def test_failed_hidden_turn_adds_nothing(store, mission):
    gateway = FakeGateway()
    gateway.fail_next = 1
    store.select_mission(mission)
    engine = ConversationEngine(store, gateway)

    engine.ensure_session()

    assert store.history() == []
    engine.close()


def test_blank_text_is_ignored(engine, store, fake_gateway):
    engine.ensure_session()
    sent_before = len(fake_gateway.sent)

    assert engine.send("   ") is None
    assert len(store.history()) == 1
    assert len(fake_gateway.sent) == sent_before


def test_empty_reply_gets_placeholder(store, mission):
    gateway = FakeGateway(replies=[""])
    store.select_mission(mission)
    engine = ConversationEngine(store, gateway)

    engine.ensure_session()

    assert store.history()[0].text == "Processing data..."
    engine.close()


def test_long_reply_gets_illustrations(engine, store, fake_gateway):
    engine.ensure_session()
    engine.wait_for_illustrations(timeout=5)

    history = store.history()
    assert history[0].images == ["data:image/png;base64,AAAA"]
    assert fake_gateway.illustration_calls == [LONG_REPLY[:300]]


def test_short_reply_skips_illustrations(store, mission):
    gateway = FakeGateway(replies=["Hi!"])
    store.select_mission(mission)
    engine = ConversationEngine(store, gateway)

    engine.ensure_session()
    engine.wait_for_illustrations(timeout=5)

    assert gateway.illustration_calls == []
    assert store.history()[0].images is None
    engine.close()


def test_late_patch_keeps_turns_added_meanwhile(store, mission):
    gateway = FakeGateway(replies=[LONG_REPLY, "Short one.", "Another."])
    gateway.release_images.clear()
    store.select_mission(mission)
    engine = ConversationEngine(store, gateway)

    engine.ensure_session()
    engine.send("First answer")
    engine.send("Second answer")
    before = store.history()

    gateway.release_images.set()
    engine.wait_for_illustrations(timeout=5)
    after = store.history()

    assert len(after) == len(before) == 5
    assert [m.id for m in after] == [m.id for m in before]
    assert after[0].images == ["data:image/png;base64,AAAA"]
    assert all(m.images is None for m in after[1:])
    engine.close()


def test_no_images_means_no_patch(store, mission):
    gateway = FakeGateway(replies=[LONG_REPLY], images=[])
    store.select_mission(mission)
    engine = ConversationEngine(store, gateway)

    engine.ensure_session()
    engine.wait_for_illustrations(timeout=5)

    assert store.history()[0].images is None
    engine.close()


def test_level_change_starts_new_session_without_bootstrap(engine, store, fake_gateway):
    engine.ensure_session()
    first = engine.session

    store.set_level(GradeLevel.HIGH_SCHOOL)
    engine.ensure_session()

    assert engine.session is not first
    assert engine.session.level == GradeLevel.HIGH_SCHOOL
    assert len(fake_gateway.sent) == 1
    assert len(store.history()) == 1


def test_new_mission_bootstraps_again(engine, store, fake_gateway):
    engine.ensure_session()
    other = fallback_mission(GradeLevel.ELEMENTARY_UPPER).model_copy(update={"id": "other"})

    store.select_mission(other)
    engine.ensure_session()

    assert engine.session.mission_id == "other"
    assert len(fake_gateway.sent) == 2
    assert len(store.history()) == 1


def test_commit_decision_logs_and_sends_hidden_turn(engine, store, fake_gateway):
    engine.ensure_session()
    challenge = "Choose a power source: Nuclear vs. Solar."

    entry = engine.commit_decision(challenge, "Nuclear", "Higher energy density.")

    decisions = store.decisions()
    assert decisions == [entry]
    assert (entry.question, entry.decision, entry.reasoning) == (
        challenge,
        "Nuclear",
        "Higher energy density.",
    )
    assert entry.id
    assert fake_gateway.sent[-1] == (
        'I have decided on "Choose a power source: Nuclear vs. Solar.". '
        "Choice: Nuclear. Reasoning: Higher energy density.. What is the next step?"
    )
    assert engine.decisions.is_resolved(challenge)
    assert [m.role for m in store.history()] == ["mentor", "mentor"]


def test_custom_executor_is_used(store, mission):
    gateway = FakeGateway(replies=[LONG_REPLY])
    store.select_mission(mission)
    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as executor:
        engine = ConversationEngine(store, gateway, executor=executor)
        engine.ensure_session()
        engine.wait_for_illustrations(timeout=5)

    assert store.history()[0].images


def test_finished_illustration_jobs_are_dropped(store, mission):
    gateway = FakeGateway(replies=[LONG_REPLY, LONG_REPLY])
    store.select_mission(mission)
    engine = ConversationEngine(store, gateway)

    engine.ensure_session()
    first = engine._pending[0]
    first.result(timeout=5)

    gateway.release_images.clear()
    engine.send("Oxygen, water and a map.")

    assert len(engine._pending) == 1
    assert first not in engine._pending
    assert engine.pending_illustrations == 1

    gateway.release_images.set()
    engine.wait_for_illustrations(timeout=5)
    assert engine.pending_illustrations == 0
    engine.close()
