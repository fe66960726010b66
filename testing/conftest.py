"""Shared fakes for EduSpace tests."""

from __future__ import annotations

import threading
from types import SimpleNamespace
from typing import Any

import pytest

from eduspace.exceptions import GenerationError
from eduspace.models import GradeLevel, Mission, Slide, TurnReply
from eduspace.services.gateway import ChatSession, fallback_mission
from eduspace.services.storage import LocalStorage
from eduspace.state import SessionStore

LONG_REPLY = (
    "Welcome, cadet! Before we land, imagine a place with no air at all. "
    "What three things would you pack first, and why?"
)


class FakeGateway:
    """Gateway stub with scripted replies and call recording."""

    def __init__(self, replies: list[str] | None = None, images: list[str] | None = None) -> None:
        self.replies = list(replies or [])
        self.images = images if images is not None else ["data:image/png;base64,AAAA"]
        self.fail_next = 0
        self.sent: list[str] = []
        self.sessions: list[ChatSession] = []
        self.illustration_calls: list[str] = []
        self.release_images = threading.Event()
        self.release_images.set()
        self.thesis_calls = 0
        self.thesis_fields: dict[str, str] = {}
        self.slides: list[Slide] | None = None

    def generate_mission(self, level: GradeLevel) -> Mission:
        return fallback_mission(level)

    def create_conversation(self, level: GradeLevel, mission: Mission) -> ChatSession:
        session = ChatSession(mission_id=mission.id, level=level, instructions="mentor")
        self.sessions.append(session)
        return session

    def send_turn(self, session: ChatSession, text: str) -> TurnReply:
        self.sent.append(text)
        if self.fail_next:
            self.fail_next -= 1
            raise GenerationError("send_turn", RuntimeError("network down"))
        reply = self.replies.pop(0) if self.replies else "Ok."
        return TurnReply(text=reply)

    def generate_illustrations(self, excerpt: str) -> list[str]:
        self.illustration_calls.append(excerpt)
        self.release_images.wait(timeout=5)
        return list(self.images)

    def draft_thesis(self, mission, history, decisions, level) -> dict[str, str]:
        self.thesis_calls += 1
        return dict(self.thesis_fields)

    def compile_slides(self, thesis, level) -> list[Slide] | None:
        return None if self.slides is None else list(self.slides)


class FakeResponses:
    """Stands in for client.responses."""

    def __init__(self) -> None:
        self.outputs: list[Any] = []
        self.calls: list[dict[str, Any]] = []

    def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        result = self.outputs.pop(0)
        if isinstance(result, Exception):
            raise result
        if isinstance(result, str):
            return SimpleNamespace(id=f"resp_{len(self.calls)}", output_text=result, output=[])
        return result


class FakeImages:
    """Stands in for client.images."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.failing_prompts: tuple[str, ...] = ()
        self._lock = threading.Lock()

    def generate(self, **kwargs: Any) -> Any:
        with self._lock:
            self.calls.append(kwargs)
        if any(marker in kwargs["prompt"] for marker in self.failing_prompts):
            raise RuntimeError("image backend error")
        return SimpleNamespace(data=[SimpleNamespace(b64_json="QUJD")])


class FakeOpenAI:
    def __init__(self) -> None:
        self.responses = FakeResponses()
        self.images = FakeImages()


@pytest.fixture
def storage(tmp_path) -> LocalStorage:
    return LocalStorage(tmp_path / "storage.json")


@pytest.fixture
def store(storage) -> SessionStore:
    return SessionStore(storage)


@pytest.fixture
def mission() -> Mission:
    return fallback_mission(GradeLevel.ELEMENTARY_UPPER)


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway(replies=[LONG_REPLY])


@pytest.fixture
def fake_openai() -> FakeOpenAI:
    return FakeOpenAI()
