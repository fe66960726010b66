"""Mentor conversation engine for the orienteering stage."""

import concurrent.futures
import logging
import time
from typing import Optional

from eduspace.config import settings
from eduspace.decisions import DecisionLog
from eduspace.exceptions import GenerationError, PreconditionError
from eduspace.models import Message, MicroDecision, next_id
from eduspace.prompts import BOOTSTRAP, DECISION_NOTICE
from eduspace.services.gateway import ChatSession, ContentGateway
from eduspace.state import SessionStore

log = logging.getLogger(__name__)

ERROR_REPLY = "Connection interruption. Please retry transmission."
EMPTY_REPLY = "Processing data..."


def _now_ms() -> int:
    return int(time.time() * 1000)


class ConversationEngine:
    """Runs one chat session per mission activation.

    Student turns are appended before the backend answers. Illustrations are
    generated in the background and patched onto their mentor turn by id
    through the store, which always holds the latest history.
    """

    def __init__(
        self,
        store: SessionStore,
        gateway: ContentGateway,
        decisions: Optional[DecisionLog] = None,
        executor: Optional[concurrent.futures.Executor] = None,
    ):
        self.store = store
        self.gateway = gateway
        self.decisions = decisions or DecisionLog(store)
        self.executor = executor or concurrent.futures.ThreadPoolExecutor(
            max_workers=2, thread_name_prefix="idea-train"
        )
        self.session: Optional[ChatSession] = None
        self._pending: list[concurrent.futures.Future] = []

    def ensure_session(self) -> None:
        """Start a new session if the mission or level changed since the last one."""
        mission = self.store.mission
        if mission is None:
            raise PreconditionError("Please select a mission first!")
        level = self.store.grade_level
        if (
            self.session is None
            or self.session.mission_id != mission.id
            or self.session.level != level
        ):
            self.start()

    def start(self) -> None:
        """Bind a fresh session; ask for the warm-up question if history is empty."""
        mission = self.store.mission
        if mission is None:
            raise PreconditionError("Please select a mission first!")
        level = self.store.grade_level
        self.session = self.gateway.create_conversation(level, mission)
        log.info(f"Chat session started: {mission.title} ({level.value})")
        if not self.store.history():
            self.send(BOOTSTRAP.format(warm_up=mission.warm_up_question), hidden=True)

    def send(self, text: str, hidden: bool = False) -> Optional[Message]:
        """Send a turn and return the mentor turn appended for it, if any.

        Hidden turns steer the mentor without showing the student's side.
        """
        if not text.strip() or self.session is None:
            return None

        if not hidden:
            self.store.append_message(
                Message(id=next_id(), role="student", text=text, timestamp=_now_ms())
            )

        try:
            reply = self.gateway.send_turn(self.session, text)
        except GenerationError as e:
            log.error(f"Chat error: {e}")
            if hidden:
                return None
            error_msg = Message(id=next_id(), role="mentor", text=ERROR_REPLY, timestamp=_now_ms())
            self.store.append_message(error_msg)
            return error_msg

        mentor_msg = Message(
            id=next_id(),
            role="mentor",
            text=reply.text or EMPTY_REPLY,
            timestamp=_now_ms(),
            grounding_links=reply.grounding_links or None,
        )
        self.store.append_message(mentor_msg)

        if len(reply.text) > settings.ILLUSTRATION_MIN_CHARS:
            excerpt = reply.text[: settings.ILLUSTRATION_EXCERPT_CHARS]
            self._pending = [f for f in self._pending if not f.done()]
            self._pending.append(
                self.executor.submit(self._attach_illustrations, mentor_msg.id, excerpt)
            )
        return mentor_msg

    def _attach_illustrations(self, message_id: str, excerpt: str) -> None:
        try:
            images = self.gateway.generate_illustrations(excerpt)
        except Exception as e:
            log.error(f"Idea Train failed for turn {message_id}: {e}")
            return
        if not images:
            return
        if self.store.patch_images(message_id, images):
            log.info(f"Attached {len(images)} images to turn {message_id}")
        else:
            log.info(f"Turn {message_id} no longer in history, images dropped")

    @property
    def pending_illustrations(self) -> int:
        """Background illustration jobs that have not finished yet."""
        return sum(1 for future in self._pending if not future.done())

    def wait_for_illustrations(self, timeout: Optional[float] = None) -> None:
        """Block until background illustration jobs have finished."""
        if not self._pending:
            return
        _, not_done = concurrent.futures.wait(self._pending, timeout=timeout)
        self._pending = list(not_done)

    def commit_decision(
        self, challenge: Optional[str], decision: str, reasoning: str
    ) -> MicroDecision:
        """Log a decision, then tell the mentor about it in a hidden turn."""
        entry = self.decisions.log_decision(challenge, decision, reasoning)
        self.send(
            DECISION_NOTICE.format(
                question=entry.question,
                decision=entry.decision,
                reasoning=entry.reasoning,
            ),
            hidden=True,
        )
        return entry

    def close(self) -> None:
        self.executor.shutdown(wait=False)
