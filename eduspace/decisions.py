"""Micro-decision log."""

import logging
from typing import Optional

from eduspace.exceptions import PreconditionError
from eduspace.models import MicroDecision, Mission, next_id
from eduspace.state import SessionStore

log = logging.getLogger(__name__)

CUSTOM_DECISION = "Custom Decision"


class DecisionLog:
    """Append-only list of decisions, resolved against challenges by exact text.

    Matching is plain string equality: a challenge the mentor paraphrases
    will not count as resolved.
    """

    def __init__(self, store: SessionStore):
        self.store = store

    def log_decision(
        self, challenge: Optional[str], decision: str, reasoning: str
    ) -> MicroDecision:
        if not decision.strip():
            raise PreconditionError("Please enter your decision before committing it.")
        entry = MicroDecision(
            id=next_id(),
            question=challenge or CUSTOM_DECISION,
            decision=decision,
            reasoning=reasoning,
        )
        self.store.append_decision(entry)
        log.info(f"Decision logged: {entry.question} -> {entry.decision}")
        return entry

    def entries(self) -> list[MicroDecision]:
        return self.store.decisions()

    def is_resolved(self, challenge: str) -> bool:
        return any(d.question == challenge for d in self.store.decisions())

    def pending_challenges(self, mission: Mission) -> list[str]:
        """Challenges of the mission nobody has answered yet, in mission order."""
        answered = {d.question for d in self.store.decisions()}
        return [c for c in mission.decision_challenges if c not in answered]

    def all_resolved(self, mission: Mission) -> bool:
        return not self.pending_challenges(mission)
