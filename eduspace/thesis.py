"""Thesis synthesis from the orienteering conversation."""

import logging

from eduspace.exceptions import PreconditionError
from eduspace.models import ThesisDocument, THESIS_FIELDS
from eduspace.services.gateway import ContentGateway
from eduspace.state import SessionStore

log = logging.getLogger(__name__)

MIN_HISTORY_FOR_DRAFT = 2

# Form labels for the thesis editor, in display order.
THESIS_LABELS = {
    "title": "Final Project Title",
    "abstract": "Context & Warm-up Findings",
    "problem_analysis": "Challenge Analysis (Follow-up Questions)",
    "alternatives": "Possible Solutions Considered",
    "proposed_solution": "My Best Solution",
    "conclusion": "Why is this the Best? (Justification)",
}


class ThesisSynthesizer:
    def __init__(self, store: SessionStore, gateway: ContentGateway):
        self.store = store
        self.gateway = gateway

    def draft(self) -> ThesisDocument:
        """Ask the backend for a draft and merge it over the current document.

        Fields the backend leaves out keep whatever the student already wrote.
        Raises GenerationError when the backend fails.
        """
        mission = self.store.mission
        if mission is None:
            raise PreconditionError("Please select a mission first!")
        history = self.store.history()
        if len(history) < MIN_HISTORY_FOR_DRAFT:
            raise PreconditionError(
                "Please chat with the AI in the Orienteering stage first to discuss your options!"
            )
        fields = self.gateway.draft_thesis(
            mission, history, self.store.decisions(), self.store.grade_level
        )
        log.info(f"Thesis draft returned fields: {sorted(fields)}")
        return self.store.merge_thesis(fields)

    def update_field(self, name: str, value: str) -> ThesisDocument:
        if name not in THESIS_FIELDS:
            raise ValueError(f"Unknown thesis field: {name}")
        return self.store.merge_thesis({name: value})
