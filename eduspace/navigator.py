"""Stage navigation with the mission-required guard."""

import logging

from eduspace.exceptions import PreconditionError
from eduspace.models import AppStage
from eduspace.state import SessionStore

log = logging.getLogger(__name__)

# Sidebar order and labels.
STAGES = [
    (AppStage.MISSION_CONTROL, "Mission Control"),
    (AppStage.KNOWLEDGE_BASE, "Knowledge Base"),
    (AppStage.ORIENTEERING, "Orienteering"),
    (AppStage.THESIS, "Thesis Builder"),
    (AppStage.LAUNCHPAD, "TED Launchpad"),
]

NO_MISSION_NOTICE = "Please select a mission first!"


class StageNavigator:
    def __init__(self, store: SessionStore):
        self.store = store

    @property
    def current(self) -> AppStage:
        return self.store.stage

    def can_enter(self, stage: AppStage) -> bool:
        return stage == AppStage.MISSION_CONTROL or self.store.mission is not None

    def go(self, stage: AppStage) -> AppStage:
        """Move to a stage. Raises PreconditionError and stays put without a mission."""
        if not self.can_enter(stage):
            log.info(f"Blocked move to {stage.value}: no mission selected")
            raise PreconditionError(NO_MISSION_NOTICE)
        self.store.set_stage(stage)
        return stage
