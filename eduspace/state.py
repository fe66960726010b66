"""Application state container and the persisted mission/level subset."""

from __future__ import annotations

import json
import logging
import threading
from typing import Optional

from eduspace.models import (
    AppStage,
    AppState,
    GradeLevel,
    Message,
    MicroDecision,
    Mission,
    Slide,
    ThesisDocument,
    THESIS_FIELDS,
)
from eduspace.services.storage import (
    CURRENT_MISSION_KEY,
    GRADE_LEVEL_KEY,
    TOUR_COMPLETED_KEY,
    LocalStorage,
)

log = logging.getLogger(__name__)


class SessionStore:
    """Single owner of the session's AppState.

    Every mutation runs under one lock against the live state, so background
    callbacks (illustration patches) never write back a stale copy. Readers get
    deep copies from ``snapshot()``.
    """

    def __init__(self, storage: LocalStorage, state: Optional[AppState] = None):
        self.storage = storage
        self._state = state or AppState()
        self._lock = threading.Lock()

    @classmethod
    def rehydrate(cls, storage: LocalStorage) -> "SessionStore":
        """Build a store from whatever mission/level survived in storage."""
        state = AppState()

        raw_mission = storage.get_item(CURRENT_MISSION_KEY)
        if raw_mission:
            try:
                state.mission = Mission.model_validate_json(raw_mission)
            except ValueError as e:
                log.warning(f"Failed to load saved mission, discarding: {e}")

        raw_level = storage.get_item(GRADE_LEVEL_KEY)
        if raw_level:
            try:
                state.grade_level = GradeLevel(json.loads(raw_level))
            except (ValueError, TypeError) as e:
                log.warning(f"Failed to load saved level, discarding: {e}")

        return cls(storage, state)

    # ---- reads ----

    def snapshot(self) -> AppState:
        with self._lock:
            return self._state.model_copy(deep=True)

    @property
    def mission(self) -> Optional[Mission]:
        with self._lock:
            return self._state.mission

    @property
    def grade_level(self) -> GradeLevel:
        with self._lock:
            return self._state.grade_level

    @property
    def stage(self) -> AppStage:
        with self._lock:
            return self._state.stage

    def history(self) -> list[Message]:
        with self._lock:
            return [m.model_copy(deep=True) for m in self._state.history]

    def decisions(self) -> list[MicroDecision]:
        with self._lock:
            return list(self._state.decisions)

    def thesis(self) -> ThesisDocument:
        with self._lock:
            return self._state.thesis.model_copy()

    def slides(self) -> list[Slide]:
        with self._lock:
            return [s.model_copy(deep=True) for s in self._state.slides]

    # ---- mission store ----

    def _persist(self) -> None:
        if self._state.mission is not None:
            self.storage.set_item(
                CURRENT_MISSION_KEY, self._state.mission.model_dump_json(by_alias=True)
            )
        self.storage.set_item(GRADE_LEVEL_KEY, json.dumps(self._state.grade_level.value))

    def select_mission(self, mission: Mission) -> None:
        """Activate a mission: fresh history and decision log, then persist."""
        with self._lock:
            self._state.mission = mission
            self._state.stage = AppStage.ORIENTEERING
            self._state.history = []
            self._state.decisions = []
            self._persist()
        log.info(f"Mission selected: {mission.title} ({mission.id})")

    def set_level(self, level: GradeLevel) -> None:
        with self._lock:
            self._state.grade_level = level
            self.storage.set_item(GRADE_LEVEL_KEY, json.dumps(level.value))
        log.info(f"Grade level set to {level.value}")

    def set_stage(self, stage: AppStage) -> None:
        with self._lock:
            self._state.stage = stage

    # ---- conversation ----

    def append_message(self, message: Message) -> None:
        with self._lock:
            self._state.history.append(message)

    def patch_images(self, message_id: str, images: list[str]) -> bool:
        """Attach images to the turn with this id. Returns False if it is gone."""
        with self._lock:
            for idx, message in enumerate(self._state.history):
                if message.id == message_id:
                    self._state.history[idx] = message.model_copy(update={"images": list(images)})
                    return True
        return False

    def append_decision(self, decision: MicroDecision) -> None:
        with self._lock:
            self._state.decisions.append(decision)

    # ---- thesis / slides ----

    def merge_thesis(self, fields: dict[str, str]) -> ThesisDocument:
        """Overwrite only the given thesis fields; the rest are kept."""
        updates = {k: v for k, v in fields.items() if k in THESIS_FIELDS}
        with self._lock:
            self._state.thesis = self._state.thesis.model_copy(update=updates)
            return self._state.thesis.model_copy()

    def set_slides(self, slides: list[Slide]) -> None:
        with self._lock:
            self._state.slides = list(slides)

    # ---- onboarding ----

    def tour_completed(self) -> bool:
        return self.storage.get_item(TOUR_COMPLETED_KEY) == "true"

    def complete_tour(self) -> None:
        self.storage.set_item(TOUR_COMPLETED_KEY, "true")
