#!/usr/bin/env python3
"""EduSpace - terminal runner for a full mission.

Usage:
    python -m eduspace.main                                  # Resume or generate a mission
    python -m eduspace.main --level "High School"            # Change grade level
    python -m eduspace.main --new-mission                    # Force a fresh mission
    python -m eduspace.main -m "Solar panels" -m "Underground"   # Scripted student turns
    python -m eduspace.main --decision 1 Nuclear "Higher energy density."
"""

import argparse
import json
import logging
from pathlib import Path

from eduspace.config import settings
from eduspace.conversation import ConversationEngine
from eduspace.exceptions import GenerationError, PreconditionError
from eduspace.models import AppStage, AppState, GradeLevel
from eduspace.navigator import StageNavigator
from eduspace.presentation import EMPTY_DECK_NOTICE, PresentationCompiler
from eduspace.services.gateway import ContentGateway
from eduspace.services.storage import LocalStorage
from eduspace.state import SessionStore
from eduspace.thesis import ThesisSynthesizer

logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s: %(message)s")
log = logging.getLogger(__name__)


def resolve_challenge(index: int, challenges: list[str]) -> str | None:
    """1-based challenge number; 0 means a custom decision."""
    if index == 0:
        return None
    if not 1 <= index <= len(challenges):
        raise ValueError(f"Challenge number must be 0-{len(challenges)}, got {index}")
    return challenges[index - 1]


def run_session(
    gateway: ContentGateway,
    store: SessionStore,
    args: argparse.Namespace,
) -> AppState:
    """Drive one mission through all stages and return the final state."""
    navigator = StageNavigator(store)

    if args.level:
        store.set_level(GradeLevel(args.level))
    level = store.grade_level

    if store.mission is None or args.new_mission:
        mission = gateway.generate_mission(level)
        store.select_mission(mission)
    else:
        mission = store.mission
        navigator.go(AppStage.ORIENTEERING)
    log.info(f"Mission: {mission.title} [{mission.difficulty}]")
    log.info(f"Question: {mission.description}")

    engine = ConversationEngine(store, gateway)
    try:
        engine.ensure_session()
        for text in args.message:
            engine.send(text)
        for index, decision, reasoning in args.decision:
            challenge = resolve_challenge(int(index), mission.decision_challenges)
            engine.commit_decision(challenge, decision, reasoning)
        engine.wait_for_illustrations(timeout=args.image_timeout)
    finally:
        engine.close()

    for message in store.history():
        speaker = "Mentor" if message.role == "mentor" else "Student"
        images = f" [{len(message.images)} images]" if message.images else ""
        log.info(f"[{speaker}] {message.text[:80]}{images}")

    pending = engine.decisions.pending_challenges(mission)
    log.info(f"Decisions logged: {len(store.decisions())}, pending challenges: {len(pending)}")

    navigator.go(AppStage.THESIS)
    try:
        thesis = ThesisSynthesizer(store, gateway).draft()
        log.info(f"Thesis: {thesis.title}")
    except PreconditionError as e:
        log.warning(e.message)
    except GenerationError as e:
        log.error(f"Failed to generate draft: {e}")

    navigator.go(AppStage.LAUNCHPAD)
    try:
        deck = PresentationCompiler(store, gateway).compile()
        if not deck:
            log.warning(EMPTY_DECK_NOTICE)
        for slide in deck:
            log.info(f"[Slide] {slide.title}: {' / '.join(slide.points)}")
    except PreconditionError as e:
        log.warning(e.message)
    except GenerationError as e:
        log.error(f"Failed to generate slides: {e}")

    return store.snapshot()


def main():
    parser = argparse.ArgumentParser(description="EduSpace")
    parser.add_argument(
        "--level",
        type=str,
        choices=[level.value for level in GradeLevel],
        default=None,
        help="Grade level (default: last saved, else Elementary (Upper))",
    )
    parser.add_argument("--storage", type=str, default=settings.STORAGE_PATH)
    parser.add_argument(
        "--new-mission", action="store_true", help="Generate a new mission even if one is saved"
    )
    parser.add_argument(
        "-m",
        "--message",
        action="append",
        default=[],
        help="Student turn to send (repeatable)",
    )
    parser.add_argument(
        "--decision",
        nargs=3,
        action="append",
        default=[],
        metavar=("CHALLENGE", "DECISION", "REASONING"),
        help="Commit a decision; CHALLENGE is 1-3, or 0 for a custom decision",
    )
    parser.add_argument(
        "--image-timeout",
        type=float,
        default=120.0,
        help="Seconds to wait for Idea Train images before finishing",
    )
    parser.add_argument("--out", type=str, default="data/session.json")
    parser.add_argument("--reset", action="store_true", help="Clear saved mission and level first")
    args = parser.parse_args()

    storage = LocalStorage(args.storage)
    if args.reset:
        storage.clear()
    store = SessionStore.rehydrate(storage)
    gateway = ContentGateway()

    state = run_session(gateway, store, args)

    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, "w") as f:
        json.dump(state.model_dump(mode="json", by_alias=True), f, indent=2)
    log.info(f"Saved session to {out}")
    return state


if __name__ == "__main__":
    main()
