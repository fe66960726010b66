"""Helpers for the Streamlit UI."""

from __future__ import annotations

import base64
import binascii
from typing import Iterable, Optional

from eduspace.models import GradeLevel, Mission, ThesisDocument
from eduspace.thesis import THESIS_LABELS

LEVEL_RANKS = {
    GradeLevel.ELEMENTARY_LOWER: "Cadet (Gr 1-3)",
    GradeLevel.ELEMENTARY_UPPER: "Pilot (Gr 4-6)",
    GradeLevel.MIDDLE_SCHOOL: "Specialist (Gr 7-9)",
    GradeLevel.HIGH_SCHOOL: "Commander (Gr 10-12)",
}

TOUR_STEPS = [
    {
        "title": "Welcome to ICAN EduSpace",
        "description": (
            "Your journey to expanding cosmic thinking starts here. This platform is designed "
            "to guide you through complex problem-solving in space contexts."
        ),
    },
    {
        "title": "1. Mission Control",
        "description": (
            "Start by selecting your rank (Difficulty Level). Generate unique 'Conundrums' - "
            "complex space missions that require critical thinking to solve."
        ),
    },
    {
        "title": "2. Orienteering & Knowledge",
        "description": (
            "Engage with the AI Commander. Use the Knowledge Base to learn core concepts, then "
            "chat to explore solutions and log your critical 'Micro-Decisions'."
        ),
    },
    {
        "title": "3. Thesis Builder",
        "description": (
            "Synthesize your journey. The AI will help you draft a structured solution paper "
            "based on the decisions and discoveries you made during Orienteering."
        ),
    },
    {
        "title": "4. TED Launchpad",
        "description": (
            "Share your vision. Convert your thesis into a compelling, auto-generated "
            "presentation and practice delivering your solution to the galaxy."
        ),
    },
]


def level_label(level: GradeLevel) -> str:
    """Button label for a grade level, e.g. 'Medium - Pilot (Gr 4-6)'."""
    return f"{level.difficulty} - {LEVEL_RANKS[level]}"


def chat_role(role: str) -> str:
    """Map a turn role onto Streamlit's chat_message roles."""
    return "user" if role == "student" else "assistant"


def format_message_markdown(text: str) -> str:
    """Keep the mentor's single line breaks when rendered as markdown."""
    return text.replace("\r\n", "\n").replace("\n", "  \n")


def merge_mission_list(
    missions: Iterable[Mission], active: Optional[Mission]
) -> list[Mission]:
    """Make sure the persisted active mission is shown in the grid, first."""
    mission_list = list(missions)
    if active is not None and not any(m.id == active.id for m in mission_list):
        mission_list.insert(0, active)
    return mission_list


def thesis_word_counts(thesis: ThesisDocument) -> list[dict[str, object]]:
    """Word count per thesis section, in form order, for the progress chart."""
    rows: list[dict[str, object]] = []
    for field, label in THESIS_LABELS.items():
        value = getattr(thesis, field)
        rows.append({"section": label, "words": len(value.split())})
    return rows


def decode_data_uri(uri: str) -> bytes | None:
    """Return the raw bytes of a base64 data URI, or None if it is not one."""
    if not uri.startswith("data:") or ";base64," not in uri:
        return None
    try:
        return base64.b64decode(uri.split(";base64,", 1)[1], validate=True)
    except (binascii.Error, ValueError):
        return None
