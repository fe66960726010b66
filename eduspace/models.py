"""Pydantic models for type safety."""

import threading
import time
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GradeLevel(str, Enum):
    ELEMENTARY_LOWER = "Elementary (Lower)"  # Grades 1-3
    ELEMENTARY_UPPER = "Elementary (Upper)"  # Grades 4-6
    MIDDLE_SCHOOL = "Middle School"  # Grades 7-9
    HIGH_SCHOOL = "High School"  # Grades 10-12

    @property
    def difficulty(self) -> str:
        return DIFFICULTY_BY_LEVEL[self]


DIFFICULTY_BY_LEVEL = {
    GradeLevel.ELEMENTARY_LOWER: "Easy",
    GradeLevel.ELEMENTARY_UPPER: "Medium",
    GradeLevel.MIDDLE_SCHOOL: "Hard",
    GradeLevel.HIGH_SCHOOL: "Expert",
}

DEFAULT_GRADE_LEVEL = GradeLevel.ELEMENTARY_UPPER


_id_lock = threading.Lock()
_last_id = 0


def next_id() -> str:
    """Millisecond timestamp id, bumped so ids stay unique within a process."""
    global _last_id
    with _id_lock:
        _last_id = max(int(time.time() * 1000), _last_id + 1)
        return str(_last_id)


class AppStage(str, Enum):
    MISSION_CONTROL = "MISSION_CONTROL"  # Select/generate a mission
    KNOWLEDGE_BASE = "KNOWLEDGE_BASE"  # Core concepts
    ORIENTEERING = "ORIENTEERING"  # Mentor chat
    THESIS = "THESIS"  # Solution paper
    LAUNCHPAD = "LAUNCHPAD"  # Presentation


class CoreConcept(BaseModel):
    term: str
    definition: str


class Mission(BaseModel):
    """A generated lesson scenario ("conundrum").

    Field aliases follow the camelCase keys the backend is asked to return,
    which is also the shape written to storage.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    title: str
    description: str  # The main "Orienteering Question"
    learning_objective: str = Field(alias="learningObjective")
    difficulty: str
    tags: List[str] = []
    warm_up_question: str = Field(alias="warmUpQuestion")
    follow_up_questions: List[str] = Field(alias="followUpQuestions")
    decision_challenges: List[str] = Field(alias="decisionChallenges")
    possible_solutions: List[str] = Field(default=[], alias="possibleSolutions")
    core_concepts: List[CoreConcept] = Field(default=[], alias="coreConcepts")

    @field_validator("follow_up_questions", "decision_challenges")
    @classmethod
    def _exactly_three(cls, value: List[str]) -> List[str]:
        # Models sometimes add a bonus item; the lesson plan only uses three.
        if len(value) < 3:
            raise ValueError(f"expected 3 entries, got {len(value)}")
        return value[:3]


class GroundingLink(BaseModel):
    title: str
    uri: str
    type: Literal["map", "web"] = "map"


class Message(BaseModel):
    """One chat turn. Identifiers are stable and used to patch images in."""

    id: str
    role: Literal["student", "mentor"]
    text: str
    timestamp: int  # epoch milliseconds
    grounding_links: Optional[List[GroundingLink]] = None
    images: Optional[List[str]] = None  # data URIs for the "Idea Train"


class TurnReply(BaseModel):
    """What the backend said back for one chat turn."""
    text: str
    grounding_links: List[GroundingLink] = []


class MicroDecision(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    question: str  # Challenge text, or CUSTOM_DECISION
    decision: str
    reasoning: str


class ThesisDocument(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    abstract: str = ""  # Context / warm-up summary
    problem_analysis: str = Field(default="", alias="problemAnalysis")
    alternatives: str = ""
    proposed_solution: str = Field(default="", alias="proposedSolution")
    conclusion: str = ""


THESIS_FIELDS = [
    "title",
    "abstract",
    "problem_analysis",
    "alternatives",
    "proposed_solution",
    "conclusion",
]


class Slide(BaseModel):
    id: str
    title: str
    points: List[str] = []

    @field_validator("points")
    @classmethod
    def _max_three_points(cls, value: List[str]) -> List[str]:
        return value[:3]


class AppState(BaseModel):
    """Session state for one student in one browser profile."""
    stage: AppStage = AppStage.MISSION_CONTROL
    grade_level: GradeLevel = DEFAULT_GRADE_LEVEL
    mission: Optional[Mission] = None
    history: List[Message] = []
    decisions: List[MicroDecision] = []
    thesis: ThesisDocument = Field(default_factory=ThesisDocument)
    slides: List[Slide] = []
