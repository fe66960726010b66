"""OpenAI content gateway: missions, mentor chat, illustrations, thesis, slides."""

import concurrent.futures
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from openai import OpenAI
from pydantic import ValidationError

from eduspace.config import settings
from eduspace.exceptions import GenerationError
from eduspace.models import (
    CoreConcept,
    GradeLevel,
    GroundingLink,
    Message,
    MicroDecision,
    Mission,
    Slide,
    ThesisDocument,
    TurnReply,
    next_id,
)
from eduspace.prompts import (
    ILLUSTRATION,
    ILLUSTRATION_VARIANTS,
    LEVEL_CONTEXT,
    MISSION,
    SLIDES,
    THESIS,
    build_mentor_prompt,
)

log = logging.getLogger(__name__)

MAP_HOSTS = ("maps.google.", "google.com/maps", "goo.gl/maps", "maps.app.goo.gl", "openstreetmap.org", "maps.apple.com")


def fallback_mission(level: GradeLevel) -> Mission:
    """The mission served when generation fails, so the grid never stays empty."""
    return Mission(
        id="fallback",
        title="Lunar Base Survival",
        description="How can we establish a sustainable and safe human presence on the moon?",
        learning_objective="Resource Management and ISRU",
        difficulty=level.difficulty,
        tags=["#MoonBase", "#Sustainability", "#ISRU"],
        warm_up_question=(
            "Imagine you're planning a trip to a place with no atmosphere. "
            "What top 3 things do you pack?"
        ),
        follow_up_questions=[
            "How does lack of atmosphere affect safety?",
            "Where should we build: Surface or Underground?",
            "How do we get water without bringing it from Earth?",
        ],
        decision_challenges=[
            "Choose a power source: Nuclear vs. Solar.",
            "Choose a location: Polar Ice Caps vs. Lava Tubes.",
            "Choose a food source: Hydroponics vs. Imported rations.",
        ],
        possible_solutions=[
            "In-Situ Resource Utilization (ISRU)",
            "Closed-Loop Life Support",
            "Robotic Pre-construction",
        ],
        core_concepts=[
            CoreConcept(
                term="ISRU",
                definition=(
                    "In-Situ Resource Utilization: The practice of collecting and "
                    "using materials found on other worlds."
                ),
            ),
            CoreConcept(
                term="Closed-Loop System",
                definition="A life support system that recycles air, water, and waste with zero loss.",
            ),
            CoreConcept(
                term="Regolith",
                definition=(
                    "The layer of loose, heterogeneous superficial deposits covering "
                    "solid rock on the Moon."
                ),
            ),
        ],
    )


@dataclass
class ChatSession:
    """Handle for one mentor conversation.

    The backend keeps the transcript; we only carry the system prompt and the
    id of the last response to continue from.
    """
    mission_id: str
    level: GradeLevel
    instructions: str
    previous_response_id: Optional[str] = None


def parse_json(raw_text: str) -> Any:
    """Parse model output as JSON, tolerating code fences and bad escapes."""
    try:
        return json.loads(raw_text)
    except json.JSONDecodeError:
        pass
    json_match = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", raw_text)
    if json_match:
        raw_text = json_match.group(1)
    raw_text = re.sub(r'\\(?!["\\/bfnrtu])', r"\\\\", raw_text)  # Fix invalid escapes
    return json.loads(raw_text)


def _link_type(uri: str) -> str:
    return "map" if any(host in uri for host in MAP_HOSTS) else "web"


def extract_grounding_links(response: Any) -> list[GroundingLink]:
    """Collect url citations from a Responses API result, de-duplicated by uri."""
    links: list[GroundingLink] = []
    seen: set[str] = set()
    for item in getattr(response, "output", None) or []:
        if getattr(item, "type", None) != "message":
            continue
        for part in getattr(item, "content", None) or []:
            for annotation in getattr(part, "annotations", None) or []:
                if getattr(annotation, "type", None) != "url_citation":
                    continue
                uri = getattr(annotation, "url", "")
                if not uri or uri in seen:
                    continue
                seen.add(uri)
                links.append(
                    GroundingLink(
                        title=getattr(annotation, "title", None) or "View Location",
                        uri=uri,
                        type=_link_type(uri),
                    )
                )
    return links


class ContentGateway:
    def __init__(self, client: Optional[OpenAI] = None):
        self.client = client or OpenAI(
            api_key=settings.OPENAI_API_KEY,
            http_client=httpx.Client(timeout=settings.OPENAI_TIMEOUT),
        )
        self.model = settings.OPENAI_MODEL
        self.fast_model = settings.OPENAI_FAST_MODEL
        self.image_model = settings.OPENAI_IMAGE_MODEL

    def _request_json(self, model: str, prompt: str, **kwargs: Any) -> Any:
        response = self.client.responses.create(
            model=model,
            input=prompt,
            text={"format": {"type": "json_object"}},
            **kwargs,
        )
        raw_text = response.output_text
        if not raw_text:
            raise ValueError("No text returned from model")
        return parse_json(raw_text)

    def generate_mission(self, level: GradeLevel) -> Mission:
        """Generate a lesson plan for the level. Never raises."""
        difficulty = level.difficulty
        prompt = MISSION.format(
            difficulty=difficulty,
            level=level.value,
            context=LEVEL_CONTEXT[level],
        )
        try:
            data = self._request_json(
                self.model, prompt, temperature=settings.MISSION_TEMPERATURE
            )
            if not isinstance(data, dict):
                raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
            data = {**data, "id": next_id(), "difficulty": difficulty}
            mission = Mission.model_validate(data)
        except Exception as e:
            log.error(f"Error generating mission, using fallback: {e}")
            return fallback_mission(level)
        log.info(f"Generated mission: {mission.title}")
        return mission

    def create_conversation(self, level: GradeLevel, mission: Mission) -> ChatSession:
        return ChatSession(
            mission_id=mission.id,
            level=level,
            instructions=build_mentor_prompt(level, mission),
        )

    def send_turn(self, session: ChatSession, text: str) -> TurnReply:
        """Send one turn. The session only advances when the call succeeds."""
        extra: dict[str, Any] = {}
        if session.previous_response_id:
            extra["previous_response_id"] = session.previous_response_id
        try:
            response = self.client.responses.create(
                model=self.model,
                instructions=session.instructions,
                input=text,
                tools=[{"type": "web_search"}],
                **extra,
            )
            reply = TurnReply(
                text=response.output_text or "",
                grounding_links=extract_grounding_links(response),
            )
        except Exception as e:
            raise GenerationError("send_turn", e) from e
        session.previous_response_id = response.id
        return reply

    def _illustrate(self, context: str, variant: str) -> Optional[str]:
        try:
            result = self.client.images.generate(
                model=self.image_model,
                prompt=ILLUSTRATION.format(context=context, variant=variant),
                size=settings.OPENAI_IMAGE_SIZE,
                n=1,
            )
            for image in result.data or []:
                if image.b64_json:
                    return f"data:image/png;base64,{image.b64_json}"
        except Exception as e:
            log.error(f"Image generation failed ({variant}): {e}")
        return None

    def generate_illustrations(self, excerpt: str) -> list[str]:
        """Three variants in parallel; failed variants are dropped, not retried."""
        with concurrent.futures.ThreadPoolExecutor(max_workers=len(ILLUSTRATION_VARIANTS)) as executor:
            results = list(
                executor.map(lambda v: self._illustrate(excerpt, v), ILLUSTRATION_VARIANTS)
            )
        return [image for image in results if image]

    def draft_thesis(
        self,
        mission: Mission,
        history: list[Message],
        decisions: list[MicroDecision],
        level: GradeLevel,
    ) -> dict[str, str]:
        """Return whichever thesis fields the model produced, keyed by field name."""
        history_text = "\n".join(f"{m.role}: {m.text}" for m in history)
        decisions_text = "\n".join(
            f"Decision: {d.decision} (Reason: {d.reasoning})" for d in decisions
        )
        prompt = THESIS.format(
            title=mission.title,
            level=level.value,
            history=history_text,
            decisions=decisions_text or "(no decisions logged)",
            warm_up=mission.warm_up_question,
            follow_ups="; ".join(mission.follow_up_questions),
        )
        try:
            data = self._request_json(self.fast_model, prompt)
        except Exception as e:
            raise GenerationError("draft_thesis", e) from e
        if not isinstance(data, dict):
            raise GenerationError("draft_thesis", ValueError("Expected a JSON object"))

        by_key = {}
        for name, field in ThesisDocument.model_fields.items():
            by_key[name] = name
            if field.alias:
                by_key[field.alias] = name
        draft = {}
        for key, value in data.items():
            if key in by_key and isinstance(value, str):
                draft[by_key[key]] = value
        return draft

    def compile_slides(
        self, thesis: ThesisDocument, level: GradeLevel
    ) -> Optional[list[Slide]]:
        """Build the content slides. Returns None when the payload has no "slides" array."""
        prompt = SLIDES.format(
            level=level.value,
            data=thesis.model_dump_json(by_alias=True),
        )
        try:
            data = self._request_json(self.fast_model, prompt)
        except Exception as e:
            raise GenerationError("compile_slides", e) from e

        raw_slides = data.get("slides") if isinstance(data, dict) else None
        if not isinstance(raw_slides, list):
            log.warning("Slide payload had no slides array")
            return None
        slides = []
        for idx, raw in enumerate(raw_slides, 1):
            if not isinstance(raw, dict):
                continue
            try:
                slides.append(
                    Slide(id=f"slide-{idx}", title=raw.get("title", ""), points=raw.get("points", []))
                )
            except ValidationError as e:
                log.warning(f"Skipping malformed slide {idx}: {e}")
        return slides
