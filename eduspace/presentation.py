"""Slide deck compilation for the Launchpad stage."""

import logging

from eduspace.exceptions import PreconditionError
from eduspace.models import Slide
from eduspace.services.gateway import ContentGateway
from eduspace.state import SessionStore

log = logging.getLogger(__name__)

TITLE_SLIDE_POINTS = ["ICAN Academy", "EduSpace Project", "Space Orienteering"]
EMPTY_DECK_NOTICE = "No thesis data available to generate presentation."


def title_slide(title: str) -> Slide:
    return Slide(id="title", title=title, points=list(TITLE_SLIDE_POINTS))


class PresentationCompiler:
    def __init__(self, store: SessionStore, gateway: ContentGateway):
        self.store = store
        self.gateway = gateway

    def compile(self) -> list[Slide]:
        """Build the deck: a local title slide followed by the generated slides.

        When the backend returns no slides array the deck stays empty; an empty
        array still yields the title slide.
        """
        thesis = self.store.thesis()
        if not thesis.title.strip():
            raise PreconditionError("Give your thesis a title before launching the presentation.")
        slides = self.gateway.compile_slides(thesis, self.store.grade_level)
        deck = [title_slide(thesis.title), *slides] if slides is not None else []
        self.store.set_slides(deck)
        log.info(f"Compiled deck with {len(deck)} slides")
        return deck


class SlideViewer:
    """Cursor over a deck, clamped to its ends."""

    def __init__(self, slides: list[Slide]):
        self.slides = slides
        self.index = 0

    @property
    def current(self) -> Slide | None:
        return self.slides[self.index] if self.slides else None

    def next(self) -> Slide | None:
        self.index = min(len(self.slides) - 1, self.index + 1) if self.slides else 0
        return self.current

    def prev(self) -> Slide | None:
        self.index = max(0, self.index - 1)
        return self.current
