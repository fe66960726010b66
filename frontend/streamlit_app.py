"""Streamlit UI for EduSpace."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import altair as alt
import streamlit as st

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from eduspace.config import settings
from eduspace.conversation import ConversationEngine
from eduspace.decisions import CUSTOM_DECISION
from eduspace.exceptions import GenerationError, PreconditionError
from eduspace.models import AppStage, GradeLevel, Mission
from eduspace.navigator import STAGES, StageNavigator
from eduspace.presentation import EMPTY_DECK_NOTICE, PresentationCompiler, SlideViewer
from eduspace.services.gateway import ContentGateway
from eduspace.services.storage import LocalStorage
from eduspace.state import SessionStore
from eduspace.thesis import THESIS_LABELS, ThesisSynthesizer
from eduspace.ui_utils import (
    TOUR_STEPS,
    chat_role,
    decode_data_uri,
    format_message_markdown,
    level_label,
    merge_mission_list,
    thesis_word_counts,
)

logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s: %(message)s")


@st.cache_resource
def get_gateway() -> ContentGateway:
    return ContentGateway()


def init_state() -> None:
    """Initialize Streamlit session state keys."""
    if "store" not in st.session_state:
        st.session_state["store"] = SessionStore.rehydrate(LocalStorage(settings.STORAGE_PATH))
    store: SessionStore = st.session_state["store"]
    if "engine" not in st.session_state:
        st.session_state["engine"] = ConversationEngine(store, get_gateway())
    st.session_state.setdefault("missions", [])
    st.session_state.setdefault("tour_step", 0)
    st.session_state.setdefault("selected_challenge", None)
    st.session_state.setdefault("show_decision_form", False)
    st.session_state.setdefault("slide_index", 0)
    st.session_state.setdefault("deck_requested", False)


def render_tour(store: SessionStore) -> None:
    step = st.session_state["tour_step"]
    current = TOUR_STEPS[step]
    with st.container(border=True):
        st.caption(f"Step {step + 1} of {len(TOUR_STEPS)}")
        st.subheader(current["title"])
        st.write(current["description"])
        cols = st.columns(3)
        if step > 0 and cols[0].button("Back"):
            st.session_state["tour_step"] = step - 1
            st.rerun()
        last = step == len(TOUR_STEPS) - 1
        if cols[1].button("Launch" if last else "Next", type="primary"):
            if last:
                store.complete_tour()
            else:
                st.session_state["tour_step"] = step + 1
            st.rerun()
        if cols[2].button("Skip Tour"):
            store.complete_tour()
            st.rerun()


def render_sidebar(navigator: StageNavigator) -> None:
    with st.sidebar:
        st.title("ICAN EduSpace")
        for stage, label in STAGES:
            kind = "primary" if navigator.current == stage else "secondary"
            if st.button(label, key=f"nav-{stage.value}", type=kind, use_container_width=True):
                try:
                    navigator.go(stage)
                    if stage == AppStage.LAUNCHPAD:
                        # Rebuild the deck from the latest thesis on every visit.
                        navigator.store.set_slides([])
                        st.session_state["deck_requested"] = False
                    st.rerun()
                except PreconditionError as e:
                    st.warning(e.message)


def render_mission_card(mission: Mission, active_id: str | None, store: SessionStore) -> None:
    with st.container(border=True):
        badge = " (active)" if mission.id == active_id else ""
        st.markdown(f"**{mission.title}**{badge}")
        st.caption(f"{mission.difficulty} · {mission.learning_objective}")
        st.write(mission.description)
        st.caption(" ".join(mission.tags))
        if st.button("Select Mission", key=f"select-{mission.id}"):
            store.select_mission(mission)
            st.session_state["selected_challenge"] = None
            st.session_state["deck_requested"] = False
            st.rerun()


def render_mission_control(store: SessionStore, gateway: ContentGateway) -> None:
    st.header("Mission Control")
    st.caption("Select your rank, then generate a conundrum to solve.")

    level_cols = st.columns(len(GradeLevel))
    for col, level in zip(level_cols, GradeLevel):
        kind = "primary" if store.grade_level == level else "secondary"
        if col.button(level_label(level), key=f"level-{level.name}", type=kind, use_container_width=True):
            store.set_level(level)
            st.rerun()

    if st.button("Generate New Mission", type="primary"):
        with st.spinner("Scanning the galaxy for a conundrum..."):
            mission = gateway.generate_mission(store.grade_level)
        st.session_state["missions"] = [mission, *st.session_state["missions"]]

    active = store.mission
    missions = merge_mission_list(st.session_state["missions"], active)
    if not missions:
        st.info("No missions yet. Generate one to begin.")
        return
    grid = st.columns(2)
    for idx, mission in enumerate(missions):
        with grid[idx % 2]:
            render_mission_card(mission, active.id if active else None, store)


def render_concepts(mission: Mission) -> None:
    if not mission.core_concepts:
        st.caption("No specific concepts loaded.")
        return
    for concept in mission.core_concepts:
        with st.container(border=True):
            st.markdown(f"**{concept.term}**")
            st.caption(concept.definition)


def render_knowledge_base(mission: Mission) -> None:
    st.header("Knowledge Base")
    st.subheader(mission.title)
    st.write(f"**Learning objective:** {mission.learning_objective}")
    st.info("Master these core concepts to solve the current mission effectively.")
    render_concepts(mission)
    if mission.possible_solutions:
        st.markdown("**Approaches engineers have tried**")
        st.markdown("\n".join(f"- {s}" for s in mission.possible_solutions))


def render_chat(store: SessionStore, engine: ConversationEngine) -> None:
    for message in store.history():
        with st.chat_message(chat_role(message.role)):
            st.markdown(format_message_markdown(message.text))
            if message.images:
                st.caption("✨ Idea Train")
                image_cols = st.columns(len(message.images))
                for col, uri in zip(image_cols, message.images):
                    data = decode_data_uri(uri)
                    if data:
                        col.image(data, use_container_width=True)
            if message.grounding_links:
                st.markdown(
                    " · ".join(f"📍 [{link.title}]({link.uri})" for link in message.grounding_links)
                )
    if engine.pending_illustrations and st.button("Refresh Idea Train"):
        st.rerun()


def render_decision_log(store: SessionStore, engine: ConversationEngine, mission: Mission) -> None:
    log_book = engine.decisions
    st.markdown("**Pending Challenges**")
    for idx, challenge in enumerate(log_book.pending_challenges(mission)):
        if st.button(challenge, key=f"challenge-{idx}", use_container_width=True):
            st.session_state["selected_challenge"] = challenge
            st.session_state["show_decision_form"] = True
    if log_book.all_resolved(mission):
        st.success("All core challenges resolved!")
    if st.button("+ Log Custom Decision"):
        st.session_state["selected_challenge"] = None
        st.session_state["show_decision_form"] = True

    if st.session_state["show_decision_form"]:
        challenge = st.session_state["selected_challenge"]
        with st.form("decision-form", clear_on_submit=True):
            st.caption("Challenge Context")
            st.write(challenge or CUSTOM_DECISION)
            decision = st.text_input("My Decision", placeholder="e.g. Construct underground habitat...")
            reasoning = st.text_area(
                "Reasoning", placeholder="Why is this the best option? What are the trade-offs?"
            )
            if st.form_submit_button("Commit Decision"):
                try:
                    with st.spinner("Transmitting decision..."):
                        engine.commit_decision(challenge, decision, reasoning)
                    st.session_state["show_decision_form"] = False
                    st.session_state["selected_challenge"] = None
                    st.rerun()
                except PreconditionError as e:
                    st.warning(e.message)

    st.markdown("**Logged Decisions**")
    entries = log_book.entries()
    if not entries:
        st.caption("No decisions logged yet. Select a challenge above to begin.")
    for entry in entries:
        with st.container(border=True):
            st.caption(entry.question)
            st.markdown(f"**{entry.decision}**")
            st.write(entry.reasoning)


def render_orienteering(store: SessionStore, engine: ConversationEngine, mission: Mission) -> None:
    st.header("Orienteering")
    st.caption(mission.description)
    with st.spinner("Establishing uplink..."):
        engine.ensure_session()

    chat_col, log_col = st.columns([2, 1], gap="large")
    with chat_col:
        render_chat(store, engine)
        quick = st.columns(2)
        with quick[0]:
            with st.expander("Follow-up questions"):
                for idx, question in enumerate(mission.follow_up_questions):
                    if st.button(question, key=f"fq-{idx}"):
                        with st.spinner("Analyzing trajectory..."):
                            engine.send(question)
                        st.rerun()
        with quick[1]:
            with st.expander("Decision challenges"):
                for idx, challenge in enumerate(mission.decision_challenges):
                    if st.button(challenge, key=f"dc-{idx}"):
                        with st.spinner("Analyzing trajectory..."):
                            engine.send(challenge)
                        st.rerun()
        text = st.chat_input("Discuss investigation...")
        if text:
            with st.spinner("Analyzing trajectory..."):
                engine.send(text)
            st.rerun()

    with log_col:
        log_tab, knowledge_tab = st.tabs(["Mission Log", "Knowledge Base"])
        with log_tab:
            render_decision_log(store, engine, mission)
        with knowledge_tab:
            render_concepts(mission)


def render_thesis(store: SessionStore, gateway: ContentGateway, mission: Mission) -> None:
    synthesizer = ThesisSynthesizer(store, gateway)
    st.header("Solution Thesis")
    st.caption(f"Addressing: {mission.description}")

    if st.button("Auto-Draft with AI", type="primary"):
        try:
            with st.spinner("Synthesizing micro-decisions..."):
                synthesizer.draft()
            for field in THESIS_LABELS:
                st.session_state.pop(f"thesis-{field}", None)
            st.rerun()
        except PreconditionError as e:
            st.warning(e.message)
        except GenerationError:
            st.error("Failed to generate draft. Please try again.")

    thesis = store.thesis()
    for field, label in THESIS_LABELS.items():
        current = getattr(thesis, field)
        if field == "title":
            value = st.text_input(label, value=current, key=f"thesis-{field}")
        else:
            value = st.text_area(label, value=current, key=f"thesis-{field}", height=140)
        if value != current:
            synthesizer.update_field(field, value)

    chart = (
        alt.Chart(alt.Data(values=thesis_word_counts(store.thesis())))
        .mark_bar()
        .encode(
            x=alt.X("words:Q", title="Words"),
            y=alt.Y("section:N", title=None, sort=None),
        )
        .properties(height=200)
    )
    st.altair_chart(chart, use_container_width=True)


def render_launchpad(store: SessionStore, gateway: ContentGateway, navigator: StageNavigator) -> None:
    if st.button("← Mission Control"):
        navigator.go(AppStage.MISSION_CONTROL)
        st.rerun()

    if not store.slides() and not st.session_state["deck_requested"]:
        st.session_state["deck_requested"] = True
        try:
            with st.spinner("Compiling presentation..."):
                PresentationCompiler(store, gateway).compile()
            st.session_state["slide_index"] = 0
        except PreconditionError as e:
            st.warning(e.message)
        except GenerationError as e:
            logging.getLogger(__name__).error(f"Slide generation failed: {e}")

    slides = store.slides()
    if not slides:
        st.info(EMPTY_DECK_NOTICE)
        if st.button("Try again"):
            st.session_state["deck_requested"] = False
            st.rerun()
        return

    viewer = SlideViewer(slides)
    viewer.index = min(st.session_state["slide_index"], len(slides) - 1)
    slide = viewer.current
    with st.container(border=True):
        st.title(slide.title)
        for point in slide.points:
            st.markdown(f"### {point}")
    cols = st.columns([1, 3, 1])
    if cols[0].button("◀ Prev"):
        viewer.prev()
        st.session_state["slide_index"] = viewer.index
        st.rerun()
    cols[1].caption(f"Slide {viewer.index + 1} / {len(slides)}")
    if cols[2].button("Next ▶"):
        viewer.next()
        st.session_state["slide_index"] = viewer.index
        st.rerun()


st.set_page_config(page_title="ICAN EduSpace", layout="wide")
init_state()

store: SessionStore = st.session_state["store"]
engine: ConversationEngine = st.session_state["engine"]
gateway = get_gateway()
navigator = StageNavigator(store)

if not store.tour_completed():
    render_tour(store)

if navigator.current != AppStage.LAUNCHPAD:
    render_sidebar(navigator)

mission = store.mission
stage = navigator.current
if stage == AppStage.MISSION_CONTROL or mission is None:
    render_mission_control(store, gateway)
elif stage == AppStage.KNOWLEDGE_BASE:
    render_knowledge_base(mission)
elif stage == AppStage.ORIENTEERING:
    render_orienteering(store, engine, mission)
elif stage == AppStage.THESIS:
    render_thesis(store, gateway, mission)
elif stage == AppStage.LAUNCHPAD:
    render_launchpad(store, gateway, navigator)
