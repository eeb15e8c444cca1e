"""
CourseDeck - Narrated Slide Course Player

Streamlit front end for the course player. Renders the player's view
snapshot and sends user intents back; all navigation, quiz and progress
logic lives in coursedeck.classroom.

Usage:
    streamlit run app.py
"""

import streamlit as st

from coursedeck.classroom import (
    AudioCatalog,
    CourseLibrary,
    CourseNotFoundError,
    CoursePlayer,
    EnrollmentRegistry,
    NavigationMode,
    NotEnrolledError,
    SQLiteProgressStore,
    WaveFileBackend,
)
from coursedeck.utils import configure_logging, load_config


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------

st.set_page_config(
    page_title="CourseDeck",
    page_icon="🎓",
    layout="wide",
    initial_sidebar_state="expanded",
)


# -----------------------------------------------------------------------------
# Session State Initialization
# -----------------------------------------------------------------------------

def init_session_state():
    """Initialize session state variables."""
    if "config" not in st.session_state:
        st.session_state.config = load_config()
        configure_logging(st.session_state.config.log_level)

    config = st.session_state.config

    if "library" not in st.session_state:
        st.session_state.library = CourseLibrary(config.courses_dir)

    if "store" not in st.session_state:
        st.session_state.store = SQLiteProgressStore(config.progress_db, config.student_id)

    if "enrollment" not in st.session_state:
        st.session_state.enrollment = EnrollmentRegistry(config.progress_db, config.student_id)

    if "player" not in st.session_state:
        st.session_state.player = None
        st.session_state.audio_backend = None


def open_course(course_id: str):
    """Open a course in the player, or explain why it can't be opened."""
    config = st.session_state.config
    content = st.session_state.library.get_course_content(course_id)
    catalog = AudioCatalog.for_course(config.audio_dir, content.audio_base_path if content else "")
    backend = WaveFileBackend()
    try:
        st.session_state.player = CoursePlayer.open(
            course_id,
            st.session_state.library,
            st.session_state.enrollment,
            st.session_state.store,
            catalog.get_audio_url,
            backend,
        )
        st.session_state.audio_backend = backend
    except NotEnrolledError:
        st.session_state.player = None
        st.warning("You are not enrolled in this course.")
        if st.button("Enroll now", type="primary"):
            st.session_state.enrollment.enroll(course_id)
            st.rerun()
    except CourseNotFoundError:
        st.session_state.player = None
        st.error(f"Course not found: {course_id}")


# -----------------------------------------------------------------------------
# Sidebar: Course Outline
# -----------------------------------------------------------------------------

def render_sidebar():
    """Render course picker, progress and the module/slide outline."""
    st.sidebar.title("🎓 CourseDeck")

    library = st.session_state.library
    course_ids = library.list_course_ids()
    if not course_ids:
        st.sidebar.error(f"No courses found in {st.session_state.config.courses_dir}")
        return

    player = st.session_state.player
    current_id = player.content.course_id if player else None
    index = course_ids.index(current_id) if current_id in course_ids else 0
    selected = st.sidebar.selectbox("Course", course_ids, index=index)
    if selected != current_id:
        open_course(selected)
        player = st.session_state.player

    if not player or not player.has_content:
        return

    view = player.view()
    stats = view.stats
    st.sidebar.markdown(
        f"**Progress:** {stats['completed_slides']}/{stats['total_slides']} slides "
        f"({stats['completion_percent']}%)"
    )
    st.sidebar.progress(stats["completion_percent"] / 100)
    st.sidebar.divider()

    render_outline(player)


def render_outline(player: CoursePlayer):
    """Render modules with their slides; clicking a slide jumps to it."""
    nav = player.navigator
    state = player.state
    for module_index, module in enumerate(player.course.modules):
        indices = player.course.module_indices(module_index)
        done = sum(1 for i in indices if nav.is_slide_completed(i))
        marker = "✓ " if nav.is_module_completed(module_index) else ""
        expanded = state.current_index in indices or state.gate_module == module_index
        with st.sidebar.expander(f"{marker}**{module.title}** ({done}/{len(indices)})", expanded=expanded):
            for i in indices:
                entry = player.course[i]
                if i == state.current_index and state.mode == NavigationMode.VIEWING:
                    indicator = "→"
                elif nav.is_slide_completed(i):
                    indicator = "✓"
                else:
                    indicator = "○"
                title = entry.slide.title
                label = f"{indicator} {title[:30] + '...' if len(title) > 30 else title}"
                if st.button(label, key=f"slide_{i}", use_container_width=True):
                    player.jump_to(i)
                    st.rerun()
            if module.has_quiz:
                score = state.quiz_scores.get(module_index)
                st.caption(f"Quiz: {score}%" if score is not None else "Quiz: not taken")


# -----------------------------------------------------------------------------
# Main Content
# -----------------------------------------------------------------------------

def render_player():
    player = st.session_state.player
    if not player:
        st.info("Select a course from the sidebar to begin.")
        return

    view = player.view()
    st.title(view.course_title)

    if view.mode == NavigationMode.EMPTY:
        st.warning("This course has no content yet.")
        return

    if view.mode == NavigationMode.QUIZ_GATE:
        render_quiz(player)
    elif view.mode == NavigationMode.FINISHED:
        st.success("Course complete!")
        scores = view.stats["quiz_scores"]
        if scores:
            for module_index, score in sorted(scores.items()):
                st.markdown(f"- **{player.course.modules[module_index].title}:** {score}%")
    else:
        render_slide(view)
        render_audio(view)

    render_navigation_bar(view)


def render_slide(view):
    """Generic slide display; slide types only differ in their visual payload."""
    slide = view.entry.slide
    st.caption(view.module.title)
    st.header(slide.title)

    visual = slide.visual_content
    if visual.get("heading"):
        st.subheader(visual["heading"])
    if visual.get("subheading"):
        st.markdown(f"*{visual['subheading']}*")
    for point in visual.get("bullet_points") or visual.get("bullets") or []:
        st.markdown(f"- {point}")
    if visual.get("code"):
        st.code(visual["code"], language=visual.get("language", "python"))
    for key in ("pillars", "cells", "steps", "events", "columns"):
        items = visual.get(key) or []
        if items:
            cols = st.columns(min(len(items), 4))
            for idx, item in enumerate(items):
                with cols[idx % len(cols)]:
                    st.markdown(f"**{item.get('title', item.get('date', ''))}**")
                    if item.get("description"):
                        st.markdown(item["description"])
                    for text in item.get("items", []):
                        st.markdown(f"- {text}")

    if slide.narration_script.speakers:
        with st.expander("Narration", expanded=True):
            for line in slide.narration_script.speakers:
                st.markdown(f"**{line.speaker}:** {line.text}")


def render_audio(view):
    transport = view.transport
    if not transport.url:
        return
    if transport.error:
        st.caption("Narration unavailable.")
        return
    st.audio(transport.url)
    if st.button("Mark narration as listened", key=f"listened_{view.entry.global_index}"):
        st.session_state.audio_backend.end()
        st.rerun()


def render_quiz(player: CoursePlayer):
    quiz = player.view().quiz
    if quiz is None:
        return

    st.subheader(quiz.title)
    if quiz.finished:
        render_quiz_results(player, quiz)
        return

    if quiz.intro_text and quiz.question_number == 1 and quiz.selected is None:
        st.markdown(quiz.intro_text)
    st.progress(quiz.question_number / quiz.total_questions)
    st.caption(f"Question {quiz.question_number} of {quiz.total_questions}")
    st.markdown(f"**{quiz.question}**")

    for i, option in enumerate(quiz.options):
        if quiz.selected is None:
            if st.button(option, key=f"quiz_{quiz.module_index}_{quiz.question_number}_{i}", use_container_width=True):
                player.select_option(i)
                st.rerun()
        else:
            prefix = "✅" if i == quiz.selected and quiz.is_correct else ("❌" if i == quiz.selected else "▫️")
            st.markdown(f"{prefix} {option}")

    if quiz.selected is not None:
        if quiz.explanation:
            st.info(quiz.explanation)
        label = "See results" if quiz.is_last else "Next question"
        if st.button(label, type="primary"):
            player.advance_question()
            st.rerun()


def render_quiz_results(player: CoursePlayer, quiz):
    """Score summary and answer review shown before moving on."""
    col1, col2 = st.columns(2)
    col1.metric("Score", f"{quiz.score}%")
    col2.metric("Correct", f"{quiz.correct_count}/{quiz.total_questions}")
    if quiz.passed:
        st.success(f"Passed (needed {quiz.pass_threshold}%)")
    else:
        st.warning(f"Below the {quiz.pass_threshold}% pass mark. You can still continue.")

    for number, result in enumerate(quiz.results, 1):
        marker = "✅" if result["is_correct"] else "❌"
        with st.expander(f"{marker} Question {number}: {result['question']}"):
            st.markdown(f"**Your answer:** {result['options'][result['selected']]}")
            if not result["is_correct"]:
                st.markdown(f"**Correct answer:** {result['options'][result['correct_answer']]}")
            if result["explanation"]:
                st.info(result["explanation"])

    if st.button("Continue", type="primary"):
        player.finish_quiz()
        st.rerun()


def render_navigation_bar(view):
    """Render navigation bar with prev/next buttons."""
    player = st.session_state.player
    st.divider()
    col1, col2, col3 = st.columns([1, 2, 1])

    with col1:
        if view.can_go_back and st.button("← Previous", use_container_width=True):
            player.prev()
            st.rerun()

    with col2:
        st.markdown(f"<center>Slide {view.position} of {view.total_slides}</center>", unsafe_allow_html=True)

    with col3:
        if view.can_go_next and st.button("Next →", use_container_width=True):
            player.next()
            st.rerun()


# -----------------------------------------------------------------------------
# Main App
# -----------------------------------------------------------------------------

def main():
    """Main application entry point."""
    init_session_state()
    render_sidebar()
    render_player()


if __name__ == "__main__":
    main()
