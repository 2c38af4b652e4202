"""
iSpeaktu Quiz - English Quiz Platform with Verified Progress

Streamlit application for English lesson quizzes. Students take quizzes
lesson by lesson; a teacher verifies passing submissions, sends reminders
and reviews class-wide failure rates. Every tenth lesson a mastery review
gates the next block of lessons.

Usage:
    streamlit run app.py
"""

import logging

import streamlit as st

from ispeaktu.classroom import (
    AppState,
    LessonAvailability,
    STUDENT_ROLE,
    TEACHER_ROLE,
    SessionState,
    student_roster,
)
from ispeaktu.config import Settings, build_cache, build_store, configure_logging
from ispeaktu.errors import (
    AccessDenied,
    BelowThreshold,
    DataUnavailable,
    EmptyLesson,
    LessonLocked,
)
from ispeaktu.viewer import (
    get_quiz_css,
    render_question,
    render_feedback,
    render_quiz_score,
    get_dashboard_css,
    render_stat_cards,
    render_material_card,
    render_lesson_card,
    failure_rates_frame,
    leaderboard_frame,
    pending_frame,
    to_csv_bytes,
)


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------

st.set_page_config(
    page_title="iSpeaktu Quiz",
    page_icon="🎓",
    layout="wide",
    initial_sidebar_state="expanded",
)

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Session State Initialization
# -----------------------------------------------------------------------------

def init_session_state():
    """Initialize session state variables."""
    if "settings" not in st.session_state:
        settings = Settings.from_env()
        configure_logging(settings)
        st.session_state.settings = settings

    if "app" not in st.session_state:
        settings = st.session_state.settings
        try:
            store = build_store(settings)
        except DataUnavailable as e:
            logger.warning(f"Running from cache only: {e}")
            store = None
        app = AppState(store, build_cache(settings), settings.teacher_code)
        app.initialize()
        st.session_state.app = app

    if "view_mode" not in st.session_state:
        st.session_state.view_mode = default_view()

    if "current_material_id" not in st.session_state:
        st.session_state.current_material_id = None

    if "last_record" not in st.session_state:
        st.session_state.last_record = None


def default_view() -> str:
    app = st.session_state.app
    if app.user is None:
        return "login"
    return "review" if app.is_teacher else "dashboard"


def go(view_mode: str):
    st.session_state.view_mode = view_mode
    st.rerun()


# -----------------------------------------------------------------------------
# Sidebar
# -----------------------------------------------------------------------------

def render_sidebar():
    """Render the sidebar with user info and view selection."""
    st.sidebar.title("🎓 iSpeaktu Quiz")
    app = st.session_state.app

    if app.offline:
        st.sidebar.warning("Offline: showing the last saved data.")

    if app.user is None:
        return

    role = "Teacher" if app.is_teacher else "Student"
    st.sidebar.markdown(f"**{app.user.display_name}** · {role}")

    if st.sidebar.button("Refresh data", use_container_width=True):
        app.refresh()
        st.rerun()
    if st.sidebar.button("Log out", use_container_width=True):
        app.logout()
        st.session_state.current_material_id = None
        st.session_state.last_record = None
        go("login")

    st.sidebar.divider()

    if app.is_teacher:
        views = {"Review Queue": "review", "Reminders": "reminders", "Reports": "reports"}
    else:
        views = {"Dashboard": "dashboard"}
        for material in app.materials:
            views[material.name or material.id] = f"material:{material.id}"

    for label, view in views.items():
        if st.sidebar.button(label, key=f"nav_{view}", use_container_width=True):
            open_view(view)


def open_view(view: str):
    if view.startswith("material:"):
        st.session_state.current_material_id = view.split(":", 1)[1]
        view = "material"
    go(view)


# -----------------------------------------------------------------------------
# Login
# -----------------------------------------------------------------------------

def render_login_view():
    st.title("Welcome to iSpeaktu")
    st.markdown("Master English with verified progress tracking and real-time quizzes.")

    app = st.session_state.app
    with st.form("login"):
        name = st.text_input("Your name")
        role = st.radio("I am a", [STUDENT_ROLE, TEACHER_ROLE], horizontal=True,
                        format_func=str.capitalize)
        code = st.text_input("Teacher access code", type="password")
        submitted = st.form_submit_button("Start", type="primary")

    if submitted:
        try:
            app.login(name, role, code or None)
        except AccessDenied as e:
            st.error(str(e))
            return
        except ValueError as e:
            st.warning(str(e))
            return
        go(default_view())


# -----------------------------------------------------------------------------
# Student: Dashboard
# -----------------------------------------------------------------------------

def render_dashboard_view():
    """Render student summary and material cards."""
    app = st.session_state.app
    st.title(f"Hello, {app.user.display_name}")

    summary = app.student_summary()
    st.markdown(get_dashboard_css(), unsafe_allow_html=True)
    st.markdown(render_stat_cards(summary), unsafe_allow_html=True)

    if not app.materials:
        st.info("No materials yet. Ask your teacher to publish a curriculum.")
        return

    st.subheader("Materials")
    for material in app.materials:
        st.markdown(
            render_material_card(material, summary.completion.get(material.id, 0)),
            unsafe_allow_html=True,
        )
        if st.button("Open", key=f"open_{material.id}"):
            open_view(f"material:{material.id}")


# -----------------------------------------------------------------------------
# Student: Material View
# -----------------------------------------------------------------------------

def render_material_view():
    """Render the lesson list of one material with gate status."""
    app = st.session_state.app
    material_id = st.session_state.current_material_id
    try:
        nav = app.navigator(material_id)
    except KeyError:
        st.error("Material not found.")
        return

    material = nav.material
    st.title(material.name)
    if material.description:
        st.markdown(material.description)

    stats = nav.get_progress_summary()
    st.markdown(f"**Progress:** {stats['verified']}/{stats['total_lessons']} lessons verified "
                f"({stats['completion_percent']}%)")
    st.progress(stats['completion_percent'] / 100)

    recommended = nav.get_recommended_lesson_index()
    st.markdown(get_dashboard_css(), unsafe_allow_html=True)

    for item in nav.get_navigation_lessons():
        col1, col2 = st.columns([8, 2])
        with col1:
            st.markdown(render_lesson_card(item, nav.get_status_indicator(item.index)),
                        unsafe_allow_html=True)
        with col2:
            locked = item.availability == LessonAvailability.LOCKED
            label = "Start" if item.record is None else "Retake"
            if st.button(label, key=f"start_{item.lesson.id}", disabled=locked,
                         type="primary" if item.index == recommended else "secondary",
                         use_container_width=True):
                start_lesson_quiz(material.id, item.lesson.id)

        if item.is_milestone:
            render_milestone(nav, item.index)


def render_milestone(nav, milestone_index: int):
    """Mastery review entry point shown after every tenth lesson."""
    app = st.session_state.app
    review = nav.get_review_record(milestone_index)
    with st.container(border=True):
        st.markdown(f"**Mastery Review** · lessons {max(0, milestone_index - 10) + 1}-{milestone_index}")
        if review is None:
            st.caption("Pass this review with 70% or more to unlock the next lessons.")
        elif review.passed:
            st.caption(f"Passed with {review.percent}%.")
        else:
            st.caption(f"Last score {review.percent}%. You need 70% to unlock the next lessons.")

        if st.button("Take mastery review", key=f"review_{nav.material.id}_{milestone_index}",
                     disabled=not nav.is_lesson_available(milestone_index)):
            try:
                app.start_mastery_review(nav.material.id, milestone_index)
            except LessonLocked as e:
                st.warning(f"Locked: {e.reason}")
                return
            except EmptyLesson:
                st.warning("There are no questions to review yet.")
                return
            go("quiz")


def start_lesson_quiz(material_id: str, lesson_id: str):
    app = st.session_state.app
    try:
        app.start_quiz(material_id, lesson_id)
    except LessonLocked as e:
        st.warning(e.reason)
        return
    except EmptyLesson:
        st.warning("This lesson has no questions yet.")
        return
    go("quiz")


# -----------------------------------------------------------------------------
# Student: Quiz
# -----------------------------------------------------------------------------

def render_quiz_view():
    """Render the active quiz one question at a time."""
    app = st.session_state.app
    session = app.quiz
    if session is None:
        go("material" if st.session_state.current_material_id else "dashboard")
        return

    if session.is_completed:
        st.warning("Your result has not been saved yet.")
        if st.button("Save result", type="primary"):
            finish_quiz()
            st.rerun()
        return

    question = session.current_question
    st.markdown(get_quiz_css(), unsafe_allow_html=True)
    st.markdown(
        render_question(question, session.question_index, session.total, session.lesson.title),
        unsafe_allow_html=True,
    )

    answering = session.state == SessionState.ANSWERING
    choice = st.radio(
        "Choose an answer",
        question.options,
        index=None if answering else question.options.index(session.selected_option),
        key=f"choice_{session.lesson.id}_{session.question_index}",
        disabled=not answering,
        label_visibility="collapsed",
    )

    if answering:
        col1, col2 = st.columns([1, 1])
        with col1:
            if st.button("Check answer", type="primary", disabled=choice is None,
                         use_container_width=True):
                session.select_option(choice)
                session.check_answer()
                st.rerun()
        with col2:
            if st.button("Leave quiz", use_container_width=True):
                app.abandon_quiz()
                go("material")
        return

    st.markdown(render_feedback(question, session.last_response), unsafe_allow_html=True)
    last = session.question_index + 1 >= session.total
    if st.button("See results" if last else "Next question", type="primary"):
        if session.advance() == SessionState.COMPLETED:
            finish_quiz()
        st.rerun()


def finish_quiz():
    app = st.session_state.app
    try:
        st.session_state.last_record = app.save_attempt()
    except DataUnavailable as e:
        st.error(f"Could not save your result: {e}")
        return
    st.session_state.view_mode = "result"


def render_result_view():
    record = st.session_state.last_record
    if record is None:
        go("dashboard")
        return

    st.markdown(get_quiz_css(), unsafe_allow_html=True)
    st.markdown(render_quiz_score(record.score, record.total, record.percent, record.passed),
                unsafe_allow_html=True)

    if record.is_mastery_review:
        if record.passed:
            st.success("Mastery review passed. The next lessons are unlocked.")
        else:
            st.info("Score 70% or more on the mastery review to unlock the next lessons.")
    elif record.verified:
        st.success("This lesson is already verified by your teacher.")
    elif record.passed:
        st.info("Submitted. Your teacher will verify this lesson.")

    if st.button("Back to lessons", type="primary"):
        st.session_state.last_record = None
        go("material")


# -----------------------------------------------------------------------------
# Teacher: Review Queue
# -----------------------------------------------------------------------------

def render_review_view():
    """Render pending submissions with approve buttons."""
    app = st.session_state.app
    st.title("Review Queue")

    search = st.text_input("Search by student or lesson", placeholder="e.g., Ana, Past Simple")
    pending = app.pending_submissions(search)
    st.markdown(f"**{len(pending)} submissions awaiting verification**")

    if not pending:
        st.info("Nothing to review.")
        return

    frame = pending_frame(pending, app.materials)
    for record, row in zip(pending, frame.to_dict("records")):
        col1, col2, col3 = st.columns([4, 2, 2])
        with col1:
            st.markdown(f"**{row['Student']}** · {row['Material']} / {row['Lesson']}")
            st.caption(row["Submitted"])
        with col2:
            st.markdown(f"{row['Score']} ({row['Percent']}%)")
        with col3:
            if st.button("Approve", key=f"verify_{record.id}", disabled=not record.passed,
                         use_container_width=True):
                try:
                    app.verify(record.id)
                except BelowThreshold as e:
                    st.error(str(e))
                    return
                except DataUnavailable as e:
                    st.error(f"Could not verify: {e}")
                    return
                st.rerun()


# -----------------------------------------------------------------------------
# Teacher: Reminders
# -----------------------------------------------------------------------------

def render_reminders_view():
    app = st.session_state.app
    st.title("Reminders")

    roster = student_roster(app.progress)
    if not roster or not app.materials:
        st.info("Reminders become available once students have taken quizzes.")
        return

    names = dict(roster)
    col1, col2, col3 = st.columns(3)
    with col1:
        student_id = st.selectbox("Student", [uid for uid, _ in roster], format_func=names.get)
    with col2:
        material = st.selectbox("Material", app.materials, format_func=lambda m: m.name or m.id)
    with col3:
        lesson = st.selectbox("Lesson", material.lessons, format_func=lambda l: l.title or l.id)

    if lesson is not None and st.button("Send reminder", type="primary"):
        try:
            app.send_reminder(student_id, lesson.id, material.id)
        except DataUnavailable as e:
            st.error(f"Could not send reminder: {e}")
            return
        st.success(f"Reminder sent to {names[student_id]}.")

    st.divider()
    st.subheader("Open reminders")
    if not app.reminders:
        st.caption("No open reminders.")
    for reminder in app.reminders:
        col1, col2 = st.columns([8, 2])
        with col1:
            st.markdown(f"**{names.get(reminder.student_id, reminder.student_id)}** · {reminder.lesson_id}")
        with col2:
            if st.button("Cancel", key=f"cancel_{reminder.id}", use_container_width=True):
                app.cancel_reminder(reminder.student_id, reminder.lesson_id)
                st.rerun()


# -----------------------------------------------------------------------------
# Teacher: Reports
# -----------------------------------------------------------------------------

def render_reports_view():
    """Render failure-rate report and leaderboard with CSV export."""
    app = st.session_state.app
    st.title("Reports")

    tab1, tab2 = st.tabs(["Failure Rates", "Leaderboard"])

    with tab1:
        frame = failure_rates_frame(app.failure_report())
        if frame.empty:
            st.info("No quiz attempts yet.")
        else:
            st.dataframe(frame, hide_index=True, use_container_width=True)
            st.download_button("Download CSV", to_csv_bytes(frame),
                               file_name="failure_rates.csv", mime="text/csv")

    with tab2:
        frame = leaderboard_frame(app.leaderboard())
        if frame.empty:
            st.info("No verified lessons yet.")
        else:
            st.dataframe(frame, hide_index=True, use_container_width=True)
            st.download_button("Download CSV", to_csv_bytes(frame),
                               file_name="leaderboard.csv", mime="text/csv")


# -----------------------------------------------------------------------------
# Main App
# -----------------------------------------------------------------------------

STUDENT_VIEWS = {
    "dashboard": render_dashboard_view,
    "material": render_material_view,
    "quiz": render_quiz_view,
    "result": render_result_view,
}

TEACHER_VIEWS = {
    "review": render_review_view,
    "reminders": render_reminders_view,
    "reports": render_reports_view,
}


def main():
    """Main application entry point."""
    init_session_state()
    render_sidebar()

    app = st.session_state.app
    if app.user is None:
        render_login_view()
        return

    views = TEACHER_VIEWS if app.is_teacher else STUDENT_VIEWS
    render = views.get(st.session_state.view_mode)
    if render is None:
        st.session_state.view_mode = default_view()
        render = views[st.session_state.view_mode]
    render()


if __name__ == "__main__":
    main()
