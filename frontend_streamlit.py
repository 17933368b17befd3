import streamlit as st
import pandas as pd

from client.app_state import AppState
from client.errors import AskQLError, SessionExpiredError, ValidationError
from client.health_probe import HealthStatus
from config import API_URL, TABLE_ALIAS, configure_logging
from models.query_models import QueryMode, UploadCandidate

# ========================
# CONFIG
# ========================
st.set_page_config(
    page_title="AskQL - Query Your Data",
    layout="wide"
)

# ========================
# STATE VARIABLES
# ========================
if "app" not in st.session_state:
    configure_logging()
    st.session_state.app = AppState(API_URL)

if "view" not in st.session_state:
    st.session_state.view = "upload"

if "query_text" not in st.session_state:
    st.session_state.query_text = ""

if "natural_mode" not in st.session_state:
    st.session_state.natural_mode = False

if "preview" not in st.session_state:
    st.session_state.preview = None

if "notice" not in st.session_state:
    st.session_state.notice = None

app: AppState = st.session_state.app

# Query view is only reachable with an active session
if st.session_state.view == "query" and not app.sessions.is_active:
    st.session_state.view = "upload"


# ========================
# CALLBACKS
# ========================
def go_to_query_view():
    st.session_state.view = "query"
    st.session_state.preview = None
    st.session_state.query_text = ""
    st.session_state.natural_mode = False
    app.queries.set_mode(QueryMode.SQL)


def end_session():
    app.sessions.end_session()
    if app.sessions.last_termination_error is not None:
        st.session_state.notice = "Session closed locally; the server did not confirm the cleanup."
    st.session_state.view = "upload"
    st.session_state.preview = None


def sync_mode():
    app.queries.set_mode(QueryMode.NATURAL if st.session_state.natural_mode else QueryMode.SQL)


def replay(index: int):
    selection = app.queries.replay(index)
    st.session_state.query_text = selection.query
    st.session_state.natural_mode = selection.mode == QueryMode.NATURAL


# ========================
# HEADER
# ========================
left, right = st.columns([4, 1])
with left:
    st.title("ASKQL")
with right:
    status = app.health.check()
    badge = {
        HealthStatus.CONNECTED: "🟢 Backend connected",
        HealthStatus.FAILED: "🟠 Backend unhealthy",
        HealthStatus.ERROR: "🔴 Backend unreachable",
    }[status]
    st.caption(badge)
    st.caption("● Session Active" if app.sessions.is_active else "○ Session Inactive")

if st.session_state.notice:
    st.info(st.session_state.notice)
    st.session_state.notice = None


# ========================
# 1. UPLOAD VIEW
# ========================
def render_upload_view():
    st.header("Query Your Data")
    st.markdown("Upload a CSV file, then ask questions about it in SQL or plain English.")

    uploaded_file = st.file_uploader("Drop your CSV file here", type=None)

    if uploaded_file is not None:
        candidate = UploadCandidate(
            filename=uploaded_file.name,
            content=uploaded_file.getvalue(),
            mime_type=uploaded_file.type,
        )
        try:
            app.uploads.select(candidate)
            st.caption(f"{candidate.filename} · {candidate.size / 1024:.2f} KB")
        except ValidationError as e:
            st.warning(e.message)

    col_upload, col_sample = st.columns(2)

    with col_upload:
        ready = app.uploads.selected is not None and uploaded_file is not None
        if st.button("Upload", disabled=not ready or app.uploads.in_flight):
            with st.spinner("Uploading..."):
                try:
                    upload = app.uploads.submit()
                except AskQLError as e:
                    st.error(e.message)
                else:
                    st.success(f"Uploaded {upload.filename}: {upload.rows} rows, {len(upload.columns)} columns")
                    go_to_query_view()
                    st.rerun()

    with col_sample:
        if st.button("Use sample test.csv instead", disabled=app.uploads.in_flight):
            with st.spinner("Uploading sample..."):
                try:
                    app.uploads.submit_sample()
                except AskQLError as e:
                    st.error(e.message)
                else:
                    go_to_query_view()
                    st.rerun()

    st.caption("Supported format: CSV files only")


# ========================
# 2. QUERY VIEW
# ========================
def render_table(rows, empty_text: str):
    if rows:
        st.dataframe(pd.DataFrame(rows), use_container_width=True)
    else:
        st.caption(empty_text)


def render_query_view():
    st.header("Query Your Data")
    st.caption(f"Session ID: {app.sessions.session_id}")
    st.button("End Session", on_click=end_session)

    # ---- Current data ----
    st.subheader("Current Database")
    if st.session_state.preview is None:
        with st.spinner("Loading your data..."):
            try:
                st.session_state.preview = app.queries.load_preview()
            except SessionExpiredError as e:
                st.session_state.notice = e.message
                st.session_state.view = "upload"
                st.rerun()
            except AskQLError as e:
                st.error(e.message)
    preview = st.session_state.preview
    if preview is not None:
        st.caption(f"Your Data ({preview.row_count} rows)")
        render_table(preview.rows, "No data available")

    with st.expander("Table schema"):
        try:
            st.code(app.queries.fetch_schema(), language="text")
        except AskQLError as e:
            st.error(e.message)

    # ---- Query interface ----
    st.subheader("Query Interface")
    st.toggle("Natural Language", key="natural_mode", on_change=sync_mode)
    natural = st.session_state.natural_mode

    with st.expander(f"Query History ({len(app.history)})"):
        if not len(app.history):
            st.caption("No queries yet")
        for i, item in enumerate(app.history):
            label = "Natural Language" if item.type == QueryMode.NATURAL else "SQL"
            st.button(
                f"[{label}] {item.timestamp:%H:%M:%S} · {item.query}",
                key=f"history_{item.id}",
                on_click=replay,
                args=(i,),
            )

    if natural:
        st.info('Ask questions about your data in plain English. Example: "Show me all records where age is greater than 25"')
    else:
        st.info(f"Tip: you can use `{TABLE_ALIAS}` as your table name. Example: `SELECT * FROM {TABLE_ALIAS} WHERE Name = 'John'`")

    st.text_area(
        "Natural Language Query" if natural else "SQL Query",
        key="query_text",
        placeholder="Ask a question about your data in plain English..." if natural else f"SELECT * FROM {TABLE_ALIAS} WHERE...",
        height=120,
    )

    submit_label = "Ask Question" if natural else "Execute Query"
    if st.button(submit_label, disabled=app.queries.in_flight or not st.session_state.query_text.strip()):
        with st.spinner("Processing..." if natural else "Executing..."):
            try:
                app.queries.dispatch(st.session_state.query_text)
            except SessionExpiredError as e:
                st.session_state.notice = e.message
                st.session_state.view = "upload"
                st.rerun()
            except AskQLError as e:
                # execution failures stay on the dispatcher and render below
                if e.message != app.queries.error:
                    st.warning(e.message)

    # ---- Results ----
    if app.queries.error:
        st.error(app.queries.error)

    result = app.queries.result
    if result is not None:
        if result.generated_sql:
            st.markdown("**Generated SQL**")
            st.code(result.generated_sql, language="sql")
            if result.explanation:
                st.caption(result.explanation)
        cached = " · cached" if result.cached else ""
        st.subheader(f"Query Results ({result.row_count} rows · {result.runtime}{cached})")
        render_table(result.rows, "Query returned no rows")


if st.session_state.view == "query":
    render_query_view()
else:
    render_upload_view()
