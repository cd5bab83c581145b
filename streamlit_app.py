# streamlit_app.py
import pandas as pd
import streamlit as st

from nl2sql_api.client import ask, fetch_schema

# ---------- Page setup ----------
st.set_page_config(page_title="Ask your database", layout="wide")

st.markdown("""
    <style>
    .main .block-container {padding-top: 2rem; padding-bottom: 3rem; max-width: 1200px;}
    .small-muted {color:#6b7280; font-size:13px;}
    .section-title {font-weight:600; font-size: 18px; margin-top: 1rem;}
    </style>
""", unsafe_allow_html=True)

# ---------- Sidebar ----------
with st.sidebar:
    st.header("Settings")
    api_url = st.text_input("API base URL", value="http://127.0.0.1:4000")
    show_sql = st.checkbox("Show generated SQL", value=True)
    enable_csv = st.checkbox("Enable CSV download", value=True)
    st.markdown("<div class='small-muted'>Start the API with <code>nl2sql-api</code>.</div>", unsafe_allow_html=True)

    st.header("Schema")
    reload_schema = st.button("Reload schema")
    if reload_schema or "schema" not in st.session_state:
        res = fetch_schema(api_url)
        st.session_state.schema = res.data.get("schema", "") if res.ok else None
        st.session_state.schema_error = res.error
    if st.session_state.get("schema_error"):
        st.error(st.session_state.schema_error)
    elif st.session_state.get("schema"):
        st.code(st.session_state.schema, language="text")

# ---------- Session state ----------
if "history" not in st.session_state:
    st.session_state.history = []  # {question, sql, notes, df, ms, ok, error}

# ---------- Header ----------
st.title("Ask your database")
st.markdown("<div class='small-muted'>Type a question in English. The system generates a read-only SELECT, checks it, and runs it.</div>", unsafe_allow_html=True)

# ---------- Input row ----------
with st.form("ask"):
    question = st.text_input("Question", value="", placeholder="e.g., list all users")
    run_clicked = st.form_submit_button("Run", type="primary")

# ---------- Execute ----------
if run_clicked and question.strip():
    with st.spinner("Working…"):
        res = ask(api_url, question)
    rows = res.data.get("rows", [])
    st.session_state.history.insert(0, {
        "question": question,
        "sql": res.data.get("sql", ""),
        "notes": res.data.get("notes", ""),
        "df": pd.DataFrame(rows),
        "row_count": res.data.get("rowCount", 0),
        "ms": res.elapsed_ms,
        "ok": res.ok,
        "error": res.error,
    })


def render_item(item, height=420, key=""):
    if not item["ok"]:
        st.error(item["error"] or "The request did not succeed.")
        return
    if show_sql:
        st.markdown("<div class='section-title'>Generated SQL</div>", unsafe_allow_html=True)
        st.code(item["sql"], language="sql")
    if item["notes"]:
        st.caption(item["notes"])
    if item["df"].empty:
        st.info("No rows returned.")
        return
    st.markdown(f"<div class='small-muted'>{item['row_count']} rows</div>", unsafe_allow_html=True)
    st.dataframe(item["df"], use_container_width=True, height=height)
    if enable_csv:
        csv = item["df"].to_csv(index=False).encode("utf-8")
        st.download_button("Download CSV", data=csv, file_name="result.csv", mime="text/csv", key=f"csv{key}")


# ---------- Latest result ----------
if st.session_state.history:
    latest = st.session_state.history[0]
    st.subheader("Result")
    st.markdown(f"<div class='small-muted'>Request finished in {latest['ms']} ms</div>", unsafe_allow_html=True)
    render_item(latest, key="latest")

# ---------- History ----------
st.subheader("History")
if not st.session_state.history:
    st.markdown("<div class='small-muted'>Your recent questions will appear here.</div>", unsafe_allow_html=True)
else:
    for i, item in enumerate(st.session_state.history):
        with st.expander(f"{i+1}. {item['question']}  •  {item['ms']} ms"):
            render_item(item, height=260, key=str(i))
