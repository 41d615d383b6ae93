# streamlit_app.py
"""
Woodframe Books (Streamlit).

Income and expenses per construction project, dashboards with filters,
CSV backup/restore and an optional Gemini financial review. Every change is
written straight through to the persisted ledger slot.
"""

import asyncio

import pandas as pd
import plotly.express as px
import streamlit as st

from analysis import ALL, LedgerFilter, summarize
from assistant import analyze_finances
from codec import decode_document, encode_document, export_filename, get_locale
from errors import InterchangeError, ValidationError
from forms import build_draft
from ledger import open_file_ledger
from logs import configure_logging
from models import TransactionType
from settings import get_settings

settings = get_settings()
configure_logging(settings.log_level, json=settings.log_json)
locale = get_locale(settings.locale)
ledger = open_file_ledger(settings.data_dir, settings.storage_key)

st.set_page_config(page_title="Woodframe Books", layout="wide")


def money(value):
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.0f}"


def _untick(state_key):
    st.session_state[state_key] = False


def confirmed_button(label, key, warning):
    """
    Destructive actions need the box ticked before the button does anything.
    Pressing the button unticks the box, so every action is confirmed anew.
    """
    state_key = f"sure_{key}"
    sure = st.checkbox(warning, key=state_key)
    return st.button(label, key=key, disabled=not sure, on_click=_untick, args=(state_key,))


# -----------------------
# Header & totals
# -----------------------
st.title("Woodframe Books")
st.caption("A rough record beats no record at all.")

totals = ledger.totals()
col1, col2, col3 = st.columns(3)
col1.metric("Balance", money(totals.balance))
col2.metric("Income", money(totals.total_income))
col3.metric("Expenses", money(totals.total_expense))

tab_ledger, tab_dashboard, tab_settings = st.tabs(["Ledger", "Dashboard", "Settings"])

# -----------------------
# Ledger tab
# -----------------------
with tab_ledger:
    st.subheader("New record")
    project_names = {p.id: p.name for p in ledger.projects}
    tx_type = st.radio(
        "Type",
        options=[TransactionType.EXPENSE, TransactionType.INCOME],
        format_func=locale.type_label,
        horizontal=True,
    )
    with st.form("add_tx", clear_on_submit=True):
        c1, c2 = st.columns(2)
        with c1:
            amount = st.text_input("Amount")
            tx_date = st.date_input("Date")
        with c2:
            category = st.selectbox("Category", options=ledger.categories(tx_type), index=None)
            project_id = st.selectbox(
                "Project",
                options=list(project_names),
                format_func=lambda pid: project_names[pid],
                index=None,
            )
        description = st.text_input("Description (optional)")
        if st.form_submit_button("Save"):
            try:
                draft = build_draft(tx_date, amount, tx_type, category, project_id, description)
            except ValidationError as e:
                st.error(str(e))
            else:
                ledger.create_transaction(draft)
                st.success("Saved.")
                st.rerun()

    st.subheader("Journal")
    recent = ledger.recent_transactions()
    if not recent:
        st.info("No records yet.")
    else:
        table = pd.DataFrame([{
            "Date": t.date,
            "Description": t.description,
            "Amount": t.amount if t.is_income else -t.amount,
            "Category": t.category,
            "Project": ledger.project_name(t.project_id, locale.no_project),
        } for t in recent])
        st.dataframe(table, use_container_width=True, hide_index=True)

        with st.expander("Delete a record"):
            labels = {t.id: f"{t.date} · {t.description or t.category} · {money(t.amount)}" for t in recent}
            target = st.selectbox("Record", options=list(labels), format_func=labels.get, key="del_tx")
            if confirmed_button("Delete record", "del_tx_btn", "Sure? This cannot be undone."):
                ledger.delete_transaction(target)
                st.rerun()

# -----------------------
# Dashboard tab
# -----------------------
with tab_dashboard:
    txs = ledger.transactions
    everything = summarize(txs)
    f1, f2, f3 = st.columns(3)
    projects = {ALL: "All projects", **{p.id: p.name for p in ledger.projects}}
    flt = LedgerFilter(
        project=f1.selectbox("Project", options=list(projects), format_func=projects.get),
        expense_category=f2.selectbox("Expense category", options=[ALL] + everything.options.expense),
        income_category=f3.selectbox("Income category", options=[ALL] + everything.options.income),
    )
    summary = summarize(txs, flt)

    if summary.time_series.empty:
        st.info("No records match the filters.")
    else:
        p1, p2 = st.columns(2)
        for col, title, breakdown in (
            (p1, "Expenses by category", summary.expense_by_category),
            (p2, "Income by category", summary.income_by_category),
        ):
            if breakdown:
                frame = pd.DataFrame({"category": list(breakdown), "amount": list(breakdown.values())})
                col.plotly_chart(px.pie(frame, names="category", values="amount", title=title), use_container_width=True)
            else:
                col.info(f"{title}: no data")

        fig_ts = px.bar(
            summary.time_series,
            x="date",
            y=["income", "expense"],
            barmode="group",
            title="Cash flow by date",
            color_discrete_map={"income": "#16a34a", "expense": "#dc2626"},
        )
        fig_ts.update_xaxes(type="category")
        st.plotly_chart(fig_ts, use_container_width=True)

    st.subheader("AI review")
    if st.button("Analyze my finances"):
        with st.spinner("Consulting Gemini..."):
            st.markdown(asyncio.run(analyze_finances(txs, ledger.projects)))

# -----------------------
# Settings tab
# -----------------------
with tab_settings:
    st.subheader("Projects")
    with st.form("add_project", clear_on_submit=True):
        new_project = st.text_input("New project name")
        if st.form_submit_button("Add project") and new_project.strip():
            ledger.create_project(new_project.strip())
            st.rerun()
    for p in ledger.projects:
        c1, c2 = st.columns([4, 1])
        c1.write(p.name)
        if c2.button("Delete", key=f"del_project_{p.id}"):
            st.session_state["pending_project"] = p.id
    pending = st.session_state.get("pending_project")
    if pending and ledger.find_project(pending):
        st.warning(f"Delete project '{ledger.project_name(pending)}'? Its records will be left without a project.")
        if st.button("Confirm delete", key="confirm_project"):
            ledger.delete_project(pending)
            del st.session_state["pending_project"]
            st.rerun()

    st.subheader("Categories")
    for col, tx_type in zip(st.columns(2), (TransactionType.EXPENSE, TransactionType.INCOME)):
        with col:
            st.markdown(f"**{locale.type_label(tx_type)}**")
            with st.form(f"add_cat_{tx_type.value}", clear_on_submit=True):
                name = st.text_input("New category")
                if st.form_submit_button("Add") and name.strip():
                    ledger.create_category(name.strip(), tx_type)
                    st.rerun()
            doomed = st.selectbox("Remove", options=ledger.categories(tx_type), key=f"rm_cat_{tx_type.value}")
            if doomed and confirmed_button("Delete category", f"rm_cat_btn_{tx_type.value}", f"Delete \"{doomed}\"?"):
                ledger.delete_category(doomed, tx_type)
                st.rerun()

    st.subheader("Backup (CSV)")
    st.download_button(
        "Download",
        encode_document(ledger.to_document(), locale).encode("utf-8"),
        file_name=export_filename(),
        mime="text/csv",
    )
    uploaded = st.file_uploader("Restore from CSV", type=["csv"])
    if uploaded is not None:
        try:
            document = decode_document(uploaded.getvalue().decode("utf-8-sig"), locale)
        except (InterchangeError, UnicodeDecodeError) as e:
            st.error(str(e))
        else:
            st.info(f"{len(document.transactions)} records ready. Restoring replaces all current data.")
            if confirmed_button("Restore", "restore_btn", "Replace everything with this file"):
                ledger.replace_all(document)
                st.success(f"Imported {len(document.transactions)} records successfully.")
