import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import asyncio
import logging
from datetime import date

import streamlit as st
import pandas as pd
import plotly.graph_objects as go
import plotly.express as px

from portfolio.async_reports import summaries_by_filter
from portfolio.backup import backup_filename, create_backup, parse_backup, validate_backup
from portfolio.csv_import import generate_csv_template, import_rows, parse_csv
from portfolio.events import ACCOUNTS_CHANGED, ENTRIES_CHANGED, FILTER_CHANGED, EventBus
from portfolio.formatting import format_currency, format_date, format_percent
from portfolio.functional import validate_entry
from portfolio.lazy import iter_history, last_values
from portfolio.services import DashboardService, utc_now
from portfolio.settings import AppSettings, load_settings, save_settings, seed_path
from portfolio.transforms import (
    active_accounts,
    add_account,
    add_entries,
    delete_account,
    delete_entry,
    load_seed,
    new_account,
    new_entry,
    parse_amount,
    rename_account,
    toggle_account_active,
    update_entry,
)
from portfolio.windows import TIME_FILTERS, find_filter

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("portfolio.app")

st.set_page_config(page_title="Portfolio Tracker", layout="wide")

if "settings" not in st.session_state:
    st.session_state.settings = load_settings()

if "accounts" not in st.session_state:
    path = seed_path()
    if path.exists():
        st.session_state.accounts, st.session_state.entries = load_seed(str(path))
    else:
        st.session_state.accounts, st.session_state.entries = (), ()

if "filter_id" not in st.session_state:
    st.session_state.filter_id = st.session_state.settings.default_time_filter

service = DashboardService(now_fn=utc_now)


def _store_view(view):
    st.session_state.view = view


def _working_set():
    return st.session_state.accounts, st.session_state.entries, st.session_state.filter_id


if "bus" not in st.session_state:
    st.session_state.bus = EventBus()
    service.bind(st.session_state.bus, _working_set, on_view=_store_view)
    st.session_state.bus.publish(FILTER_CHANGED, {"filter_id": st.session_state.filter_id})


def notify(name: str, **payload):
    st.session_state.bus.publish(name, payload)


def set_entries(entries):
    st.session_state.entries = entries
    notify(ENTRIES_CHANGED, count=len(entries))


def set_accounts(accounts):
    st.session_state.accounts = accounts
    notify(ACCOUNTS_CHANGED, count=len(accounts))


template = "plotly_dark" if st.session_state.settings.dark_mode else "plotly_white"


def chart_frame(points):
    rows = []
    for p in points:
        for name, value in p.accounts.items():
            rows.append({"date": pd.Timestamp(p.date), "account": name, "value": float(value)})
    return pd.DataFrame(rows, columns=["date", "account", "value"])


def history_frame(rows):
    return pd.DataFrame(
        [
            {
                "Date": r.entry_date.isoformat(),
                "Account": r.account_name,
                "Value": format_currency(r.value, 2),
                "Notes": r.notes or "",
                "id": r.entry_id,
            }
            for r in rows
        ],
        columns=["Date", "Account", "Value", "Notes", "id"],
    )


def filter_bar(key: str) -> str:
    ids = [f.id for f in TIME_FILTERS]
    current = st.session_state.filter_id if st.session_state.filter_id in ids else ids[1]
    selected = st.radio(
        "Time window",
        options=ids,
        index=ids.index(current),
        format_func=lambda fid: find_filter(fid).label,
        horizontal=True,
        key=key,
        label_visibility="collapsed",
    )
    if selected != st.session_state.filter_id:
        st.session_state.filter_id = selected
        notify(FILTER_CHANGED, filter_id=selected)
    return selected


menu = st.sidebar.radio(
    "Menu",
    ["🏠 Dashboard", "🔎 Account Detail", "✏️ Data Entry", "📜 History", "💳 Accounts", "📥 Import", "⚙️ Settings"]
)

if menu == "🏠 Dashboard":
    st.title("🏔 Portfolio")
    filter_bar("dashboard_filter")
    view = st.session_state.view
    summary = view.summary

    k1, k2, k3 = st.columns(3)
    with k1:
        st.metric(
            "Total Value",
            format_currency(summary.total_value),
            f"{format_currency(summary.total_change_amount)} ({format_percent(summary.total_change_percent)})",
        )
    with k2:
        st.metric("Accounts", len(summary.accounts))
    with k3:
        st.metric("Last Updated", format_date(summary.last_updated.date()))

    if view.chart:
        df = chart_frame(view.chart)
        fig = px.area(
            df, x="date", y="value", color="account",
            labels={"date": "Date", "value": "Value ($)", "account": "Account"},
            template=template,
        )
        fig.add_trace(go.Scatter(
            x=[pd.Timestamp(p.date) for p in view.chart],
            y=[float(p.total_value) for p in view.chart],
            mode="lines+markers", name="Total", line=dict(width=3),
        ))
        fig.update_layout(margin=dict(t=30, b=10, l=10, r=10))
        st.plotly_chart(fig, use_container_width=True)
    else:
        st.info("No entries in this time window.")

    if summary.accounts:
        cols = st.columns(min(4, len(summary.accounts)))
        for idx, acc in enumerate(summary.accounts):
            with cols[idx % len(cols)]:
                st.metric(
                    acc.name,
                    format_currency(acc.current_value),
                    f"{format_currency(acc.change_amount)} ({format_percent(acc.change_percent)})",
                )
                st.caption(f"Updated {format_date(acc.last_updated.date())}")
    else:
        st.info("Add an account to get started.")

    with st.expander("Compare time windows"):
        comparison = asyncio.run(summaries_by_filter(
            active_accounts(st.session_state.accounts),
            st.session_state.entries,
            [f.id for f in TIME_FILTERS],
            utc_now(),
        ))
        st.dataframe(pd.DataFrame([
            {
                "Window": find_filter(fid).label,
                "Baseline": format_currency(s.total_baseline),
                "Change": format_currency(s.total_change_amount),
                "Change %": format_percent(s.total_change_percent),
            }
            for fid, s in comparison.items()
        ]), use_container_width=True, hide_index=True)

elif menu == "🔎 Account Detail":
    accounts = st.session_state.accounts
    if not accounts:
        st.info("No accounts yet.")
    else:
        names = {a.id: a.name for a in accounts}
        acc_id = st.selectbox("Account", options=list(names), format_func=names.get)
        account = next(a for a in accounts if a.id == acc_id)
        st.title(account.name)
        if account.account_type:
            st.caption(account.account_type)
        filter_bar("detail_filter")

        view = service.compute((account,), st.session_state.entries, st.session_state.filter_id,
                               include_inactive=True)
        acc_summary = view.summary.accounts[0]
        st.metric(
            "Current Value",
            format_currency(acc_summary.current_value, 2),
            f"{format_currency(acc_summary.change_amount, 2)} ({format_percent(acc_summary.change_percent)})",
        )
        if view.chart:
            fig = go.Figure()
            fig.add_trace(go.Scatter(
                x=[pd.Timestamp(p.date) for p in view.chart],
                y=[float(p.total_value) for p in view.chart],
                mode="lines+markers", name=account.name,
            ))
            fig.update_layout(template=template, margin=dict(t=30, b=10, l=10, r=10))
            st.plotly_chart(fig, use_container_width=True)

        st.subheader("Entries")
        st.dataframe(
            history_frame(iter_history(st.session_state.entries, accounts, acc_id)).drop(columns=["id"]),
            use_container_width=True, hide_index=True,
        )

elif menu == "✏️ Data Entry":
    st.title("✏️ Data Entry")
    active = active_accounts(st.session_state.accounts)
    previous = last_values(st.session_state.entries, active)
    if not active:
        st.info("No active accounts.")
    else:
        with st.form("entry_form", clear_on_submit=True):
            entry_date = st.date_input("Entry Date", value=date.today())
            raw_values, raw_notes = {}, {}
            for a in active:
                c1, c2 = st.columns([1, 2])
                with c1:
                    hint = format_currency(previous[a.id], 2) if a.id in previous else "No entries yet"
                    raw_values[a.id] = st.text_input(a.name, placeholder=hint, key=f"val_{a.id}")
                with c2:
                    raw_notes[a.id] = st.text_input("Notes", key=f"note_{a.id}")
            submitted = st.form_submit_button("Save Entries")

        if submitted:
            now = utc_now()
            new = []
            for a in active:
                value = parse_amount(raw_values[a.id])
                if value is None:
                    continue
                candidate = new_entry(a.id, value, entry_date, now, raw_notes[a.id])
                checked = validate_entry(candidate, st.session_state.accounts)
                if checked.is_left():
                    st.error(checked.get_error()["message"])
                    continue
                new.append(candidate)
            if not new:
                st.error("Please enter at least one value")
            else:
                set_entries(add_entries(st.session_state.entries, new))
                st.success(f"Saved {len(new)} entries")

elif menu == "📜 History":
    st.title("📜 History")
    accounts = st.session_state.accounts
    options = ["all"] + [a.id for a in accounts]
    labels = {"all": "All accounts", **{a.id: a.name for a in accounts}}
    chosen = st.selectbox("Account", options=options, format_func=labels.get)
    rows = list(iter_history(st.session_state.entries, accounts, None if chosen == "all" else chosen))
    df = history_frame(rows)
    st.dataframe(df.drop(columns=["id"]), use_container_width=True, hide_index=True)

    if rows:
        st.subheader("Edit entry")
        by_id = {r.entry_id: r for r in rows}
        entry_id = st.selectbox(
            "Entry", options=list(by_id),
            format_func=lambda i: f"{by_id[i].entry_date} · {by_id[i].account_name} · {format_currency(by_id[i].value, 2)}",
        )
        row = by_id[entry_id]
        with st.form("edit_entry"):
            value_text = st.text_input("Value", value=str(row.value))
            new_date = st.date_input("Date", value=row.entry_date)
            notes = st.text_input("Notes", value=row.notes or "")
            c1, c2 = st.columns(2)
            save = c1.form_submit_button("Save")
            remove = c2.form_submit_button("Delete")
        if save:
            value = parse_amount(value_text)
            if value is None:
                st.error("Invalid value")
            else:
                set_entries(update_entry(st.session_state.entries, entry_id,
                                         value=value, entry_date=new_date, notes=notes.strip() or None))
                st.rerun()
        if remove:
            set_entries(delete_entry(st.session_state.entries, entry_id))
            st.rerun()

elif menu == "💳 Accounts":
    st.title("💳 Manage Accounts")
    with st.form("add_account", clear_on_submit=True):
        name = st.text_input("Account name")
        account_type = st.text_input("Type (optional)")
        if st.form_submit_button("Add Account") and name.strip():
            set_accounts(add_account(st.session_state.accounts, new_account(name, utc_now(), account_type)))

    show_inactive = st.checkbox("Show inactive accounts")
    shown = st.session_state.accounts if show_inactive else active_accounts(st.session_state.accounts)
    for a in shown:
        c1, c2, c3, c4 = st.columns([3, 2, 1, 1])
        with c1:
            new_name = st.text_input("Name", value=a.name, key=f"name_{a.id}")
        with c2:
            new_type = st.text_input("Type", value=a.account_type or "", key=f"type_{a.id}")
        with c3:
            if st.button("Deactivate" if a.is_active else "Activate", key=f"toggle_{a.id}"):
                set_accounts(toggle_account_active(st.session_state.accounts, a.id))
                st.rerun()
        with c4:
            if st.button("Delete", key=f"delete_{a.id}"):
                accounts, entries = delete_account(st.session_state.accounts, st.session_state.entries, a.id)
                st.session_state.entries = entries
                set_accounts(accounts)
                st.rerun()
        renamed = rename_account(st.session_state.accounts, a.id, new_name, new_type)
        if renamed != st.session_state.accounts:
            set_accounts(renamed)

elif menu == "📥 Import":
    st.title("📥 Import CSV")
    st.markdown("Columns: `Account Name,Value,Date,Notes (optional)`. Values may include `$` and commas; "
                "dates as YYYY-MM-DD or MM/DD/YYYY. New accounts are created automatically.")
    st.download_button("⬇ Download Template", generate_csv_template(), file_name="import-template.csv",
                       mime="text/csv")
    uploaded = st.file_uploader("CSV file", type=["csv"])
    if uploaded is not None:
        result = parse_csv(uploaded.getvalue().decode("utf-8"))
        if result.invalid:
            st.warning(f"{len(result.invalid)} invalid rows")
            st.table(pd.DataFrame([{"Row": r.row, "Reason": r.reason, "Data": ", ".join(r.data)}
                                   for r in result.invalid]))
        if result.valid:
            st.success(f"{len(result.valid)} valid entries")
            st.dataframe(pd.DataFrame([{"Account": r.account_name, "Value": format_currency(r.value, 2),
                                        "Date": r.date.isoformat(), "Notes": r.notes or ""}
                                       for r in result.valid]), hide_index=True)
            if st.button(f"Import {len(result.valid)} Entries"):
                accounts, new = import_rows(result.valid, st.session_state.accounts, utc_now())
                st.session_state.entries = add_entries(st.session_state.entries, new)
                set_accounts(accounts)
                st.success("Import completed successfully!")

elif menu == "⚙️ Settings":
    st.title("⚙️ Settings")
    current = st.session_state.settings
    ids = [f.id for f in TIME_FILTERS]
    with st.form("settings"):
        dark = st.checkbox("Dark mode", value=current.dark_mode)
        default_filter = st.selectbox("Default time filter", options=ids,
                                      index=ids.index(current.default_time_filter),
                                      format_func=lambda fid: find_filter(fid).label)
        if st.form_submit_button("Save"):
            st.session_state.settings = AppSettings(dark_mode=dark, default_time_filter=default_filter)
            save_settings(st.session_state.settings)
            st.rerun()

    st.header("Backup")
    now = utc_now()
    st.download_button(
        "⬇ Download Backup",
        create_backup(st.session_state.accounts, st.session_state.entries, now),
        file_name=backup_filename(now),
        mime="application/json",
    )
    restore = st.file_uploader("Restore from backup", type=["json"])
    if restore is not None:
        parsed = parse_backup(restore.getvalue().decode("utf-8"))
        if parsed.is_left():
            st.error(parsed.get_error()["message"])
        else:
            backup = parsed.get_or_else(None)
            errors = validate_backup(backup)
            if errors:
                for msg in errors:
                    st.error(msg)
            else:
                st.caption(f"{len(backup.accounts)} accounts, {len(backup.entries)} entries "
                           f"(exported {backup.exported_at})")
                if st.button("Restore"):
                    st.session_state.entries = backup.entries
                    set_accounts(backup.accounts)
                    logger.info("Restored backup with %d entries", len(backup.entries))
                    st.success("Backup restored")
