"""
Streamlit Frontend for Sitebook

This is the interface the site supervisor and the two partners use
every day, mostly on a phone.

DESIGN PRINCIPLES:
1. Simple, clear forms with sensible defaults
2. Every number on screen comes from the ledger engine, never stored
3. Clear error messages in simple language
4. Visual feedback for every save, sync and export
5. No hidden actions: derived entries say where to edit them

The UI never computes money itself; it asks BookkeepingService.
"""

from datetime import date

import streamlit as st
from pydantic import ValidationError

from sitebook.config import validate_all_settings
from sitebook.models import (
    AttendanceStatus,
    ExpenseCategory,
    FundingPool,
    IncomeSource,
    LabourPaymentType,
    Partner,
    PaymentMode,
    RecordKind,
    SUB_CATEGORIES,
)
from sitebook.orchestrator import BookkeepingService, create_app_components
from sitebook.queries import DerivedEntryError
from sitebook.services.export import BackupFormatError, build_backup_json, build_csv_report
from sitebook.services.sync import APPS_SCRIPT_SOURCE
from sitebook.validation import RecordValidationError


# Page configuration
st.set_page_config(
    page_title="Sitebook",
    page_icon="🏗️",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
</style>
""", unsafe_allow_html=True)


PAID_BY_OPTIONS = [*Partner, *FundingPool]


def rupees(value) -> str:
    return f"₹{value:,.0f}"


@st.cache_resource
def get_service() -> BookkeepingService:
    """Get or create the bookkeeping service (cached)."""
    return create_app_components(use_sheets_audit=True)


def show_save_outcome(service: BookkeepingService, result) -> None:
    """Render warnings from a successful save."""
    if result.warnings:
        st.warning(service.validator.get_user_friendly_summary(result))
    else:
        st.success("✅ Saved.")


def show_rejection(error: RecordValidationError) -> None:
    st.error("\n".join(f"• {issue.message}" for issue in error.result.errors))


def main():
    """Main application entry point."""
    service = get_service()
    project = service.get_project_settings()

    # Sidebar navigation
    st.sidebar.title(f"🏗️ {project.school_name}")
    if project.location:
        st.sidebar.caption(project.location)
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "💰 Income", "🧾 Expenses", "👷 Labour", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    if st.sidebar.button("🔄 Sync to Google Sheet"):
        with st.spinner("Sending data to your sheet..."):
            result = service.sync_now()
        if result.success:
            st.sidebar.success(result.message)
        else:
            st.sidebar.error(result.message)

    if page == "📊 Dashboard":
        render_dashboard_page(service)
    elif page == "💰 Income":
        render_income_page(service)
    elif page == "🧾 Expenses":
        render_expenses_page(service)
    elif page == "👷 Labour":
        render_labour_page(service)
    elif page == "⚙️ Settings":
        render_settings_page(service)


def render_dashboard_page(service: BookkeepingService):
    """Fund position, partner shares and labour dues."""
    st.title("📊 Dashboard")
    summary = service.summary()
    totals = summary.totals

    col1, col2, col3 = st.columns(3)
    col1.metric("Total Income", rupees(totals.total_income))
    col2.metric("Total Expense", rupees(totals.total_expense))
    col3.metric("Net Balance", rupees(totals.net_balance))

    col1, col2 = st.columns(2)
    col1.metric("Labour Outstanding", rupees(totals.labour_outstanding_total))
    if summary.budget:
        col2.metric("Budget Remaining", rupees(summary.budget_remaining))

    st.markdown("### Partner Contributions")
    for contribution in summary.partners:
        st.markdown(
            f"**{contribution.partner.value}**: {rupees(contribution.total)} "
            f"({contribution.share_percent:.1f}%)  \n"
            f"Direct {rupees(contribution.direct)} · Spent personally {rupees(contribution.spent)}"
        )
        st.progress(min(max(contribution.share_percent / 100, 0.0), 1.0))

    st.markdown("### Labour Dues")
    if not summary.labour_stats:
        st.info("No labourers added yet.")
    else:
        st.dataframe(
            [
                {
                    "Name": s.name,
                    "Work": s.work_type,
                    "Days": float(s.present_days),
                    "OT Hours": float(s.overtime_hours),
                    "Earned": float(s.earned),
                    "Paid": float(s.paid),
                    "Outstanding": float(s.outstanding),
                }
                for s in summary.labour_stats
            ],
            use_container_width=True,
        )


def render_income_page(service: BookkeepingService):
    """Direct funds plus partner out-of-pocket spending, in one feed."""
    st.title("💰 Income")

    with st.expander("➕ Add Direct Income", expanded=False):
        with st.form("income_form", clear_on_submit=True):
            col1, col2 = st.columns(2)
            with col1:
                amount = st.text_input("Amount (₹)")
                source = st.selectbox("Source", list(IncomeSource), format_func=lambda x: x.value)
                paid_by = st.selectbox("Paid By", PAID_BY_OPTIONS, format_func=lambda x: x.value)
            with col2:
                entry_date = st.date_input("Date", value=date.today())
                mode = st.selectbox("Mode", list(PaymentMode), format_func=lambda x: x.value)
                remarks = st.text_input("Remarks")

            if st.form_submit_button("💾 Save Income", type="primary"):
                try:
                    _, result = service.add_income({
                        "amount": amount,
                        "source": source,
                        "paid_by": paid_by,
                        "mode": mode,
                        "remarks": remarks,
                        "date": entry_date,
                    })
                    show_save_outcome(service, result)
                except RecordValidationError as e:
                    show_rejection(e)

    direct_total, spent_total = service.history_totals()
    col1, col2 = st.columns(2)
    col1.metric("Direct Funds", rupees(direct_total))
    col2.metric("Personal Spend", rupees(spent_total))

    search = st.text_input("🔍 Search by name, remark or amount")
    entries = service.history(search)

    if not entries:
        st.info("No transactions yet.")
        return

    for entry in entries:
        col1, col2, col3 = st.columns([4, 1, 1])
        with col1:
            st.markdown(
                f"**{rupees(entry.amount)}** · {entry.paid_by.value} · {entry.date}  \n"
                f"{entry.label} · {entry.remarks or entry.source}"
            )
        with col2:
            if st.button("✏️", key=f"edit_{entry.kind.value}_{entry.id}"):
                if entry.editable:
                    st.session_state["editing_income"] = entry
                else:
                    try:
                        service.edit_history_entry(entry, {})
                    except DerivedEntryError as e:
                        st.warning(str(e))
        with col3:
            if st.button("🗑️", key=f"del_{entry.kind.value}_{entry.id}"):
                try:
                    service.delete_history_entry(entry)
                    st.rerun()
                except DerivedEntryError as e:
                    st.warning(str(e))

    editing = st.session_state.get("editing_income")
    if editing is not None:
        render_income_editor(service, editing)


def render_income_editor(service: BookkeepingService, entry):
    st.markdown("### ✏️ Edit Income")
    with st.form("edit_income_form"):
        amount = st.text_input("Amount (₹)", value=str(entry.amount))
        remarks = st.text_input("Remarks", value=entry.remarks)
        entry_date = st.date_input("Date", value=entry.date)
        if st.form_submit_button("💾 Update"):
            try:
                _, result = service.edit_history_entry(
                    entry,
                    {"amount": amount, "remarks": remarks, "date": entry_date},
                )
                st.session_state.pop("editing_income", None)
                show_save_outcome(service, result)
            except RecordValidationError as e:
                show_rejection(e)


def render_expenses_page(service: BookkeepingService):
    """Expense entry and list."""
    st.title("🧾 Expenses")
    vendors = service.list_records(RecordKind.VENDORS)

    with st.expander("➕ Add Expense", expanded=False):
        category = st.selectbox("Category", list(ExpenseCategory), format_func=lambda x: x.value)
        with st.form("expense_form", clear_on_submit=True):
            col1, col2 = st.columns(2)
            with col1:
                amount = st.text_input("Amount (₹)")
                sub_options = [None, *SUB_CATEGORIES.get(category, ())]
                sub_category = st.selectbox(
                    "Sub Category", sub_options,
                    format_func=lambda x: "—" if x is None else x,
                )
                paid_to = st.text_input("Paid To")
                vendor = st.selectbox(
                    "Vendor", [None, *vendors],
                    format_func=lambda v: "None" if v is None else v.name,
                )
            with col2:
                entry_date = st.date_input("Date", value=date.today())
                paid_by = st.selectbox(
                    "Payment Source", PAID_BY_OPTIONS,
                    index=PAID_BY_OPTIONS.index(FundingPool.PROJECT_BALANCE),
                    format_func=lambda x: x.value,
                )
                mode = st.selectbox("Mode", list(PaymentMode), format_func=lambda x: x.value)
                notes = st.text_input("Notes")

            if st.form_submit_button("💾 Save Expense", type="primary"):
                try:
                    _, result = service.add_expense({
                        "amount": amount,
                        "category": category,
                        "sub_category": sub_category,
                        "paid_to": paid_to or (vendor.name if vendor else ""),
                        "vendor_id": vendor.id if vendor else None,
                        "paid_by": paid_by,
                        "mode": mode,
                        "notes": notes,
                        "date": entry_date,
                    })
                    show_save_outcome(service, result)
                except RecordValidationError as e:
                    show_rejection(e)

    with st.expander("🏪 Vendors"):
        with st.form("vendor_form", clear_on_submit=True):
            name = st.text_input("Vendor Name")
            vendor_category = st.selectbox("Category", list(ExpenseCategory), format_func=lambda x: x.value)
            mobile = st.text_input("Mobile")
            if st.form_submit_button("Add Vendor"):
                try:
                    _, result = service.add_vendor(
                        {"name": name, "category": vendor_category, "mobile": mobile or None}
                    )
                    show_save_outcome(service, result)
                except RecordValidationError as e:
                    show_rejection(e)

    expenses = sorted(service.list_records(RecordKind.EXPENSES), key=lambda e: e.date, reverse=True)
    if not expenses:
        st.info("No expenses yet.")
        return

    for expense in expenses:
        col1, col2 = st.columns([5, 1])
        with col1:
            st.markdown(
                f"**{rupees(expense.amount)}** · {expense.category.value}"
                f"{' / ' + expense.sub_category if expense.sub_category else ''} · {expense.date}  \n"
                f"To {expense.paid_to or '—'} · from {expense.paid_by.value} · {expense.mode.value}"
            )
        with col2:
            if st.button("🗑️", key=f"del_exp_{expense.id}"):
                service.delete_expense(expense.id)
                st.rerun()


def render_labour_page(service: BookkeepingService):
    """Workers, attendance marks and wage payments."""
    st.title("👷 Labour")
    labours = service.list_records(RecordKind.LABOURS)

    tab_workers, tab_attendance, tab_payments = st.tabs(["Workers", "Attendance", "Payments"])

    with tab_workers:
        with st.form("labour_form", clear_on_submit=True):
            col1, col2 = st.columns(2)
            with col1:
                name = st.text_input("Name")
                mobile = st.text_input("Mobile")
            with col2:
                work_type = st.text_input("Work Type", value="Mistry")
                daily_wage = st.text_input("Daily Wage (₹)")
            if st.form_submit_button("➕ Add Worker", type="primary"):
                try:
                    _, result = service.add_labour({
                        "name": name,
                        "mobile": mobile,
                        "work_type": work_type,
                        "daily_wage": daily_wage,
                    })
                    show_save_outcome(service, result)
                except RecordValidationError as e:
                    show_rejection(e)

        stats = {s.labour_id: s for s in service.summary().labour_stats}
        for labour in labours:
            s = stats[str(labour.id)]
            col1, col2 = st.columns([5, 1])
            with col1:
                st.markdown(
                    f"**{labour.name}** ({labour.work_type}) · {rupees(labour.daily_wage)}/day  \n"
                    f"Earned {rupees(s.earned)} · Paid {rupees(s.paid)} · "
                    f"Due **{rupees(s.outstanding)}**"
                )
            with col2:
                if st.button("🗑️", key=f"del_lab_{labour.id}"):
                    service.delete_labour(labour.id)
                    st.rerun()

    if not labours:
        with tab_attendance:
            st.info("Add a worker first.")
            render_attendance_history(service)
        with tab_payments:
            st.info("Add a worker first.")
            render_payment_history(service)
        return

    with tab_attendance:
        with st.form("attendance_form", clear_on_submit=True):
            worker = st.selectbox("Worker", labours, format_func=lambda l: l.name)
            entry_date = st.date_input("Date", value=date.today())
            status = st.radio("Status", list(AttendanceStatus), format_func=lambda x: x.value, horizontal=True)
            overtime = st.number_input("Overtime Hours", min_value=0.0, step=0.5)
            if st.form_submit_button("✅ Mark Attendance", type="primary"):
                try:
                    _, result = service.add_attendance({
                        "labour_id": worker.id,
                        "date": entry_date,
                        "status": status,
                        "overtime_hours": str(overtime),
                    })
                    show_save_outcome(service, result)
                except RecordValidationError as e:
                    show_rejection(e)

        render_attendance_history(service)

    with tab_payments:
        with st.form("payment_form", clear_on_submit=True):
            worker = st.selectbox("Worker", labours, format_func=lambda l: l.name, key="pay_worker")
            amount = st.text_input("Amount (₹)")
            payment_type = st.selectbox(
                "Type", list(LabourPaymentType),
                index=list(LabourPaymentType).index(LabourPaymentType.FULL_PAYMENT),
                format_func=lambda x: x.value,
            )
            paid_by = st.selectbox(
                "Paid From", PAID_BY_OPTIONS,
                index=PAID_BY_OPTIONS.index(FundingPool.PROJECT_BALANCE),
                format_func=lambda x: x.value,
            )
            mode = st.selectbox("Mode", list(PaymentMode), format_func=lambda x: x.value)
            entry_date = st.date_input("Date", value=date.today(), key="pay_date")
            if st.form_submit_button("💸 Record Payment", type="primary"):
                try:
                    _, result = service.add_payment({
                        "labour_id": worker.id,
                        "amount": amount,
                        "type": payment_type,
                        "paid_by": paid_by,
                        "mode": mode,
                        "date": entry_date,
                    })
                    show_save_outcome(service, result)
                except RecordValidationError as e:
                    show_rejection(e)

        render_payment_history(service)


def render_attendance_history(service: BookkeepingService):
    st.markdown("#### Recent Attendance")
    for mark, worker_name in service.attendance_with_workers():
        col1, col2 = st.columns([5, 1])
        with col1:
            overtime_note = f" · OT {mark.overtime_hours}h" if mark.overtime_hours else ""
            st.markdown(f"{mark.date} · **{worker_name}** · {mark.status.value}{overtime_note}")
        with col2:
            if st.button("🗑️", key=f"del_att_{mark.id}"):
                service.delete_attendance(mark.id)
                st.rerun()


def render_payment_history(service: BookkeepingService):
    """Newest first; payments for a removed worker show as Unknown."""
    st.markdown("#### Payment History")
    for payment, worker_name in service.payments_with_workers():
        col1, col2 = st.columns([5, 1])
        with col1:
            st.markdown(
                f"**{rupees(payment.amount)}** · {worker_name} · {payment.date}  \n"
                f"{payment.payment_type.value} · from {payment.paid_by.value} · {payment.mode.value}"
            )
        with col2:
            if st.button("🗑️", key=f"del_pay_{payment.id}"):
                service.delete_payment(payment.id)
                st.rerun()


def render_settings_page(service: BookkeepingService):
    """Project settings, sync setup, backups and reset."""
    st.title("⚙️ Settings")
    project = service.get_project_settings()

    with st.form("project_form"):
        school_name = st.text_input("Project Name", value=project.school_name)
        location = st.text_input("Location", value=project.location)
        budget = st.number_input("Budget (₹)", min_value=0.0, value=float(project.budget), step=10000.0)
        language = st.radio("Language / भाषा", ["en", "hi"], index=["en", "hi"].index(project.language), horizontal=True)
        st.markdown("### Google Sheet Sync")
        sheet_url = st.text_input("Apps Script URL", value=project.google_sheet_url or "")
        sheet_link = st.text_input("Sheet Link", value=project.google_sheet_link or "")
        sync_email = st.text_input("Sheet Owner Email", value=project.sync_email or "")
        auto_sync = st.checkbox("Sync automatically after every entry", value=project.auto_sync)
        if st.form_submit_button("💾 Save Settings", type="primary"):
            try:
                service.update_settings(
                    school_name=school_name,
                    location=location,
                    budget=str(budget),
                    language=language,
                    google_sheet_url=sheet_url or None,
                    google_sheet_link=sheet_link or None,
                    sync_email=sync_email or None,
                    auto_sync=auto_sync,
                )
                st.success("✅ Settings saved.")
            except ValidationError as e:
                st.error(f"Settings not saved: {e.errors()[0]['msg']}")

    if project.google_sheet_link:
        st.markdown(f"[📄 Open Sheet]({project.google_sheet_link})")

    with st.expander("📘 Setup Cloud Sync"):
        st.markdown(
            "In your Google Sheet open **Extensions → Apps Script**, paste the "
            "code below, press **Run** once to grant permission, then "
            "**Deploy** it as a web app and paste the URL above."
        )
        st.code(APPS_SCRIPT_SOURCE, language="javascript")

    st.markdown("### Reports & Backups")
    snapshot = service.snapshot()
    col1, col2 = st.columns(2)
    with col1:
        st.download_button(
            "📥 Download Excel Report",
            data=build_csv_report(snapshot).encode("utf-8"),
            file_name=f"EVS_Full_Report_{date.today().isoformat()}.csv",
            mime="text/csv",
        )
    with col2:
        st.download_button(
            "🗂️ JSON Backup",
            data=build_backup_json(snapshot).encode("utf-8"),
            file_name="EVS_Full_Backup.json",
            mime="application/json",
        )

    uploaded = st.file_uploader("Restore from backup", type=["json"])
    if uploaded is not None and st.button("♻️ Restore"):
        try:
            counts = service.import_backup(uploaded.getvalue())
            st.success(f"✅ Restored {sum(counts.values())} records.")
        except BackupFormatError as e:
            st.error(f"Invalid backup file! {e}")

    st.markdown("### Connection Status")
    status = validate_all_settings()
    for name, key in [("Sheet Sync", "sync"), ("Google Sheets API", "google_sheets")]:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            st.info(f"ℹ️ {name} - {status.get(f'{key}_error', 'Not configured')}")

    st.markdown("---")
    confirm = st.checkbox("I understand this deletes every record")
    if st.button("🗑️ Reset All Data", disabled=not confirm):
        counts = service.reset_all()
        st.warning(f"Deleted {sum(counts.values())} records.")


if __name__ == "__main__":
    main()
