from datetime import date

import pandas as pd
import streamlit as st

from config import load_config
from element_component import confirmation_dialog, get_settings, get_stock, page_setup, refresh_orders
from order_form import ORDER_CREATED_STATE
from domain.models import ORDER_STATUSES
from services import notification_service, order_service, report_service
from services.projection_service import (
    PAGE_SIZE_OPTIONS,
    SORTABLE_COLUMNS,
    ProjectionState,
    group_by_status,
    quick_stats,
    sort_indicator,
)
from utils.dates import format_date, is_overdue
from utils.formatting import format_rupee

user, orders = page_setup("Orders", "📋")
today = date.today()

st.title("📋 Orders")

# -------------------------------------------------------------------
# Session state defaults
# -------------------------------------------------------------------

if "projection" not in st.session_state:
    st.session_state["projection"] = ProjectionState(page_size=load_config().orders_page_size)
    st.session_state["bulk_update_state"] = False
    st.session_state["row_action_state"] = False

projection: ProjectionState = st.session_state["projection"]

if st.session_state["bulk_update_state"]:
    st.success("Bulk status update done")
    st.session_state["bulk_update_state"] = False
if st.session_state["row_action_state"]:
    st.success("Order updated")
    st.session_state["row_action_state"] = False
if st.session_state.get(ORDER_CREATED_STATE):
    st.success("Order saved successfully")
    st.session_state[ORDER_CREATED_STATE] = False

# -------------------------------------------------------------------
# Quick stats + suggestions
# -------------------------------------------------------------------

stats = quick_stats(orders, today)
col_1, col_2, col_3, col_4, col_5 = st.columns(5)
col_1.metric("Total Orders", stats["total"])
col_2.metric("Today", stats["today"])
col_3.metric("Overdue", stats["overdue"])
col_4.metric("Pending Amount", format_rupee(stats["pending_amount"]))
col_5.metric("Revenue", format_rupee(stats["revenue"]))

SUGGESTION_FILTERS = {
    "show_overdue": {"show_overdue_only": True},
    "show_pending": {"show_pending_only": True},
    "show_status_pending": {"status_filter": "Pending"},
}

suggestions = notification_service.build_suggestions(
    orders, get_stock(), low_stock_threshold=get_settings().low_stock_threshold
)
for s in suggestions:
    col_msg, col_btn = st.columns([5, 1])
    col_msg.info(f"💡 {s.message}")
    if col_btn.button("Show", key=f"suggestion_{s.id}"):
        if s.action == "open_stock":
            st.switch_page("pages/5_Stock.py")
        projection.clear_filters()
        projection.set_filters(**SUGGESTION_FILTERS.get(s.action, {}))
        st.rerun()

duplicates = order_service.find_duplicate_bill_numbers(orders)
if duplicates:
    st.warning(
        "Duplicate bill numbers: "
        + ", ".join(f"#{bill} ({len(group)} orders)" for bill, group in sorted(duplicates.items()))
    )

# -------------------------------------------------------------------
# Filters
# -------------------------------------------------------------------

with st.expander("🔍 Filters", expanded=projection.filters.is_active):
    f = projection.filters
    search = st.text_input("Search", value=f.search_term, placeholder="Customer, bill no, phone or design")

    col_a, col_b, col_c = st.columns(3)
    status_options = ["all"] + list(ORDER_STATUSES)
    status = col_a.selectbox(
        "Status",
        status_options,
        index=status_options.index(f.status_filter) if f.status_filter in status_options else 0,
        format_func=lambda s: "All" if s == "all" else s,
    )
    overdue_only = col_b.checkbox("Overdue only", value=f.show_overdue_only)
    pending_only = col_c.checkbox("Pending payment only", value=f.show_pending_only)

    col_d, col_e = st.columns(2)
    delivery_range = col_d.date_input(
        "Delivery date range",
        value=tuple(d for d in (f.delivery_from, f.delivery_to) if d),
        format="DD/MM/YYYY",
    )
    order_range = col_e.date_input(
        "Order date range",
        value=tuple(d for d in (f.order_from, f.order_to) if d),
        format="DD/MM/YYYY",
    )

    def _bounds(value):
        value = tuple(value or ())
        if len(value) == 2:
            return value[0], value[1]
        if len(value) == 1:
            return value[0], None
        return None, None

    delivery_from, delivery_to = _bounds(delivery_range)
    order_from, order_to = _bounds(order_range)

    projection.set_filters(
        search_term=search,
        status_filter=status,
        show_overdue_only=overdue_only,
        show_pending_only=pending_only,
        delivery_from=delivery_from,
        delivery_to=delivery_to,
        order_from=order_from,
        order_to=order_to,
    )

    if projection.filters.is_active and st.button("Clear filters"):
        projection.clear_filters()
        st.rerun()

# -------------------------------------------------------------------
# Sort
# -------------------------------------------------------------------

st.caption("Sort by (click again to flip, third click removes)")
sort_cols = st.columns(len(SORTABLE_COLUMNS))
for col, (key, label) in zip(sort_cols, SORTABLE_COLUMNS.items()):
    indicator = sort_indicator(projection.sort_keys, key)
    if col.button(f"{label} {indicator}".strip(), key=f"sort_{key}", width="stretch"):
        projection.toggle_sort(key)
        st.rerun()

visible = projection.visible(orders, today)
tab_table, tab_board = st.tabs(["Table", "Board"])

# -------------------------------------------------------------------
# Table
# -------------------------------------------------------------------

with tab_table:
    page_size = st.selectbox(
        "Rows per page",
        PAGE_SIZE_OPTIONS,
        index=PAGE_SIZE_OPTIONS.index(projection.page_size) if projection.page_size in PAGE_SIZE_OPTIONS else 0,
    )
    projection.set_page_size(page_size)
    current = projection.apply(orders, today)

    if not current.items:
        st.info("No orders match the current filters." if projection.filters.is_active else "No orders yet.")
    else:
        df = pd.DataFrame([
            {
                "Bill No": o.bill_number,
                "Customer": o.customer_name,
                "Phone": o.phone_number,
                "Designs": ", ".join(o.designs),
                "Total": format_rupee(o.total_amount),
                "Paid": format_rupee(o.paid_amount),
                "Pending": format_rupee(o.pending_amount),
                "Status": o.status,
                "Delivery": format_date(o.delivery_date),
                "Overdue": "⚠️" if is_overdue(o.delivery_date, o.status, today) else "",
                "Order Date": format_date(o.created_at),
            }
            for o in current.items
        ])
        event = st.dataframe(
            df,
            hide_index=True,
            width="stretch",
            on_select="rerun",
            selection_mode="multi-row",
            key=f"orders_table_{current.page}",
        )
        selected = [current.items[i] for i in event.selection.rows if i < len(current.items)]

        st.caption(f"Showing {current.first_index}-{current.last_index} of {current.total} orders")

        col_prev, col_page, col_next = st.columns([1, 2, 1])
        if col_prev.button("◀ Previous", disabled=current.page <= 1):
            projection.set_page(current.page - 1)
            st.rerun()
        col_page.markdown(f"Page **{current.page}** of **{current.total_pages}**")
        if col_next.button("Next ▶", disabled=current.page >= current.total_pages):
            projection.set_page(current.page + 1)
            st.rerun()

        # -------------------------------------------------------------------
        # Actions on the selected rows
        # -------------------------------------------------------------------

        if selected:
            st.subheader(f"Selected: {len(selected)}")
            col_status, col_apply = st.columns([3, 1])
            new_status = col_status.selectbox("New status", ORDER_STATUSES, key="bulk_status")
            if col_apply.button("Apply status", type="primary"):
                ids = [o.id for o in selected]
                confirmation_dialog(
                    {
                        "Orders": ", ".join(f"#{o.bill_number}" for o in selected),
                        "New Status": new_status,
                    },
                    lambda: order_service.bulk_set_status(ids, new_status, user.email),
                    "bulk_update_state",
                    on_success=refresh_orders,
                )

        if len(selected) == 1:
            order = selected[0]
            col_edit, col_print, col_delete = st.columns(3)
            if col_edit.button("✏️ Edit"):
                st.session_state["edit_order_requested"] = order.id
                st.switch_page("pages/3_Edit_Order.py")
            if col_print.button("🖨️ Print / Share"):
                st.session_state["print_order_requested"] = order.id
                st.switch_page("pages/4_Print_Order.py")
            if col_delete.button("🗑️ Delete"):
                confirmation_dialog(
                    {"Bill No": order.bill_number, "Customer": order.customer_name, "Action": "Delete"},
                    lambda: order_service.delete_order(order.id),
                    "row_action_state",
                    on_success=refresh_orders,
                )

    st.download_button(
        "⬇️ Export CSV",
        data=report_service.orders_csv(visible),
        file_name=report_service.orders_csv_filename(today),
        mime="text/csv",
        disabled=not visible,
    )

# -------------------------------------------------------------------
# Board
# -------------------------------------------------------------------


def _move_card(order_id: str, from_status: str, widget_key: str) -> None:
    # fires only when the user picks a new column
    to_status = st.session_state.get(widget_key)
    if not to_status or to_status == from_status:
        return
    ok, msg, _ = order_service.set_status(order_id, to_status, user.email, expected_status=from_status)
    refresh_orders()
    if ok:
        st.session_state["row_action_state"] = True
    else:
        st.session_state["board_error"] = msg


with tab_board:
    board_error = st.session_state.pop("board_error", None)
    if board_error:
        st.error(board_error)

    columns = group_by_status(visible)
    board = st.columns(len(columns))
    for col, (status, group) in zip(board, columns.items()):
        with col:
            st.markdown(f"**{status}** ({len(group)})")
            for o in group:
                with st.container(border=True):
                    st.markdown(f"**#{o.bill_number}** {o.customer_name}")
                    st.caption(f"{format_rupee(o.total_amount)} · due {format_date(o.delivery_date)}")
                    if is_overdue(o.delivery_date, o.status, today):
                        st.caption("⚠️ Overdue")
                    if status not in ORDER_STATUSES:
                        continue
                    widget_key = f"board_{o.id}_{o.status}"
                    st.selectbox(
                        "Move to",
                        ORDER_STATUSES,
                        index=ORDER_STATUSES.index(status),
                        key=widget_key,
                        label_visibility="collapsed",
                        on_change=_move_card,
                        args=(o.id, o.status, widget_key),
                    )
