import streamlit as st

from element_component import confirmation_dialog, get_salesmen, get_stock, page_setup, refresh_orders
from order_form import get_draft, init_draft, order_summary, render_order_form, set_errors
from services import order_service
from utils.dates import format_date

DRAFT_KEY = "edit_order"

user, orders = page_setup("Edit Order", "✏️")

st.title("✏️ Edit Order")

if "edit_order_state" not in st.session_state:
    st.session_state["edit_order_state"] = False
    st.session_state["edit_order_id"] = None
    st.session_state["edit_order_loaded_at"] = None
    st.session_state["edit_order_stale"] = False

if st.session_state["edit_order_state"]:
    st.success("Order updated successfully")
    st.session_state["edit_order_state"] = False

# -------------------------------------------------------------------
# Pick the order
# -------------------------------------------------------------------

if not orders:
    st.info("No orders to edit.")
    st.stop()

by_id = {o.id: o for o in orders}
ids = list(by_id)
requested = (
    st.session_state.pop("edit_order_requested", None)
    or st.query_params.get("order")
    or st.session_state["edit_order_id"]
)

selected_id = st.selectbox(
    "Order",
    ids,
    index=ids.index(requested) if requested in by_id else 0,
    format_func=lambda i: f"#{by_id[i].bill_number} · {by_id[i].customer_name} · {format_date(by_id[i].created_at)}",
)

if selected_id != st.session_state["edit_order_id"] or st.session_state["edit_order_stale"]:
    # fresh read so the edit starts from what is stored now
    ok, msg, order = order_service.get_order(selected_id)
    if not ok:
        st.error(msg)
        st.stop()
    st.session_state["edit_order_id"] = selected_id
    st.session_state["edit_order_stale"] = False
    st.session_state["edit_order_loaded_at"] = order.updated_at
    init_draft(DRAFT_KEY, order, reset=True)

current = get_draft(DRAFT_KEY)
st.caption(
    f"Created {format_date(current.created_at)} by {current.created_by or 'N/A'} · "
    f"last updated {format_date(current.updated_at)} by {current.updated_by or 'N/A'}"
)

# -------------------------------------------------------------------
# Form
# -------------------------------------------------------------------

draft = render_order_form(DRAFT_KEY, get_stock(), get_salesmen())

others = [
    o for o in orders
    if o.id != selected_id and draft.bill_number and str(o.bill_number).strip() == draft.bill_number.strip()
]
if others:
    st.warning(f"Bill number {draft.bill_number} is also used by {len(others)} other order(s).")


def _save():
    return order_service.update_order(
        st.session_state["edit_order_id"],
        get_draft(DRAFT_KEY),
        user.email,
        expected_updated_at=st.session_state["edit_order_loaded_at"],
    )


def _after_save():
    refresh_orders()
    # reload on the next run so the draft carries the new updatedAt
    st.session_state["edit_order_stale"] = True


col_save, col_reload = st.columns([1, 5])

if col_save.button("💾 Update Order", type="primary"):
    errors = order_service.validate_order(draft)
    set_errors(DRAFT_KEY, errors)
    if errors:
        st.rerun()
    else:
        confirmation_dialog(order_summary(draft), _save, "edit_order_state", on_success=_after_save)

if col_reload.button("Discard changes"):
    st.session_state["edit_order_stale"] = True
    st.rerun()
