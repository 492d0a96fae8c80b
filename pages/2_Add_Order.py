import streamlit as st

from element_component import confirmation_dialog, get_salesmen, get_stock, page_setup, refresh_orders
from order_form import (
    ORDER_CREATED_STATE,
    finish_create,
    get_draft,
    init_draft,
    order_summary,
    render_order_form,
    set_errors,
)
from services import order_service

DRAFT_KEY = "new_order"

user, orders = page_setup("Add Order", "➕")

st.title("➕ New Order")

init_draft(DRAFT_KEY)

# -------------------------------------------------------------------
# Form
# -------------------------------------------------------------------

draft = render_order_form(DRAFT_KEY, get_stock(), get_salesmen())

duplicates = [o for o in orders if draft.bill_number and str(o.bill_number).strip() == draft.bill_number.strip()]
if duplicates:
    st.warning(f"Bill number {draft.bill_number} is already used by {len(duplicates)} order(s).")


def _save():
    return order_service.create_order(get_draft(DRAFT_KEY), user.email)


col_save, col_reset = st.columns([1, 5])

if col_save.button("💾 Save Order", type="primary"):
    errors = order_service.validate_order(draft)
    set_errors(DRAFT_KEY, errors)
    if errors:
        st.rerun()
    else:
        confirmation_dialog(
            order_summary(draft),
            _save,
            ORDER_CREATED_STATE,
            on_success=lambda: finish_create(DRAFT_KEY, on_saved=refresh_orders),
        )

if col_reset.button("Reset"):
    init_draft(DRAFT_KEY, reset=True)
    st.rerun()
