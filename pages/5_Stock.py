import pandas as pd
import streamlit as st

from element_component import confirmation_dialog, get_settings, get_stock, page_setup, refresh_stock
from services import stock_service
from utils.barcode import barcode_data_uri
from utils.formatting import format_rupee, strip_barcode_prefix

user, orders = page_setup("Stock", "📦")
settings = get_settings()

st.title("📦 Stock")

# -------------------------------------------------------------------
# Session state defaults
# -------------------------------------------------------------------

if "stock_action_state" not in st.session_state:
    st.session_state["stock_action_state"] = False

if st.session_state["stock_action_state"]:
    st.success("Stock updated")
    st.session_state["stock_action_state"] = False

stock_items = get_stock()
threshold = settings.low_stock_threshold

col_1, col_2 = st.columns(2)
col_1.metric("Designs", len(stock_items))
col_2.metric(
    "Low Stock",
    sum(1 for s in stock_items if stock_service.stock_status(s, threshold) == stock_service.LOW_STOCK),
    help=f"Amount below {format_rupee(threshold)}",
)

# -------------------------------------------------------------------
# Add
# -------------------------------------------------------------------


def _generate_barcode():
    st.session_state["new_stock_barcode"] = stock_service.generate_barcode()


with st.expander("➕ Add Stock Item", expanded=not stock_items):
    st.button("🎲 Generate barcode", on_click=_generate_barcode)
    with st.form("add_stock_form", clear_on_submit=True):
        design = st.text_input("Design *")
        amount = st.text_input("Amount (₹) *")
        barcode = st.text_input("Barcode", key="new_stock_barcode")
        if st.form_submit_button("Add", type="primary"):
            ok, msg, _ = stock_service.validate_stock_input(design, amount)
            if not ok:
                st.error(msg)
            else:
                confirmation_dialog(
                    {"Design": design, "Amount": amount, "Barcode": barcode or "-"},
                    lambda: stock_service.add_stock_item(design, amount, barcode),
                    "stock_action_state",
                    on_success=refresh_stock,
                )

# -------------------------------------------------------------------
# Search + table
# -------------------------------------------------------------------

term = st.text_input("🔍 Search stock", placeholder="Design, amount or barcode")
scanned = stock_service.find_by_barcode(stock_items, term)
if scanned is not None:
    st.info(f"Barcode match: **{scanned.design}** at {format_rupee(scanned.amount)}")

matches = stock_service.search_stock(stock_items, term)
if not matches:
    st.info("No stock items found." if term else "No stock items yet.")
    st.stop()

df = pd.DataFrame([
    {
        "Design": s.design,
        "Amount": format_rupee(s.amount),
        "Barcode": s.barcode,
        "Status": stock_service.stock_status(s, threshold),
    }
    for s in matches
])
event = st.dataframe(df, hide_index=True, width="stretch", on_select="rerun", selection_mode="single-row")

if not event.selection.rows or event.selection.rows[0] >= len(matches):
    st.caption("Select a row to edit, delete or show its barcode.")
    st.stop()

item = matches[event.selection.rows[0]]

# -------------------------------------------------------------------
# Selected item
# -------------------------------------------------------------------

col_view, col_edit = st.columns(2)

with col_view:
    st.subheader(item.design)
    if item.barcode:
        uri = barcode_data_uri(item.barcode)
        if uri:
            st.markdown(f'<img src="{uri}" width="260" alt="barcode">', unsafe_allow_html=True)
        st.caption("Barcode to copy into an order (shop prefix removed)")
        st.code(strip_barcode_prefix(item.barcode), language=None)
    else:
        st.caption("No barcode")

with col_edit:
    with st.form(f"edit_stock_form_{item.id}"):
        new_design = st.text_input("Design *", value=item.design)
        new_amount = st.text_input("Amount (₹) *", value=f"{item.amount:g}")
        new_barcode = st.text_input("Barcode", value=item.barcode)
        col_save, col_delete = st.columns(2)
        save = col_save.form_submit_button("💾 Save", type="primary")
        delete = col_delete.form_submit_button("🗑️ Delete")

    if save:
        ok, msg, _ = stock_service.validate_stock_input(new_design, new_amount)
        if not ok:
            st.error(msg)
        else:
            confirmation_dialog(
                {"Design": new_design, "Amount": new_amount, "Barcode": new_barcode or "-"},
                lambda: stock_service.update_stock_item(
                    item.id, new_design, new_amount, new_barcode, previous_barcode=item.barcode
                ),
                "stock_action_state",
                on_success=refresh_stock,
            )
    if delete:
        confirmation_dialog(
            {"Design": item.design, "Action": "Delete"},
            lambda: stock_service.delete_stock_item(item.id),
            "stock_action_state",
            on_success=refresh_stock,
        )
