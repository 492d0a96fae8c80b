from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Sequence

import streamlit as st

from domain.models import (
    BLOUSE_OPTIONS,
    COLORED_DUPATTA_TYPES,
    EXTRA_DUPATTA_OPTIONS,
    EXTRA_DUPATTA_TYPES,
    MAIN_DUPATTA_OPTIONS,
    ORDER_STATUSES,
    PAYMENT_TYPES,
    STITCHING_OPTIONS,
    LehengaItem,
    Order,
    Salesman,
    StockItem,
)
from services import order_service, stock_service
from services.settings_service import active_salesmen
from utils.dates import parse_date, to_storage_date
from utils.formatting import format_rupee, to_float

# fields whose change blanks other fields of the same line item
_GOVERNING_FIELDS = ("blouse_option", "extra_dupatta", "extra_dupatta_type", "stitching_option")

ORDERS_PAGE = "pages/1_Orders.py"
ORDER_CREATED_STATE = "order_created_state"


# -------------------------------------------------------------------
# Draft in session state
# -------------------------------------------------------------------

def init_draft(draft_key: str, order: Optional[Order] = None, reset: bool = False) -> None:
    if reset or draft_key not in st.session_state:
        _clear_widgets(draft_key)
        st.session_state[draft_key] = order or Order(lehenga_details=[LehengaItem()])
        st.session_state[_errors_key(draft_key)] = {}


def get_draft(draft_key: str) -> Order:
    return st.session_state[draft_key]


def set_errors(draft_key: str, errors: Dict[str, str]) -> None:
    st.session_state[_errors_key(draft_key)] = dict(errors or {})


def finish_create(draft_key: str, on_saved: Optional[Callable[[], None]] = None) -> None:
    """
    After a successful create: fresh draft, then back to the order list,
    which shows the success message.
    """
    if on_saved:
        on_saved()
    init_draft(draft_key, reset=True)
    st.session_state[ORDER_CREATED_STATE] = True
    st.switch_page(ORDERS_PAGE)


def _errors_key(draft_key: str) -> str:
    return f"{draft_key}__errors"


def _widget_key(draft_key: str, name: str) -> str:
    return f"{draft_key}__w__{name}"


def _clear_widgets(draft_key: str, prefix: str = "") -> None:
    start = _widget_key(draft_key, prefix)
    for key in [k for k in st.session_state.keys() if str(k).startswith(start)]:
        del st.session_state[key]


def _seed(key: str, value: Any) -> str:
    if key not in st.session_state:
        st.session_state[key] = value
    return key


def _show_error(draft_key: str, name: str) -> None:
    message = st.session_state[_errors_key(draft_key)].get(name)
    if message:
        st.error(message, icon="⚠️")


# -------------------------------------------------------------------
# Callbacks
# -------------------------------------------------------------------

def _amount_text(value: Any) -> str:
    number = to_float(value)
    return "" if number is None else f"{number:g}"


def _on_order_field(draft_key: str, field_name: str, widget_key: str) -> None:
    value = st.session_state[widget_key]
    if field_name == "delivery_date":
        value = to_storage_date(value) if value else ""
    st.session_state[draft_key] = replace(get_draft(draft_key), **{field_name: value})


def _on_item_field(draft_key: str, index: int, field_name: str, widget_key: str,
                   stock_items: Sequence[StockItem]) -> None:
    draft = get_draft(draft_key)
    items = list(draft.lehenga_details)
    value = st.session_state[widget_key]

    if field_name == "amount":
        value = to_float(value)
    elif field_name == "blouse_date":
        value = to_storage_date(value) if value else ""

    item = order_service.apply_field_change(items[index], field_name, value)
    if field_name == "design":
        item = stock_service.autofill_amount(item, stock_items)
        st.session_state.pop(_widget_key(draft_key, f"{index}_amount"), None)
    if field_name in _GOVERNING_FIELDS:
        # blanked fields reseed from the draft on the next run
        for dependent in ("blouse_date", "extra_dupatta_type", "net_dupatta_color",
                          "other_dupatta_type", "length", "waist", "hip"):
            if dependent != field_name and getattr(item, dependent) != getattr(items[index], dependent):
                st.session_state.pop(_widget_key(draft_key, f"{index}_{dependent}"), None)

    items[index] = item
    st.session_state[draft_key] = replace(draft, lehenga_details=items)


def _add_item(draft_key: str) -> None:
    draft = get_draft(draft_key)
    st.session_state[draft_key] = replace(draft, lehenga_details=draft.lehenga_details + [LehengaItem()])


def _remove_item(draft_key: str, index: int) -> None:
    draft = get_draft(draft_key)
    items = [item for i, item in enumerate(draft.lehenga_details) if i != index]
    st.session_state[draft_key] = replace(draft, lehenga_details=items)
    # item widgets are keyed by position
    for i in range(len(items) + 1):
        _clear_widgets(draft_key, f"{i}_")
    set_errors(draft_key, {})


# -------------------------------------------------------------------
# Rendering
# -------------------------------------------------------------------

def _order_fields(draft_key: str) -> None:
    draft = get_draft(draft_key)

    def text(field_name: str, label: str, **kwargs):
        key = _seed(_widget_key(draft_key, field_name), str(getattr(draft, field_name) or ""))
        st.text_input(label, key=key, on_change=_on_order_field, args=(draft_key, field_name, key), **kwargs)

    col_1, col_2, col_3 = st.columns(3)
    with col_1:
        text("customer_name", "Customer Name *")
        _show_error(draft_key, "customer_name")
    with col_2:
        text("phone_number", "Phone Number *", max_chars=15)
        _show_error(draft_key, "phone_number")
    with col_3:
        text("bill_number", "Bill Number *")
        _show_error(draft_key, "bill_number")

    col_4, col_5, col_6 = st.columns(3)
    with col_4:
        key = _seed(_widget_key(draft_key, "delivery_date"), parse_date(draft.delivery_date))
        st.date_input("Delivery Date", key=key, format="DD/MM/YYYY",
                       on_change=_on_order_field, args=(draft_key, "delivery_date", key))
    with col_5:
        key = _seed(_widget_key(draft_key, "status"),
                    draft.status if draft.status in ORDER_STATUSES else ORDER_STATUSES[0])
        st.selectbox("Status", ORDER_STATUSES, key=key,
                     on_change=_on_order_field, args=(draft_key, "status", key))
        _show_error(draft_key, "status")
    with col_6:
        options = list(PAYMENT_TYPES)
        if draft.payment_type and draft.payment_type not in options:
            options.append(draft.payment_type)
        key = _seed(_widget_key(draft_key, "payment_type"), draft.payment_type or options[0])
        st.selectbox("Payment Type", options, key=key,
                     on_change=_on_order_field, args=(draft_key, "payment_type", key))


def _item_fields(draft_key: str, index: int, item: LehengaItem, stock_items: Sequence[StockItem],
                 salesman_names: List[str], removable: bool) -> None:
    n = index + 1

    def wkey(field_name: str, value: Any) -> str:
        return _seed(_widget_key(draft_key, f"{index}_{field_name}"), value)

    def callback_args(field_name: str, key: str):
        return dict(on_change=_on_item_field, args=(draft_key, index, field_name, key, stock_items))

    with st.container(border=True):
        head_1, head_2 = st.columns([5, 1])
        head_1.markdown(f"**Lehenga {n}**")
        if removable:
            head_2.button("🗑️ Remove", key=_widget_key(draft_key, f"item_remove_{index}"),
                          on_click=_remove_item, args=(draft_key, index))

        col_1, col_2, col_3 = st.columns(3)
        with col_1:
            key = wkey("design", item.design)
            st.text_input("Design *", key=key, **callback_args("design", key))
            stock = stock_service.find_by_design(stock_items, item.design)
            if stock is not None:
                st.caption(f"In stock at {format_rupee(stock.amount)}")
            _show_error(draft_key, f"lehenga_{index}_design")
        with col_2:
            key = wkey("color", item.color)
            st.text_input("Color *", key=key, **callback_args("color", key))
            _show_error(draft_key, f"lehenga_{index}_color")
        with col_3:
            key = wkey("amount", _amount_text(item.amount))
            st.text_input("Amount (₹) *", key=key, **callback_args("amount", key))
            _show_error(draft_key, f"lehenga_{index}_amount")

        options = list(dict.fromkeys(salesman_names + list(item.salesmen)))
        key = wkey("salesmen", list(item.salesmen))
        st.multiselect("Salesmen *", options, key=key, **callback_args("salesmen", key))
        _show_error(draft_key, f"lehenga_{index}_salesmen")

        col_4, col_5, col_6, col_7 = st.columns(4)
        with col_4:
            stitching = item.stitching_option if item.stitching_option in STITCHING_OPTIONS else STITCHING_OPTIONS[0]
            key = wkey("stitching_option", stitching)
            st.radio("Stitching", STITCHING_OPTIONS, key=key, horizontal=True,
                     **callback_args("stitching_option", key))
        if item.stitching_option != "Unstitched":
            for col, field_name, label in ((col_5, "length", "Length"), (col_6, "waist", "Waist"),
                                           (col_7, "hip", "Hip")):
                with col:
                    key = wkey(field_name, getattr(item, field_name))
                    st.text_input(label, key=key, **callback_args(field_name, key))

        col_8, col_9, col_10 = st.columns(3)
        with col_8:
            key = wkey("blouse_option", item.blouse_option or None)
            st.selectbox("Blouse", BLOUSE_OPTIONS, key=key, placeholder="Select blouse option",
                         **callback_args("blouse_option", key))
            if item.blouse_option == "Specific Date":
                key = wkey("blouse_date", parse_date(item.blouse_date))
                st.date_input("Blouse Date", key=key, format="DD/MM/YYYY", **callback_args("blouse_date", key))
        with col_9:
            key = wkey("main_dupatta", item.main_dupatta or None)
            st.selectbox("Main Dupatta", MAIN_DUPATTA_OPTIONS, key=key,
                         placeholder="Select dupatta option", **callback_args("main_dupatta", key))
        with col_10:
            extra = item.extra_dupatta if item.extra_dupatta in EXTRA_DUPATTA_OPTIONS else "No"
            key = wkey("extra_dupatta", extra)
            st.radio("Extra Dupatta", EXTRA_DUPATTA_OPTIONS, key=key, horizontal=True,
                     **callback_args("extra_dupatta", key))
            if item.extra_dupatta == "Yes":
                key = wkey("extra_dupatta_type", item.extra_dupatta_type or None)
                st.selectbox("Extra Dupatta Type", EXTRA_DUPATTA_TYPES, key=key,
                             **callback_args("extra_dupatta_type", key))
                if item.extra_dupatta_type in COLORED_DUPATTA_TYPES:
                    key = wkey("net_dupatta_color", item.net_dupatta_color)
                    st.text_input(f"{item.extra_dupatta_type} Color", key=key,
                                  **callback_args("net_dupatta_color", key))
                if item.extra_dupatta_type == "Other":
                    key = wkey("other_dupatta_type", item.other_dupatta_type)
                    st.text_input("Specify Type", key=key, **callback_args("other_dupatta_type", key))


def _payment_fields(draft_key: str) -> None:
    draft = get_draft(draft_key)
    total, pending = order_service.derive_totals(draft.lehenga_details, draft.paid_amount)

    col_1, col_2, col_3 = st.columns(3)
    col_1.metric("Total Amount", format_rupee(total))
    with col_2:
        key = _seed(_widget_key(draft_key, "paid_amount"), _amount_text(draft.paid_amount))
        st.text_input("Paid Amount (₹)", key=key, on_change=_on_order_field,
                      args=(draft_key, "paid_amount", key))
        _show_error(draft_key, "paid_amount")
    col_3.metric("Pending Amount", format_rupee(pending))

    key = _seed(_widget_key(draft_key, "notes"), draft.notes)
    st.text_area("Notes", key=key, on_change=_on_order_field, args=(draft_key, "notes", key))


def render_order_form(draft_key: str, stock_items: Sequence[StockItem], salesmen: Sequence[Salesman]) -> Order:
    """
    Draw the customer, lehenga and payment sections for the draft stored
    under `draft_key` and return the draft as currently edited.
    """
    errors = st.session_state[_errors_key(draft_key)]
    if errors:
        st.error(order_service.summarize_errors(errors))

    _order_fields(draft_key)
    _show_error(draft_key, "lehenga_items")

    st.subheader("👗 Lehenga Details")
    names = [s.name for s in active_salesmen(list(salesmen))]
    if not names:
        st.warning("No active salesmen. Add them on the Settings page.")

    items = get_draft(draft_key).lehenga_details
    for index, item in enumerate(items):
        _item_fields(draft_key, index, item, stock_items, names, removable=len(items) > 1)
    st.button("➕ Add Lehenga", key=_widget_key(draft_key, "item_add"), on_click=_add_item, args=(draft_key,))

    st.subheader("💰 Payment")
    _payment_fields(draft_key)
    return get_draft(draft_key)


def order_summary(order: Order) -> Dict[str, Any]:
    """Key/value rows for the confirmation dialog."""
    total, pending = order_service.derive_totals(order.lehenga_details, order.paid_amount)
    return {
        "Customer": order.customer_name,
        "Phone": order.phone_number,
        "Bill No": order.bill_number,
        "Status": order.status,
        "Delivery Date": to_storage_date(order.delivery_date) or "N/A",
        "Lehengas": ", ".join(order.designs) or "N/A",
        "Total": format_rupee(total),
        "Paid": format_rupee(to_float(order.paid_amount, 0.0)),
        "Pending": format_rupee(pending),
    }
