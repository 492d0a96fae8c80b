# services/order_service.py
import logging
from collections import defaultdict
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional, Tuple

import data_integrator
from data_integrator import ORDERS
from domain.models import (
    COLORED_DUPATTA_TYPES,
    DEFAULT_STATUS,
    ORDER_STATUSES,
    LehengaItem,
    Order,
)
from utils.dates import now_ms, to_storage_date
from utils.formatting import to_float

logger = logging.getLogger(__name__)

BULK_UPDATE_USER = "Bulk Update"
CONCURRENT_EDIT_MESSAGE = (
    "This order was changed by someone else after you opened it. "
    "Reload the order and apply your changes again."
)
STATUS_CHANGED_MESSAGE = "This order's status was changed elsewhere. Reload and try again."


# -------------------------------------------------------------------
# Pure helpers
# -------------------------------------------------------------------

def derive_totals(items: Iterable[LehengaItem], paid: Any) -> Tuple[float, float]:
    """
    total = sum of line amounts, pending = total - paid.
    Non-numeric amounts count as 0.
    """
    total = sum(to_float(item.amount, 0.0) for item in items)
    pending = total - to_float(paid, 0.0)
    return total, pending


def apply_field_change(item: LehengaItem, field_name: str, value: Any) -> LehengaItem:
    """
    Set one field of a line item and blank the fields it governs.
    Returns a new item; the input is left untouched.
    """
    item = replace(item, **{field_name: value})

    if field_name == "blouse_option" and value != "Specific Date":
        item = replace(item, blouse_date="")

    if field_name == "extra_dupatta" and value != "Yes":
        item = replace(item, extra_dupatta_type="", net_dupatta_color="", other_dupatta_type="")

    if field_name == "extra_dupatta_type":
        if value not in COLORED_DUPATTA_TYPES:
            item = replace(item, net_dupatta_color="")
        if value != "Other":
            item = replace(item, other_dupatta_type="")

    if field_name == "stitching_option" and value == "Unstitched":
        item = replace(item, length="", waist="", hip="")

    return item


def validate_order(order: Order) -> Dict[str, str]:
    """
    Check a draft order and return every problem found, keyed by field.
    Line item keys use the 0-based list index, messages the 1-based number.
    An empty dict means the order can be saved.
    """
    errors: Dict[str, str] = {}

    if not (order.customer_name or "").strip():
        errors["customer_name"] = "Customer name is required"
    if not (order.phone_number or "").strip():
        errors["phone_number"] = "Phone number is required"
    if not str(order.bill_number or "").strip():
        errors["bill_number"] = "Bill number is required"

    if order.status and order.status not in ORDER_STATUSES:
        errors["status"] = f"Invalid status: {order.status}"

    if not order.lehenga_details:
        errors["lehenga_items"] = "At least one lehenga is required"

    for i, item in enumerate(order.lehenga_details):
        n = i + 1
        if not (item.design or "").strip():
            errors[f"lehenga_{i}_design"] = f"Design is required for Lehenga {n}"
        if not (item.color or "").strip():
            errors[f"lehenga_{i}_color"] = f"Color is required for Lehenga {n}"
        amount = to_float(item.amount)
        if amount is None or amount <= 0:
            errors[f"lehenga_{i}_amount"] = f"Valid amount is required for Lehenga {n}"
        if not [s for s in item.salesmen if str(s).strip()]:
            errors[f"lehenga_{i}_salesmen"] = f"At least one salesman must be selected for Lehenga {n}"

    raw_paid = order.paid_amount
    paid = to_float(raw_paid)
    if raw_paid not in (None, "") and (paid is None or paid < 0):
        errors["paid_amount"] = "Paid amount must be a valid non-negative number"
    else:
        total, _ = derive_totals(order.lehenga_details, paid)
        if (paid or 0.0) > total:
            errors["paid_amount"] = "Paid amount cannot be greater than total amount"

    return errors


def summarize_errors(errors: Dict[str, str]) -> str:
    if not errors:
        return ""
    if len(errors) == 1:
        return next(iter(errors.values()))
    return f"Please fix {len(errors)} problems: " + "; ".join(errors.values())


def prepare_for_save(order: Order) -> Order:
    """
    Normalise a validated draft: numeric amounts, derived totals, default
    status and DD-MM-YYYY delivery date.
    """
    items = [replace(i, amount=to_float(i.amount, 0.0)) for i in order.lehenga_details]
    paid = to_float(order.paid_amount, 0.0)
    total, pending = derive_totals(items, paid)
    return replace(
        order,
        customer_name=order.customer_name.strip(),
        phone_number=order.phone_number.strip(),
        bill_number=str(order.bill_number).strip(),
        status=order.status or DEFAULT_STATUS,
        delivery_date=to_storage_date(order.delivery_date),
        lehenga_details=items,
        paid_amount=paid,
        total_amount=total,
        pending_amount=pending,
    )


def find_duplicate_bill_numbers(orders: Iterable[Order]) -> Dict[str, List[Order]]:
    groups: Dict[str, List[Order]] = defaultdict(list)
    for order in orders:
        key = str(order.bill_number or "").strip()
        if key:
            groups[key].append(order)
    return {bill: group for bill, group in groups.items() if len(group) > 1}


# -------------------------------------------------------------------
# Remote operations
# -------------------------------------------------------------------

def load_orders() -> Tuple[bool, str, List[Order]]:
    ok, msg, rows = data_integrator.fetch_rows(ORDERS, order_by="createdAt", desc=True)
    if not ok:
        return False, msg, []
    return True, msg, [Order.from_record(r) for r in rows]


def get_order(order_id: str) -> Tuple[bool, str, Optional[Order]]:
    ok, msg, row = data_integrator.fetch_row_by_id(ORDERS, order_id)
    if not ok:
        return False, msg, None
    if row is None:
        return False, "Order not found", None
    return True, msg, Order.from_record(row)


def create_order(order: Order, user: str) -> Tuple[bool, str, Any]:
    """
    Validate and insert a new order.
    Returns (ok, message, Order) on success and (False, message, errors)
    when validation fails; nothing is written in that case.
    """
    errors = validate_order(order)
    if errors:
        return False, summarize_errors(errors), errors

    stamp = now_ms()
    prepared = replace(
        prepare_for_save(order),
        id=None,
        created_at=stamp,
        created_by=user,
        updated_at=stamp,
        updated_by=user,
    )

    ok, msg, row = data_integrator.insert_row(ORDERS, prepared.to_record())
    if not ok:
        return False, f"Could not save order: {msg}", None

    saved = Order.from_record(row) if row else prepared
    logger.info("Order #%s created by %s (id=%s)", saved.bill_number, user, saved.id)
    return True, "Order saved successfully", saved


def update_order(
        order_id: str,
        order: Order,
        user: str,
        expected_updated_at: Any = None,
) -> Tuple[bool, str, Any]:
    """
    Replace every mutable field of an existing order.

    createdAt/createdBy are kept from the stored record. When
    `expected_updated_at` is given, the write only happens if the stored
    updatedAt still has that value.
    """
    errors = validate_order(order)
    if errors:
        return False, summarize_errors(errors), errors

    ok, msg, existing = get_order(order_id)
    if not ok:
        return False, msg, None

    prepared = replace(
        prepare_for_save(order),
        id=None,
        created_at=existing.created_at,
        created_by=existing.created_by,
        updated_at=now_ms(),
        updated_by=user,
    )

    match = None if expected_updated_at is None else {"updatedAt": expected_updated_at}
    ok, msg, row = data_integrator.update_row(ORDERS, order_id, prepared.to_record(), match=match)
    if not ok:
        if match is not None and msg == data_integrator.ROW_NOT_MATCHED:
            return False, CONCURRENT_EDIT_MESSAGE, None
        return False, f"Could not update order: {msg}", None

    saved = Order.from_record(row) if row else replace(prepared, id=order_id)
    logger.info("Order #%s updated by %s (id=%s)", saved.bill_number, user, order_id)
    return True, "Order updated successfully", saved


def _status_patch(status: str, user: str) -> Dict[str, Any]:
    return {"status": status, "updatedAt": now_ms(), "updatedBy": user}


def set_status(
        order_id: str,
        status: str,
        user: str,
        expected_status: Optional[str] = None,
) -> Tuple[bool, str, Optional[Order]]:
    """
    Partial write of status/updatedAt/updatedBy only.
    With `expected_status` the write only lands while the stored status is
    still that value.
    """
    if status not in ORDER_STATUSES:
        return False, f"Invalid status: {status}", None

    match = {"status": expected_status} if expected_status is not None else None
    ok, msg, row = data_integrator.update_row(ORDERS, order_id, _status_patch(status, user), match=match)
    if not ok:
        if msg == data_integrator.ROW_NOT_MATCHED:
            if match:
                return False, STATUS_CHANGED_MESSAGE, None
            return False, "Order not found", None
        return False, f"Could not update status: {msg}", None

    logger.info("Order %s set to %s by %s", order_id, status, user)
    return True, f"Status updated to {status}", Order.from_record(row)


def bulk_set_status(
        order_ids: Iterable[str],
        status: str,
        user: str = BULK_UPDATE_USER,
) -> Tuple[bool, str, int]:
    """
    One statement for every selected order, all-or-nothing.
    Returns (ok, message, number_of_rows_updated).
    """
    ids = list(dict.fromkeys(i for i in order_ids if i))
    if not ids:
        return False, "No orders selected", 0
    if status not in ORDER_STATUSES:
        return False, f"Invalid status: {status}", 0

    ok, msg, rows = data_integrator.update_rows(ORDERS, ids, _status_patch(status, user))
    if not ok:
        return False, f"Bulk update failed, no order was changed: {msg}", 0

    updated = len(rows)
    if updated < len(ids):
        logger.warning("Bulk update to %s: %d of %d orders found", status, updated, len(ids))
        return True, f"{updated} of {len(ids)} orders updated to {status} (the rest no longer exist)", updated
    return True, f"{updated} orders updated to {status}", updated


def delete_order(order_id: str) -> Tuple[bool, str, None]:
    ok, msg, _ = data_integrator.delete_row(ORDERS, order_id)
    if not ok:
        if msg == data_integrator.ROW_NOT_MATCHED:
            return False, "Order not found", None
        return False, f"Could not delete order: {msg}", None
    logger.info("Order %s deleted", order_id)
    return True, "Order deleted", None
