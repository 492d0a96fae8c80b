# services/stock_service.py
import logging
import random
import string
from dataclasses import replace
from typing import Any, List, Optional, Sequence, Tuple

import data_integrator
from data_integrator import STOCK
from domain.models import LehengaItem, StockItem
from utils.formatting import strip_barcode_prefix, to_float

logger = logging.getLogger(__name__)

DEFAULT_LOW_STOCK_THRESHOLD = 5000
IN_STOCK = "In Stock"
LOW_STOCK = "Low Stock"

BARCODE_EXISTS_MESSAGE = "Barcode already exists"


# -------------------------------------------------------------------
# Lookups on an in-memory snapshot
# -------------------------------------------------------------------

def find_by_design(stock_items: Sequence[StockItem], design: str) -> Optional[StockItem]:
    """
    Case-insensitive exact match on design name.
    """
    key = (design or "").strip().lower()
    if not key:
        return None
    for item in stock_items:
        if item.design.strip().lower() == key:
            return item
    return None


def find_by_barcode(stock_items: Sequence[StockItem], barcode: str) -> Optional[StockItem]:
    code = (barcode or "").strip()
    if not code:
        return None
    candidates = {code, strip_barcode_prefix(code)}
    for item in stock_items:
        if item.barcode and item.barcode.strip() in candidates:
            return item
    return None


def autofill_amount(item: LehengaItem, stock_items: Sequence[StockItem]) -> LehengaItem:
    """
    Copy the stock price into a line item when its design is in stock.
    The amount stays editable; this only pre-fills it.
    """
    stock = find_by_design(stock_items, item.design)
    if stock is None:
        return item
    return replace(item, amount=stock.amount)


def search_stock(stock_items: Sequence[StockItem], term: str) -> List[StockItem]:
    term = (term or "").strip().lower()
    if not term:
        return list(stock_items)
    result = []
    for item in stock_items:
        amount_text = f"{item.amount:g}"
        if term in item.design.lower() or term in amount_text or term in item.barcode.lower():
            result.append(item)
    return result


def stock_status(item: StockItem, threshold: float = DEFAULT_LOW_STOCK_THRESHOLD) -> str:
    return LOW_STOCK if item.amount < threshold else IN_STOCK


def generate_barcode(length: int = 8) -> str:
    alphabet = string.ascii_uppercase + string.digits
    return "".join(random.choice(alphabet) for _ in range(length))


# -------------------------------------------------------------------
# Validation
# -------------------------------------------------------------------

def validate_stock_input(design: str, amount: Any) -> Tuple[bool, str, Optional[float]]:
    if not (design or "").strip():
        return False, "Design is required", None
    value = to_float(amount)
    if value is None:
        return False, "Amount is required", None
    if value < 0:
        return False, "Amount cannot be negative", None
    return True, "", value


def _is_unique_violation(message: str) -> bool:
    text = (message or "").lower()
    return "23505" in text or "duplicate key" in text


# -------------------------------------------------------------------
# Remote operations
# -------------------------------------------------------------------

def load_stock() -> Tuple[bool, str, List[StockItem]]:
    ok, msg, rows = data_integrator.fetch_rows(STOCK, order_by="design")
    if not ok:
        return False, msg, []
    return True, msg, [StockItem.from_record(r) for r in rows]


def barcode_taken(barcode: str, exclude_id: Optional[str] = None) -> Tuple[bool, str, bool]:
    try:
        return True, "Checked", data_integrator.is_exist(STOCK, "barcode", barcode, exclude_id=exclude_id)
    except Exception as e:
        logger.error("Barcode check for %s failed: %s", barcode, e)
        return False, f"Could not check barcode: {e}", False


def add_stock_item(design: str, amount: Any, barcode: str = "") -> Tuple[bool, str, Optional[StockItem]]:
    ok, msg, value = validate_stock_input(design, amount)
    if not ok:
        return False, msg, None

    barcode = (barcode or "").strip()
    if barcode:
        ok, msg, taken = barcode_taken(barcode)
        if not ok:
            return False, msg, None
        if taken:
            return False, BARCODE_EXISTS_MESSAGE, None

    item = StockItem(design=design.strip(), amount=value, barcode=barcode)
    ok, msg, row = data_integrator.insert_row(STOCK, item.to_record())
    if not ok:
        # the unique index catches a duplicate that slipped past the check
        if _is_unique_violation(msg):
            return False, BARCODE_EXISTS_MESSAGE, None
        return False, f"Could not add stock item: {msg}", None

    saved = StockItem.from_record(row) if row else item
    logger.info('Stock item "%s" added (barcode=%s)', saved.design, saved.barcode or "-")
    return True, "Stock item added successfully", saved


def update_stock_item(
        item_id: str,
        design: str,
        amount: Any,
        barcode: str = "",
        previous_barcode: Optional[str] = None,
) -> Tuple[bool, str, Optional[StockItem]]:
    ok, msg, value = validate_stock_input(design, amount)
    if not ok:
        return False, msg, None

    barcode = (barcode or "").strip()
    unchanged = previous_barcode is not None and barcode == (previous_barcode or "").strip()
    if barcode and not unchanged:
        ok, msg, taken = barcode_taken(barcode, exclude_id=item_id)
        if not ok:
            return False, msg, None
        if taken:
            return False, BARCODE_EXISTS_MESSAGE, None

    item = StockItem(id=item_id, design=design.strip(), amount=value, barcode=barcode)
    ok, msg, row = data_integrator.update_row(STOCK, item_id, item.to_record())
    if not ok:
        if _is_unique_violation(msg):
            return False, BARCODE_EXISTS_MESSAGE, None
        if msg == data_integrator.ROW_NOT_MATCHED:
            return False, "Stock item not found", None
        return False, f"Could not update stock item: {msg}", None

    logger.info('Stock item %s updated to "%s"', item_id, item.design)
    return True, "Stock item updated successfully", StockItem.from_record(row) if row else item


def delete_stock_item(item_id: str) -> Tuple[bool, str, None]:
    ok, msg, _ = data_integrator.delete_row(STOCK, item_id)
    if not ok:
        if msg == data_integrator.ROW_NOT_MATCHED:
            return False, "Stock item not found", None
        return False, f"Could not delete stock item: {msg}", None
    logger.info("Stock item %s deleted", item_id)
    return True, "Stock item deleted", None
