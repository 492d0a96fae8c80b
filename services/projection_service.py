# services/projection_service.py
import math
import re
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from domain.models import ORDER_STATUSES, Order
from utils.dates import is_overdue, is_within, parse_date, timestamp_ms
from utils.formatting import to_float

ASC = "asc"
DESC = "desc"

SORTABLE_COLUMNS = {
    "billNumber": "Bill No",
    "customerName": "Customer",
    "phoneNumber": "Phone",
    "totalAmount": "Total",
    "pendingAmount": "Pending",
    "status": "Status",
    "deliveryDate": "Delivery Date",
    "createdAt": "Order Date",
}

PAGE_SIZE_OPTIONS = (10, 25, 50, 100)

_AMOUNT_ATTRS = {
    "totalAmount": "total_amount",
    "paidAmount": "paid_amount",
    "pendingAmount": "pending_amount",
}


@dataclass(frozen=True)
class SortKey:
    key: str
    direction: str = DESC


DEFAULT_SORT = (SortKey("createdAt", DESC),)


@dataclass
class OrderFilters:
    search_term: str = ""
    status_filter: str = "all"
    show_overdue_only: bool = False
    show_pending_only: bool = False
    delivery_from: Optional[date] = None
    delivery_to: Optional[date] = None
    order_from: Optional[date] = None
    order_to: Optional[date] = None

    @property
    def is_active(self) -> bool:
        return self != OrderFilters()


@dataclass
class Page:
    items: List[Order]
    page: int
    total_pages: int
    total: int
    page_size: int

    @property
    def first_index(self) -> int:
        """1-based index of the first row on this page, 0 when empty."""
        return (self.page - 1) * self.page_size + 1 if self.total else 0

    @property
    def last_index(self) -> int:
        return min(self.page * self.page_size, self.total)


# -------------------------------------------------------------------
# Filter
# -------------------------------------------------------------------

def matches_search(order: Order, term: str) -> bool:
    term = (term or "").strip().lower()
    if not term:
        return True
    if term in (order.customer_name or "").lower():
        return True
    if term in str(order.bill_number or "").lower():
        return True
    if term in (order.phone_number or "").lower():
        return True
    return any(term in design.lower() for design in order.designs)


def filter_orders(orders: Sequence[Order], filters: OrderFilters, today: Optional[date] = None) -> List[Order]:
    """
    Keep the orders that pass every active filter.
    """
    today = today or date.today()
    status = (filters.status_filter or "all").strip().lower()

    result = []
    for order in orders:
        if not matches_search(order, filters.search_term):
            continue
        if status != "all" and (order.status or "").lower() != status:
            continue
        if filters.show_overdue_only and not is_overdue(order.delivery_date, order.status, today):
            continue
        if filters.show_pending_only and to_float(order.pending_amount, 0.0) <= 0:
            continue
        if not is_within(order.delivery_date, filters.delivery_from, filters.delivery_to):
            continue
        if not is_within(order.created_at, filters.order_from, filters.order_to):
            continue
        result.append(order)
    return result


# -------------------------------------------------------------------
# Sort
# -------------------------------------------------------------------

def sort_value(order: Order, key: str) -> Any:
    if key == "customerName":
        return (order.customer_name or "").lower()
    if key == "billNumber":
        return _natural(order.bill_number)
    if key in _AMOUNT_ATTRS:
        return to_float(getattr(order, _AMOUNT_ATTRS[key]), 0.0)
    if key == "deliveryDate":
        return timestamp_ms(order.delivery_date)
    if key in ("createdAt", "updatedAt"):
        return timestamp_ms(order.created_at if key == "createdAt" else order.updated_at)
    if key == "status":
        return ORDER_STATUSES.index(order.status) if order.status in ORDER_STATUSES else len(ORDER_STATUSES)
    value = order.to_record().get(key)
    return str(value if value is not None else "").lower()


_DIGIT_RUNS = re.compile(r"(\d+)")


def _natural(bill_number: Any):
    # digit runs compare as numbers: "B2" < "B10", "9" < "10"
    text = str(bill_number or "").strip()
    return tuple(
        (0, int(part), "") if part.isdigit() else (1, 0, part.lower())
        for part in _DIGIT_RUNS.split(text)
        if part
    )


def sort_orders(orders: Sequence[Order], sort_keys: Sequence[SortKey]) -> List[Order]:
    """
    Multi-key stable sort. The first key is the primary one; rows equal on
    every key keep their incoming order.
    """
    result = list(orders)
    for sort_key in reversed(list(sort_keys)):
        result.sort(key=lambda o: sort_value(o, sort_key.key), reverse=sort_key.direction == DESC)
    return result


def toggle_sort(sort_keys: Sequence[SortKey], key: str) -> List[SortKey]:
    """
    Column header click: unsorted -> desc -> asc -> removed.
    """
    keys = list(sort_keys)
    for i, existing in enumerate(keys):
        if existing.key != key:
            continue
        if existing.direction == DESC:
            keys[i] = SortKey(key, ASC)
        else:
            del keys[i]
        return keys
    keys.append(SortKey(key, DESC))
    return keys


def sort_indicator(sort_keys: Sequence[SortKey], key: str) -> str:
    for i, existing in enumerate(sort_keys):
        if existing.key == key:
            arrow = "↓" if existing.direction == DESC else "↑"
            return f"{arrow}{i + 1}" if len(sort_keys) > 1 else arrow
    return ""


# -------------------------------------------------------------------
# Paginate
# -------------------------------------------------------------------

def paginate(orders: Sequence[Order], page: int, page_size: int) -> Page:
    page_size = max(1, int(page_size))
    total = len(orders)
    total_pages = max(1, math.ceil(total / page_size))
    page = min(max(1, int(page)), total_pages)
    start = (page - 1) * page_size
    return Page(
        items=list(orders[start:start + page_size]),
        page=page,
        total_pages=total_pages,
        total=total,
        page_size=page_size,
    )


@dataclass
class ProjectionState:
    """
    Everything the orders table remembers between reruns.
    """
    filters: OrderFilters = field(default_factory=OrderFilters)
    sort_keys: List[SortKey] = field(default_factory=lambda: list(DEFAULT_SORT))
    page: int = 1
    page_size: int = 10

    def set_filters(self, **changes) -> None:
        new_filters = replace(self.filters, **changes)
        if new_filters != self.filters:
            self.filters = new_filters
            self.page = 1

    def clear_filters(self) -> None:
        self.set_filters(**OrderFilters().__dict__)

    def set_page_size(self, page_size: int) -> None:
        self.page_size = max(1, int(page_size))

    def set_page(self, page: int) -> None:
        self.page = max(1, int(page))

    def toggle_sort(self, key: str) -> None:
        self.sort_keys = toggle_sort(self.sort_keys, key)

    def visible(self, orders: Sequence[Order], today: Optional[date] = None) -> List[Order]:
        return sort_orders(filter_orders(orders, self.filters, today), self.sort_keys)

    def apply(self, orders: Sequence[Order], today: Optional[date] = None) -> Page:
        current = paginate(self.visible(orders, today), self.page, self.page_size)
        self.page = current.page
        return current


# -------------------------------------------------------------------
# Aggregates shown above the table / on the kanban board
# -------------------------------------------------------------------

def quick_stats(orders: Sequence[Order], today: Optional[date] = None) -> Dict[str, float]:
    today = today or date.today()
    return {
        "total": len(orders),
        "today": sum(1 for o in orders if parse_date(o.created_at) == today),
        "pending_amount": sum(to_float(o.pending_amount, 0.0) for o in orders),
        "overdue": sum(1 for o in orders if is_overdue(o.delivery_date, o.status, today)),
        "revenue": sum(to_float(o.total_amount, 0.0) for o in orders),
    }


def group_by_status(orders: Sequence[Order]) -> Dict[str, List[Order]]:
    columns: Dict[str, List[Order]] = {status: [] for status in ORDER_STATUSES}
    for order in orders:
        columns.setdefault(order.status, []).append(order)
    return columns
