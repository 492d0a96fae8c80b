# services/notification_service.py
import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence

from domain.models import Notification, Order, StockItem, Suggestion
from utils.dates import is_overdue, parse_datetime, timestamp_ms
from utils.formatting import format_inr, to_float
from utils.local_state import READ_NOTIFICATIONS, LocalState

logger = logging.getLogger(__name__)

HIGH_PENDING_AMOUNT = 5000
NEW_ORDER_WINDOW = timedelta(hours=24)
STAGNANT_AFTER = timedelta(days=7)
POPULAR_DESIGN_MIN_COUNT = 3  # "more than twice"

CATEGORY_PRIORITY = {"overdue": 1, "new": 2, "payment": 3}

# Suggestion rules, highest priority first
SUGGEST_OVERDUE = "overdue"
SUGGEST_HIGH_PENDING = "high-pending"
SUGGEST_STAGNANT = "stagnant"
SUGGEST_LOW_STOCK = "low-stock"


def build_notifications(
        orders: Sequence[Order],
        read_ids: Iterable[str] = (),
        now: Optional[datetime] = None,
        limit: int = 8,
) -> List[Notification]:
    """
    Per-order alerts for the header bell.

    overdue-<id>  delivery date passed and order not finished
    new-<id>      created within the last 24 hours
    payment-<id>  more than ₹5,000 still pending

    Sorted by category, then newest first. Ids already read are skipped.
    """
    now = now or datetime.now()
    read = set(read_ids)
    now_ts = int(now.timestamp() * 1000)
    notifications: List[Notification] = []

    def add(notification: Notification) -> None:
        if notification.id not in read:
            notifications.append(notification)

    for order in orders:
        if not order.id:
            continue

        if is_overdue(order.delivery_date, order.status, now.date()):
            add(Notification(
                id=f"overdue-{order.id}",
                category="overdue",
                title="🚨 Overdue Order",
                message=f"Order #{order.bill_number} for {order.customer_name} is overdue",
                order_id=order.id,
                timestamp=timestamp_ms(order.delivery_date),
                priority=CATEGORY_PRIORITY["overdue"],
            ))

        created = parse_datetime(order.created_at)
        if created is not None and timedelta(0) <= now - created < NEW_ORDER_WINDOW:
            add(Notification(
                id=f"new-{order.id}",
                category="new",
                title="🛍️ New Order Received",
                message=f"New order #{order.bill_number} from {order.customer_name}",
                order_id=order.id,
                timestamp=timestamp_ms(order.created_at),
                priority=CATEGORY_PRIORITY["new"],
            ))

        pending = to_float(order.pending_amount, 0.0)
        if pending > HIGH_PENDING_AMOUNT:
            add(Notification(
                id=f"payment-{order.id}",
                category="payment",
                title="💰 High Pending Amount",
                message=f"Order #{order.bill_number} has ₹{format_inr(pending)} pending",
                order_id=order.id,
                timestamp=timestamp_ms(order.updated_at) or now_ts,
                priority=CATEGORY_PRIORITY["payment"],
            ))

    notifications.sort(key=lambda n: (n.priority, -n.timestamp))
    return notifications[:limit]


def build_suggestions(
        orders: Sequence[Order],
        stock_items: Sequence[StockItem],
        now: Optional[datetime] = None,
        low_stock_threshold: float = 5000,
        read_ids: Iterable[str] = (),
        limit: int = 3,
) -> List[Suggestion]:
    now = now or datetime.now()
    today = now.date()
    read = set(read_ids)
    suggestions: List[Suggestion] = []

    overdue = [o for o in orders if is_overdue(o.delivery_date, o.status, today)]
    if overdue:
        suggestions.append(Suggestion(
            id=f"suggestion-{SUGGEST_OVERDUE}",
            kind="warning",
            message=f"{len(overdue)} orders are overdue. Consider updating their status.",
            action="show_overdue",
            priority=1,
            count=len(overdue),
        ))

    high_pending = [o for o in orders if to_float(o.pending_amount, 0.0) > HIGH_PENDING_AMOUNT]
    if high_pending:
        suggestions.append(Suggestion(
            id=f"suggestion-{SUGGEST_HIGH_PENDING}",
            kind="info",
            message=f"{len(high_pending)} orders have pending amount > ₹5,000. Send payment reminders.",
            action="show_pending",
            priority=2,
            count=len(high_pending),
        ))

    week_ago = now - STAGNANT_AFTER
    stagnant = []
    for order in orders:
        created = parse_datetime(order.created_at)
        if order.status == "Pending" and created is not None and created < week_ago:
            stagnant.append(order)
    if stagnant:
        suggestions.append(Suggestion(
            id=f"suggestion-{SUGGEST_STAGNANT}",
            kind="warning",
            message=f"{len(stagnant)} orders are pending for more than 7 days. Follow up needed.",
            action="show_status_pending",
            priority=3,
            count=len(stagnant),
        ))

    low_stock = low_stock_popular_designs(orders, stock_items, low_stock_threshold)
    if low_stock:
        suggestions.append(Suggestion(
            id=f"suggestion-{SUGGEST_LOW_STOCK}",
            kind="error",
            message=f"{len(low_stock)} popular designs are running low on stock. Consider restocking.",
            action="open_stock",
            priority=4,
            count=len(low_stock),
        ))

    visible = [s for s in suggestions if s.id not in read]
    visible.sort(key=lambda s: s.priority)
    return visible[:limit]


def low_stock_popular_designs(
        orders: Sequence[Order],
        stock_items: Sequence[StockItem],
        threshold: float,
) -> List[str]:
    counts = Counter(
        item.design.strip().lower()
        for order in orders
        for item in order.lehenga_details
        if item.design and item.design.strip()
    )
    stock_by_design = {s.design.strip().lower(): s for s in stock_items if s.design}

    designs = []
    for design, count in counts.items():
        stock = stock_by_design.get(design)
        if count >= POPULAR_DESIGN_MIN_COUNT and stock is not None and stock.amount < threshold:
            designs.append(stock.design)
    return sorted(designs)


class NotificationInbox:
    """
    Read/unread bookkeeping, stored locally under "readNotifications".
    """

    def __init__(self, state: LocalState):
        self.state = state

    def read_ids(self) -> List[str]:
        ids = self.state.get(READ_NOTIFICATIONS, [])
        return list(ids) if isinstance(ids, list) else []

    def mark_read(self, notification_id: str) -> None:
        self.mark_all_read([notification_id])

    def mark_all_read(self, notification_ids: Iterable[str]) -> None:
        ids = self.read_ids()
        known = set(ids)
        for notification_id in notification_ids:
            if notification_id not in known:
                ids.append(notification_id)
                known.add(notification_id)
        self.state.set(READ_NOTIFICATIONS, ids)
        logger.debug("%d notifications marked as read", len(ids))

    def clear(self) -> None:
        self.state.delete(READ_NOTIFICATIONS)
