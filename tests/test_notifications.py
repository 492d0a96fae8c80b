from datetime import datetime, timedelta

from domain.models import LehengaItem, Order, StockItem
from services.notification_service import (
    NotificationInbox,
    build_notifications,
    build_suggestions,
    low_stock_popular_designs,
)

NOW = datetime(2024, 6, 15, 12, 0)


def _ms(dt):
    return int(dt.timestamp() * 1000)


def _orders():
    return [
        Order(id="late", bill_number="1", customer_name="Asha", status="Confirmed",
              delivery_date="10-06-2024", created_at=_ms(NOW - timedelta(days=20)), pending_amount=0),
        Order(id="fresh", bill_number="2", customer_name="Meena", status="Pending",
              delivery_date="30-06-2024", created_at=_ms(NOW - timedelta(hours=2)), pending_amount=8000),
        Order(id="done", bill_number="3", customer_name="Kavya", status="Delivered",
              delivery_date="01-01-2024", created_at=_ms(NOW - timedelta(days=30)), pending_amount=0),
    ]


def test_notifications_by_category_and_priority():
    notes = build_notifications(_orders(), now=NOW)
    assert [n.id for n in notes] == ["overdue-late", "new-fresh", "payment-fresh"]
    assert notes[0].message == "Order #1 for Asha is overdue"
    assert notes[2].message == "Order #2 has ₹8,000 pending"


def test_read_notifications_are_suppressed():
    notes = build_notifications(_orders(), read_ids=["new-fresh"], now=NOW)
    assert "new-fresh" not in [n.id for n in notes]


def test_notifications_limit():
    orders = [
        Order(id=str(i), status="Pending", delivery_date="01-06-2024", pending_amount=9000)
        for i in range(10)
    ]
    assert len(build_notifications(orders, now=NOW, limit=8)) == 8


def test_suggestions_in_priority_order():
    orders = _orders() + [
        Order(id=f"p{i}", status="Pending", created_at=_ms(NOW - timedelta(days=9)),
              lehenga_details=[LehengaItem(design="rani pink")])
        for i in range(3)
    ]
    stock = [StockItem(id="s1", design="Rani Pink", amount=3000)]

    suggestions = build_suggestions(orders, stock, now=NOW, limit=4)

    assert [s.id for s in suggestions] == [
        "suggestion-overdue",
        "suggestion-high-pending",
        "suggestion-stagnant",
        "suggestion-low-stock",
    ]
    assert suggestions[2].count == 3
    assert suggestions[2].action == "show_status_pending"
    assert [s.id for s in build_suggestions(orders, stock, now=NOW)][-1] == "suggestion-stagnant"


def test_low_stock_needs_three_orders_and_low_amount():
    orders = [Order(lehenga_details=[LehengaItem(design="D1"), LehengaItem(design="d1 ")]),
              Order(lehenga_details=[LehengaItem(design="D1"), LehengaItem(design="D2")])]
    stock = [StockItem(design="D1", amount=4999), StockItem(design="D2", amount=100)]

    assert low_stock_popular_designs(orders, stock, 5000) == ["D1"]
    assert low_stock_popular_designs(orders, stock, 4999) == []


def test_inbox_round_trip(local_state):
    inbox = NotificationInbox(local_state)
    assert inbox.read_ids() == []

    inbox.mark_read("overdue-1")
    inbox.mark_all_read(["overdue-1", "new-2"])
    assert inbox.read_ids() == ["overdue-1", "new-2"]

    inbox.clear()
    assert inbox.read_ids() == []
