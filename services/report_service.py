# services/report_service.py
import csv
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd

from domain.models import ORDER_STATUSES, TERMINAL_STATUSES, Order, StockItem
from services.stock_service import DEFAULT_LOW_STOCK_THRESHOLD, stock_status
from utils.dates import format_date, is_overdue, is_within, parse_date, start_of_period, timestamp_ms
from utils.formatting import to_float

TIME_FILTERS = ("today", "week", "month", "year", "all")

REPORT_TITLES = {
    "sales": "Sales",
    "stock": "Stock",
    "customer": "Customer",
    "salesman": "Salesman Performance",
}

SALES_COLUMNS = ["Bill No.", "Date", "Customer", "Design", "Amount", "Salesman", "Status"]
STOCK_COLUMNS = ["Design No.", "Amount", "Status"]
CUSTOMER_COLUMNS = ["Customer Name", "Phone", "Total Orders", "Total Amount", "Pending Amount"]
SALESMAN_COLUMNS = ["Salesman Name", "Total Orders", "Total Lehengas", "Total Amount"]
MONTHLY_COLUMNS = ["Month", "Revenue"]
TOP_CUSTOMER_COLUMNS = ["Customer Name", "Total Orders", "Total Amount"]

ORDER_EXPORT_COLUMNS = [
    "Bill No", "Customer", "Phone", "Total Amount", "Paid Amount",
    "Pending Amount", "Status", "Delivery Date", "Order Date", "Notes",
]


# -------------------------------------------------------------------
# Dashboard
# -------------------------------------------------------------------

def filter_by_period(orders: Sequence[Order], period: str, today: date) -> List[Order]:
    start = start_of_period(period, today)
    if start is None:
        return list(orders)
    return [o for o in orders if is_within(o.created_at, start, None)]


def dashboard_stats(orders: Sequence[Order], period: str = "today", today: Optional[date] = None) -> Dict:
    """
    Numbers for the dashboard cards. Status counts and total sales follow
    the time filter; today's figures, overdue and recent orders do not.
    """
    today = today or date.today()
    in_period = filter_by_period(orders, period, today)

    status_counts = {status: 0 for status in ORDER_STATUSES}
    for order in in_period:
        status_counts[order.status] = status_counts.get(order.status, 0) + 1

    todays = [o for o in orders if parse_date(o.created_at) == today]
    newest_first = sorted(orders, key=lambda o: timestamp_ms(o.created_at), reverse=True)

    return {
        "period": period,
        "total": len(in_period),
        "status_counts": status_counts,
        "active": sum(1 for o in in_period if o.status not in TERMINAL_STATUSES),
        "total_sales": sum(to_float(o.total_amount, 0.0) for o in in_period),
        "pending_amount": sum(to_float(o.pending_amount, 0.0) for o in in_period),
        "today_orders": len(todays),
        "today_sales": sum(to_float(o.total_amount, 0.0) for o in todays),
        "overdue": sum(1 for o in orders if is_overdue(o.delivery_date, o.status, today)),
        "recent": newest_first[:5],
    }


def monthly_revenue(orders: Sequence[Order], today: Optional[date] = None, months: int = 6) -> pd.DataFrame:
    """
    Order totals per calendar month of `createdAt` for the last `months`
    months, oldest first. Months without orders show 0.
    """
    today = today or date.today()
    year, month = today.year, today.month
    keys = []
    for _ in range(months):
        keys.append((year, month))
        year, month = (year - 1, 12) if month == 1 else (year, month - 1)
    totals = dict.fromkeys(reversed(keys), 0.0)

    for order in orders:
        created = parse_date(order.created_at)
        if created is not None and (created.year, created.month) in totals:
            totals[(created.year, created.month)] += to_float(order.total_amount, 0.0)

    return pd.DataFrame(
        [{"Month": f"{y}-{m:02d}", "Revenue": revenue} for (y, m), revenue in totals.items()],
        columns=MONTHLY_COLUMNS,
    )


def top_customers(orders: Sequence[Order], limit: int = 5) -> pd.DataFrame:
    named = [o for o in orders if o.customer_name.strip()]
    df = customer_report(named).sort_values("Total Amount", ascending=False, kind="stable")
    return df.head(limit).reset_index(drop=True)[TOP_CUSTOMER_COLUMNS]


# -------------------------------------------------------------------
# Reports
# -------------------------------------------------------------------

def sales_report(
        orders: Sequence[Order],
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        status: str = "all",
        salesman: str = "all",
) -> pd.DataFrame:
    rows = []
    for order in orders:
        if (date_from or date_to) and not is_within(order.created_at, date_from, date_to):
            continue
        if status != "all" and order.status != status:
            continue
        if salesman != "all" and not any(salesman in i.salesmen for i in order.lehenga_details):
            continue
        rows.append({
            "Bill No.": order.bill_number,
            "Date": format_date(order.created_at),
            "Customer": order.customer_name,
            "Design": ", ".join(order.designs) or "N/A",
            "Amount": to_float(order.total_amount, 0.0),
            "Salesman": ", ".join(sorted({s for i in order.lehenga_details for s in i.salesmen})) or "N/A",
            "Status": order.status,
        })
    return pd.DataFrame(rows, columns=SALES_COLUMNS)


def stock_report(stock_items: Sequence[StockItem], threshold: float = DEFAULT_LOW_STOCK_THRESHOLD) -> pd.DataFrame:
    rows = [
        {"Design No.": item.design, "Amount": item.amount, "Status": stock_status(item, threshold)}
        for item in stock_items
    ]
    return pd.DataFrame(rows, columns=STOCK_COLUMNS)


def customer_report(orders: Sequence[Order]) -> pd.DataFrame:
    if not orders:
        return pd.DataFrame(columns=CUSTOMER_COLUMNS)
    df = pd.DataFrame([
        {
            "Customer Name": o.customer_name,
            "Phone": o.phone_number,
            "Total Amount": to_float(o.total_amount, 0.0),
            "Pending Amount": to_float(o.pending_amount, 0.0),
        }
        for o in orders
    ])
    grouped = (
        df.groupby("Customer Name", sort=False)
        .agg(**{
            "Phone": ("Phone", "first"),
            "Total Orders": ("Phone", "size"),
            "Total Amount": ("Total Amount", "sum"),
            "Pending Amount": ("Pending Amount", "sum"),
        })
        .reset_index()
    )
    return grouped[CUSTOMER_COLUMNS]


def salesman_report(orders: Sequence[Order]) -> pd.DataFrame:
    """
    One row per salesman. A lehenga shared by two salesmen counts for both.
    Total Orders counts distinct orders, Total Lehengas counts line items.
    """
    stats: Dict[str, Dict] = {}
    for order in orders:
        for item in order.lehenga_details:
            for name in item.salesmen:
                entry = stats.setdefault(name, {"orders": set(), "lehengas": 0, "amount": 0.0})
                entry["orders"].add(order.id or id(order))
                entry["lehengas"] += 1
                entry["amount"] += to_float(item.amount, 0.0)

    rows = [
        {
            "Salesman Name": name,
            "Total Orders": len(entry["orders"]),
            "Total Lehengas": entry["lehengas"],
            "Total Amount": entry["amount"],
        }
        for name, entry in stats.items()
    ]
    df = pd.DataFrame(rows, columns=SALESMAN_COLUMNS)
    return df.sort_values("Total Amount", ascending=False, kind="stable").reset_index(drop=True)


# -------------------------------------------------------------------
# CSV
# -------------------------------------------------------------------

def orders_dataframe(orders: Iterable[Order]) -> pd.DataFrame:
    rows = [
        {
            "Bill No": o.bill_number,
            "Customer": o.customer_name,
            "Phone": o.phone_number,
            "Total Amount": to_float(o.total_amount, 0.0),
            "Paid Amount": to_float(o.paid_amount, 0.0),
            "Pending Amount": to_float(o.pending_amount, 0.0),
            "Status": o.status,
            "Delivery Date": format_date(o.delivery_date),
            "Order Date": format_date(o.created_at),
            "Notes": o.notes,
        }
        for o in orders
    ]
    return pd.DataFrame(rows, columns=ORDER_EXPORT_COLUMNS)


def to_csv_bytes(df: pd.DataFrame) -> bytes:
    return df.to_csv(index=False, quoting=csv.QUOTE_ALL).encode("utf-8")


def orders_csv(orders: Iterable[Order]) -> bytes:
    return to_csv_bytes(orders_dataframe(orders))


def orders_csv_filename(today: Optional[date] = None) -> str:
    return f"Orders_{(today or date.today()).isoformat()}.csv"


def report_csv_filename(report_type: str, today: Optional[date] = None) -> str:
    title = REPORT_TITLES.get(report_type, "Report")
    return f"{title}_Report_{(today or date.today()).isoformat()}.csv"
