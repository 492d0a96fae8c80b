import csv
import io
from datetime import date

from domain.models import LehengaItem, Order, StockItem
from services import report_service

TODAY = date(2024, 6, 15)


def _orders():
    return [
        Order(id="1", bill_number="1", customer_name="Asha", phone_number="111", status="Pending",
              total_amount=5000, pending_amount=3000, created_at="15-06-2024", delivery_date="01-06-2024",
              lehenga_details=[LehengaItem(design="D1", amount=5000, salesmen=["Ravi"])]),
        Order(id="2", bill_number="2", customer_name="Asha", phone_number="111", status="Delivered",
              total_amount=9000, pending_amount=0, created_at="10-06-2024",
              lehenga_details=[LehengaItem(design="D2", amount=4000, salesmen=["Ravi", "Sunil"]),
                               LehengaItem(design="D3", amount=5000, salesmen=["Ravi"])]),
        Order(id="3", bill_number="3", customer_name="Meena", phone_number="222", status="Confirmed",
              total_amount=7000, pending_amount=1000, created_at="01-01-2024",
              lehenga_details=[LehengaItem(design="D1", amount=7000, salesmen=["Sunil"])]),
    ]


def test_dashboard_stats_follow_period():
    stats = report_service.dashboard_stats(_orders(), "week", TODAY)

    assert stats["total"] == 2
    assert stats["total_sales"] == 14000
    assert stats["status_counts"]["Pending"] == 1
    assert stats["status_counts"]["Delivered"] == 1
    assert stats["active"] == 1
    assert stats["today_orders"] == 1 and stats["today_sales"] == 5000
    assert stats["overdue"] == 1
    assert [o.id for o in stats["recent"]] == ["1", "2", "3"]

    assert report_service.dashboard_stats(_orders(), "all", TODAY)["total"] == 3
    assert report_service.dashboard_stats(_orders(), "today", TODAY)["total"] == 1


def test_sales_report_filters():
    df = report_service.sales_report(_orders(), salesman="Sunil")
    assert list(df.columns) == report_service.SALES_COLUMNS
    assert list(df["Bill No."]) == ["2", "3"]
    assert df.iloc[0]["Salesman"] == "Ravi, Sunil"

    df = report_service.sales_report(_orders(), date_from=date(2024, 6, 1), date_to=date(2024, 6, 30),
                                     status="Pending")
    assert list(df["Bill No."]) == ["1"]


def test_customer_report_groups_by_name():
    df = report_service.customer_report(_orders())
    asha = df[df["Customer Name"] == "Asha"].iloc[0]
    assert asha["Total Orders"] == 2
    assert asha["Total Amount"] == 14000
    assert asha["Pending Amount"] == 3000
    assert list(df.columns) == report_service.CUSTOMER_COLUMNS
    assert report_service.customer_report([]).empty


def test_salesman_report_counts_distinct_orders():
    df = report_service.salesman_report(_orders())
    ravi = df[df["Salesman Name"] == "Ravi"].iloc[0]
    assert ravi["Total Orders"] == 2
    assert ravi["Total Lehengas"] == 3
    assert ravi["Total Amount"] == 14000
    assert df.iloc[0]["Salesman Name"] == "Ravi"


def test_stock_report():
    df = report_service.stock_report([StockItem(design="D1", amount=100), StockItem(design="D2", amount=9000)])
    assert list(df["Status"]) == ["Low Stock", "In Stock"]


def test_orders_csv_quotes_every_field():
    data = report_service.orders_csv(_orders()[:1]).decode("utf-8")
    lines = data.strip().splitlines()
    assert lines[0].startswith('"Bill No","Customer","Phone"')
    row = next(csv.reader(io.StringIO(lines[1])))
    assert row[:3] == ["1", "Asha", "111"]
    assert lines[1].startswith('"1","Asha"')


def test_csv_filenames():
    assert report_service.orders_csv_filename(TODAY) == "Orders_2024-06-15.csv"
    assert report_service.report_csv_filename("salesman", TODAY) == "Salesman Performance_Report_2024-06-15.csv"


def test_monthly_revenue_last_six_months():
    df = report_service.monthly_revenue(_orders(), TODAY)

    assert list(df["Month"]) == ["2024-01", "2024-02", "2024-03", "2024-04", "2024-05", "2024-06"]
    assert list(df["Revenue"]) == [7000, 0, 0, 0, 0, 14000]


def test_monthly_revenue_window_crosses_year():
    orders = [Order(id="x", total_amount=100, created_at="20-12-2023")]
    df = report_service.monthly_revenue(orders, date(2024, 2, 1), months=3)
    assert list(df["Month"]) == ["2023-12", "2024-01", "2024-02"]
    assert list(df["Revenue"]) == [100, 0, 0]


def test_top_customers_by_spend():
    orders = _orders() + [Order(id="4", customer_name=" ", total_amount=99999)]

    df = report_service.top_customers(orders, limit=5)

    assert list(df.columns) == report_service.TOP_CUSTOMER_COLUMNS
    assert list(df["Customer Name"]) == ["Asha", "Meena"]
    assert list(df["Total Orders"]) == [2, 1]
    assert report_service.top_customers(orders, limit=1)["Customer Name"].tolist() == ["Asha"]
    assert report_service.top_customers([]).empty
