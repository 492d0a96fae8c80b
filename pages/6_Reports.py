from datetime import date

import streamlit as st

from element_component import get_salesmen, get_settings, get_stock, page_setup
from domain.models import ORDER_STATUSES
from services import report_service

user, orders = page_setup("Reports", "📈")
today = date.today()

st.title("📈 Reports")

report_type = st.radio(
    "Report",
    list(report_service.REPORT_TITLES),
    format_func=report_service.REPORT_TITLES.get,
    horizontal=True,
)

# -------------------------------------------------------------------
# Build
# -------------------------------------------------------------------

if report_type == "sales":
    col_range, col_status, col_salesman = st.columns(3)
    date_range = col_range.date_input("Order date range", value=(), format="DD/MM/YYYY")
    status = col_status.selectbox(
        "Status", ["all"] + list(ORDER_STATUSES), format_func=lambda s: "All" if s == "all" else s
    )
    names = sorted({s.name for s in get_salesmen()} | {n for o in orders for i in o.lehenga_details for n in i.salesmen})
    salesman = col_salesman.selectbox("Salesman", ["all"] + names, format_func=lambda s: "All" if s == "all" else s)

    date_range = tuple(date_range or ())
    date_from = date_range[0] if date_range else None
    date_to = date_range[1] if len(date_range) > 1 else None
    df = report_service.sales_report(orders, date_from, date_to, status, salesman)
    if not df.empty:
        col_1, col_2 = st.columns(2)
        col_1.metric("Orders", len(df))
        col_2.metric("Sales", f"₹{df['Amount'].sum():,.0f}")

elif report_type == "stock":
    df = report_service.stock_report(get_stock(), get_settings().low_stock_threshold)

elif report_type == "customer":
    df = report_service.customer_report(orders)

else:
    df = report_service.salesman_report(orders)
    if not df.empty:
        st.bar_chart(df, x="Salesman Name", y="Total Amount", height=260)

# -------------------------------------------------------------------
# Show + export
# -------------------------------------------------------------------

if df.empty:
    st.info("No data for this report.")
else:
    st.dataframe(df, hide_index=True, width="stretch")

st.download_button(
    "⬇️ Export CSV",
    data=report_service.to_csv_bytes(df),
    file_name=report_service.report_csv_filename(report_type, today),
    mime="text/csv",
    disabled=df.empty,
)
