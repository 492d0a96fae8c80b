from datetime import date

import pandas as pd
import streamlit as st

from element_component import get_settings, get_stock, page_setup
from services import notification_service, report_service
from utils.dates import format_date
from utils.formatting import format_rupee

user, orders = page_setup("Dashboard", "📊")
settings = get_settings()

st.title(f"📊 {settings.store_name}")
st.caption(f"Welcome back, {user.display_name}")

# -------------------------------------------------------------------
# Time filter
# -------------------------------------------------------------------

if "dashboard_period" not in st.session_state:
    st.session_state["dashboard_period"] = "today"

st.segmented_control(
    "Period",
    report_service.TIME_FILTERS,
    key="dashboard_period",
    format_func=str.title,
)
period = st.session_state["dashboard_period"] or "today"
stats = report_service.dashboard_stats(orders, period, date.today())

# -------------------------------------------------------------------
# Cards
# -------------------------------------------------------------------

col_1, col_2, col_3, col_4 = st.columns(4)
col_1.metric("Orders", stats["total"], help=f"{period} period")
col_2.metric("Sales", format_rupee(stats["total_sales"]), help=f"{period} period")
col_3.metric("Today's Orders", stats["today_orders"], delta=format_rupee(stats["today_sales"]), delta_color="off")
col_4.metric("Overdue", stats["overdue"])

col_5, col_6 = st.columns(2)
col_5.metric("Active Orders", stats["active"])
col_6.metric("Pending Amount", format_rupee(stats["pending_amount"]))

status_df = pd.DataFrame(
    [{"Status": s, "Orders": n} for s, n in stats["status_counts"].items()]
)
st.bar_chart(status_df, x="Status", y="Orders", height=240)

col_revenue, col_customers = st.columns(2)
with col_revenue:
    st.subheader("📈 Monthly Revenue")
    st.bar_chart(report_service.monthly_revenue(orders, date.today()), x="Month", y="Revenue", height=260)
with col_customers:
    st.subheader("🏆 Top Customers")
    top = report_service.top_customers(orders)
    if top.empty:
        st.caption("No customers yet.")
    else:
        st.dataframe(
            top.assign(**{"Total Amount": top["Total Amount"].map(format_rupee)}),
            hide_index=True,
            width="stretch",
        )

# -------------------------------------------------------------------
# Suggestions
# -------------------------------------------------------------------

suggestions = notification_service.build_suggestions(
    orders,
    get_stock(),
    low_stock_threshold=settings.low_stock_threshold,
)
if suggestions:
    st.subheader("💡 Suggestions")
    for s in suggestions:
        if s.kind == "error":
            st.error(s.message)
        elif s.kind == "warning":
            st.warning(s.message)
        else:
            st.info(s.message)

# -------------------------------------------------------------------
# Recent orders
# -------------------------------------------------------------------

st.subheader("🕒 Recent Orders")
if not stats["recent"]:
    st.info("No orders yet.")
else:
    recent_df = pd.DataFrame([
        {
            "Bill No": o.bill_number,
            "Customer": o.customer_name,
            "Amount": format_rupee(o.total_amount),
            "Status": o.status,
            "Delivery": format_date(o.delivery_date),
            "Order Date": format_date(o.created_at),
        }
        for o in stats["recent"]
    ])
    st.dataframe(recent_df, width="stretch", hide_index=True)
