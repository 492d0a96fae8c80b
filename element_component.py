from datetime import datetime
from typing import Any, Callable, Dict, List, Tuple

import pandas as pd
import streamlit as st

from config import configure_logging, load_config
from domain.models import AppUser, Order, Salesman, StockItem, StoreSettings
from services import auth_service, notification_service, order_service, settings_service, stock_service
from services.notification_service import NotificationInbox
from utils.dates import is_overdue, relative_time
from utils.local_state import REMEMBERED_EMAIL, THEME, LocalState, get_storage_dir

SNAPSHOT_TTL_SECONDS = 30


# -------------------------------------------------------------------
# Shared snapshots: every page reads the same cached collections and
# every write clears them
# -------------------------------------------------------------------

@st.cache_data(ttl=SNAPSHOT_TTL_SECONDS, show_spinner="Loading orders...")
def _orders_snapshot() -> List[Order]:
    ok, msg, orders = order_service.load_orders()
    if not ok:
        raise RuntimeError(msg)
    return orders


@st.cache_data(ttl=SNAPSHOT_TTL_SECONDS, show_spinner=False)
def _stock_snapshot() -> List[StockItem]:
    ok, msg, items = stock_service.load_stock()
    if not ok:
        raise RuntimeError(msg)
    return items


@st.cache_data(ttl=SNAPSHOT_TTL_SECONDS, show_spinner=False)
def _salesmen_snapshot() -> List[Salesman]:
    ok, msg, salesmen = settings_service.load_salesmen()
    if not ok:
        raise RuntimeError(msg)
    return salesmen


@st.cache_data(ttl=SNAPSHOT_TTL_SECONDS, show_spinner=False)
def _settings_snapshot() -> StoreSettings:
    ok, msg, settings = settings_service.load_settings()
    if not ok:
        raise RuntimeError(msg)
    return settings


def _read(loader: Callable[[], Any], what: str, empty: Any) -> Any:
    try:
        return loader()
    except RuntimeError as e:
        st.error(f"Could not load {what}: {e}")
        return empty


def get_orders() -> List[Order]:
    return _read(_orders_snapshot, "orders", [])


def get_stock() -> List[StockItem]:
    return _read(_stock_snapshot, "stock", [])


def get_salesmen() -> List[Salesman]:
    return _read(_salesmen_snapshot, "salesmen", [])


def get_settings() -> StoreSettings:
    return _read(_settings_snapshot, "settings", StoreSettings())


def refresh_orders() -> None:
    _orders_snapshot.clear()


def refresh_stock() -> None:
    _stock_snapshot.clear()


def refresh_salesmen() -> None:
    _salesmen_snapshot.clear()


def refresh_settings() -> None:
    _settings_snapshot.clear()


# -------------------------------------------------------------------
# Dialogs
# -------------------------------------------------------------------

@st.dialog("Confirm")
def confirmation_dialog(summary: Dict[str, Any], action: Callable[[], Tuple[bool, str, Any]], state_name: str,
                        on_success: Callable[[], None] = None):
    df = pd.DataFrame(list(summary.items()), columns=["Key", "Value"])
    df["Value"] = df["Value"].astype("string")
    st.dataframe(df, hide_index=True)

    col_yes, col_no = st.columns(2)

    with col_yes:
        if st.button("Yes", type="primary", key="confirm_yes"):
            status, msg, data = action()
            st.session_state[state_name] = status

            if not status:
                st.error(msg)
            else:
                if on_success:
                    on_success()
                st.rerun()
    with col_no:
        if st.button("No", key="confirm_no"):
            st.rerun()


# -------------------------------------------------------------------
# Session / auth
# -------------------------------------------------------------------

def machine_state() -> LocalState:
    return LocalState("device", storage_dir=_state_dir())


def user_state(user: AppUser) -> LocalState:
    return LocalState(user.email, storage_dir=_state_dir())


def _state_dir():
    return get_storage_dir(load_config().state_dir)


def _login_form() -> None:
    state = machine_state()

    st.title("🔐 Store Login")
    with st.form("login_form", enter_to_submit=True):
        email = st.text_input("Email", value=state.get(REMEMBERED_EMAIL, ""))
        password = st.text_input("Password", type="password")
        remember = st.checkbox("Remember me", value=bool(state.get(REMEMBERED_EMAIL)))
        submitted = st.form_submit_button("Sign in", type="primary")

    if not submitted:
        return

    ok, msg, user = auth_service.sign_in(email, password)
    if not ok:
        st.error(msg)
        return

    if remember:
        state.set(REMEMBERED_EMAIL, user.email)
    else:
        state.delete(REMEMBERED_EMAIL)

    if user.two_factor_enabled:
        st.session_state["pending_user"] = user
    else:
        st.session_state["user"] = user
    st.rerun()


def _two_factor_form() -> None:
    user = st.session_state["pending_user"]
    st.title("🔐 Verification")
    st.caption(f"Signed in as {user.email}. Enter the store verification code.")
    with st.form("two_factor_form"):
        code = st.text_input("Verification code", type="password")
        col_ok, col_cancel = st.columns(2)
        verify = col_ok.form_submit_button("Verify", type="primary")
        cancel = col_cancel.form_submit_button("Cancel")

    if cancel:
        auth_service.sign_out(user.email)
        del st.session_state["pending_user"]
        st.rerun()
    if verify:
        ok, msg = auth_service.verify_two_factor(code, load_config().two_factor_code)
        if not ok:
            st.error(msg)
            return
        st.session_state["user"] = st.session_state.pop("pending_user")
        st.rerun()


def require_login() -> AppUser:
    """
    Call at the top of every page. Stops the script until a user with an
    allowed role is signed in.
    """
    configure_logging()
    if "user" in st.session_state:
        return st.session_state["user"]
    if "pending_user" in st.session_state:
        _two_factor_form()
    else:
        _login_form()
    st.stop()


def sign_out(user: AppUser) -> None:
    auth_service.sign_out(user.email)
    for key in ("user", "pending_user"):
        st.session_state.pop(key, None)
    st.rerun()


# -------------------------------------------------------------------
# Sidebar: badges, notifications, theme
# -------------------------------------------------------------------

LIGHT_THEME_CSS = """
<style>
  .stApp { background-color: #f8fafc; color: #0f172a; }
</style>
"""


def apply_theme(user: AppUser) -> str:
    theme = user_state(user).get(THEME) or get_settings().theme
    if theme == "light":
        st.markdown(LIGHT_THEME_CSS, unsafe_allow_html=True)
    return theme


def render_sidebar(user: AppUser, orders: List[Order]) -> None:
    settings = get_settings()
    inbox = NotificationInbox(user_state(user))

    st.sidebar.header(f"👗 {settings.store_name}")
    st.sidebar.caption(f"{user.display_name} · {user.role}")

    col_p, col_o = st.sidebar.columns(2)
    col_p.metric("Pending", sum(1 for o in orders if o.status == "Pending"))
    col_o.metric("Overdue", sum(1 for o in orders if is_overdue(o.delivery_date, o.status)))

    notifications = notification_service.build_notifications(orders, inbox.read_ids())
    with st.sidebar.expander(f"🔔 Notifications ({len(notifications)})", expanded=False):
        if not notifications:
            st.caption("You're all caught up.")
        for n in notifications:
            st.markdown(f"**{n.title}**  \n{n.message}")
            st.caption(relative_time(n.timestamp, datetime.now()) if n.category == "new" else n.category.title())
            if st.button("Mark as read", key=f"read_{n.id}"):
                inbox.mark_read(n.id)
                st.rerun()
        if notifications and st.button("Mark all as read", key="read_all"):
            inbox.mark_all_read([n.id for n in notifications])
            st.rerun()

    state = user_state(user)
    current_theme = state.get(THEME) or settings.theme
    theme = st.sidebar.radio("Theme", ("dark", "light"), index=0 if current_theme == "dark" else 1, horizontal=True)
    if theme != current_theme:
        state.set(THEME, theme)
        st.rerun()

    if st.sidebar.button("🔄 Refresh data"):
        refresh_orders()
        refresh_stock()
        refresh_salesmen()
        refresh_settings()
        st.rerun()

    if st.sidebar.button("🚪 Sign out"):
        sign_out(user)


def page_setup(title: str, icon: str) -> Tuple[AppUser, List[Order]]:
    st.set_page_config(page_title=title, page_icon=icon, layout="wide")
    user = require_login()
    apply_theme(user)
    orders = get_orders()
    render_sidebar(user, orders)
    return user, orders
