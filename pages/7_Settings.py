from dataclasses import replace

import pandas as pd
import streamlit as st

from element_component import (
    confirmation_dialog,
    get_salesmen,
    get_settings,
    page_setup,
    refresh_salesmen,
    refresh_settings,
)
from services import settings_service
from utils.dates import format_date

user, orders = page_setup("Settings", "⚙️")
settings = get_settings()

st.title("⚙️ Settings")

if "settings_state" not in st.session_state:
    st.session_state["settings_state"] = False
    st.session_state["salesman_state"] = False

if st.session_state["settings_state"]:
    st.success("Settings saved successfully")
    st.session_state["settings_state"] = False
if st.session_state["salesman_state"]:
    st.success("Salesmen updated")
    st.session_state["salesman_state"] = False

tab_store, tab_salesmen, tab_account = st.tabs(["Store", "Salesmen", "Account"])

# -------------------------------------------------------------------
# Store settings
# -------------------------------------------------------------------

with tab_store:
    with st.form("store_settings_form"):
        col_1, col_2 = st.columns(2)
        store_name = col_1.text_input("Store Name *", value=settings.store_name)
        sticker_shop_name = col_2.text_input("Name on Stickers", value=settings.sticker_shop_name,
                                             placeholder=settings.store_name)
        store_address = st.text_area("Address", value=settings.store_address)

        col_3, col_4, col_5 = st.columns(3)
        store_phone = col_3.text_input("Phone", value=settings.store_phone)
        gstin = col_4.text_input("GSTIN", value=settings.gstin)
        instagram_handle = col_5.text_input("Instagram", value=settings.instagram_handle)

        col_6, col_7, col_8 = st.columns(3)
        low_stock_threshold = col_6.number_input(
            "Low Stock Threshold (₹)", min_value=0.0, step=500.0, value=float(settings.low_stock_threshold)
        )
        formats = list(settings_service.DATE_FORMATS)
        date_format = col_7.selectbox(
            "Date Format", formats,
            index=formats.index(settings.date_format) if settings.date_format in formats else 0,
        )
        themes = list(settings_service.THEMES)
        theme = col_8.selectbox(
            "Default Theme", themes, index=themes.index(settings.theme) if settings.theme in themes else 0
        )

        col_9, col_10, col_11 = st.columns(3)
        primary_color = col_9.color_picker("Primary Color", value=settings.primary_color)
        email_notifications = col_10.checkbox("Email notifications", value=settings.email_notifications)
        auto_backup = col_11.checkbox("Auto backup", value=settings.auto_backup)

        submitted = st.form_submit_button("💾 Save Settings", type="primary")

    if submitted:
        updated = replace(
            settings,
            store_name=store_name,
            sticker_shop_name=sticker_shop_name,
            store_address=store_address,
            store_phone=store_phone,
            gstin=gstin,
            instagram_handle=instagram_handle,
            low_stock_threshold=low_stock_threshold,
            date_format=date_format,
            theme=theme,
            primary_color=primary_color,
            email_notifications=email_notifications,
            auto_backup=auto_backup,
        )
        confirmation_dialog(
            {
                "Store Name": store_name,
                "Low Stock Threshold": low_stock_threshold,
                "Date Format": date_format,
                "Theme": theme,
            },
            lambda: settings_service.save_settings(updated),
            "settings_state",
            on_success=refresh_settings,
        )

# -------------------------------------------------------------------
# Salesmen
# -------------------------------------------------------------------

with tab_salesmen:
    with st.form("add_salesman_form", clear_on_submit=True):
        col_name, col_phone = st.columns(2)
        name = col_name.text_input("Name *")
        phone = col_phone.text_input("Phone")
        if st.form_submit_button("➕ Add Salesman", type="primary"):
            ok, msg, _ = settings_service.add_salesman(name, phone)
            if ok:
                refresh_salesmen()
                st.session_state["salesman_state"] = True
                st.rerun()
            else:
                st.error(msg)

    salesmen = get_salesmen()
    if not salesmen:
        st.info("No salesmen yet.")
    else:
        st.dataframe(
            pd.DataFrame([
                {
                    "Name": s.name,
                    "Phone": s.phone,
                    "Active": "Yes" if s.active else "No",
                    "Added": format_date(s.created_at),
                }
                for s in salesmen
            ]),
            hide_index=True,
            width="stretch",
        )

        by_id = {s.id: s for s in salesmen}
        chosen_id = st.selectbox("Salesman", list(by_id), format_func=lambda i: by_id[i].name)
        chosen = by_id[chosen_id]

        col_toggle, col_delete = st.columns(2)
        if col_toggle.button("Deactivate" if chosen.active else "Activate"):
            ok, msg, _ = settings_service.set_salesman_active(chosen.id, not chosen.active)
            if ok:
                refresh_salesmen()
                st.session_state["salesman_state"] = True
                st.rerun()
            else:
                st.error(msg)
        if col_delete.button("🗑️ Delete"):
            confirmation_dialog(
                {"Salesman": chosen.name, "Action": "Delete"},
                lambda: settings_service.delete_salesman(chosen.id),
                "salesman_state",
                on_success=refresh_salesmen,
            )

# -------------------------------------------------------------------
# Account
# -------------------------------------------------------------------

with tab_account:
    st.markdown(f"**{user.display_name}**")
    st.caption(f"{user.email} · role: {user.role} · logins: {user.login_count}")
    st.caption("Two-factor verification is " + ("on" if user.two_factor_enabled else "off") + " for this account.")
