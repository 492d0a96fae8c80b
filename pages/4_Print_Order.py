import streamlit as st
import streamlit.components.v1 as components

from element_component import get_settings, get_stock, page_setup
from services import print_service, qr_service, whatsapp_service
from utils.dates import format_date

user, orders = page_setup("Print & Share", "🖨️")

st.title("🖨️ Print & Share")

if not orders:
    st.info("No orders yet.")
    st.stop()

settings = get_settings()
by_id = {o.id: o for o in orders}
ids = list(by_id)

requested = st.session_state.pop("print_order_requested", None)
if requested in by_id:
    st.session_state["print_order_id"] = requested
elif st.session_state.get("print_order_id") not in by_id:
    st.session_state.pop("print_order_id", None)

selected_id = st.selectbox(
    "Order",
    ids,
    key="print_order_id",
    format_func=lambda i: f"#{by_id[i].bill_number} · {by_id[i].customer_name} · {format_date(by_id[i].created_at)}",
)
order = by_id[selected_id]

tab_print, tab_share = st.tabs(["Print", "WhatsApp"])

# -------------------------------------------------------------------
# Print
# -------------------------------------------------------------------


@st.cache_data(ttl=3600, show_spinner="Preparing QR code...")
def _qr_src(data: str) -> str:
    return qr_service.qr_image_src(data)


def _qr_payload() -> str:
    if settings.instagram_handle:
        return f"https://instagram.com/{settings.instagram_handle.lstrip('@')}"
    return f"{settings.store_name} - Bill #{order.bill_number}"


with tab_print:
    col_type, col_item = st.columns(2)
    doc_type = col_type.radio(
        "Document",
        list(print_service.DOCUMENT_TYPES),
        format_func=print_service.DOCUMENT_TYPES.get,
    )

    selection = print_service.ALL_ITEMS
    if doc_type == print_service.LEHENGA_STICKER:
        choices = [print_service.ALL_ITEMS] + list(range(len(order.lehenga_details)))
        selection = col_item.selectbox(
            "Lehenga",
            choices,
            format_func=lambda c: "All lehengas" if c == print_service.ALL_ITEMS
            else f"Lehenga {c + 1} · {order.lehenga_details[c].design or 'N/A'}",
        )

    qr_src = _qr_src(_qr_payload()) if doc_type == print_service.CUSTOMER_RECEIPT else None
    ok, msg, page = print_service.render_document(
        order,
        doc_type,
        selection=selection,
        settings=settings,
        stock_items=get_stock(),
        qr_src=qr_src,
    )

    if not ok:
        st.error(msg)
    else:
        st.download_button(
            "⬇️ Download printable page",
            data=page.encode("utf-8"),
            file_name=print_service.document_filename(order, doc_type),
            mime="text/html",
            type="primary",
        )
        st.caption("Open the downloaded page in a browser; the print dialog opens on load.")
        components.html(page, height=900, scrolling=True)

# -------------------------------------------------------------------
# WhatsApp
# -------------------------------------------------------------------

with tab_share:
    templates = list(whatsapp_service.TEMPLATES)
    template = st.selectbox(
        "Message",
        templates,
        index=templates.index(whatsapp_service.DEFAULT_TEMPLATE),
        format_func=whatsapp_service.TEMPLATE_LABELS.get,
    )
    message = st.text_area(
        "Text",
        value=whatsapp_service.render_message(order, template),
        key=f"wa_{selected_id}_{template}",
    )

    ok, msg, url = whatsapp_service.build_whatsapp_url(order.phone_number, message)
    if not ok:
        st.warning(msg)
    else:
        st.link_button(f"💬 Open WhatsApp for {order.phone_number}", url, type="primary")

    if template == "estimateShared":
        st.download_button(
            "📄 Download estimate (Word)",
            data=whatsapp_service.build_estimate_docx(order, settings),
            file_name=whatsapp_service.estimate_filename(order),
            mime="application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        )
        st.caption("Attach the estimate in the chat after it opens.")
