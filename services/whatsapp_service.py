# services/whatsapp_service.py
import logging
from typing import Optional, Tuple
from urllib.parse import quote

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH

from domain.models import Order, StoreSettings
from utils.dates import format_date
from utils.docx_helpers import add_label_line, add_table, document_bytes
from utils.formatting import digits_only, format_inr, to_float

logger = logging.getLogger(__name__)

COUNTRY_CODE = "91"
WHATSAPP_BASE_URL = "https://wa.me/"

TEMPLATES = {
    "orderConfirmed": (
        "Namaste {customerName}! Your order #{billNumber} has been confirmed. "
        "Thank you for choosing us! 🎉"
    ),
    "readyForPickup": (
        "Hello {customerName}! Your order #{billNumber} is ready for pickup. "
        "Please visit our store. 📦"
    ),
    "paymentReminder": (
        "Dear {customerName}, friendly reminder: Your order #{billNumber} has pending amount "
        "of ₹{pendingAmount}. Kindly clear it at earliest. 💰"
    ),
    "deliveryUpdate": (
        "Hello {customerName}! Your order #{billNumber} is out for delivery. "
        "Expected delivery: {deliveryDate}. 🚚"
    ),
    "estimateShared": (
        "Hello {customerName}! Here's the estimate for your order #{billNumber}. "
        "Total: ₹{totalAmount}, Paid: ₹{paidAmount}, Pending: ₹{pendingAmount}. "
        "Delivery: {deliveryDate}."
    ),
}
TEMPLATE_LABELS = {
    "orderConfirmed": "✅ Order Confirmed",
    "readyForPickup": "📦 Ready for Pickup",
    "paymentReminder": "💰 Payment Reminder",
    "deliveryUpdate": "🚚 Delivery Update",
    "estimateShared": "🧾 Share Estimate",
}
DEFAULT_TEMPLATE = "estimateShared"


def _amount(value) -> str:
    number = to_float(value, 0.0)
    return format_inr(number) if number else "0"


def render_message(order: Order, template: str = DEFAULT_TEMPLATE) -> str:
    if template not in TEMPLATES:
        raise ValueError(f"Unknown WhatsApp template: {template}")
    values = {
        "customerName": order.customer_name or "Customer",
        "billNumber": order.bill_number or "N/A",
        "pendingAmount": _amount(order.pending_amount),
        "deliveryDate": format_date(order.delivery_date),
        "totalAmount": _amount(order.total_amount),
        "paidAmount": _amount(order.paid_amount),
    }
    message = TEMPLATES[template]
    for key, value in values.items():
        message = message.replace("{" + key + "}", str(value))
    return message


def format_whatsapp_phone(phone: str) -> str:
    """
    Digits only, Indian country code in front.
    "098765 43210" -> "919876543210", "+91 98765 43210" -> "919876543210"
    """
    digits = digits_only(phone)
    if digits.startswith("0"):
        digits = digits.lstrip("0")
    if not digits:
        return ""
    if digits.startswith(COUNTRY_CODE) and len(digits) > 10:
        return digits
    return COUNTRY_CODE + digits


def build_whatsapp_url(phone: str, message: Optional[str] = None) -> Tuple[bool, str, str]:
    """
    Returns (ok, message, url). The app only opens this link; nothing is
    sent through an API.
    """
    number = format_whatsapp_phone(phone)
    if not number:
        return False, "No phone number found for this order", ""
    url = f"{WHATSAPP_BASE_URL}{number}"
    if message:
        url += f"?text={quote(message, safe='')}"
    return True, "Link ready", url


def estimate_filename(order: Order) -> str:
    bill = "".join(ch for ch in str(order.bill_number) if ch.isalnum() or ch in "-_") or "order"
    return f"Estimate_{bill}.docx"


def build_estimate_docx(order: Order, settings: Optional[StoreSettings] = None) -> bytes:
    """
    Word estimate the salesman attaches to the WhatsApp chat by hand.
    """
    settings = settings or StoreSettings()
    doc = Document()

    title = doc.add_heading(settings.store_name, level=0)
    title.alignment = WD_ALIGN_PARAGRAPH.CENTER
    for line in (settings.store_address, settings.store_phone and f"Mob: {settings.store_phone}"):
        if line:
            doc.add_paragraph(line).alignment = WD_ALIGN_PARAGRAPH.CENTER

    doc.add_heading("ESTIMATE", level=1)
    add_label_line(doc, "Bill No", str(order.bill_number))
    add_label_line(doc, "Date", format_date(order.created_at))
    add_label_line(doc, "Customer", order.customer_name)
    add_label_line(doc, "Phone", order.phone_number)
    add_label_line(doc, "Delivery Date", format_date(order.delivery_date))

    doc.add_heading(f"Lehenga Details ({len(order.lehenga_details)} Items)", level=2)
    rows = []
    for n, item in enumerate(order.lehenga_details, start=1):
        size = "Unstitched" if item.is_unstitched else " / ".join(
            v or "Free" for v in (item.length, item.waist, item.hip)
        )
        rows.append([
            n,
            item.design or "N/A",
            item.color or "N/A",
            item.blouse_option or "N/A",
            item.main_dupatta or "N/A",
            size,
            f"₹{format_inr(to_float(item.amount, 0.0))}",
        ])
    add_table(doc, ["No", "Design", "Color", "Blouse", "Dupatta", "L / W / H", "Amount"], rows)

    doc.add_heading("Payment Summary", level=2)
    add_label_line(doc, "Total Amount", f"₹{_amount(order.total_amount)}")
    add_label_line(doc, "Paid Amount", f"₹{_amount(order.paid_amount)}")
    add_label_line(doc, "Pending Amount", f"₹{_amount(order.pending_amount)}")
    add_label_line(doc, "Payment Type", order.payment_type or "N/A")

    if order.notes.strip():
        add_label_line(doc, "Notes", order.notes)

    policy = doc.add_paragraph()
    policy.alignment = WD_ALIGN_PARAGRAPH.CENTER
    policy.add_run("NO RETURN | NO REFUND | NO EXCHANGE").bold = True

    doc.add_paragraph("Thank you for your business!").alignment = WD_ALIGN_PARAGRAPH.CENTER

    logger.info("Built estimate document for order #%s", order.bill_number)
    return document_bytes(doc)
