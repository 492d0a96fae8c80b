# services/print_service.py
import html
import logging
from typing import Any, List, Optional, Sequence, Tuple, Union

from domain.models import LehengaItem, Order, StockItem, StoreSettings
from services.stock_service import find_by_design
from utils.barcode import barcode_data_uri
from utils.dates import format_date
from utils.formatting import format_inr, to_float

logger = logging.getLogger(__name__)

CUSTOMER_RECEIPT = "customerReceipt"
SMALL_RECEIPT = "customerSmallReceipt"
LEHENGA_STICKER = "lehengaSticker"

DOCUMENT_TYPES = {
    CUSTOMER_RECEIPT: "Customer Estimate (A4)",
    SMALL_RECEIPT: "Customer Estimate (10x15 cm)",
    LEHENGA_STICKER: "Lehenga Sticker",
}

ALL_ITEMS = "all"

# ---------------------------------------------------------------------------
# Amount code printed on garment stickers
# ---------------------------------------------------------------------------

AMOUNT_CODE = {
    "0": "S", "1": "P", "2": "I", "3": "N", "4": "K",
    "5": "R", "6": "E", "7": "D", "8": "J", "9": "A",
}
AMOUNT_CODE_WIDTH = 5


def encode_amount(amount: Any) -> str:
    """
    Letter code for a price tag: each digit of the rounded amount mapped
    through PINKREDJAS (0=S ... 9=A), left-padded with S to 5 letters.
    Amounts above 99,999 keep all their digits.

    >>> encode_amount(5000)
    'SRSSS'
    >>> encode_amount(123456)
    'PINKRE'
    """
    value = int(round(abs(to_float(amount, 0.0))))
    digits = str(value).rjust(AMOUNT_CODE_WIDTH, "0")
    return "".join(AMOUNT_CODE[d] for d in digits)


# ---------------------------------------------------------------------------
# Shared pieces
# ---------------------------------------------------------------------------

PRINT_SCRIPT = """
<script>
  window.onload = function() {
    window.print();
    setTimeout(function() { window.close(); }, 1000);
  }
</script>
"""


def _e(value: Any, default: str = "N/A") -> str:
    text = "" if value is None else str(value)
    return html.escape(text if text.strip() else default)


def _money(value: Any) -> str:
    return f"₹{format_inr(to_float(value, 0.0))}"


def _extra_dupatta_label(item: LehengaItem, default: str = "NO") -> str:
    if item.extra_dupatta != "Yes":
        return default
    label = item.extra_dupatta_type or "Yes"
    if item.extra_dupatta_type == "Other" and item.other_dupatta_type:
        label = f"Other ({item.other_dupatta_type})"
    elif item.net_dupatta_color:
        label = f"{label} ({item.net_dupatta_color})"
    return label


def _blouse_label(item: LehengaItem) -> str:
    if item.blouse_option == "Specific Date" and item.blouse_date:
        return f"Specific Date ({format_date(item.blouse_date)})"
    return item.blouse_option


def _page(title: str, style: str, body: str) -> str:
    return "\n".join([
        "<!DOCTYPE html>",
        "<html>",
        "<head>",
        '<meta charset="utf-8">',
        f"<title>{html.escape(title)}</title>",
        f"<style>{style}</style>",
        "</head>",
        "<body>",
        body,
        PRINT_SCRIPT,
        "</body>",
        "</html>",
    ])


# ---------------------------------------------------------------------------
# A4 estimate
# ---------------------------------------------------------------------------

A4_STYLE = """
  body { font-family: Arial, sans-serif; margin: 0; padding: 20px; color: #000; line-height: 1.4; }
  .customer-receipt { max-width: 800px; margin: 0 auto; background: white; }
  .receipt-header { display: flex; justify-content: space-between; align-items: flex-start;
                    margin-bottom: 20px; padding-bottom: 15px; border-bottom: 2px solid #000; }
  .shop-info h1 { margin: 0 0 5px 0; font-size: 28px; color: #4a154b; }
  .shop-info p { margin: 2px 0; font-size: 12px; }
  .invoice-info { text-align: right; }
  .invoice-info h2 { margin: 0 0 8px 0; font-size: 22px; }
  .invoice-info p { margin: 3px 0; font-size: 13px; }
  .customer-info { margin-bottom: 20px; padding: 15px; background: #f8f9fa; border-radius: 8px;
                   border-left: 4px solid #4a154b; }
  .customer-info h3, .lehenga-details h3, .payment-details h3 { margin: 0 0 10px 0; font-size: 16px; }
  .customer-info p { margin: 4px 0; }
  .items-table { width: 100%; border-collapse: collapse; font-size: 12px; margin-bottom: 20px; }
  .items-table th { background: #4a154b; color: white; padding: 8px; border: 1px solid #ddd; text-align: left; }
  .items-table td { border: 1px solid #ddd; padding: 8px; }
  .payment-details { margin-bottom: 20px; padding: 15px; border: 2px solid #28a745; border-radius: 8px; }
  .payment-grid { display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr)); gap: 10px; }
  .payment-item { display: flex; justify-content: space-between; padding: 5px 0; border-bottom: 1px dashed #ddd; }
  .payment-item span:first-child { font-weight: 600; color: #495057; }
  .payment-item span:last-child { font-weight: 700; }
  .notes-section { margin-bottom: 20px; padding: 15px; background: #fff3cd; border-radius: 8px;
                   border-left: 4px solid #ffc107; }
  .notes-section p { margin: 0; font-style: italic; }
  .no-return-policy { text-align: center; font-weight: 700; font-size: 14px; color: #dc3545; margin: 20px 0;
                      padding: 15px; background: #f8d7da; border: 2px solid #dc3545; border-radius: 8px; }
  .receipt-footer { text-align: center; padding-top: 20px; border-top: 2px solid #000; }
  .receipt-footer p { margin: 5px 0; }
  .qr { margin-top: 8px; }
  .signature-section { display: flex; justify-content: space-between; margin-top: 40px; }
  .customer-sign, .company-sign { width: 45%; border-top: 1px solid #000; padding-top: 5px;
                                  text-align: center; font-size: 12px; }
  @media print {
    body { margin: 0; }
    .items-table { font-size: 10px; }
    .items-table th, .items-table td { padding: 6px 4px; }
  }
"""


def _a4_rows(order: Order) -> str:
    if not order.lehenga_details:
        return '<tr><td colspan="10" style="text-align: center;">No lehenga details available</td></tr>'

    rows = []
    for n, item in enumerate(order.lehenga_details, start=1):
        if item.is_unstitched:
            length, waist, hip = "Unstitched", "", ""
        else:
            length, waist, hip = item.length or "Free", item.waist or "Free", item.hip or "Free"
        rows.append(
            "<tr>"
            f'<td style="text-align: center; font-weight: 600;">{n}</td>'
            f"<td>{_e(item.design)}</td>"
            f"<td>{_e(item.color)}</td>"
            f"<td>{_e(_blouse_label(item))}</td>"
            f"<td>{_e(item.main_dupatta)}</td>"
            f"<td>{_e(_extra_dupatta_label(item))}</td>"
            f"<td>{_e(length, '')}</td>"
            f"<td>{_e(waist, '')}</td>"
            f"<td>{_e(hip, '')}</td>"
            f'<td style="text-align: right;">{_money(item.amount)}</td>'
            "</tr>"
        )
    return "\n".join(rows)


def _customer_receipt(order: Order, settings: StoreSettings, qr_src: Optional[str]) -> str:
    pending = to_float(order.pending_amount, 0.0)
    shop_lines = [
        f"<p>{_e(line, '')}</p>"
        for line in (
            settings.store_address,
            f"MOB: {settings.store_phone}" if settings.store_phone else "",
            f"GSTIN/UIN: {settings.gstin}" if settings.gstin else "",
        )
        if line
    ]
    pending_row = (
        f'<div class="payment-item"><span>Pending Amount:</span><span>{_money(pending)}</span></div>'
        if pending > 0 else ""
    )
    notes = (
        f'<div class="notes-section"><h3>Notes:</h3><p>{_e(order.notes)}</p></div>'
        if order.notes.strip() else ""
    )
    contact = f"<p>For any queries, contact: {_e(settings.store_phone)}</p>" if settings.store_phone else ""
    qr = f'<div class="qr"><img src="{html.escape(qr_src)}" alt="QR" width="100" height="100"></div>' if qr_src else ""

    body = f"""
<div class="customer-receipt">
  <div class="receipt-header">
    <div class="shop-info">
      <h1>{_e(settings.store_name)}</h1>
      {''.join(shop_lines)}
    </div>
    <div class="invoice-info">
      <h2>ESTIMATE</h2>
      <p><strong>DATE:</strong> {format_date(order.created_at)}</p>
      <p><strong>ORDER NO.:</strong> #{_e(order.bill_number)}</p>
      {qr}
    </div>
  </div>

  <div class="customer-info">
    <h3>Customer Details:</h3>
    <p><strong>Name:</strong> {_e(order.customer_name)}</p>
    <p><strong>Phone:</strong> {_e(order.phone_number)}</p>
    <p><strong>Bill No:</strong> {_e(order.bill_number)}</p>
    <p><strong>Delivery Date:</strong> {format_date(order.delivery_date)}</p>
  </div>

  <div class="lehenga-details">
    <h3>LEHENGA DETAILS ({len(order.lehenga_details)} Items)</h3>
    <table class="items-table">
      <thead>
        <tr>
          <th style="width: 30px;">No</th><th>Design</th><th>Color</th><th>Blouse</th><th>Dupatta</th>
          <th>Extra Dupatta</th><th>Length</th><th>Waist</th><th>Hip</th><th>Amount</th>
        </tr>
      </thead>
      <tbody>
{_a4_rows(order)}
      </tbody>
    </table>
  </div>

  <div class="payment-details">
    <h3>Payment Summary:</h3>
    <div class="payment-grid">
      <div class="payment-item"><span>Total Amount:</span><span>{_money(order.total_amount)}</span></div>
      <div class="payment-item"><span>Paid Amount:</span><span>{_money(order.paid_amount)}</span></div>
      {pending_row}
      <div class="payment-item"><span>Payment Type:</span><span>{_e(order.payment_type)}</span></div>
      <div class="payment-item"><span>Status:</span><span>{_e(order.status, 'Pending')}</span></div>
    </div>
  </div>

  <div class="no-return-policy">NO RETURN | NO REFUND | NO EXCHANGE</div>

  {notes}

  <div class="receipt-footer">
    <p><strong>Thank you for your business!</strong></p>
    {contact}
    <div class="signature-section">
      <div class="customer-sign"><p>Customer Signature</p></div>
      <div class="company-sign"><p>Authorized Signature</p></div>
    </div>
  </div>
</div>
"""
    return _page(f"Customer Estimate - Bill #{order.bill_number}", A4_STYLE, body)


# ---------------------------------------------------------------------------
# 10x15 cm estimate
# ---------------------------------------------------------------------------

SMALL_STYLE = """
  body { margin: 0; padding: 10px; font-family: Arial, sans-serif; background: white; }
  .small-receipt { width: 10cm; min-height: 15cm; border: 2px solid #000; padding: 12px; font-size: 12px;
                   line-height: 1.3; box-sizing: border-box; margin: 0 auto; }
  .receipt-header { text-align: center; margin-bottom: 10px; padding-bottom: 8px; border-bottom: 1px solid #000; }
  .shop-name { font-weight: 700; font-size: 16px; color: #4a154b; margin-bottom: 3px; }
  .receipt-title { font-weight: 600; font-size: 14px; margin-bottom: 5px; }
  .shop-contact { font-size: 10px; font-weight: 600; }
  .customer-info { margin-bottom: 10px; padding: 8px; background: #f8f9fa; border-radius: 4px;
                   border-left: 3px solid #4a154b; }
  .info-row, .lehenga-row, .payment-row { display: flex; justify-content: space-between; margin-bottom: 3px; }
  .info-label, .lehenga-label { font-weight: 600; color: #495057; min-width: 60px; }
  .info-value, .lehenga-value { font-weight: 500; text-align: right; flex: 1; }
  .lehenga-item { padding: 8px; margin-bottom: 8px; border: 1px solid #ddd; border-radius: 4px; font-size: 11px; }
  .lehenga-header { font-weight: 700; color: #4a154b; margin-bottom: 5px; padding-bottom: 3px;
                    border-bottom: 1px dashed #ccc; }
  .measurement-section { background: #e3f2fd; padding: 5px; border-radius: 3px; margin: 5px 0;
                         border-left: 3px solid #2196f3; }
  .payment-summary { margin-bottom: 10px; padding: 8px; background: #e8f5e8; border-radius: 4px;
                     border: 1px solid #28a745; }
  .payment-row { font-weight: 600; }
  .total-row { border-top: 1px solid #28a745; padding-top: 5px; margin-top: 5px; font-size: 13px; color: #155724; }
  .notes-section { margin-bottom: 10px; padding: 8px; background: #fff3cd; border-radius: 4px;
                   border: 1px solid #ffc107; font-size: 10px; }
  .no-return { text-align: center; font-weight: 700; font-size: 11px; color: #dc3545; margin: 8px 0; padding: 5px;
               background: #f8d7da; border: 1px solid #dc3545; border-radius: 3px; }
  .receipt-footer { text-align: center; padding-top: 8px; border-top: 1px solid #000; font-size: 10px; }
  .signature { margin-top: 15px; display: flex; justify-content: space-between; }
  .signature-box { width: 45%; border-top: 1px solid #000; padding-top: 3px; text-align: center; font-size: 10px; }
  @media print {
    body { margin: 0; padding: 0; }
    .small-receipt { border: 1px solid #000 !important; margin: 0 !important; }
  }
"""


def _row(css: str, label: str, value: Any, default: str = "N/A") -> str:
    return (
        f'<div class="{css}-row"><span class="{css}-label">{html.escape(label)}</span>'
        f'<span class="{css}-value">{_e(value, default)}</span></div>'
    )


def _small_item(n: int, item: LehengaItem) -> str:
    parts = [
        f'<div class="lehenga-header">Lehenga {n} - {_money(item.amount)}</div>',
        _row("lehenga", "Design:", item.design),
        _row("lehenga", "Color:", item.color),
        _row("lehenga", "Stitching:", "Unstitched" if item.is_unstitched else item.stitching_option),
    ]
    if not item.is_unstitched:
        parts.append(
            '<div class="measurement-section">'
            + _row("lehenga", "Length:", item.length, "Free")
            + _row("lehenga", "Waist:", item.waist, "Free")
            + _row("lehenga", "Hip:", item.hip, "Free")
            + "</div>"
        )
    parts.append(_row("lehenga", "Blouse:", _blouse_label(item)))
    if item.main_dupatta:
        parts.append(_row("lehenga", "Main Dupatta:", item.main_dupatta))
    if item.extra_dupatta == "Yes":
        parts.append(_row("lehenga", "Extra Dupatta:", _extra_dupatta_label(item)))
    return '<div class="lehenga-item">' + "".join(parts) + "</div>"


def _small_receipt(order: Order, settings: StoreSettings) -> str:
    pending = to_float(order.pending_amount, 0.0)
    items = "".join(_small_item(n, i) for n, i in enumerate(order.lehenga_details, start=1)) \
        or '<div class="lehenga-item">No lehenga details available</div>'
    pending_row = (
        f'<div class="payment-row total-row"><span>Pending Amount:</span><span>{_money(pending)}</span></div>'
        if pending > 0 else ""
    )
    notes = (
        f'<div class="notes-section"><strong>Notes:</strong> {_e(order.notes)}</div>'
        if order.notes.strip() else ""
    )
    contact = f'<div class="shop-contact">Mob: {_e(settings.store_phone)}</div>' if settings.store_phone else ""

    body = f"""
<div class="small-receipt">
  <div class="receipt-header">
    <div class="shop-name">{_e(settings.store_name)}</div>
    <div class="receipt-title">CUSTOMER ESTIMATE</div>
    {contact}
  </div>
  <div class="customer-info">
    {_row("info", "Bill No:", order.bill_number)}
    {_row("info", "Name:", order.customer_name)}
    {_row("info", "Phone:", order.phone_number)}
    {_row("info", "Date:", format_date(order.created_at))}
    {_row("info", "Delivery:", format_date(order.delivery_date))}
  </div>
  <div class="lehenga-details">{items}</div>
  <div class="payment-summary">
    <div class="payment-row"><span>Total Amount:</span><span>{_money(order.total_amount)}</span></div>
    <div class="payment-row"><span>Paid Amount:</span><span>{_money(order.paid_amount)}</span></div>
    {pending_row}
  </div>
  <div class="no-return">NO RETURN | NO REFUND | NO EXCHANGE</div>
  {notes}
  <div class="receipt-footer">
    <div>Thank you for your business!</div>
    <div class="signature">
      <div class="signature-box">Customer Signature</div>
      <div class="signature-box">Authorized Signature</div>
    </div>
  </div>
</div>
"""
    return _page(f"Customer Estimate - Bill #{order.bill_number}", SMALL_STYLE, body)


# ---------------------------------------------------------------------------
# Garment stickers
# ---------------------------------------------------------------------------

STICKER_STYLE = """
  body { margin: 0; padding: 10px; font-family: Arial, sans-serif; background: white; }
  .lehenga-stickers { display: grid; gap: 10px; }
  .lehenga-sticker { width: 10cm; height: 15cm; border: 2px solid #000; padding: 12px; font-size: 12px;
                     line-height: 1.3; page-break-after: always; box-sizing: border-box; margin: 0 auto; }
  .sticker-header { text-align: center; margin-bottom: 10px; padding-bottom: 8px; border-bottom: 1px solid #000; }
  .shop-name { font-weight: 700; font-size: 16px; color: #4a154b; }
  .sticker-title { font-weight: 600; font-size: 13px; }
  .info-row, .detail-row { display: flex; justify-content: space-between; margin-bottom: 3px; }
  .info-label, .detail-label { font-weight: 600; color: #495057; }
  .info-value, .detail-value { font-weight: 500; text-align: right; flex: 1; }
  .order-info, .lehenga-details { margin-bottom: 8px; padding-bottom: 6px; border-bottom: 1px dashed #ccc; }
  .measurement-section { background: #e3f2fd; padding: 6px; border-radius: 3px; margin: 6px 0; }
  .measurement-title { font-weight: 700; font-size: 11px; margin-bottom: 4px; }
  .measurement-grid { display: grid; grid-template-columns: repeat(3, 1fr); gap: 4px; text-align: center; }
  .measurement-label { display: block; font-size: 9px; color: #495057; }
  .measurement-value { display: block; font-weight: 700; }
  .amount-section { text-align: center; margin: 10px 0; }
  .amount-code { font-family: 'Courier New', monospace; font-size: 22px; font-weight: 700; letter-spacing: 4px; }
  .barcode img { height: 50px; }
  .no-return { text-align: center; font-weight: 700; font-size: 11px; color: #dc3545; margin: 8px 0; padding: 5px;
               border: 1px solid #dc3545; border-radius: 3px; }
  .sticker-footer { text-align: center; font-size: 10px; border-top: 1px solid #000; padding-top: 6px; }
  @media print { body { margin: 0; padding: 0; } .lehenga-sticker { margin: 0; } }
"""


def _sticker(order: Order, n: int, item: LehengaItem, settings: StoreSettings,
             stock_items: Sequence[StockItem]) -> str:
    measurements = ""
    if not item.is_unstitched:
        cells = "".join(
            f'<div class="measurement-item"><span class="measurement-label">{label}</span>'
            f'<span class="measurement-value">{_e(value, "Free")}</span></div>'
            for label, value in (("LENGTH", item.length), ("WAIST", item.waist), ("HIP", item.hip))
        )
        measurements = (
            '<div class="measurement-section"><div class="measurement-title">MEASUREMENTS</div>'
            f'<div class="measurement-grid">{cells}</div></div>'
        )

    details = [
        _row("detail", "Color:", item.color),
        _row("detail", "Stitching:", "Unstitched" if item.is_unstitched else item.stitching_option),
        _row("detail", "Blouse:", _blouse_label(item)),
    ]
    if item.main_dupatta:
        details.append(_row("detail", "Main Dupatta:", item.main_dupatta))
    if item.extra_dupatta == "Yes":
        details.append(_row("detail", "Extra Dupatta:", _extra_dupatta_label(item)))

    barcode = ""
    stock = find_by_design(stock_items, item.design)
    if stock is not None and stock.barcode:
        src = barcode_data_uri(stock.barcode)
        if src:
            barcode = f'<div class="barcode"><img src="{src}" alt="{_e(stock.barcode)}"></div>'

    footer_extra = f"<div>@{_e(settings.instagram_handle)}</div>" if settings.instagram_handle else ""

    return f"""
<div class="lehenga-sticker">
  <div class="sticker-header">
    <div class="shop-name">{_e(settings.print_shop_name)}</div>
    <div class="sticker-title">LEHENGA STICKER</div>
  </div>
  <div class="order-info">
    {_row("info", "Bill No:", order.bill_number)}
    {_row("info", "Name:", order.customer_name)}
    {_row("info", f"Lehenga #{n}:", item.design)}
  </div>
  <div class="lehenga-details">{''.join(details)}</div>
  {measurements}
  <div class="amount-section">
    <div class="amount-code">{encode_amount(item.amount)}</div>
    {barcode}
  </div>
  <div class="no-return">NO RETURN | NO REFUND</div>
  <div class="sticker-footer">
    <div class="delivery-info">Delivery: {format_date(order.delivery_date)}</div>
    <div class="thank-you-note">Thank you for choosing {_e(settings.print_shop_name)}!</div>
    {footer_extra}
  </div>
</div>
"""


def selected_items(order: Order, selection: Union[str, int]) -> Tuple[bool, str, List[Tuple[int, LehengaItem]]]:
    """
    Resolve "all" or a 0-based index into (1-based number, item) pairs.
    """
    items = order.lehenga_details
    if not items:
        return False, "This order has no lehenga items to print", []
    if selection == ALL_ITEMS:
        return True, "", list(enumerate(items, start=1))
    try:
        index = int(selection)
    except (TypeError, ValueError):
        return False, f"Unknown lehenga selection: {selection}", []
    if not 0 <= index < len(items):
        return False, f"Lehenga {index + 1} does not exist on this order", []
    return True, "", [(index + 1, items[index])]


def render_document(
        order: Optional[Order],
        doc_type: str,
        selection: Union[str, int] = ALL_ITEMS,
        settings: Optional[StoreSettings] = None,
        stock_items: Sequence[StockItem] = (),
        qr_src: Optional[str] = None,
) -> Tuple[bool, str, str]:
    """
    Build a standalone printable HTML page for an order.
    Returns (ok, message, html). Never mutates the order and never raises
    for bad input; problems come back as (False, reason, "").
    """
    if order is None:
        return False, "Order not found", ""
    settings = settings or StoreSettings()

    if doc_type == CUSTOMER_RECEIPT:
        return True, "Generated", _customer_receipt(order, settings, qr_src)

    if doc_type == SMALL_RECEIPT:
        return True, "Generated", _small_receipt(order, settings)

    if doc_type == LEHENGA_STICKER:
        ok, msg, chosen = selected_items(order, selection)
        if not ok:
            return False, msg, ""
        stickers = "".join(_sticker(order, n, item, settings, stock_items) for n, item in chosen)
        body = f'<div class="lehenga-stickers">{stickers}</div>'
        return True, "Generated", _page(f"Lehenga Stickers - Bill #{order.bill_number}", STICKER_STYLE, body)

    logger.warning("Unknown print document type %r", doc_type)
    return False, f"Unknown document type: {doc_type}", ""


def document_filename(order: Order, doc_type: str) -> str:
    prefix = {
        CUSTOMER_RECEIPT: "Estimate",
        SMALL_RECEIPT: "Estimate_Small",
        LEHENGA_STICKER: "Stickers",
    }.get(doc_type, "Document")
    bill = "".join(ch for ch in str(order.bill_number) if ch.isalnum() or ch in "-_") or "order"
    return f"{prefix}_{bill}.html"
