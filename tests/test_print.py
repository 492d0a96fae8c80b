import pytest

from domain.models import LehengaItem, Order, StockItem, StoreSettings
from services import print_service
from services.print_service import (
    CUSTOMER_RECEIPT,
    LEHENGA_STICKER,
    SMALL_RECEIPT,
    document_filename,
    encode_amount,
    render_document,
)


@pytest.mark.parametrize(
    "amount, expected",
    [
        (5000, "SRSSS"),
        (12500, "PIRSS"),
        (999, "SSAAA"),
        (0, "SSSSS"),
        ("7,850", "SDJRS"),
        (123456, "PINKRE"),
        (None, "SSSSS"),
    ],
)
def test_encode_amount(amount, expected):
    assert encode_amount(amount) == expected


@pytest.fixture()
def order():
    return Order(
        id="o1",
        customer_name="<Asha & Co>",
        phone_number="9876543210",
        bill_number="B100",
        delivery_date="10-01-2024",
        created_at="05-01-2024",
        total_amount=12500,
        paid_amount=2500,
        pending_amount=10000,
        notes="Deliver after 5pm",
        lehenga_details=[
            LehengaItem(design="D1", color="Red", amount=5000, salesmen=["Asha"]),
            LehengaItem(design="D2", color="Blue", amount=7500, stitching_option="Stitched",
                        length="40", waist="", hip="38", extra_dupatta="Yes", extra_dupatta_type="Net",
                        net_dupatta_color="Gold"),
        ],
    )


def test_receipt_escapes_customer_text(order):
    ok, msg, page = render_document(order, CUSTOMER_RECEIPT)

    assert ok, msg
    assert page.startswith("<!DOCTYPE html>")
    assert "&lt;Asha &amp; Co&gt;" in page
    assert "<Asha & Co>" not in page
    assert "NO RETURN | NO REFUND | NO EXCHANGE" in page
    assert "₹10,000" in page
    assert "window.print()" in page


def test_receipt_measurements_and_dupatta(order):
    _, _, page = render_document(order, CUSTOMER_RECEIPT)
    assert "Unstitched" in page
    assert "Free" in page
    assert "Net (Gold)" in page


def test_receipt_uses_store_settings_and_qr(order):
    settings = StoreSettings(store_name="Rang Mahal", store_phone="0261-123456", gstin="24ABCDE1234F1Z5")
    _, _, page = render_document(order, CUSTOMER_RECEIPT, settings=settings, qr_src="data:image/png;base64,AAA")
    assert "Rang Mahal" in page
    assert "GSTIN/UIN: 24ABCDE1234F1Z5" in page
    assert 'src="data:image/png;base64,AAA"' in page


def test_small_receipt(order):
    ok, _, page = render_document(order, SMALL_RECEIPT)
    assert ok
    assert "CUSTOMER ESTIMATE" in page
    assert "Lehenga 2 - ₹7,500" in page


def test_stickers_all_and_single(order, monkeypatch):
    monkeypatch.setattr(print_service, "barcode_data_uri", lambda code: f"data:test,{code}")
    stock = [StockItem(id="s1", design="d1", amount=5000, barcode="600XYZ")]
    settings = StoreSettings(sticker_shop_name="RM Bridal", instagram_handle="rangmahal")

    ok, _, page = render_document(order, LEHENGA_STICKER, settings=settings, stock_items=stock)
    assert ok
    assert page.count('class="lehenga-sticker"') == 2
    assert "SRSSS" in page and "SDRSS" in page
    assert "data:test,600XYZ" in page
    assert "RM Bridal" in page
    assert "@rangmahal" in page
    assert "NO RETURN | NO REFUND</div>" in page

    ok, _, page = render_document(order, LEHENGA_STICKER, selection=1)
    assert ok
    assert page.count('class="lehenga-sticker"') == 1
    assert "Lehenga #2:" in page


def test_render_failures_are_returned_not_raised(order):
    assert render_document(None, CUSTOMER_RECEIPT) == (False, "Order not found", "")
    assert render_document(order, "poster")[0] is False
    ok, msg, page = render_document(order, LEHENGA_STICKER, selection=5)
    assert (ok, page) == (False, "")
    assert msg == "Lehenga 6 does not exist on this order"
    assert render_document(Order(id="x"), LEHENGA_STICKER)[0] is False


def test_render_does_not_mutate(order):
    before = order.to_record()
    render_document(order, CUSTOMER_RECEIPT)
    render_document(order, LEHENGA_STICKER)
    assert order.to_record() == before


def test_document_filename(order):
    assert document_filename(order, CUSTOMER_RECEIPT) == "Estimate_B100.html"
    assert document_filename(order, LEHENGA_STICKER) == "Stickers_B100.html"
