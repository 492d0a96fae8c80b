import base64

from utils import barcode


def test_barcode_data_uri_is_inline_svg():
    uri = barcode.barcode_data_uri("600AB12")
    assert uri.startswith("data:image/svg+xml;base64,")
    svg = base64.b64decode(uri.split(",", 1)[1])
    assert b"<svg" in svg


def test_barcode_data_uri_empty():
    assert barcode.barcode_data_uri("") == ""
