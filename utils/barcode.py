# lehenga/utils/barcode.py

import base64
import io
import logging
from functools import lru_cache

from barcode import Code128
from barcode.writer import SVGWriter

logger = logging.getLogger(__name__)

STICKER_WRITER_OPTIONS = {
    "module_width": 0.25,
    "module_height": 9.0,
    "font_size": 8,
    "text_distance": 3.0,
    "quiet_zone": 2.0,
}


@lru_cache(maxsize=256)
def barcode_svg(barcode_text: str) -> bytes:
    """
    Render `barcode_text` as a Code128 SVG, in memory.
    """
    buffer = io.BytesIO()
    Code128(barcode_text, writer=SVGWriter()).write(buffer, STICKER_WRITER_OPTIONS)
    return buffer.getvalue()


def barcode_data_uri(barcode_text: str) -> str:
    """
    Return a `data:` URI usable as an <img> src so printed documents stay
    self-contained. Empty string when the text cannot be encoded.
    """
    if not barcode_text:
        return ""
    try:
        svg = barcode_svg(barcode_text)
    except Exception as e:
        logger.warning('Could not render barcode "%s": %s', barcode_text, e)
        return ""
    return "data:image/svg+xml;base64," + base64.b64encode(svg).decode("ascii")
