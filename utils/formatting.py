# lehenga/utils/formatting.py

import math
import re
from typing import Any, Optional

BARCODE_PREFIX = "600"


def to_float(value: Any, default: Optional[float] = None) -> Optional[float]:
    """
    Lenient number parsing for amounts coming from forms or old records.
    "5,000" -> 5000.0, "" -> default, "abc" -> default.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip().replace(",", "").replace("₹", "")
        if not text:
            return default
        try:
            number = float(text)
        except ValueError:
            return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def format_inr(n: Any) -> str:
    """
    Format a number with Indian digit grouping.
    Example: 1234567 -> "12,34,567", 1500.5 -> "1,500.5"
    """
    number = to_float(n, 0.0)
    negative = number < 0
    number = abs(number)

    whole, paise = divmod(int(round(number * 100)), 100)

    digits = str(whole)
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        digits = ",".join(groups + [tail])

    if paise:
        digits += "." + f"{paise:02d}".rstrip("0")

    return f"-{digits}" if negative and (whole or paise) else digits


def format_rupee(n: Any) -> str:
    return f"₹{format_inr(n)}"


def digits_only(value: Any) -> str:
    return re.sub(r"\D", "", str(value or ""))


def strip_barcode_prefix(barcode: str) -> str:
    """
    Barcodes printed by the label machine carry a "600" prefix that is
    not part of the stock code.
    """
    barcode = (barcode or "").strip()
    if barcode.startswith(BARCODE_PREFIX):
        return barcode[len(BARCODE_PREFIX):]
    return barcode
