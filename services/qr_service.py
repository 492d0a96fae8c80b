# services/qr_service.py
import base64
import logging
from typing import Optional
from urllib.parse import urlencode

import requests

from config import load_config

logger = logging.getLogger(__name__)


def qr_image_url(data: str, size: int = 120, base_url: Optional[str] = None) -> str:
    base_url = base_url or load_config().qr_service_url
    return f"{base_url}?{urlencode({'size': f'{size}x{size}', 'data': data})}"


def fetch_qr_data_uri(
        data: str,
        *,
        size: int = 120,
        base_url: Optional[str] = None,
        timeout_seconds: int = 10,
        max_download_retries: int = 3,
) -> Optional[str]:
    """
    Download a QR image for `data` and return it as a data: URI so the
    printed page does not depend on the network. None when every attempt
    failed.
    """
    if not data or not isinstance(data, str):
        raise ValueError("data must be a non-empty string")

    image_url = qr_image_url(data, size=size, base_url=base_url)

    last_error = None
    for attempt in range(1, max_download_retries + 1):
        try:
            resp = requests.get(image_url, timeout=timeout_seconds)
            resp.raise_for_status()
            mimetype = resp.headers.get("Content-Type", "image/png").split(";")[0]
            encoded = base64.b64encode(resp.content).decode("ascii")
            return f"data:{mimetype};base64,{encoded}"
        except Exception as e:
            last_error = e
            logger.warning(
                "QR download failed (%d/%d): %s",
                attempt,
                max_download_retries,
                e,
            )

    logger.error("Giving up downloading QR for %s: %s", data, last_error)
    return None


def qr_image_src(data: str, **kwargs) -> str:
    """
    Inline image when the download works, otherwise the remote URL.
    """
    inline = fetch_qr_data_uri(data, **kwargs)
    if inline:
        return inline
    return qr_image_url(data, size=kwargs.get("size", 120), base_url=kwargs.get("base_url"))
