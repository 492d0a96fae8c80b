# lehenga/config.py

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class AppConfig:
    supabase_url: Optional[str]
    supabase_key: Optional[str]
    schema: str = "public"
    state_dir: Optional[str] = None
    log_level: str = "INFO"
    two_factor_code: Optional[str] = None
    qr_service_url: str = "https://api.qrserver.com/v1/create-qr-code/"
    orders_page_size: int = 10


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logging.getLogger(__name__).warning("Ignoring non-integer %s=%r", name, raw)
        return default


def load_config() -> AppConfig:
    """
    Read settings from the environment (and `.env`, via python-dotenv).
    """
    return AppConfig(
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_key=os.getenv("SUPABASE_KEY"),
        schema=os.getenv("SCHEMA") or "public",
        state_dir=os.getenv("APP_STATE_DIR"),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        two_factor_code=os.getenv("TWO_FACTOR_CODE"),
        qr_service_url=os.getenv("QR_SERVICE_URL") or AppConfig.qr_service_url,
        orders_page_size=_int_env("ORDERS_PAGE_SIZE", 10),
    )


def configure_logging(config: Optional[AppConfig] = None) -> None:
    config = config or load_config()
    root = logging.getLogger()
    # streamlit reruns the page script; only attach the handler once
    if getattr(root, "_lehenga_configured", False):
        return
    logging.basicConfig(level=config.log_level, format=LOG_FORMAT)
    root._lehenga_configured = True
