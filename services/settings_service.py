# services/settings_service.py
import logging
from typing import List, Optional, Tuple

import data_integrator
from data_integrator import SALESMEN
from domain.models import Salesman, StoreSettings
from utils.dates import now_ms
from utils.formatting import to_float

logger = logging.getLogger(__name__)

THEMES = ("dark", "light")
DATE_FORMATS = ("DD/MM/YYYY", "DD-MM-YYYY", "YYYY-MM-DD")


# -------------------------------------------------------------------
# Store settings
# -------------------------------------------------------------------

def load_settings() -> Tuple[bool, str, StoreSettings]:
    """
    Stored settings merged over the defaults. On a read failure the
    defaults are returned together with ok=False.
    """
    ok, msg, stored = data_integrator.fetch_settings()
    if not ok:
        logger.warning("Using default settings: %s", msg)
        return False, msg, StoreSettings()
    return True, msg, StoreSettings.from_record(stored)


def save_settings(settings: StoreSettings) -> Tuple[bool, str, Optional[StoreSettings]]:
    if not settings.store_name.strip():
        return False, "Store name is required", None
    threshold = to_float(settings.low_stock_threshold)
    if threshold is None or threshold < 0:
        return False, "Low stock threshold must be a non-negative number", None
    if settings.theme not in THEMES:
        return False, f"Unknown theme: {settings.theme}", None

    ok, msg, _ = data_integrator.save_settings(settings.to_record())
    if not ok:
        return False, f"Could not save settings: {msg}", None
    logger.info("Store settings saved")
    return True, "Settings saved successfully", settings


# -------------------------------------------------------------------
# Salesmen
# -------------------------------------------------------------------

def load_salesmen() -> Tuple[bool, str, List[Salesman]]:
    ok, msg, rows = data_integrator.fetch_rows(SALESMEN, order_by="name")
    if not ok:
        return False, msg, []
    return True, msg, [Salesman.from_record(r) for r in rows]


def active_salesmen(salesmen: List[Salesman]) -> List[Salesman]:
    """
    Pickers only offer active salesmen, sorted by name.
    """
    return sorted((s for s in salesmen if s.active), key=lambda s: s.name.lower())


def add_salesman(name: str, phone: str = "") -> Tuple[bool, str, Optional[Salesman]]:
    name = (name or "").strip()
    if not name:
        return False, "Salesman name is required", None

    salesman = Salesman(name=name, phone=(phone or "").strip(), active=True, created_at=now_ms())
    ok, msg, row = data_integrator.insert_row(SALESMEN, salesman.to_record())
    if not ok:
        return False, f"Could not add salesman: {msg}", None
    logger.info('Salesman "%s" added', name)
    return True, "Salesman added successfully", Salesman.from_record(row) if row else salesman


def set_salesman_active(salesman_id: str, active: bool) -> Tuple[bool, str, Optional[Salesman]]:
    ok, msg, row = data_integrator.update_row(SALESMEN, salesman_id, {"active": bool(active)})
    if not ok:
        if msg == data_integrator.ROW_NOT_MATCHED:
            return False, "Salesman not found", None
        return False, f"Could not update salesman: {msg}", None
    return True, "Salesman activated" if active else "Salesman deactivated", Salesman.from_record(row)


def delete_salesman(salesman_id: str) -> Tuple[bool, str, None]:
    """
    Hard delete. Orders keep the salesman's name in their line items.
    """
    ok, msg, _ = data_integrator.delete_row(SALESMEN, salesman_id)
    if not ok:
        if msg == data_integrator.ROW_NOT_MATCHED:
            return False, "Salesman not found", None
        return False, f"Could not delete salesman: {msg}", None
    logger.info("Salesman %s deleted", salesman_id)
    return True, "Salesman deleted", None
