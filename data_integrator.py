import logging
from functools import lru_cache
from typing import Dict, List, Any, Tuple, Optional, Iterable

from supabase import create_client, Client

from config import load_config

logger = logging.getLogger(__name__)

# Table names are the wire contract with data written by earlier versions
ORDERS = "Orders"
STOCK = "Stock"
SALESMEN = "salesmen"
SETTINGS = "settings"
USERS = "users"

SETTINGS_ROW_ID = "store"

ROW_NOT_MATCHED = "No matching row"


def new_client() -> Client:
    config = load_config()
    if not config.supabase_url or not config.supabase_key:
        raise RuntimeError("SUPABASE_URL and SUPABASE_KEY must be set (see .env)")
    return create_client(config.supabase_url, config.supabase_key)


@lru_cache(maxsize=1)
def get_client() -> Client:
    """
    Process-wide client for table access. Shared by every browser session,
    so it never carries a user's auth session.
    """
    return new_client()


def get_schema() -> str:
    return load_config().schema


def _table(table_name: str):
    return get_client().schema(get_schema()).table(table_name)


def is_exist(table_name: str, col_name: str, val: Any, exclude_id: Optional[str] = None) -> bool:
    query = _table(table_name).select("id").eq(col_name, val)
    if exclude_id is not None:
        query = query.neq("id", exclude_id)
    response = query.limit(1).execute()
    if getattr(response, "error", None):
        raise Exception(response.error)
    return len(response.data) != 0


def fetch_rows(
        table_name: str,
        order_by: Optional[str] = None,
        desc: bool = False,
) -> Tuple[bool, str, List[Dict[str, Any]]]:
    """
    Fetch a whole table.
    Returns (ok, message, rows)
    """
    try:
        query = _table(table_name).select("*")
        if order_by:
            query = query.order(order_by, desc=desc)
        resp = query.execute()

        if getattr(resp, "error", None):
            logger.error("Fetch %s failed: %s", table_name, resp.error)
            return False, f"Fetch failed: {resp.error}", []

        if not resp.data:
            return True, "No rows found", []

        return True, "Fetched", list(resp.data)

    except Exception as e:
        logger.error("Fetch %s failed: %s", table_name, e)
        return False, f"Unexpected error: {e}", []


def fetch_row_by_id(table_name: str, row_id: str) -> Tuple[bool, str, Optional[Dict[str, Any]]]:
    """
    Returns (ok, message, row). A missing row is ok=True with row=None.
    """
    try:
        resp = (
            _table(table_name)
            .select("*")
            .eq("id", row_id)
            .limit(1)
            .execute()
        )

        if getattr(resp, "error", None):
            return False, f"Fetch failed: {resp.error}", None

        if not resp.data:
            return True, "No rows found", None

        return True, "Fetched", resp.data[0]

    except Exception as e:
        logger.error("Fetch %s/%s failed: %s", table_name, row_id, e)
        return False, f"Unexpected error: {e}", None


def find_rows(table_name: str, col_name: str, val: Any) -> Tuple[bool, str, List[Dict[str, Any]]]:
    try:
        resp = (
            _table(table_name)
            .select("*")
            .eq(col_name, val)
            .execute()
        )

        if getattr(resp, "error", None):
            return False, f"Fetch failed: {resp.error}", []

        return True, "Fetched", list(resp.data or [])

    except Exception as e:
        return False, f"Unexpected error: {e}", []


def insert_row(table_name: str, row: Dict[str, Any]) -> Tuple[bool, str, Optional[Dict[str, Any]]]:
    """
    Insert a single row (form-style).
    Returns (ok, message, inserted_row)
    """
    try:
        resp = (
            _table(table_name)
            .insert(row)
            .execute()
        )

        if getattr(resp, "error", None):
            logger.error("Insert into %s failed: %s", table_name, resp.error)
            return False, f"Insert failed: {resp.error}", None

        inserted = resp.data[0] if resp.data else None
        logger.info("Inserted row into %s (id=%s)", table_name, inserted and inserted.get("id"))
        return True, "Inserted", inserted

    except Exception as e:
        logger.error("Insert into %s failed: %s", table_name, e)
        return False, str(e), None


def update_row(
        table_name: str,
        row_id: str,
        patch: Dict[str, Any],
        match: Optional[Dict[str, Any]] = None,
) -> Tuple[bool, str, Optional[Dict[str, Any]]]:
    """
    Update one row by id. Extra `match` columns make the write conditional
    (e.g. {"updatedAt": <token>}); when nothing matches, the message is
    ROW_NOT_MATCHED and nothing is written.
    Returns (ok, message, updated_row)
    """
    try:
        query = _table(table_name).update(patch).eq("id", row_id)
        for col, val in (match or {}).items():
            query = query.eq(col, val)
        resp = query.execute()

        if getattr(resp, "error", None):
            logger.error("Update %s/%s failed: %s", table_name, row_id, resp.error)
            return False, f"Update failed: {resp.error}", None

        if not resp.data:
            logger.warning("Update %s/%s matched no row (match=%s)", table_name, row_id, match)
            return False, ROW_NOT_MATCHED, None

        logger.info("Updated %s/%s", table_name, row_id)
        return True, "Updated", resp.data[0]

    except Exception as e:
        logger.error("Update %s/%s failed: %s", table_name, row_id, e)
        return False, str(e), None


def update_rows(
        table_name: str,
        row_ids: Iterable[str],
        patch: Dict[str, Any],
) -> Tuple[bool, str, List[Dict[str, Any]]]:
    """
    Apply the same patch to many rows in one statement. Postgres runs it as
    a single transaction, so either every row is updated or none is.
    """
    ids = list(row_ids)
    try:
        resp = (
            _table(table_name)
            .update(patch)
            .in_("id", ids)
            .execute()
        )

        if getattr(resp, "error", None):
            logger.error("Bulk update of %d %s rows failed: %s", len(ids), table_name, resp.error)
            return False, f"Update failed: {resp.error}", []

        updated = list(resp.data or [])
        logger.info("Bulk updated %d/%d %s rows", len(updated), len(ids), table_name)
        return True, "Updated", updated

    except Exception as e:
        logger.error("Bulk update of %d %s rows failed: %s", len(ids), table_name, e)
        return False, str(e), []


def upsert_row(table_name: str, row: Dict[str, Any]) -> Tuple[bool, str, Optional[Dict[str, Any]]]:
    try:
        resp = (
            _table(table_name)
            .upsert(row)
            .execute()
        )

        if getattr(resp, "error", None):
            return False, f"Upsert failed: {resp.error}", None

        return True, "Saved", resp.data[0] if resp.data else None

    except Exception as e:
        logger.error("Upsert into %s failed: %s", table_name, e)
        return False, str(e), None


def delete_row(table_name: str, row_id: str) -> Tuple[bool, str, Optional[Dict[str, Any]]]:
    try:
        resp = (
            _table(table_name)
            .delete()
            .eq("id", row_id)
            .execute()
        )

        if getattr(resp, "error", None):
            return False, f"Delete failed: {resp.error}", None

        if not resp.data:
            return False, ROW_NOT_MATCHED, None

        logger.info("Deleted %s/%s", table_name, row_id)
        return True, "Deleted", resp.data[0]

    except Exception as e:
        logger.error("Delete %s/%s failed: %s", table_name, row_id, e)
        return False, str(e), None


# -------------------------------------------------------------------
# Settings singleton
# -------------------------------------------------------------------

def fetch_settings() -> Tuple[bool, str, Dict[str, Any]]:
    """
    Returns (ok, message, stored_settings). Nothing stored yet is ok with {}.
    """
    ok, msg, row = fetch_row_by_id(SETTINGS, SETTINGS_ROW_ID)
    if not ok:
        return False, msg, {}
    if row is None:
        return True, "No settings stored", {}
    return True, "Fetched", dict(row.get("value") or {})


def save_settings(value: Dict[str, Any]) -> Tuple[bool, str, Optional[Dict[str, Any]]]:
    return upsert_row(SETTINGS, {"id": SETTINGS_ROW_ID, "value": value})


# -------------------------------------------------------------------
# Auth
# -------------------------------------------------------------------

def verify_credentials(email: str, password: str) -> Tuple[bool, str, Optional[Dict[str, Any]]]:
    """
    Check email/password against Supabase auth on a client of its own, then
    end that auth session again.
    Returns (ok, message, {"uid", "email"}).
    """
    try:
        client = new_client()
        resp = client.auth.sign_in_with_password({"email": email, "password": password})
    except Exception as e:
        logger.warning("Sign-in failed for %s: %s", email, e)
        return False, str(e), None

    try:
        client.auth.sign_out()
    except Exception as e:
        logger.warning("Could not close auth session for %s: %s", email, e)

    user = getattr(resp, "user", None)
    if user is None:
        return False, "Invalid email or password", None
    return True, "Signed in", {"uid": user.id, "email": user.email or email}
