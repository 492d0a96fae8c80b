# services/auth_service.py
import hmac
import logging
from typing import Optional, Tuple

import data_integrator
from data_integrator import USERS
from domain.models import ALLOWED_ROLES, AppUser
from utils.dates import now_ms

logger = logging.getLogger(__name__)


def is_allowed_role(role: Optional[str]) -> bool:
    return (role or "").strip().lower() in ALLOWED_ROLES


def sign_in(email: str, password: str) -> Tuple[bool, str, Optional[AppUser]]:
    """
    Email/password check followed by the role check on `users/{uid}`.
    The signed-in user lives only in the caller's session; nothing is
    stored on the shared client.
    """
    email = (email or "").strip()
    if not email or not password:
        return False, "Email and password are required", None

    ok, msg, account = data_integrator.verify_credentials(email, password)
    if not ok:
        return False, "Invalid email or password", None

    ok, msg, row = data_integrator.fetch_row_by_id(USERS, account["uid"])
    if not ok:
        return False, f"Could not load user profile: {msg}", None
    if row is None:
        logger.warning("Sign-in by %s rejected: no user profile", email)
        return False, "User profile not found. Contact the store owner.", None

    role = (row.get("role") or "").strip().lower()
    if not is_allowed_role(role):
        logger.warning("Sign-in by %s rejected: role %r", email, role)
        return False, "Access denied. Insufficient permissions.", None

    user = AppUser(
        uid=account["uid"],
        email=account["email"],
        role=role,
        name=row.get("name") or "",
        two_factor_enabled=bool(row.get("twoFactorEnabled")),
        permissions=list(row.get("permissions") or []),
        login_count=int(row.get("loginCount") or 0) + 1,
    )

    # bookkeeping only; a failure here does not block the login
    ok, msg, _ = data_integrator.update_row(
        USERS, user.uid, {"lastLogin": now_ms(), "loginCount": user.login_count}
    )
    if not ok:
        logger.warning("Could not record login for %s: %s", email, msg)

    logger.info("%s signed in as %s", email, role)
    return True, f"Welcome, {user.display_name}", user


def verify_two_factor(code: str, expected: Optional[str]) -> Tuple[bool, str]:
    if not expected:
        return False, "Two-factor code is not configured (TWO_FACTOR_CODE)"
    if not code or not hmac.compare_digest(code.strip(), expected.strip()):
        return False, "Invalid verification code"
    return True, "Verified"


def sign_out(email: str) -> Tuple[bool, str, None]:
    logger.info("%s signed out", email)
    return True, "Signed out", None
