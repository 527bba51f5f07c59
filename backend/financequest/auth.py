"""Request identity for the API.

Sign-in lives in front of this service. The gateway validates the session
and forwards the user id in `X-User-Id`; this module only reads it, and guards
the admin and cron endpoints.
"""

import hmac
import os

from fastapi import Depends, Header, HTTPException, status

CRON_SECRET = os.environ.get("CRON_SECRET", "").strip()
ADMIN_USER_IDS = {
    int(value.strip())
    for value in os.environ.get("ADMIN_USER_IDS", "").split(",")
    if value.strip().isdigit()
}


def auth_exception(detail: str = "Authentication required.") -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def get_current_user_id(x_user_id: str | None = Header(default=None, alias="X-User-Id")) -> int:
    if not x_user_id:
        raise auth_exception()
    try:
        user_id = int(x_user_id.strip())
    except ValueError:
        raise auth_exception("Invalid user id.") from None
    if user_id <= 0:
        raise auth_exception("Invalid user id.")
    return user_id


def get_admin_user_id(user_id: int = Depends(get_current_user_id)) -> int:
    if user_id not in ADMIN_USER_IDS:
        raise HTTPException(status_code=403, detail="Admin access required.")
    return user_id


def require_cron_secret(authorization: str | None = Header(default=None, alias="Authorization")) -> None:
    if not CRON_SECRET:
        raise HTTPException(status_code=503, detail="Cron endpoints are not configured.")
    expected = f"Bearer {CRON_SECRET}"
    if not authorization or not hmac.compare_digest(authorization.strip(), expected):
        raise auth_exception("Unauthorized")
