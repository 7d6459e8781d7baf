"""
Per-session payment form defaults.

The add-payment form remembers the last payment date and mode a user picked
for each project until the entry expires. The cache is process-local and
ephemeral; nothing is written to the database.
"""
import threading
from datetime import date, datetime, timedelta
from typing import Dict, Any, Optional, Tuple

from fastapi import HTTPException, status

from solardesk.core.auth import SessionContext
from solardesk.core.config import settings
from solardesk.core.logging import get_logger
from solardesk.schemas.payment import (
    PAYMENT_MODES,
    PaymentFormDefaults,
    PaymentFormDefaultsUpdate,
)

logger = get_logger("services.payment_form")

DEFAULT_PAYMENT_MODE = "Cash"

# Structure: {(user_id, project_id): {"payment_date": date, "payment_mode": str, "cached_at": datetime}}
_form_cache: Dict[Tuple[str, int], Dict[str, Any]] = {}
_cache_lock = threading.Lock()


def _cache_ttl() -> timedelta:
    return timedelta(minutes=settings.PAYMENT_FORM_TTL_MINUTES)


def _get_cached(key: Tuple[str, int]) -> Optional[Dict[str, Any]]:
    with _cache_lock:
        cached = _form_cache.get(key)
        if not cached:
            return None
        if datetime.utcnow() - cached["cached_at"] > _cache_ttl():
            del _form_cache[key]
            logger.debug(f"Payment form defaults expired for {key}")
            return None
        return cached


def get_payment_form_defaults(
    session: SessionContext, project_id: int, today: Optional[date] = None
) -> PaymentFormDefaults:
    cached = _get_cached((session.user_id, project_id)) or {}
    return PaymentFormDefaults(
        payment_date=cached.get("payment_date") or today or date.today(),
        payment_mode=cached.get("payment_mode") or DEFAULT_PAYMENT_MODE,
    )


def remember_payment_form_defaults(
    session: SessionContext,
    project_id: int,
    update: PaymentFormDefaultsUpdate,
    today: Optional[date] = None,
) -> PaymentFormDefaults:
    if update.payment_mode is not None and update.payment_mode not in PAYMENT_MODES:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Invalid payment mode. Must be one of: {', '.join(PAYMENT_MODES)}",
        )

    current = get_payment_form_defaults(session, project_id, today)
    entry = {
        "payment_date": update.payment_date or current.payment_date,
        "payment_mode": update.payment_mode or current.payment_mode,
        "cached_at": datetime.utcnow(),
    }
    with _cache_lock:
        _form_cache[(session.user_id, project_id)] = entry

    return PaymentFormDefaults(
        payment_date=entry["payment_date"],
        payment_mode=entry["payment_mode"],
    )


def clear_payment_form_defaults() -> None:
    with _cache_lock:
        _form_cache.clear()
