"""Car status reconciler - corrective sweep for status drift.

A car can be left ``rented`` after an out-of-band status edit or a missed
transition. The sweep frees every rented car with no confirmed reservation
whose return is still ahead. Booking and cancellation keep status consistent
on their own and never call this.
"""

from __future__ import annotations

from datetime import datetime

from psycopg2.extensions import cursor as PgCursor

from carrental.domain.car_state import Available
from carrental.infra.db import run_txn, txn
from carrental.infra.repositories.cars_repository import (
    list_rented_car_ids,
    lock_car,
    set_car_state,
)
from carrental.infra.repositories.reservations_repository import (
    count_active_reservations,
)
from carrental.infra.time import as_utc, utc_now
from carrental.observability.logging import get_logger
from carrental.observability.redaction import safe_log_context

logger = get_logger(__name__)


def _reconcile_car(cur: PgCursor, *, car_id: str, now: datetime) -> bool:
    """Fix one car under its row lock. Returns True if its status changed."""
    car = lock_car(cur, car_id)
    # A concurrent cancellation may have freed it already
    if car is None or car["status"] != "rented":
        return False

    if count_active_reservations(cur, car_id=car_id, now=now) > 0:
        return False

    set_car_state(cur, car_id=car_id, state=Available())
    logger.info(
        "car status reconciled",
        extra={
            "extra_fields": safe_log_context(
                car_id=car_id,
                stale_reservation_id=car["current_reservation_id"],
            )
        },
    )
    return True


def reconcile_car_statuses(
    *,
    now: datetime | None = None,
    correlation_id: str | None = None,
) -> int:
    """Set rented cars without an active confirmed reservation back to available.

    Args:
        now: Reference time (default: current UTC time).
        correlation_id: Optional correlation ID for tracing.

    Returns:
        Number of cars fixed. A second run with no writes in between returns 0.
    """
    now = as_utc(now) if now is not None else utc_now()

    with txn() as cur:
        rented_ids = list_rented_car_ids(cur)

    fixed = 0
    for car_id in rented_ids:
        if run_txn(lambda c, cid=car_id: _reconcile_car(c, car_id=cid, now=now)):
            fixed += 1

    logger.info(
        "car status reconciliation finished",
        extra={
            "extra_fields": safe_log_context(
                correlationId=correlation_id,
                rented_cars=len(rented_ids),
                fixed=fixed,
            )
        },
    )
    return fixed
