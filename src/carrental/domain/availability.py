"""Availability checker for cars.

Overlap formula (inclusive bounds):
    (new_start <= existing_return) AND (new_end >= existing_pickup)

A car returned on the same day another rental starts is a conflict: boundary
days are shared, matching day-granularity pricing. Only ``confirmed``
reservations block a car.
"""

from __future__ import annotations

from datetime import datetime

from psycopg2.extensions import cursor as PgCursor

from carrental.domain.errors import InvalidIntervalError
from carrental.infra.db import txn
from carrental.infra.repositories.reservations_repository import (
    find_overlapping_reservation,
    list_confirmed_intervals,
)
from carrental.infra.time import as_utc
from carrental.observability.logging import get_logger
from carrental.observability.redaction import safe_log_context

logger = get_logger(__name__)


def validate_interval(
    start: datetime | None, end: datetime | None
) -> tuple[datetime, datetime]:
    """Normalize a candidate interval to UTC and check start < end.

    Raises:
        InvalidIntervalError: If a bound is missing or start >= end.
    """
    if start is None or end is None:
        raise InvalidIntervalError("pickup and return dates are required")

    start, end = as_utc(start), as_utc(end)
    if start >= end:
        raise InvalidIntervalError("pickup must be before return")
    return start, end


def find_overlap(
    cur: PgCursor,
    *,
    car_id: str,
    start: datetime,
    end: datetime,
    lock: bool = False,
) -> str | None:
    """Return the id of a confirmed reservation overlapping [start, end], if any.

    Args:
        cur: Database cursor (inside the transaction that will write).
        car_id: Car identifier.
        start: Candidate pickup.
        end: Candidate return.
        lock: If True, lock the conflicting row.

    Raises:
        InvalidIntervalError: If start >= end.
    """
    start, end = validate_interval(start, end)
    conflicting_id = find_overlapping_reservation(
        cur, car_id=car_id, start=start, end=end, lock=lock
    )

    if conflicting_id is not None:
        logger.info(
            "car interval overlap detected",
            extra={
                "extra_fields": safe_log_context(
                    car_id=car_id,
                    requested_pickup=start,
                    requested_return=end,
                    conflicting_reservation_id=conflicting_id,
                )
            },
        )
    return conflicting_id


def has_overlap(
    cur: PgCursor,
    *,
    car_id: str,
    start: datetime,
    end: datetime,
) -> bool:
    """True if any confirmed reservation of the car overlaps [start, end]."""
    return find_overlap(cur, car_id=car_id, start=start, end=end) is not None


def list_bookings(car_id: str, *, cur: PgCursor | None = None) -> list[dict]:
    """Confirmed intervals of a car, ordered by pickup (calendar rendering)."""
    if cur is not None:
        rows = list_confirmed_intervals(cur, car_id=car_id)
    else:
        with txn() as c:
            rows = list_confirmed_intervals(c, car_id=car_id)

    return [
        {"pickup_at": pickup_at, "return_at": return_at}
        for pickup_at, return_at in rows
    ]
