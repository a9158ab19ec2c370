"""Reservation lifecycle - transactional booking, cancellation and completion.

Every operation that touches a car's state runs in one DB transaction that
first locks the car row (SELECT ... FOR UPDATE). Two concurrent bookings of
the same car therefore run one after the other, and the second one sees the
first one's reservation in its overlap check. Lock order is always car, then
reservation.
"""

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from psycopg2 import errors as pg_errors
from psycopg2.extensions import cursor as PgCursor

from carrental.domain.availability import find_overlap, validate_interval
from carrental.domain.car_state import Available, Rented, car_state_from_row
from carrental.domain.errors import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotAvailableError,
    NotFoundError,
)
from carrental.infra.db import RETRYABLE_ERRORS, run_txn, txn
from carrental.infra.repositories.cars_repository import lock_car, set_car_state
from carrental.infra.repositories.reservations_repository import (
    get_reservation,
    insert_reservation,
    list_ended_confirmed,
    list_user_reservations,
    lock_reservation,
    update_reservation_status,
)
from carrental.infra.time import as_utc, utc_now
from carrental.observability.logging import get_logger
from carrental.observability.redaction import safe_log_context

logger = get_logger(__name__)

RESERVATION_STATUSES = ("confirmed", "cancelled", "completed")

_CENT = Decimal("0.01")


def rental_days(start: datetime, end: datetime) -> int:
    """Whole days billed for [start, end]: partial days round up, minimum 1.

    The return day is not billed on its own: 2024-01-10 to 2024-01-12 is
    two days.
    """
    delta = end - start
    days = delta.days + (1 if delta.seconds or delta.microseconds else 0)
    return max(days, 1)


def calculate_total_price(price_per_day: Decimal, start: datetime, end: datetime) -> Decimal:
    """Linear price: rental_days x price_per_day, rounded to cents."""
    total = Decimal(price_per_day) * rental_days(start, end)
    return total.quantize(_CENT, rounding=ROUND_HALF_UP)


def create_reservation(
    *,
    user_id: str,
    car_id: str,
    start: datetime | None,
    end: datetime | None,
    correlation_id: str | None = None,
    cur: PgCursor | None = None,
) -> dict:
    """Book a car for [start, end].

    This function:
    1. Validates the interval (nothing is read or written on failure)
    2. Locks the car row
    3. Rejects the request if a confirmed reservation overlaps it
    4. Requires the car to be available
    5. Inserts the confirmed reservation with a server-side total price
    6. Marks the car rented by the new reservation

    Steps 2-6 are one transaction; a serialization failure or deadlock
    re-runs it once.

    Args:
        user_id: Booking user's id.
        car_id: Car id.
        start: Pickup timestamp (naive values are taken as UTC).
        end: Return timestamp.
        correlation_id: Optional correlation ID for tracing.
        cur: Optional cursor of an enclosing transaction (no retry then).

    Returns:
        The reservation dict.

    Raises:
        InvalidIntervalError: If a bound is missing or start >= end.
        NotFoundError: If the car does not exist.
        ConflictError: If the interval overlaps a confirmed reservation, or
            the transaction kept failing on concurrent writes.
        NotAvailableError: If the car is not available.
    """
    start, end = validate_interval(start, end)

    def _do(c: PgCursor) -> dict:
        car = lock_car(c, car_id)
        if car is None:
            raise NotFoundError(f"Car {car_id} not found")

        conflicting_id = find_overlap(c, car_id=car_id, start=start, end=end)
        if conflicting_id is not None:
            raise ConflictError(
                "Car is already reserved for the selected dates",
                conflicting_id=conflicting_id,
            )

        state = car_state_from_row(car["status"], car["current_reservation_id"])
        if not isinstance(state, Available):
            raise NotAvailableError(
                f"Car {car_id} is not available for reservation (status '{state.status}')"
            )

        reservation = insert_reservation(
            c,
            user_id=user_id,
            car_id=car_id,
            pickup_at=start,
            return_at=end,
            total_price=calculate_total_price(car["price_per_day"], start, end),
        )
        set_car_state(c, car_id=car_id, state=Rented(reservation_id=reservation["id"]))
        return reservation

    try:
        reservation = _do(cur) if cur is not None else run_txn(_do)
    except pg_errors.ExclusionViolation:
        raise ConflictError("Car is already reserved for the selected dates")
    except RETRYABLE_ERRORS:
        raise ConflictError("Car is being booked concurrently, please retry")

    logger.info(
        "reservation created",
        extra={
            "extra_fields": safe_log_context(
                correlationId=correlation_id,
                reservation_id=reservation["id"],
                car_id=car_id,
                pickup_at=start,
                return_at=end,
                total_price=reservation["total_price"],
            )
        },
    )
    return reservation


def cancel_reservation(
    *,
    reservation_id: str,
    requesting_user_id: str,
    correlation_id: str | None = None,
    cur: PgCursor | None = None,
) -> dict:
    """Cancel a confirmed reservation and free its car if this reservation rents it.

    Args:
        reservation_id: Reservation id.
        requesting_user_id: Must own the reservation.
        correlation_id: Optional correlation ID for tracing.
        cur: Optional cursor of an enclosing transaction (no retry then).

    Returns:
        The updated reservation dict.

    Raises:
        NotFoundError: If the reservation does not exist.
        ForbiddenError: If it belongs to another user.
        InvalidStateError: If it is not confirmed (car is left untouched).
        ConflictError: If the transaction kept failing on concurrent writes.
    """

    def _do(c: PgCursor) -> dict:
        existing = get_reservation(c, reservation_id)
        if existing is None:
            raise NotFoundError(f"Reservation {reservation_id} not found")

        car = lock_car(c, existing["car_id"])
        reservation = lock_reservation(c, reservation_id)
        if reservation is None:
            raise NotFoundError(f"Reservation {reservation_id} not found")

        if reservation["user_id"] != str(requesting_user_id):
            raise ForbiddenError("Reservation belongs to another user")

        if reservation["status"] != "confirmed":
            raise InvalidStateError(
                f"Reservation {reservation_id} has status '{reservation['status']}', "
                "expected 'confirmed'"
            )

        updated = update_reservation_status(
            c, reservation_id=reservation_id, status="cancelled"
        )
        _release_car(c, car, reservation_id=reservation_id)
        return updated

    try:
        updated = _do(cur) if cur is not None else run_txn(_do)
    except RETRYABLE_ERRORS:
        raise ConflictError("Reservation is being updated concurrently, please retry")

    logger.info(
        "reservation cancelled",
        extra={
            "extra_fields": safe_log_context(
                correlationId=correlation_id,
                reservation_id=reservation_id,
                car_id=updated["car_id"],
            )
        },
    )
    return updated


def _release_car(c: PgCursor, car: dict | None, *, reservation_id: str) -> bool:
    """Set the locked car available if it is rented by reservation_id.

    A car rented by another reservation, or in maintenance, is left alone.
    """
    if car is None:
        return False
    state = car_state_from_row(car["status"], car["current_reservation_id"])
    if not (isinstance(state, Rented) and state.reservation_id == reservation_id):
        return False
    set_car_state(c, car_id=car["id"], state=Available())
    return True


def _complete_one(c: PgCursor, *, reservation_id: str, car_id: str, now: datetime) -> bool:
    car = lock_car(c, car_id)
    reservation = lock_reservation(c, reservation_id)
    if reservation is None or reservation["status"] != "confirmed":
        return False
    if reservation["return_at"] > now:
        return False

    update_reservation_status(c, reservation_id=reservation_id, status="completed")
    _release_car(c, car, reservation_id=reservation_id)
    return True


def complete_ended_reservations(
    *,
    now: datetime | None = None,
    correlation_id: str | None = None,
) -> int:
    """Move confirmed reservations whose return has passed to completed.

    Each reservation is completed in its own transaction.

    Returns:
        Number of reservations completed.
    """
    now = as_utc(now) if now is not None else utc_now()

    with txn() as cur:
        ended = list_ended_confirmed(cur, now=now)

    completed = 0
    for reservation_id, car_id in ended:
        if run_txn(
            lambda c, rid=reservation_id, cid=car_id: _complete_one(
                c, reservation_id=rid, car_id=cid, now=now
            )
        ):
            completed += 1

    logger.info(
        "ended reservations completed",
        extra={
            "extra_fields": safe_log_context(
                correlationId=correlation_id,
                candidates=len(ended),
                completed=completed,
            )
        },
    )
    return completed


def list_reservations_for_user(user_id: str) -> list[dict]:
    """The user's reservations with car and garage summary, newest pickup first."""
    with txn() as cur:
        return list_user_reservations(cur, user_id=user_id)


def get_reservation_for_user(reservation_id: str, user_id: str) -> dict:
    """Fetch one of the user's reservations.

    Raises:
        NotFoundError: If absent or owned by someone else.
    """
    with txn() as cur:
        reservation = get_reservation(cur, reservation_id)

    if reservation is None or reservation["user_id"] != str(user_id):
        raise NotFoundError(f"Reservation {reservation_id} not found")
    return reservation
