"""End-to-end booking tests against a real, migrated Postgres.

Skipped unless DATABASE_URL is set. Each test gets its own user, garage and
car, removed afterwards.
"""

from __future__ import annotations

import os
import threading
from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

pytestmark = pytest.mark.skipif(
    not os.environ.get("DATABASE_URL"),
    reason="DATABASE_URL not set - skipping DB integration tests",
)

JAN_10 = datetime(2024, 1, 10, tzinfo=timezone.utc)
JAN_12 = datetime(2024, 1, 12, tzinfo=timezone.utc)
JAN_14 = datetime(2024, 1, 14, tzinfo=timezone.utc)
AFTER_ALL = datetime(2024, 6, 1, tzinfo=timezone.utc)


def _car_status(car_id: str) -> tuple:
    from carrental.infra.db import fetchone, txn

    with txn() as cur:
        return fetchone(
            cur, "SELECT status::text, current_reservation_id::text FROM cars WHERE id = %s", (car_id,)
        )


@pytest.fixture
def world():
    """One garage with one available car at 50/day and two users."""
    from carrental.infra.db import txn

    with txn() as cur:
        user_ids = []
        for _ in range(2):
            cur.execute(
                "INSERT INTO users (external_subject, name) VALUES (%s, %s) RETURNING id",
                (f"it-{uuid4()}", "Integration"),
            )
            user_ids.append(str(cur.fetchone()[0]))
        cur.execute(
            "INSERT INTO garages (name, city) VALUES (%s, %s) RETURNING id",
            (f"it-garage-{uuid4()}", "Testville"),
        )
        garage_id = str(cur.fetchone()[0])
        cur.execute(
            """
            INSERT INTO cars (garage_id, make, model, year, price_per_day)
            VALUES (%s, 'Toyota', 'Corolla', 2022, 50.00)
            RETURNING id
            """,
            (garage_id,),
        )
        car_id = str(cur.fetchone()[0])

    yield {"user_id": user_ids[0], "other_user_id": user_ids[1], "garage_id": garage_id, "car_id": car_id}

    with txn() as cur:
        cur.execute(
            "UPDATE cars SET status = 'available', current_reservation_id = NULL WHERE id = %s",
            (car_id,),
        )
        cur.execute("DELETE FROM reviews WHERE car_id = %s", (car_id,))
        cur.execute("DELETE FROM reservations WHERE car_id = %s", (car_id,))
        cur.execute("DELETE FROM cars WHERE id = %s", (car_id,))
        cur.execute("DELETE FROM garages WHERE id = %s", (garage_id,))
        cur.execute("DELETE FROM users WHERE id = ANY(%s::uuid[])", (user_ids,))


class TestBookingLifecycle:
    def test_two_day_booking_costs_100_and_rents_car(self, world):
        from carrental.domain.reservations import create_reservation

        reservation = create_reservation(
            user_id=world["user_id"], car_id=world["car_id"], start=JAN_10, end=JAN_12
        )

        assert reservation["status"] == "confirmed"
        assert reservation["total_price"] == Decimal("100.00")
        assert _car_status(world["car_id"]) == ("rented", reservation["id"])

    def test_overlapping_booking_conflicts(self, world):
        from carrental.domain.errors import ConflictError
        from carrental.domain.reservations import create_reservation

        first = create_reservation(
            user_id=world["user_id"], car_id=world["car_id"], start=JAN_10, end=JAN_12
        )
        with pytest.raises(ConflictError) as exc_info:
            create_reservation(
                user_id=world["other_user_id"],
                car_id=world["car_id"],
                start=datetime(2024, 1, 11, tzinfo=timezone.utc),
                end=JAN_14,
            )
        assert exc_info.value.conflicting_id == first["id"]

    def test_touching_intervals_conflict(self, world):
        from carrental.domain.errors import ConflictError
        from carrental.domain.reservations import create_reservation

        create_reservation(user_id=world["user_id"], car_id=world["car_id"], start=JAN_10, end=JAN_12)
        with pytest.raises(ConflictError):
            create_reservation(
                user_id=world["other_user_id"], car_id=world["car_id"], start=JAN_12, end=JAN_14
            )

    def test_cancel_frees_car_and_allows_rebooking(self, world):
        from carrental.domain.reservations import cancel_reservation, create_reservation

        first = create_reservation(
            user_id=world["user_id"], car_id=world["car_id"], start=JAN_10, end=JAN_12
        )
        cancelled = cancel_reservation(
            reservation_id=first["id"], requesting_user_id=world["user_id"]
        )
        assert cancelled["status"] == "cancelled"
        assert _car_status(world["car_id"]) == ("available", None)

        second = create_reservation(
            user_id=world["other_user_id"], car_id=world["car_id"], start=JAN_10, end=JAN_12
        )
        assert second["status"] == "confirmed"

    def test_cancelling_stale_booking_keeps_current_rental(self, world):
        from carrental.domain.reconciler import reconcile_car_statuses
        from carrental.domain.reservations import cancel_reservation, create_reservation

        stale = create_reservation(
            user_id=world["user_id"], car_id=world["car_id"], start=JAN_10, end=JAN_12
        )
        reconcile_car_statuses(now=AFTER_ALL)
        current = create_reservation(
            user_id=world["other_user_id"],
            car_id=world["car_id"],
            start=datetime(2024, 5, 30, tzinfo=timezone.utc),
            end=datetime(2024, 6, 3, tzinfo=timezone.utc),
        )

        cancel_reservation(reservation_id=stale["id"], requesting_user_id=world["user_id"])

        assert _car_status(world["car_id"]) == ("rented", current["id"])

    def test_cancel_by_other_user_is_forbidden_and_changes_nothing(self, world):
        from carrental.domain.errors import ForbiddenError
        from carrental.domain.reservations import cancel_reservation, create_reservation

        reservation = create_reservation(
            user_id=world["user_id"], car_id=world["car_id"], start=JAN_10, end=JAN_12
        )
        with pytest.raises(ForbiddenError):
            cancel_reservation(reservation_id=reservation["id"], requesting_user_id=world["other_user_id"])
        assert _car_status(world["car_id"]) == ("rented", reservation["id"])

    def test_double_cancel_is_invalid_state(self, world):
        from carrental.domain.errors import InvalidStateError
        from carrental.domain.reservations import cancel_reservation, create_reservation

        reservation = create_reservation(
            user_id=world["user_id"], car_id=world["car_id"], start=JAN_10, end=JAN_12
        )
        cancel_reservation(reservation_id=reservation["id"], requesting_user_id=world["user_id"])
        with pytest.raises(InvalidStateError):
            cancel_reservation(reservation_id=reservation["id"], requesting_user_id=world["user_id"])


class TestConcurrentBooking:
    def test_only_one_of_many_overlapping_requests_wins(self, world):
        from carrental.domain.errors import BookingError
        from carrental.domain.reservations import create_reservation
        from carrental.infra.db import fetchone, txn

        attempts = 8
        barrier = threading.Barrier(attempts)
        outcomes: list[str] = []
        lock = threading.Lock()

        def book():
            barrier.wait()
            try:
                create_reservation(
                    user_id=world["user_id"], car_id=world["car_id"], start=JAN_10, end=JAN_12
                )
                result = "ok"
            except BookingError as exc:
                result = exc.kind
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=book) for _ in range(attempts)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        assert outcomes.count("ok") == 1
        assert outcomes.count("conflict") == attempts - 1

        with txn() as cur:
            row = fetchone(
                cur,
                "SELECT count(*) FROM reservations WHERE car_id = %s AND status = 'confirmed'",
                (world["car_id"],),
            )
        assert row[0] == 1


class TestReconcileAndCompletion:
    def test_reconcile_frees_past_rental_once(self, world):
        from carrental.domain.reconciler import reconcile_car_statuses
        from carrental.domain.reservations import create_reservation

        create_reservation(user_id=world["user_id"], car_id=world["car_id"], start=JAN_10, end=JAN_12)

        assert reconcile_car_statuses(now=AFTER_ALL) >= 1
        assert _car_status(world["car_id"]) == ("available", None)
        # A second sweep has nothing left to fix for this car
        reconcile_car_statuses(now=AFTER_ALL)
        assert _car_status(world["car_id"]) == ("available", None)

    def test_reconcile_keeps_active_rental(self, world):
        from carrental.domain.reconciler import reconcile_car_statuses
        from carrental.domain.reservations import create_reservation

        reservation = create_reservation(
            user_id=world["user_id"], car_id=world["car_id"], start=JAN_10, end=JAN_12
        )
        reconcile_car_statuses(now=datetime(2024, 1, 11, tzinfo=timezone.utc))
        assert _car_status(world["car_id"]) == ("rented", reservation["id"])

    def test_review_requires_completed_rental_and_is_unique(self, world):
        from carrental.domain.errors import ConflictError, ForbiddenError
        from carrental.domain.reservations import complete_ended_reservations, create_reservation
        from carrental.domain.reviews import create_review, list_reviews

        with pytest.raises(ForbiddenError):
            create_review(user_id=world["user_id"], car_id=world["car_id"], rating=5, comment="early")

        create_reservation(user_id=world["user_id"], car_id=world["car_id"], start=JAN_10, end=JAN_12)
        assert complete_ended_reservations(now=AFTER_ALL) >= 1
        assert _car_status(world["car_id"]) == ("available", None)

        review = create_review(user_id=world["user_id"], car_id=world["car_id"], rating=5, comment="Great")
        assert review["rating"] == 5

        with pytest.raises(ConflictError):
            create_review(user_id=world["user_id"], car_id=world["car_id"], rating=4, comment="again")

        assert [r["id"] for r in list_reviews(world["car_id"])] == [review["id"]]
