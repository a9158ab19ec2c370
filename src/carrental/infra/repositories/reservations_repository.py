"""Reservations repository - persistence for reservation records.

Uses raw SQL with psycopg2 (no ORM).
"""

from datetime import datetime
from decimal import Decimal

from psycopg2.extensions import cursor as PgCursor

_RESERVATION_COLUMNS = """
    id, user_id, car_id, pickup_at, return_at,
    total_price, status, created_at, updated_at
"""


def _row_to_reservation(row: tuple) -> dict:
    return {
        "id": str(row[0]),
        "user_id": str(row[1]),
        "car_id": str(row[2]),
        "pickup_at": row[3],
        "return_at": row[4],
        "total_price": row[5],
        "status": row[6],
        "created_at": row[7],
        "updated_at": row[8],
    }


def find_overlapping_reservation(
    cur: PgCursor,
    *,
    car_id: str,
    start: datetime,
    end: datetime,
    lock: bool = False,
) -> str | None:
    """Return the first confirmed reservation overlapping [start, end] (inclusive).

    Args:
        cur: Database cursor (should be within a transaction).
        car_id: Car identifier.
        start: Candidate pickup timestamp.
        end: Candidate return timestamp.
        lock: If True, appends FOR UPDATE to lock the conflicting row.

    Returns:
        Reservation id as string, or None.
    """
    suffix = " FOR UPDATE" if lock else ""
    cur.execute(
        f"""
        SELECT id
        FROM reservations
        WHERE car_id = %s
          AND status = 'confirmed'
          AND pickup_at <= %s
          AND return_at >= %s
        ORDER BY pickup_at
        LIMIT 1
        {suffix}
        """,
        (car_id, end, start),
    )
    row = cur.fetchone()
    return str(row[0]) if row is not None else None


def list_confirmed_intervals(
    cur: PgCursor, *, car_id: str
) -> list[tuple[datetime, datetime]]:
    """Return (pickup_at, return_at) of a car's confirmed reservations, by pickup."""
    cur.execute(
        """
        SELECT pickup_at, return_at
        FROM reservations
        WHERE car_id = %s AND status = 'confirmed'
        ORDER BY pickup_at
        """,
        (car_id,),
    )
    return [(row[0], row[1]) for row in cur.fetchall()]


def insert_reservation(
    cur: PgCursor,
    *,
    user_id: str,
    car_id: str,
    pickup_at: datetime,
    return_at: datetime,
    total_price: Decimal,
) -> dict:
    """Insert a confirmed reservation and return it."""
    cur.execute(
        f"""
        INSERT INTO reservations (user_id, car_id, pickup_at, return_at, total_price, status)
        VALUES (%s, %s, %s, %s, %s, 'confirmed')
        RETURNING {_RESERVATION_COLUMNS}
        """,
        (user_id, car_id, pickup_at, return_at, total_price),
    )
    return _row_to_reservation(cur.fetchone())


def lock_reservation(cur: PgCursor, reservation_id: str) -> dict | None:
    """Fetch a reservation with FOR UPDATE."""
    cur.execute(
        f"""
        SELECT {_RESERVATION_COLUMNS}
        FROM reservations
        WHERE id = %s
        FOR UPDATE
        """,
        (reservation_id,),
    )
    row = cur.fetchone()
    return _row_to_reservation(row) if row is not None else None


def update_reservation_status(
    cur: PgCursor, *, reservation_id: str, status: str
) -> dict:
    """Set status on a reservation and return the updated row."""
    cur.execute(
        f"""
        UPDATE reservations
        SET status = %s, updated_at = now()
        WHERE id = %s
        RETURNING {_RESERVATION_COLUMNS}
        """,
        (status, reservation_id),
    )
    return _row_to_reservation(cur.fetchone())


def count_active_reservations(cur: PgCursor, *, car_id: str, now: datetime) -> int:
    """Count confirmed reservations of a car that have not ended by now."""
    cur.execute(
        """
        SELECT COUNT(*)
        FROM reservations
        WHERE car_id = %s AND status = 'confirmed' AND return_at >= %s
        """,
        (car_id, now),
    )
    return cur.fetchone()[0]


def list_ended_confirmed(cur: PgCursor, *, now: datetime) -> list[tuple[str, str]]:
    """Return (reservation_id, car_id) of confirmed reservations ended by now."""
    cur.execute(
        """
        SELECT id, car_id
        FROM reservations
        WHERE status = 'confirmed' AND return_at <= %s
        ORDER BY return_at
        """,
        (now,),
    )
    return [(str(row[0]), str(row[1])) for row in cur.fetchall()]


def list_user_reservations(cur: PgCursor, *, user_id: str) -> list[dict]:
    """List a user's reservations with car and garage summary, newest pickup first."""
    cur.execute(
        """
        SELECT r.id, r.user_id, r.car_id, r.pickup_at, r.return_at,
               r.total_price, r.status, r.created_at, r.updated_at,
               c.make, c.model, g.name, g.city
        FROM reservations r
        JOIN cars c ON c.id = r.car_id
        JOIN garages g ON g.id = c.garage_id
        WHERE r.user_id = %s
        ORDER BY r.pickup_at DESC
        LIMIT 100
        """,
        (user_id,),
    )
    reservations = []
    for row in cur.fetchall():
        reservation = _row_to_reservation(row[:9])
        reservation["car"] = {
            "make": row[9],
            "model": row[10],
            "garage": {"name": row[11], "city": row[12]},
        }
        reservations.append(reservation)
    return reservations


def get_reservation(cur: PgCursor, reservation_id: str) -> dict | None:
    """Fetch a single reservation (no lock)."""
    cur.execute(
        f"SELECT {_RESERVATION_COLUMNS} FROM reservations WHERE id = %s",
        (reservation_id,),
    )
    row = cur.fetchone()
    return _row_to_reservation(row) if row is not None else None


def has_completed_reservation(
    cur: PgCursor, *, user_id: str, car_id: str, now: datetime
) -> bool:
    """True if the user holds a completed reservation for the car that has ended."""
    cur.execute(
        """
        SELECT 1
        FROM reservations
        WHERE user_id = %s AND car_id = %s
          AND status = 'completed' AND return_at <= %s
        LIMIT 1
        """,
        (user_id, car_id, now),
    )
    return cur.fetchone() is not None
