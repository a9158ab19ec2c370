"""Cars repository - car rows and their status columns."""

from psycopg2.extensions import cursor as PgCursor

from carrental.domain.car_state import CarState, car_state_to_row

_CAR_COLUMNS = """
    c.id, c.garage_id, c.make, c.model, c.year, c.price_per_day,
    c.status, c.current_reservation_id, c.registration_date
"""


def _row_to_car(row: tuple) -> dict:
    return {
        "id": str(row[0]),
        "garage_id": str(row[1]),
        "make": row[2],
        "model": row[3],
        "year": row[4],
        "price_per_day": row[5],
        "status": row[6],
        "current_reservation_id": str(row[7]) if row[7] is not None else None,
        "registration_date": row[8],
    }


def get_car(cur: PgCursor, car_id: str) -> dict | None:
    """Fetch a car with its garage name and city."""
    cur.execute(
        f"""
        SELECT {_CAR_COLUMNS}, g.name, g.city
        FROM cars c
        JOIN garages g ON g.id = c.garage_id
        WHERE c.id = %s
        """,
        (car_id,),
    )
    row = cur.fetchone()
    if row is None:
        return None
    car = _row_to_car(row[:9])
    car["garage"] = {"name": row[9], "city": row[10]}
    return car


def lock_car(cur: PgCursor, car_id: str) -> dict | None:
    """Fetch a car with FOR UPDATE.

    Serializes every status-changing transaction on the same car.
    """
    cur.execute(
        f"""
        SELECT {_CAR_COLUMNS}
        FROM cars c
        WHERE c.id = %s
        FOR UPDATE
        """,
        (car_id,),
    )
    row = cur.fetchone()
    return _row_to_car(row) if row is not None else None


def car_exists(cur: PgCursor, car_id: str) -> bool:
    cur.execute("SELECT 1 FROM cars WHERE id = %s", (car_id,))
    return cur.fetchone() is not None


def list_cars_for_garage(cur: PgCursor, garage_id: str) -> list[dict]:
    """List cars owned by a garage."""
    cur.execute(
        f"""
        SELECT {_CAR_COLUMNS}
        FROM cars c
        WHERE c.garage_id = %s
        ORDER BY c.make, c.model, c.year
        """,
        (garage_id,),
    )
    return [_row_to_car(row) for row in cur.fetchall()]


def list_rented_car_ids(cur: PgCursor) -> list[str]:
    cur.execute("SELECT id FROM cars WHERE status = 'rented' ORDER BY id")
    return [str(row[0]) for row in cur.fetchall()]


def set_car_state(cur: PgCursor, *, car_id: str, state: CarState) -> None:
    """Persist a tagged car state."""
    status, current_reservation_id = car_state_to_row(state)
    cur.execute(
        """
        UPDATE cars
        SET status = %s, current_reservation_id = %s, updated_at = now()
        WHERE id = %s
        """,
        (status, current_reservation_id, car_id),
    )
