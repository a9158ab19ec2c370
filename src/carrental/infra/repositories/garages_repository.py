"""Garages repository - read-only garage listings."""

from psycopg2.extensions import cursor as PgCursor

_GARAGE_COLUMNS = """
    id, name, address, city, state, country, latitude, longitude, phone
"""


def _row_to_garage(row: tuple) -> dict:
    return {
        "id": str(row[0]),
        "name": row[1],
        "address": row[2],
        "city": row[3],
        "state": row[4],
        "country": row[5],
        "latitude": float(row[6]) if row[6] is not None else None,
        "longitude": float(row[7]) if row[7] is not None else None,
        "phone": row[8],
    }


def list_garages(cur: PgCursor, *, city: str | None = None) -> list[dict]:
    """List garages, optionally filtered by city."""
    if city:
        cur.execute(
            f"SELECT {_GARAGE_COLUMNS} FROM garages WHERE city = %s ORDER BY name",
            (city,),
        )
    else:
        cur.execute(f"SELECT {_GARAGE_COLUMNS} FROM garages ORDER BY name")
    return [_row_to_garage(row) for row in cur.fetchall()]


def get_garage(cur: PgCursor, garage_id: str) -> dict | None:
    cur.execute(
        f"SELECT {_GARAGE_COLUMNS} FROM garages WHERE id = %s",
        (garage_id,),
    )
    row = cur.fetchone()
    return _row_to_garage(row) if row is not None else None
