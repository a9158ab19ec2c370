"""Seed a development database with one user, one garage and a few cars.

Usage:
    DATABASE_URL=... SEED_EXTERNAL_SUBJECT=user_abc uv run python -m carrental.operations.seed_dev

Idempotent: re-running leaves existing rows in place.
"""

import os
import sys
from decimal import Decimal

import psycopg2

DEMO_CARS = (
    ("Toyota", "Corolla", 2022, Decimal("50.00")),
    ("Honda", "Civic", 2021, Decimal("55.00")),
    ("Ford", "Mustang", 2023, Decimal("120.00")),
)


def env(name: str, default: str | None = None) -> str:
    v = os.getenv(name, default)
    if v is None or v.strip() == "":
        raise RuntimeError(f"Missing env var: {name}")
    return v


def seed(cur, *, external_subject: str, garage_name: str, garage_city: str) -> dict:
    """Insert the demo rows through cur. Returns the ids used."""
    cur.execute(
        """
        INSERT INTO users (external_subject, email, name)
        VALUES (%s, NULL, NULL)
        ON CONFLICT (external_subject) DO UPDATE SET external_subject = EXCLUDED.external_subject
        RETURNING id
        """,
        (external_subject,),
    )
    user_id = str(cur.fetchone()[0])

    cur.execute(
        "SELECT id FROM garages WHERE name = %s AND city = %s",
        (garage_name, garage_city),
    )
    row = cur.fetchone()
    if row is None:
        cur.execute(
            """
            INSERT INTO garages (name, city, country)
            VALUES (%s, %s, %s)
            RETURNING id
            """,
            (garage_name, garage_city, "US"),
        )
        row = cur.fetchone()
    garage_id = str(row[0])

    car_ids = []
    for make, model, year, price_per_day in DEMO_CARS:
        cur.execute(
            """
            SELECT id FROM cars
            WHERE garage_id = %s AND make = %s AND model = %s AND year = %s
            """,
            (garage_id, make, model, year),
        )
        row = cur.fetchone()
        if row is None:
            cur.execute(
                """
                INSERT INTO cars (garage_id, make, model, year, price_per_day)
                VALUES (%s, %s, %s, %s, %s)
                RETURNING id
                """,
                (garage_id, make, model, year, price_per_day),
            )
            row = cur.fetchone()
        car_ids.append(str(row[0]))

    return {"user_id": user_id, "garage_id": garage_id, "car_ids": car_ids}


def main() -> int:
    dsn = env("DATABASE_URL")
    external_subject = env("SEED_EXTERNAL_SUBJECT")
    garage_name = env("SEED_GARAGE_NAME", "Downtown Garage")
    garage_city = env("SEED_GARAGE_CITY", "Springfield")

    conn = psycopg2.connect(dsn)
    try:
        with conn:
            with conn.cursor() as cur:
                ids = seed(
                    cur,
                    external_subject=external_subject,
                    garage_name=garage_name,
                    garage_city=garage_city,
                )
    finally:
        conn.close()

    print(f"OK user_id={ids['user_id']} garage_id={ids['garage_id']} cars={len(ids['car_ids'])}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
