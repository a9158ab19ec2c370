"""Reviews repository - one review per (user, car)."""

from datetime import datetime

from psycopg2.extensions import cursor as PgCursor

_REVIEW_COLUMNS = "id, user_id, car_id, rating, comment, created_at"


def _row_to_review(row: tuple) -> dict:
    return {
        "id": str(row[0]),
        "user_id": str(row[1]),
        "car_id": str(row[2]),
        "rating": row[3],
        "comment": row[4],
        "created_at": row[5],
    }


def review_exists(cur: PgCursor, *, user_id: str, car_id: str) -> bool:
    cur.execute(
        "SELECT 1 FROM reviews WHERE user_id = %s AND car_id = %s",
        (user_id, car_id),
    )
    return cur.fetchone() is not None


def insert_review(
    cur: PgCursor,
    *,
    user_id: str,
    car_id: str,
    rating: int,
    comment: str | None,
    created_at: datetime,
) -> dict:
    """Insert a review; UNIQUE(user_id, car_id) rejects duplicates."""
    cur.execute(
        f"""
        INSERT INTO reviews (user_id, car_id, rating, comment, created_at)
        VALUES (%s, %s, %s, %s, %s)
        RETURNING {_REVIEW_COLUMNS}
        """,
        (user_id, car_id, rating, comment, created_at),
    )
    return _row_to_review(cur.fetchone())


def list_car_reviews(cur: PgCursor, *, car_id: str) -> list[dict]:
    """Reviews of a car with the reviewer's display name, newest first."""
    cur.execute(
        """
        SELECT r.id, r.user_id, r.car_id, r.rating, r.comment, r.created_at, u.name
        FROM reviews r
        JOIN users u ON u.id = r.user_id
        WHERE r.car_id = %s
        ORDER BY r.created_at DESC
        """,
        (car_id,),
    )
    reviews = []
    for row in cur.fetchall():
        review = _row_to_review(row[:6])
        review["user_name"] = row[6]
        reviews.append(review)
    return reviews
