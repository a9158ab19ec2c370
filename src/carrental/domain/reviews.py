"""Review gate - reviews only from users who completed a rental of the car."""

from __future__ import annotations

from psycopg2 import errors as pg_errors

from carrental.domain.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from carrental.infra.db import txn
from carrental.infra.repositories.cars_repository import car_exists
from carrental.infra.repositories.reservations_repository import (
    has_completed_reservation,
)
from carrental.infra.repositories.reviews_repository import (
    insert_review,
    list_car_reviews,
    review_exists,
)
from carrental.infra.time import utc_now
from carrental.observability.logging import get_logger
from carrental.observability.redaction import safe_log_context

logger = get_logger(__name__)

MIN_RATING = 1
MAX_RATING = 5


def create_review(
    *,
    user_id: str,
    car_id: str,
    rating: int,
    comment: str | None,
    correlation_id: str | None = None,
) -> dict:
    """Create the user's review of a car.

    Raises:
        ValidationError: If rating is outside 1..5.
        NotFoundError: If the car does not exist.
        ForbiddenError: If the user has no completed, ended reservation for the car.
        ConflictError: If the user already reviewed the car.
    """
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValidationError("Rating must be an integer between 1 and 5")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError("Rating must be between 1 and 5")

    now = utc_now()
    try:
        with txn() as cur:
            if not car_exists(cur, car_id):
                raise NotFoundError(f"Car {car_id} not found")

            if not has_completed_reservation(cur, user_id=user_id, car_id=car_id, now=now):
                raise ForbiddenError(
                    "You can only review cars you have completed rides with"
                )

            if review_exists(cur, user_id=user_id, car_id=car_id):
                raise ConflictError("You have already reviewed this car")

            review = insert_review(
                cur,
                user_id=user_id,
                car_id=car_id,
                rating=rating,
                comment=comment,
                created_at=now,
            )
    except pg_errors.UniqueViolation:
        # Lost a race with a concurrent review by the same user
        raise ConflictError("You have already reviewed this car")

    logger.info(
        "review created",
        extra={
            "extra_fields": safe_log_context(
                correlationId=correlation_id,
                review_id=review["id"],
                car_id=car_id,
                rating=rating,
            )
        },
    )
    return review


def list_reviews(car_id: str) -> list[dict]:
    """Reviews of an existing car, newest first.

    Raises:
        NotFoundError: If the car does not exist.
    """
    with txn() as cur:
        if not car_exists(cur, car_id):
            raise NotFoundError(f"Car {car_id} not found")
        return list_car_reviews(cur, car_id=car_id)
