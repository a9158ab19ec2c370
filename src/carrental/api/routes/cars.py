"""Car detail, booking calendar and reviews endpoints (no authentication)."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Path

from carrental.api.routes.serializers import booking_out, car_out, review_out
from carrental.domain import catalog
from carrental.domain.availability import list_bookings
from carrental.domain.reviews import list_reviews

router = APIRouter(prefix="/cars", tags=["cars"])


@router.get("/{car_id}")
def get_car(car_id: UUID = Path(..., description="Car UUID")) -> dict:
    return car_out(catalog.get_car_or_404(str(car_id)))


@router.get("/{car_id}/bookings")
def get_car_bookings(car_id: UUID = Path(..., description="Car UUID")) -> dict:
    """Confirmed intervals of a car, for calendar rendering.

    Only the intervals are returned; who booked them is not exposed.
    """
    catalog.get_car_or_404(str(car_id))
    return {"bookings": [booking_out(b) for b in list_bookings(str(car_id))]}


@router.get("/{car_id}/reviews")
def get_car_reviews(car_id: UUID = Path(..., description="Car UUID")) -> dict:
    return {"reviews": [review_out(r) for r in list_reviews(str(car_id))]}
