"""Reservation endpoints for the signed-in user.

Create and cancel are thin wrappers around the lifecycle functions in
carrental.domain.reservations; domain errors are mapped to HTTP by the app
factory's exception handler.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Path
from pydantic import BaseModel

from carrental.api.auth import CurrentUser, get_current_user
from carrental.api.routes.serializers import reservation_out
from carrental.domain import reservations as lifecycle
from carrental.observability.correlation import get_correlation_id
from carrental.observability.logging import get_logger
from carrental.observability.redaction import safe_log_context


class CreateReservationRequest(BaseModel):
    """Request body for a booking. The price is always computed server-side."""

    car_id: UUID
    pickup_at: datetime | None = None
    return_at: datetime | None = None


router = APIRouter(prefix="/reservations", tags=["reservations"])

logger = get_logger(__name__)


@router.get("")
def list_my_reservations(user: CurrentUser = Depends(get_current_user)) -> dict:
    """List the current user's reservations, newest pickup first."""
    reservations = lifecycle.list_reservations_for_user(user.id)
    return {"reservations": [reservation_out(r) for r in reservations]}


@router.get("/{reservation_id}")
def get_my_reservation(
    reservation_id: UUID = Path(..., description="Reservation UUID"),
    user: CurrentUser = Depends(get_current_user),
) -> dict:
    return reservation_out(lifecycle.get_reservation_for_user(str(reservation_id), user.id))


@router.post("", status_code=201)
def create_reservation(
    body: CreateReservationRequest,
    user: CurrentUser = Depends(get_current_user),
) -> dict:
    """Book a car for the requested interval.

    400 invalid interval, 404 unknown car, 409 overlap or car not available.
    """
    correlation_id = get_correlation_id()

    logger.info(
        "create reservation requested",
        extra={
            "extra_fields": safe_log_context(
                correlationId=correlation_id,
                user_id=user.id,
                car_id=str(body.car_id),
            )
        },
    )

    reservation = lifecycle.create_reservation(
        user_id=user.id,
        car_id=str(body.car_id),
        start=body.pickup_at,
        end=body.return_at,
        correlation_id=correlation_id,
    )
    return reservation_out(reservation)


@router.post("/{reservation_id}/actions/cancel")
def cancel_reservation_action(
    reservation_id: UUID = Path(..., description="Reservation UUID"),
    user: CurrentUser = Depends(get_current_user),
) -> dict:
    """Cancel one of the current user's confirmed reservations.

    404 unknown reservation, 403 someone else's, 409 not confirmed.
    """
    reservation = lifecycle.cancel_reservation(
        reservation_id=str(reservation_id),
        requesting_user_id=user.id,
        correlation_id=get_correlation_id(),
    )
    return {"success": True, "reservation": reservation_out(reservation)}
