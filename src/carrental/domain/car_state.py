"""Tagged car state.

A car is ``Available``, ``Rented`` by exactly one reservation, or in
``Maintenance``. Rows store the tag in ``cars.status`` and the rented
reservation in ``cars.current_reservation_id``; a table CHECK keeps the two
columns consistent, so a rented car without a reservation cannot be stored.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

CAR_STATUSES = ("available", "rented", "maintenance")


@dataclass(frozen=True)
class Available:
    status = "available"


@dataclass(frozen=True)
class Rented:
    reservation_id: str
    status = "rented"


@dataclass(frozen=True)
class Maintenance:
    status = "maintenance"


CarState = Union[Available, Rented, Maintenance]


def car_state_from_row(status: str, current_reservation_id: str | None) -> CarState:
    """Build the tagged state from the stored columns.

    Raises:
        ValueError: If the columns describe an impossible state.
    """
    if status == "available":
        return Available()
    if status == "maintenance":
        return Maintenance()
    if status == "rented":
        if not current_reservation_id:
            raise ValueError("rented car has no current reservation")
        return Rented(reservation_id=str(current_reservation_id))
    raise ValueError(f"unknown car status: {status!r}")


def car_state_to_row(state: CarState) -> tuple[str, str | None]:
    """Return the (status, current_reservation_id) column values for state."""
    if isinstance(state, Rented):
        return state.status, state.reservation_id
    return state.status, None
