"""Read-only garage and car lookups for browsing."""

from __future__ import annotations

from carrental.domain.errors import NotFoundError
from carrental.infra.db import txn
from carrental.infra.repositories.cars_repository import get_car, list_cars_for_garage
from carrental.infra.repositories.garages_repository import get_garage, list_garages


def list_all_garages(city: str | None = None) -> list[dict]:
    with txn() as cur:
        return list_garages(cur, city=city)


def get_garage_or_404(garage_id: str) -> dict:
    with txn() as cur:
        garage = get_garage(cur, garage_id)
    if garage is None:
        raise NotFoundError(f"Garage {garage_id} not found")
    return garage


def list_garage_cars(garage_id: str) -> list[dict]:
    """Cars of a garage.

    Raises:
        NotFoundError: If the garage does not exist.
    """
    with txn() as cur:
        if get_garage(cur, garage_id) is None:
            raise NotFoundError(f"Garage {garage_id} not found")
        return list_cars_for_garage(cur, garage_id)


def get_car_or_404(car_id: str) -> dict:
    with txn() as cur:
        car = get_car(cur, car_id)
    if car is None:
        raise NotFoundError(f"Car {car_id} not found")
    return car
