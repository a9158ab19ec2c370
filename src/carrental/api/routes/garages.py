"""Garage browsing endpoints (no authentication)."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Path, Query

from carrental.api.routes.serializers import car_out
from carrental.domain import catalog

router = APIRouter(prefix="/garages", tags=["garages"])


@router.get("")
def list_garages(
    city: str | None = Query(None, description="Filter by city"),
) -> dict:
    """List garages."""
    return {"garages": catalog.list_all_garages(city=city)}


@router.get("/{garage_id}")
def get_garage(garage_id: UUID = Path(..., description="Garage UUID")) -> dict:
    return catalog.get_garage_or_404(str(garage_id))


@router.get("/{garage_id}/cars")
def list_garage_cars(garage_id: UUID = Path(..., description="Garage UUID")) -> dict:
    """List the cars of a garage with their current status."""
    cars = catalog.list_garage_cars(str(garage_id))
    return {"cars": [car_out(car) for car in cars]}
