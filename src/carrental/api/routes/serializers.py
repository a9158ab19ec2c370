"""JSON shapes for API responses (timestamps ISO-8601, money as decimal strings)."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _money(value: Decimal | None) -> str | None:
    return str(value) if value is not None else None


def reservation_out(reservation: dict) -> dict[str, Any]:
    out = {
        "id": reservation["id"],
        "user_id": reservation["user_id"],
        "car_id": reservation["car_id"],
        "pickup_at": _iso(reservation["pickup_at"]),
        "return_at": _iso(reservation["return_at"]),
        "total_price": _money(reservation["total_price"]),
        "status": reservation["status"],
        "created_at": _iso(reservation.get("created_at")),
    }
    if "car" in reservation:
        out["car"] = reservation["car"]
    return out


def car_out(car: dict) -> dict[str, Any]:
    out = {
        "id": car["id"],
        "garage_id": car["garage_id"],
        "make": car["make"],
        "model": car["model"],
        "year": car["year"],
        "price_per_day": _money(car["price_per_day"]),
        "status": car["status"],
        "registration_date": _iso(car.get("registration_date")),
    }
    if "garage" in car:
        out["garage"] = car["garage"]
    return out


def booking_out(booking: dict) -> dict[str, Any]:
    return {
        "pickup_at": _iso(booking["pickup_at"]),
        "return_at": _iso(booking["return_at"]),
    }


def review_out(review: dict) -> dict[str, Any]:
    out = {
        "id": review["id"],
        "user_id": review["user_id"],
        "car_id": review["car_id"],
        "rating": review["rating"],
        "comment": review["comment"],
        "created_at": _iso(review["created_at"]),
    }
    if "user_name" in review:
        out["user_name"] = review["user_name"]
    return out
