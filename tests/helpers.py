"""Shared test helper functions (not fixtures)."""

from __future__ import annotations

import base64
import time
from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

import jwt
from cryptography.hazmat.primitives.asymmetric import rsa

TEST_ISSUER = "https://auth.example.com"
TEST_AUDIENCE = "carrental-api"


def _generate_rsa_keypair():
    """Generate RSA key pair for test JWT signing."""
    private_key = rsa.generate_private_key(
        public_exponent=65537,
        key_size=2048,
    )
    return private_key, private_key.public_key()


def _create_jwks(public_key, kid: str = "test-key-1") -> dict:
    """Create JWKS from public key."""
    public_numbers = public_key.public_numbers()

    def int_to_base64(n: int) -> str:
        byte_length = (n.bit_length() + 7) // 8
        return (
            base64.urlsafe_b64encode(n.to_bytes(byte_length, "big"))
            .rstrip(b"=")
            .decode()
        )

    return {
        "keys": [
            {
                "kty": "RSA",
                "use": "sig",
                "alg": "RS256",
                "kid": kid,
                "n": int_to_base64(public_numbers.n),
                "e": int_to_base64(public_numbers.e),
            }
        ]
    }


def _create_token(
    private_key,
    kid: str = "test-key-1",
    sub: str = "user-123",
    iss: str = TEST_ISSUER,
    aud: str = TEST_AUDIENCE,
    exp: int | None = None,
    azp: str | None = None,
) -> str:
    """Create signed JWT for testing."""
    now = int(time.time())
    payload = {
        "sub": sub,
        "iss": iss,
        "aud": aud,
        "exp": exp if exp is not None else now + 3600,
        "iat": now,
    }
    if azp:
        payload["azp"] = azp

    return jwt.encode(payload, private_key, algorithm="RS256", headers={"kid": kid})


def make_car(
    car_id: str | None = None,
    *,
    status: str = "available",
    current_reservation_id: str | None = None,
    price_per_day: Decimal = Decimal("50.00"),
) -> dict:
    """Car dict as returned by the cars repository."""
    return {
        "id": car_id or str(uuid4()),
        "garage_id": str(uuid4()),
        "make": "Toyota",
        "model": "Corolla",
        "year": 2022,
        "price_per_day": price_per_day,
        "status": status,
        "current_reservation_id": current_reservation_id,
        "registration_date": None,
    }


def make_reservation(
    reservation_id: str | None = None,
    *,
    user_id: str = "user-1",
    car_id: str = "car-1",
    status: str = "confirmed",
    pickup_at: datetime = datetime(2024, 1, 10, tzinfo=timezone.utc),
    return_at: datetime = datetime(2024, 1, 12, tzinfo=timezone.utc),
    total_price: Decimal = Decimal("100.00"),
) -> dict:
    """Reservation dict as returned by the reservations repository."""
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return {
        "id": reservation_id or str(uuid4()),
        "user_id": user_id,
        "car_id": car_id,
        "pickup_at": pickup_at,
        "return_at": return_at,
        "total_price": total_price,
        "status": status,
        "created_at": now,
        "updated_at": now,
    }
