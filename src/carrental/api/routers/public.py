"""Public-facing routes (APP_ROLE=public)."""

from fastapi import APIRouter

from carrental.api.routes import cars, garages, reservations, reviews

router = APIRouter()


@router.get("/health")
def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


router.include_router(garages.router)
router.include_router(cars.router)
router.include_router(reservations.router)
router.include_router(reviews.router)
