"""Worker/internal routes (APP_ROLE=worker)."""

from fastapi import APIRouter

from carrental.api.routes import tasks_cars, tasks_reservations

router = APIRouter()


@router.get("/tasks/health")
def tasks_health() -> dict:
    """Tasks subsystem health check."""
    return {"status": "ok", "subsystem": "tasks"}


@router.get("/internal/health")
def internal_health() -> dict:
    """Internal subsystem health check."""
    return {"status": "ok", "subsystem": "internal"}


router.include_router(tasks_cars.router)
router.include_router(tasks_reservations.router)
