"""Worker routes for car maintenance sweeps."""

from fastapi import APIRouter, Depends

from carrental.api.task_auth import require_task_auth
from carrental.domain.reconciler import reconcile_car_statuses
from carrental.observability.correlation import get_correlation_id

router = APIRouter(
    prefix="/tasks/cars",
    tags=["tasks"],
    dependencies=[Depends(require_task_auth)],
)


@router.post("/reconcile-status")
def handle_reconcile_status() -> dict:
    """Free rented cars that have no active confirmed reservation.

    Safe to call at any time; a repeated call with no bookings in between
    fixes nothing.
    """
    fixed = reconcile_car_statuses(correlation_id=get_correlation_id())
    return {"ok": True, "fixed": fixed}
