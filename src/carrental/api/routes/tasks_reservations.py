"""Worker routes for time-driven reservation transitions."""

from fastapi import APIRouter, Depends

from carrental.api.task_auth import require_task_auth
from carrental.domain.reservations import complete_ended_reservations
from carrental.observability.correlation import get_correlation_id

router = APIRouter(
    prefix="/tasks/reservations",
    tags=["tasks"],
    dependencies=[Depends(require_task_auth)],
)


@router.post("/complete-ended")
def handle_complete_ended() -> dict:
    """Complete confirmed reservations whose return time has passed."""
    completed = complete_ended_reservations(correlation_id=get_correlation_id())
    return {"ok": True, "completed": completed}
