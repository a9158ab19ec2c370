"""Review creation endpoint."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from carrental.api.auth import CurrentUser, get_current_user
from carrental.api.routes.serializers import review_out
from carrental.domain.reviews import create_review
from carrental.observability.correlation import get_correlation_id


class CreateReviewRequest(BaseModel):
    car_id: UUID
    rating: int
    comment: str | None = Field(None, max_length=2000)


router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.post("", status_code=201)
def post_review(
    body: CreateReviewRequest,
    user: CurrentUser = Depends(get_current_user),
) -> dict:
    """Review a car the current user has completed a rental of.

    422 rating out of 1..5, 403 no completed rental, 409 already reviewed.
    """
    review = create_review(
        user_id=user.id,
        car_id=str(body.car_id),
        rating=body.rating,
        comment=body.comment,
        correlation_id=get_correlation_id(),
    )
    return review_out(review)
