"""Review router - provider review feed and admin moderation"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_provider, require_admin
from ...database import get_db
from ...models import AdminUser, Provider
from .schemas import HideReviewRequest, UnhideReviewRequest
from .service import ReviewService

router = APIRouter(tags=["Reviews"])


def get_review_service(db: Session = Depends(get_db)) -> ReviewService:
    return ReviewService(db)


@router.get("/provider/reviews")
async def list_provider_reviews(
    provider: Provider = Depends(get_current_provider),
    service: ReviewService = Depends(get_review_service),
):
    reviews = service.list_provider_reviews(provider)
    return {
        "reviews": reviews,
        "averageRating": provider.rating or 0,
        "totalReviews": provider.total_reviews or 0,
    }


@router.get("/admin/reviews")
async def admin_list_reviews(
    _admin: AdminUser = Depends(require_admin),
    service: ReviewService = Depends(get_review_service),
):
    return {"reviews": service.list_all_reviews()}


@router.post("/admin/reviews/hide")
async def hide_review(
    data: HideReviewRequest,
    admin: AdminUser = Depends(require_admin),
    service: ReviewService = Depends(get_review_service),
):
    booking = service.hide_review(data.reviewId, data.reason, admin)
    return {"success": True, "reviewId": str(booking.id), "hidden": True}


@router.post("/admin/reviews/unhide")
async def unhide_review(
    data: UnhideReviewRequest,
    admin: AdminUser = Depends(require_admin),
    service: ReviewService = Depends(get_review_service),
):
    booking = service.unhide_review(data.reviewId, admin)
    return {"success": True, "reviewId": str(booking.id), "hidden": False}


@router.delete("/admin/reviews/{review_id}")
async def delete_review(
    review_id: str,
    admin: AdminUser = Depends(require_admin),
    service: ReviewService = Depends(get_review_service),
):
    service.delete_review(review_id, admin)
    return {"success": True}
