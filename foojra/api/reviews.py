"""
Foojra API — Shop review routes
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from foojra.db.database import get_db
from foojra.middleware.auth import get_current_user
from foojra.models.user import User
from foojra.schemas.common import MessageResponse, Pagination
from foojra.schemas.order import OrderResponse
from foojra.schemas.review import (
    ShopReviewCreateRequest,
    ShopReviewListResponse,
    ShopReviewResponse,
    ShopReviewUpdateRequest,
)
from foojra.services import reviews

router = APIRouter(prefix="/api/reviews", tags=["reviews"])


@router.post("", response_model=ShopReviewResponse, status_code=status.HTTP_201_CREATED)
async def create_review(
    payload: ShopReviewCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await reviews.create_shop_review(db, user, payload)


@router.get("/shop/{shop_id}", response_model=ShopReviewListResponse)
async def shop_reviews(
    shop_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    items, total = await reviews.list_shop_reviews(db, shop_id, page, limit)
    return ShopReviewListResponse(
        reviews=[ShopReviewResponse.model_validate(r) for r in items],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/my-reviews", response_model=list[ShopReviewResponse])
async def my_reviews(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await reviews.list_user_shop_reviews(db, user)


@router.get("/eligible-orders", response_model=list[OrderResponse])
async def eligible_orders(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    """Delivered orders the user has not reviewed yet."""
    return await reviews.eligible_orders(db, user)


@router.put("/{review_id}", response_model=ShopReviewResponse)
async def update_review(
    review_id: str,
    payload: ShopReviewUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await reviews.update_shop_review(db, user, review_id, payload)


@router.delete("/{review_id}", response_model=MessageResponse)
async def delete_review(
    review_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await reviews.delete_shop_review(db, user, review_id)
    return MessageResponse(message="Review removed")
