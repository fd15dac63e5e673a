"""
Foojra API — Menu item review routes
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from foojra.db.database import get_db
from foojra.middleware.auth import get_current_user
from foojra.models.user import User
from foojra.schemas.common import MessageResponse, Pagination
from foojra.schemas.review import (
    MenuItemReviewCreateRequest,
    MenuItemReviewListResponse,
    MenuItemReviewResponse,
    MenuItemReviewUpdateRequest,
)
from foojra.services import reviews

router = APIRouter(prefix="/api/menu-item-reviews", tags=["menu-item-reviews"])


@router.post("", response_model=MenuItemReviewResponse, status_code=status.HTTP_201_CREATED)
async def create_item_review(
    payload: MenuItemReviewCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await reviews.create_menu_item_review(db, user, payload)


@router.get("/item/{menu_item_id}", response_model=MenuItemReviewListResponse)
async def item_reviews(
    menu_item_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    items, total = await reviews.list_menu_item_reviews(db, menu_item_id, page, limit)
    return MenuItemReviewListResponse(
        reviews=[MenuItemReviewResponse.model_validate(r) for r in items],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/my-reviews", response_model=list[MenuItemReviewResponse])
async def my_item_reviews(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await reviews.list_user_menu_item_reviews(db, user)


@router.put("/{review_id}", response_model=MenuItemReviewResponse)
async def update_item_review(
    review_id: str,
    payload: MenuItemReviewUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await reviews.update_menu_item_review(db, user, review_id, payload)


@router.delete("/{review_id}", response_model=MessageResponse)
async def delete_item_review(
    review_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await reviews.delete_menu_item_review(db, user, review_id)
    return MessageResponse(message="Review removed")
