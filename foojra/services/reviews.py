"""
Shop and menu item reviews.

Every write is followed by a full recompute of the target's rating.
"""
import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from foojra.core.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from foojra.models.menu_item import MenuItem
from foojra.models.order import Order, OrderStatus
from foojra.models.review import MenuItemReview, ShopReview
from foojra.models.shop import Shop
from foojra.models.user import User
from foojra.schemas.review import (
    MenuItemReviewCreateRequest,
    MenuItemReviewUpdateRequest,
    ShopReviewCreateRequest,
    ShopReviewUpdateRequest,
)
from foojra.services import ratings
from foojra.services.order_lifecycle import ensure_reviewable, load_order

logger = logging.getLogger(__name__)


async def _paginate(db: AsyncSession, query, page: int, limit: int):
    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()
    result = await db.execute(query.offset((page - 1) * limit).limit(limit))
    return list(result.scalars()), total


# ─── Shop reviews ─────────────────────────────────────────────────────────────

async def create_shop_review(db: AsyncSession, user: User, payload: ShopReviewCreateRequest) -> ShopReview:
    order = await load_order(db, payload.order_id)
    ensure_reviewable(order, user)
    if order.shop_id != payload.shop_id:
        raise ValidationError("Order was not placed at this shop")
    if await db.get(Shop, payload.shop_id) is None:
        raise NotFoundError("Shop not found")

    existing = await db.execute(
        select(ShopReview.id).where(ShopReview.user_id == user.id, ShopReview.order_id == order.id)
    )
    if existing.first() is not None:
        raise ConflictError("Review already exists for this order")

    review = ShopReview(
        user_id=user.id,
        shop_id=payload.shop_id,
        order_id=order.id,
        rating=payload.rating,
        comment=payload.comment,
    )
    db.add(review)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Review already exists for this order")

    logger.info("Shop review %s created for shop %s", review.id, review.shop_id)
    await ratings.recompute_shop_rating(review.shop_id)
    return review


async def _owned_shop_review(db: AsyncSession, user: User, review_id: str) -> ShopReview:
    review = await db.get(ShopReview, review_id)
    if review is None:
        raise NotFoundError("Review not found")
    if review.user_id != user.id:
        raise UnauthorizedError("Not authorized to change this review")
    return review


async def update_shop_review(
    db: AsyncSession, user: User, review_id: str, payload: ShopReviewUpdateRequest
) -> ShopReview:
    review = await _owned_shop_review(db, user, review_id)
    if payload.rating is not None:
        review.rating = payload.rating
    if payload.comment is not None:
        review.comment = payload.comment
    await db.commit()
    await ratings.recompute_shop_rating(review.shop_id)
    return review


async def delete_shop_review(db: AsyncSession, user: User, review_id: str) -> None:
    review = await _owned_shop_review(db, user, review_id)
    shop_id = review.shop_id
    await db.delete(review)
    await db.commit()
    await ratings.recompute_shop_rating(shop_id)


async def list_shop_reviews(db: AsyncSession, shop_id: str, page: int, limit: int):
    query = select(ShopReview).where(ShopReview.shop_id == shop_id).order_by(ShopReview.created_at.desc())
    return await _paginate(db, query, page, limit)


async def list_user_shop_reviews(db: AsyncSession, user: User) -> list[ShopReview]:
    result = await db.execute(
        select(ShopReview).where(ShopReview.user_id == user.id).order_by(ShopReview.created_at.desc())
    )
    return list(result.scalars())


async def eligible_orders(db: AsyncSession, user: User) -> list[Order]:
    """Delivered orders of the user that have no shop review yet."""
    reviewed = select(ShopReview.order_id).where(ShopReview.user_id == user.id)
    result = await db.execute(
        select(Order)
        .where(
            Order.user_id == user.id,
            Order.status == OrderStatus.DELIVERED,
            Order.id.not_in(reviewed),
        )
        .order_by(Order.created_at.desc())
    )
    return list(result.scalars())


# ─── Menu item reviews ────────────────────────────────────────────────────────

async def create_menu_item_review(
    db: AsyncSession, user: User, payload: MenuItemReviewCreateRequest
) -> MenuItemReview:
    order = await load_order(db, payload.order_id)
    ensure_reviewable(order, user, menu_item_id=payload.menu_item_id)
    if await db.get(MenuItem, payload.menu_item_id) is None:
        raise NotFoundError("Menu item not found")

    existing = await db.execute(
        select(MenuItemReview.id).where(
            MenuItemReview.user_id == user.id,
            MenuItemReview.menu_item_id == payload.menu_item_id,
            MenuItemReview.order_id == order.id,
        )
    )
    if existing.first() is not None:
        raise ConflictError("Review already exists for this menu item in this order")

    review = MenuItemReview(
        user_id=user.id,
        menu_item_id=payload.menu_item_id,
        order_id=order.id,
        rating=payload.rating,
        comment=payload.comment,
        aspects=payload.aspects.model_dump(),
        would_recommend=payload.would_recommend,
    )
    db.add(review)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Review already exists for this menu item in this order")

    await ratings.recompute_menu_item_rating(review.menu_item_id)
    return review


async def _owned_item_review(db: AsyncSession, user: User, review_id: str) -> MenuItemReview:
    review = await db.get(MenuItemReview, review_id)
    if review is None:
        raise NotFoundError("Review not found")
    if review.user_id != user.id:
        raise UnauthorizedError("Not authorized to change this review")
    return review


async def update_menu_item_review(
    db: AsyncSession, user: User, review_id: str, payload: MenuItemReviewUpdateRequest
) -> MenuItemReview:
    review = await _owned_item_review(db, user, review_id)
    if payload.rating is not None:
        review.rating = payload.rating
    if payload.comment is not None:
        review.comment = payload.comment
    if payload.aspects is not None:
        review.aspects = payload.aspects.model_dump()
    if payload.would_recommend is not None:
        review.would_recommend = payload.would_recommend
    await db.commit()
    await ratings.recompute_menu_item_rating(review.menu_item_id)
    return review


async def delete_menu_item_review(db: AsyncSession, user: User, review_id: str) -> None:
    review = await _owned_item_review(db, user, review_id)
    menu_item_id = review.menu_item_id
    await db.delete(review)
    await db.commit()
    await ratings.recompute_menu_item_rating(menu_item_id)


async def list_menu_item_reviews(db: AsyncSession, menu_item_id: str, page: int, limit: int):
    query = (
        select(MenuItemReview)
        .where(MenuItemReview.menu_item_id == menu_item_id)
        .order_by(MenuItemReview.created_at.desc())
    )
    return await _paginate(db, query, page, limit)


async def list_user_menu_item_reviews(db: AsyncSession, user: User) -> list[MenuItemReview]:
    result = await db.execute(
        select(MenuItemReview)
        .where(MenuItemReview.user_id == user.id)
        .order_by(MenuItemReview.created_at.desc())
    )
    return list(result.scalars())
