"""
Rating aggregation.

Ratings are always recomputed from every review of the target (no running
averages), so a failed or skipped recompute heals on the next review write.
Recompute failures are logged and swallowed: the review itself is already
committed by the time these run.
"""
import logging
import math
from dataclasses import dataclass
from typing import Iterable

from sqlalchemy import select, update

from foojra.core.config import get_settings
from foojra.db.database import AsyncSessionLocal
from foojra.models.menu_item import MenuItem
from foojra.models.review import ASPECTS, MenuItemReview, ShopReview
from foojra.models.shop import Shop

settings = get_settings()
logger = logging.getLogger(__name__)


def round_half_up(value: float, digits: int = 1) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


@dataclass(frozen=True)
class RatingSummary:
    rating: float
    count: int


@dataclass(frozen=True)
class ItemRatingSummary(RatingSummary):
    aspects: dict[str, float | None] | None
    recommendation_rate: int


def summarize_ratings(ratings: Iterable[int]) -> RatingSummary:
    values = list(ratings)
    if not values:
        return RatingSummary(rating=settings.DEFAULT_RATING, count=0)
    return RatingSummary(rating=round_half_up(sum(values) / len(values)), count=len(values))


def summarize_item_reviews(reviews: Iterable[MenuItemReview]) -> ItemRatingSummary:
    reviews = list(reviews)
    base = summarize_ratings(r.rating for r in reviews)
    if not reviews:
        return ItemRatingSummary(base.rating, 0, aspects=None, recommendation_rate=0)

    aspects: dict[str, float | None] = {}
    for aspect in ASPECTS:
        scores = [r.aspects.get(aspect) for r in reviews if (r.aspects or {}).get(aspect) is not None]
        aspects[aspect] = round_half_up(sum(scores) / len(scores)) if scores else None
    recommended = sum(1 for r in reviews if r.would_recommend)
    return ItemRatingSummary(
        base.rating,
        base.count,
        aspects=aspects,
        recommendation_rate=math.floor(recommended * 100 / len(reviews) + 0.5),
    )


async def recompute_shop_rating(shop_id: str) -> RatingSummary | None:
    """Runs in its own session so a failure cannot touch the caller's transaction."""
    async with AsyncSessionLocal() as db:
        try:
            result = await db.execute(select(ShopReview.rating).where(ShopReview.shop_id == shop_id))
            summary = summarize_ratings(result.scalars())
            await db.execute(
                update(Shop)
                .where(Shop.id == shop_id)
                .values(rating=summary.rating, total_reviews=summary.count)
            )
            await db.commit()
            return summary
        except Exception:
            logger.exception("Error updating shop rating for %s", shop_id)
            await db.rollback()
            return None


async def recompute_menu_item_rating(menu_item_id: str) -> ItemRatingSummary | None:
    async with AsyncSessionLocal() as db:
        try:
            result = await db.execute(
                select(MenuItemReview).where(MenuItemReview.menu_item_id == menu_item_id)
            )
            summary = summarize_item_reviews(result.scalars())
            await db.execute(
                update(MenuItem)
                .where(MenuItem.id == menu_item_id)
                .values(
                    rating=summary.rating,
                    review_count=summary.count,
                    aspect_ratings=summary.aspects,
                    recommendation_rate=summary.recommendation_rate,
                )
            )
            await db.commit()
            return summary
        except Exception:
            logger.exception("Error updating menu item rating for %s", menu_item_id)
            await db.rollback()
            return None
