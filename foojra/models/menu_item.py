"""
Foojra API — Menu item model

Variations, add-ons and offers are nested documents stored as JSON:
  variations: [{"name", "price", "description", "is_default"}]
  add_ons:    [{"name", "price", "category", "is_required"}]
  offers:     {"has_discount", "discount_percentage", "discount_price",
               "offer_description", "valid_until"}
Variation and add-on prices are deltas on top of the item's current price.
"""
import uuid
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import String, Boolean, DateTime, Float, Integer, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column

from foojra.db.database import Base, JSONDocument, as_utc, utcnow

CENTS = Decimal("0.01")


class MenuItem(Base):
    __tablename__ = "menu_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    shop_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    base_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    sub_category: Mapped[str | None] = mapped_column(String(50), nullable=True)
    variations: Mapped[list] = mapped_column(JSONDocument, nullable=False, default=list)
    add_ons: Mapped[list] = mapped_column(JSONDocument, nullable=False, default=list)
    images: Mapped[list] = mapped_column(JSONDocument, nullable=False, default=list)
    tags: Mapped[list] = mapped_column(JSONDocument, nullable=False, default=list)
    dietary_info: Mapped[dict] = mapped_column(JSONDocument, nullable=False, default=dict)
    offers: Mapped[dict] = mapped_column(JSONDocument, nullable=False, default=dict)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    preparation_time: Mapped[int] = mapped_column(Integer, nullable=False, default=15)

    # Derived from MenuItemReview documents
    rating: Mapped[float] = mapped_column(Float, nullable=False, default=4.0)
    review_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    aspect_ratings: Mapped[dict | None] = mapped_column(JSONDocument, nullable=True)
    recommendation_rate: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    def current_price_at(self, when: datetime) -> Decimal:
        offers = self.offers or {}
        valid_until = offers.get("valid_until")
        if offers.get("has_discount") and valid_until:
            if as_utc(datetime.fromisoformat(valid_until)) > when:
                if offers.get("discount_price"):
                    return Decimal(str(offers["discount_price"])).quantize(CENTS, ROUND_HALF_UP)
                pct = Decimal(str(offers.get("discount_percentage") or 0))
                price = Decimal(self.base_price) * (1 - pct / 100)
                return price.quantize(CENTS, ROUND_HALF_UP)
        return Decimal(self.base_price).quantize(CENTS, ROUND_HALF_UP)

    @property
    def current_price(self) -> Decimal:
        return self.current_price_at(utcnow())

    def __repr__(self) -> str:
        return f"<MenuItem name={self.name} shop={self.shop_id}>"
