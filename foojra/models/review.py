"""
Foojra API — Review models

Both review kinds are bound to an order: one shop review per (user, order),
one item review per (user, menu_item, order).
"""
import uuid
from datetime import datetime

from sqlalchemy import String, Boolean, DateTime, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from foojra.db.database import Base, JSONDocument, utcnow

ASPECTS = ("taste", "presentation", "portion_size", "value_for_money")


class ShopReview(Base):
    __tablename__ = "shop_reviews"
    __table_args__ = (UniqueConstraint("user_id", "order_id", name="uq_shop_review_user_order"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    shop_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    order_id: Mapped[str] = mapped_column(String(36), nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[str] = mapped_column(Text, nullable=False)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )


class MenuItemReview(Base):
    __tablename__ = "menu_item_reviews"
    __table_args__ = (
        UniqueConstraint("user_id", "menu_item_id", "order_id", name="uq_item_review_user_item_order"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    menu_item_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    order_id: Mapped[str] = mapped_column(String(36), nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[str] = mapped_column(Text, nullable=False)
    aspects: Mapped[dict] = mapped_column(JSONDocument, nullable=False, default=dict)
    would_recommend: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )
