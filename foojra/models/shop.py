"""
Foojra API — Shop Model
"""
import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum as PyEnum

from sqlalchemy import String, Boolean, DateTime, Enum, Float, Integer, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column

from foojra.db.database import Base, JSONDocument, utcnow


class ApprovalStatus(str, PyEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Shop(Base):
    """
    One shop per owner. Only approved shops are visible to customers.
    rating / total_reviews are recomputed from reviews and never set directly.
    """
    __tablename__ = "shops"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id: Mapped[str] = mapped_column(String(36), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    phone: Mapped[str] = mapped_column(String(32), nullable=False)
    cuisine: Mapped[str] = mapped_column(String(100), nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False, default="Restaurant")
    address: Mapped[dict] = mapped_column(JSONDocument, nullable=False)
    business_info: Mapped[dict] = mapped_column(JSONDocument, nullable=False)
    operating_hours: Mapped[dict | None] = mapped_column(JSONDocument, nullable=True)
    images: Mapped[list] = mapped_column(JSONDocument, nullable=False, default=list)
    logo: Mapped[str] = mapped_column(String(255), nullable=False, default="default-logo.jpg")

    delivery_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("50"))
    free_delivery_threshold: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("500")
    )
    min_order_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("200"))

    approval_status: Mapped[ApprovalStatus] = mapped_column(
        Enum(ApprovalStatus, name="approval_status", values_callable=lambda e: [m.value for m in e]),
        default=ApprovalStatus.PENDING,
        nullable=False,
    )
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    rating: Mapped[float] = mapped_column(Float, nullable=False, default=4.0)
    total_reviews: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_open: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    @property
    def is_approved(self) -> bool:
        return self.approval_status == ApprovalStatus.APPROVED

    def __repr__(self) -> str:
        return f"<Shop name={self.name} status={self.approval_status.value}>"
