"""
Foojra API — Order model

Line items are point-in-time snapshots of the catalog (name, images, prices,
chosen variation and add-ons); they are never re-read from menu_items.
status_history and tracking_updates are append-only JSON arrays.
version_id is the optimistic locking column, incremented on every UPDATE.
"""
import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum as PyEnum

from sqlalchemy import String, Boolean, DateTime, Enum, Integer, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column

from foojra.db.database import Base, JSONDocument, utcnow


def _values(enum_cls):
    return [m.value for m in enum_cls]


class OrderStatus(str, PyEnum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    PREPARING = "Preparing"
    READY_FOR_PICKUP = "Ready for Pickup"
    OUT_FOR_DELIVERY = "Out for Delivery"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"
    REFUNDED = "Refunded"


class PaymentStatus(str, PyEnum):
    PENDING = "Pending"
    PAID = "Paid"


class PaymentMethod(str, PyEnum):
    CASH_ON_DELIVERY = "Cash on Delivery"
    CREDIT_CARD = "Credit Card"
    MOBILE_PAYMENT = "Mobile Payment"
    BANK_TRANSFER = "Bank Transfer"
    EASYPAISA = "EasyPaisa"
    JAZZCASH = "JazzCash"
    PAYPAL = "PayPal"
    MOBILE_BANKING = "MobileBanking"


class RefundStatus(str, PyEnum):
    NONE = "None"
    REQUESTED = "Requested"
    PROCESSING = "Processing"
    COMPLETED = "Completed"
    REJECTED = "Rejected"


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    order_number: Mapped[str] = mapped_column(String(32), unique=True, index=True, nullable=False)
    user_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    shop_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)

    order_items: Mapped[list] = mapped_column(JSONDocument, nullable=False)
    delivery_address: Mapped[dict] = mapped_column(JSONDocument, nullable=False)
    delivery_instructions: Mapped[str | None] = mapped_column(Text, nullable=True)

    payment_method: Mapped[PaymentMethod] = mapped_column(
        Enum(PaymentMethod, name="payment_method", values_callable=_values),
        nullable=False,
        default=PaymentMethod.CASH_ON_DELIVERY,
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus, name="payment_status", values_callable=_values),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    payment_result: Mapped[dict | None] = mapped_column(JSONDocument, nullable=True)
    is_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    items_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    tax_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    delivery_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    discount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))

    status: Mapped[OrderStatus] = mapped_column(
        Enum(OrderStatus, name="order_status", values_callable=_values),
        nullable=False,
        default=OrderStatus.PENDING,
    )
    status_history: Mapped[list] = mapped_column(JSONDocument, nullable=False, default=list)
    tracking_updates: Mapped[list] = mapped_column(JSONDocument, nullable=False, default=list)

    preparation_time: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    estimated_delivery_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_delivered: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    cancelled_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    refund_status: Mapped[RefundStatus] = mapped_column(
        Enum(RefundStatus, name="refund_status", values_callable=_values),
        nullable=False,
        default=RefundStatus.NONE,
    )
    refund_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))

    version_id: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Order number={self.order_number} status={self.status.value}>"
