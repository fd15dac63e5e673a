"""
Foojra API — Order schemas
"""
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from foojra.models.order import OrderStatus, PaymentMethod, PaymentStatus, RefundStatus
from foojra.schemas.common import Pagination


class Coordinates(BaseModel):
    lat: float | None = None
    lng: float | None = None


class DeliveryAddress(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=1, max_length=32)
    address: str = Field(..., min_length=1, max_length=500)
    area: str = Field(..., min_length=1, max_length=100)
    city: str = "Gojra"
    postal_code: str | None = None
    landmark: str | None = None
    coordinates: Coordinates | None = None


class OrderItemRequest(BaseModel):
    menu_item_id: str
    quantity: int = Field(..., ge=1, le=50)
    variation: str | None = Field(None, description="Name of the chosen variation")
    add_ons: list[str] = Field(default_factory=list, description="Names of chosen add-ons")
    special_instructions: str | None = Field(None, max_length=500)


class OrderCreateRequest(BaseModel):
    order_items: list[OrderItemRequest] = Field(..., min_length=1, max_length=50)
    delivery_address: DeliveryAddress
    payment_method: PaymentMethod = PaymentMethod.CASH_ON_DELIVERY
    delivery_instructions: str | None = Field(None, max_length=500)
    preparation_time: int | None = Field(None, ge=1, le=240, description="Minutes")


class PaymentResult(BaseModel):
    id: str | None = None
    status: str | None = None
    update_time: str | None = None
    email_address: str | None = None
    transaction_id: str | None = None
    phone_number: str | None = None
    method: str | None = None
    timestamp: str | None = None


class PayRequest(BaseModel):
    payment_result: PaymentResult = Field(default_factory=PaymentResult)


class StatusUpdateRequest(BaseModel):
    # Plain string: unknown values are a 400 from the lifecycle engine, not a 422.
    status: str
    tracking_message: str | None = Field(None, max_length=500)


class CancelRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


class TrackingUpdateRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=500)
    location: Coordinates | None = None


class OrderLineResponse(BaseModel):
    menu_item_id: str
    name: str
    images: list[str] = []
    quantity: int
    base_price: Decimal
    variation: dict | None = None
    add_ons: list[dict] = []
    special_instructions: str | None = None
    total_price: Decimal


class StatusHistoryEntry(BaseModel):
    status: OrderStatus
    timestamp: datetime
    note: str | None = None
    updated_by: str


class TrackingUpdate(BaseModel):
    status: OrderStatus
    message: str
    location: Coordinates | None = None
    timestamp: datetime


class OrderResponse(BaseModel):
    id: str
    order_number: str
    user_id: str
    shop_id: str
    order_items: list[OrderLineResponse]
    delivery_address: DeliveryAddress
    delivery_instructions: str | None
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    payment_result: PaymentResult | None
    is_paid: bool
    paid_at: datetime | None
    items_price: Decimal
    tax_price: Decimal
    delivery_fee: Decimal
    discount: Decimal
    total_price: Decimal
    status: OrderStatus
    status_history: list[StatusHistoryEntry]
    tracking_updates: list[TrackingUpdate]
    preparation_time: int
    estimated_delivery_time: datetime | None
    is_delivered: bool
    delivered_at: datetime | None
    cancelled_at: datetime | None
    cancellation_reason: str | None
    cancelled_by: str | None
    refund_status: RefundStatus
    refund_amount: Decimal
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]
    pagination: Pagination
