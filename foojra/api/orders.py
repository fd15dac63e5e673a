"""
Foojra API — Order routes

Thin HTTP layer over foojra.services.order_lifecycle: every rule about who
may do what to an order, and in which state, lives there.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from foojra.api.shops import get_owned_shop
from foojra.db.database import get_db
from foojra.middleware.auth import get_current_user, require_customer, require_shop_owner
from foojra.models.user import User
from foojra.schemas.common import Pagination
from foojra.schemas.order import (
    CancelRequest,
    OrderCreateRequest,
    OrderListResponse,
    OrderResponse,
    PayRequest,
    StatusUpdateRequest,
    TrackingUpdateRequest,
)
from foojra.services import order_lifecycle

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: OrderCreateRequest,
    customer: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
):
    return await order_lifecycle.create_order(db, customer, payload)


@router.get("/myorders", response_model=OrderListResponse)
async def my_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    orders, total = await order_lifecycle.list_orders(db, user_id=user.id, page=page, limit=limit)
    return OrderListResponse(
        orders=[OrderResponse.model_validate(o) for o in orders],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/shop", response_model=OrderListResponse)
async def shop_orders(
    order_status: str | None = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    owner: User = Depends(require_shop_owner),
    db: AsyncSession = Depends(get_db),
):
    shop = await get_owned_shop(db, owner)
    wanted = order_lifecycle.parse_status(order_status) if order_status else None
    orders, total = await order_lifecycle.list_orders(
        db, shop_id=shop.id, status=wanted, page=page, limit=limit
    )
    return OrderListResponse(
        orders=[OrderResponse.model_validate(o) for o in orders],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await order_lifecycle.get_order_for_user(db, user, order_id)


@router.put("/{order_id}/pay", response_model=OrderResponse)
async def pay_order(
    order_id: str,
    payload: PayRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await order_lifecycle.confirm_payment(
        db, user, order_id, payload.payment_result.model_dump(exclude_none=True)
    )


@router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    payload: StatusUpdateRequest,
    user: User = Depends(require_shop_owner),
    db: AsyncSession = Depends(get_db),
):
    return await order_lifecycle.update_status(db, user, order_id, payload.status, payload.tracking_message)


@router.put("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: str,
    payload: CancelRequest | None = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    reason = payload.reason if payload else None
    return await order_lifecycle.cancel_order(db, user, order_id, reason)


@router.post("/{order_id}/tracking", response_model=OrderResponse)
async def add_tracking(
    order_id: str,
    payload: TrackingUpdateRequest,
    user: User = Depends(require_shop_owner),
    db: AsyncSession = Depends(get_db),
):
    location = payload.location.model_dump() if payload.location else None
    return await order_lifecycle.add_tracking_update(db, user, order_id, payload.message, location)
