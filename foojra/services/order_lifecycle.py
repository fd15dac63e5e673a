"""
Order lifecycle engine.

States:
  Pending → Confirmed → Preparing → Ready for Pickup → Out for Delivery → Delivered
  plus Cancelled and Refunded. Delivered, Cancelled and Refunded are terminal.

Every mutation goes through check_transition(), which holds the whole
authorization + transition matrix, before a single field is touched. Writes
are guarded by the order's version_id (see foojra.core.optimistic_lock), so
a concurrent writer forces a re-read and re-check instead of a lost update.
"""
import logging
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from foojra.core.config import get_settings
from foojra.core.errors import NotFoundError, UnauthorizedError, ValidationError
from foojra.core.optimistic_lock import with_optimistic_retry
from foojra.db.database import utcnow
from foojra.models.menu_item import MenuItem
from foojra.models.order import Order, OrderStatus, PaymentStatus, RefundStatus
from foojra.models.shop import Shop
from foojra.models.user import User
from foojra.schemas.order import OrderCreateRequest
from foojra.services.order_numbers import generate_order_number

settings = get_settings()
logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
DEFAULT_CANCELLATION_REASON = "No reason provided"

TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.REFUNDED})

# Position along the happy path; status updates may skip ahead but never go back.
PROGRESSION = {
    OrderStatus.PENDING: 0,
    OrderStatus.CONFIRMED: 1,
    OrderStatus.PREPARING: 2,
    OrderStatus.READY_FOR_PICKUP: 3,
    OrderStatus.OUT_FOR_DELIVERY: 4,
    OrderStatus.DELIVERED: 5,
}


class OrderAction(str, Enum):
    CONFIRM_PAYMENT = "confirm_payment"
    UPDATE_STATUS = "update_status"
    CANCEL = "cancel"
    ADD_TRACKING = "add_tracking"


class Party(str, Enum):
    CUSTOMER = "customer"
    SHOP = "shop"


ALLOWED_PARTIES: dict[OrderAction, frozenset[Party]] = {
    OrderAction.CONFIRM_PAYMENT: frozenset({Party.CUSTOMER}),
    OrderAction.UPDATE_STATUS: frozenset({Party.SHOP}),
    OrderAction.ADD_TRACKING: frozenset({Party.SHOP}),
    OrderAction.CANCEL: frozenset({Party.CUSTOMER, Party.SHOP}),
}


@dataclass(frozen=True)
class Transition:
    action: OrderAction
    party: Party
    target: OrderStatus


def parse_status(value: str) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise ValidationError("Invalid status")


def check_transition(
    order: Order,
    action: OrderAction,
    parties: set[Party],
    target: OrderStatus | None = None,
) -> Transition:
    """
    Decide whether `parties` may perform `action` on `order` in its current
    state. Returns the resulting transition or raises UnauthorizedError /
    ValidationError. Pure: never mutates the order.
    """
    allowed = ALLOWED_PARTIES[action] & parties
    if not allowed:
        raise UnauthorizedError(f"Not authorized to {action.value.replace('_', ' ')} this order")
    # A user who is both the customer and the shop owner acts as the shop.
    party = Party.SHOP if Party.SHOP in allowed else Party.CUSTOMER
    current = order.status

    if action is OrderAction.CANCEL:
        if current in TERMINAL_STATUSES:
            raise ValidationError(f"Cannot cancel order with status: {current.value}")
        return Transition(action, party, OrderStatus.CANCELLED)

    if current in TERMINAL_STATUSES:
        raise ValidationError(f"Order is already {current.value}")

    if action is OrderAction.CONFIRM_PAYMENT:
        if order.payment_status == PaymentStatus.PAID:
            raise ValidationError("Order is already paid")
        next_status = OrderStatus.CONFIRMED if current == OrderStatus.PENDING else current
        return Transition(action, party, next_status)

    if action is OrderAction.ADD_TRACKING:
        return Transition(action, party, current)

    # UPDATE_STATUS
    if target is None:
        raise ValidationError("Status is required")
    if target == current:
        raise ValidationError(f"Order is already {current.value}")
    if target == OrderStatus.REFUNDED and order.payment_status != PaymentStatus.PAID:
        raise ValidationError("Only paid orders can be refunded")
    if target in (OrderStatus.CANCELLED, OrderStatus.REFUNDED):
        return Transition(action, party, target)
    if PROGRESSION[target] <= PROGRESSION[current]:
        raise ValidationError(f"Cannot move order from {current.value} to {target.value}")
    return Transition(action, party, target)


def _history_entry(status: OrderStatus, note: str | None, updated_by: str) -> dict:
    return {
        "status": status.value,
        "timestamp": utcnow().isoformat(),
        "note": note,
        "updated_by": updated_by,
    }


def _apply_status(order: Order, status: OrderStatus, note: str | None, updated_by: str, actor_id: str):
    now = utcnow()
    order.status = status
    # Reassign rather than append so the JSON column is flagged dirty.
    order.status_history = [*order.status_history, _history_entry(status, note, updated_by)]
    if status == OrderStatus.DELIVERED:
        order.is_delivered = True
        order.delivered_at = now
    elif status == OrderStatus.CANCELLED:
        order.cancelled_at = now
        order.cancellation_reason = note or DEFAULT_CANCELLATION_REASON
        order.cancelled_by = actor_id
    elif status == OrderStatus.REFUNDED:
        order.refund_status = RefundStatus.COMPLETED
        order.refund_amount = order.total_price


# ─── Loading & authorization ──────────────────────────────────────────────────

async def load_order(db: AsyncSession, order_id: str) -> Order:
    result = await db.execute(
        select(Order).where(Order.id == order_id).execution_options(populate_existing=True)
    )
    order = result.scalar_one_or_none()
    if order is None:
        raise NotFoundError("Order not found")
    return order


async def parties_for(db: AsyncSession, order: Order, user: User) -> set[Party]:
    parties = set()
    if order.user_id == user.id:
        parties.add(Party.CUSTOMER)
    owner_id = (
        await db.execute(select(Shop.owner_id).where(Shop.id == order.shop_id))
    ).scalar_one_or_none()
    if owner_id is not None and owner_id == user.id:
        parties.add(Party.SHOP)
    return parties


async def get_order_for_user(db: AsyncSession, user: User, order_id: str) -> Order:
    order = await load_order(db, order_id)
    if not await parties_for(db, order, user):
        raise UnauthorizedError("Not authorized to view this order")
    return order


# ─── Creation ─────────────────────────────────────────────────────────────────

def _pick_variation(item: MenuItem, name: str | None) -> dict | None:
    if not name:
        return None
    for variation in item.variations or []:
        if variation.get("name") == name:
            return {"name": variation["name"], "price": str(Decimal(str(variation.get("price", 0))))}
    raise ValidationError(f"Variation '{name}' is not offered for {item.name}")


def _pick_add_ons(item: MenuItem, names: list[str]) -> list[dict]:
    offered = {a.get("name"): a for a in item.add_ons or []}
    picked = []
    for name in names:
        if name not in offered:
            raise ValidationError(f"Add-on '{name}' is not offered for {item.name}")
        picked.append({"name": name, "price": str(Decimal(str(offered[name].get("price", 0))))})
    return picked


def snapshot_line(item: MenuItem, quantity: int, variation: str | None,
                  add_ons: list[str], special_instructions: str | None) -> dict:
    """Freeze name, images and prices of a menu item as it is right now."""
    unit_price = item.current_price
    chosen_variation = _pick_variation(item, variation)
    chosen_add_ons = _pick_add_ons(item, add_ons)
    extras = sum((Decimal(a["price"]) for a in chosen_add_ons), Decimal("0"))
    if chosen_variation:
        extras += Decimal(chosen_variation["price"])
    total = ((unit_price + extras) * quantity).quantize(CENTS, ROUND_HALF_UP)
    return {
        "menu_item_id": item.id,
        "name": item.name,
        "images": list(item.images or []),
        "quantity": quantity,
        "base_price": str(unit_price),
        "variation": chosen_variation,
        "add_ons": chosen_add_ons,
        "special_instructions": special_instructions,
        "total_price": str(total),
    }


async def create_order(db: AsyncSession, customer: User, payload: OrderCreateRequest) -> Order:
    item_ids = {line.menu_item_id for line in payload.order_items}
    rows = await db.execute(select(MenuItem).where(MenuItem.id.in_(item_ids)))
    items = {item.id: item for item in rows.scalars()}

    first = items.get(payload.order_items[0].menu_item_id)
    if first is None:
        raise NotFoundError("Menu item not found")
    shop = await db.get(Shop, first.shop_id)
    if shop is None:
        raise NotFoundError("Shop not found")
    if not shop.is_approved or not shop.is_open:
        raise ValidationError(f"{shop.name} is not accepting orders right now")

    lines = []
    for line in payload.order_items:
        item = items.get(line.menu_item_id)
        if item is None:
            raise NotFoundError("Menu item not found")
        if item.shop_id != shop.id:
            raise ValidationError("All items in an order must come from the same shop")
        if not item.is_available:
            raise ValidationError(f"{item.name} is currently unavailable")
        lines.append(snapshot_line(
            item, line.quantity, line.variation, line.add_ons, line.special_instructions
        ))

    items_price = sum((Decimal(line["total_price"]) for line in lines), Decimal("0"))
    if items_price < shop.min_order_amount:
        raise ValidationError(f"Minimum order amount for {shop.name} is {shop.min_order_amount}")
    delivery_fee = Decimal("0") if items_price >= shop.free_delivery_threshold else Decimal(shop.delivery_fee)

    preparation_time = payload.preparation_time or settings.DEFAULT_PREPARATION_MINUTES
    # Plain values: a rollback below expires every loaded instance
    customer_id, shop_id = customer.id, shop.id
    for attempt in range(1, settings.ORDER_NUMBER_MAX_ATTEMPTS + 1):
        now = utcnow()
        order_number = generate_order_number()
        order = Order(
            order_number=order_number,
            user_id=customer_id,
            shop_id=shop_id,
            order_items=lines,
            delivery_address=payload.delivery_address.model_dump(mode="json"),
            delivery_instructions=payload.delivery_instructions,
            payment_method=payload.payment_method,
            payment_status=PaymentStatus.PENDING,
            items_price=items_price,
            delivery_fee=delivery_fee,
            tax_price=Decimal("0"),
            discount=Decimal("0"),
            total_price=items_price + delivery_fee,
            status=OrderStatus.PENDING,
            status_history=[_history_entry(OrderStatus.PENDING, "Order placed", Party.CUSTOMER.value)],
            tracking_updates=[],
            preparation_time=preparation_time,
            estimated_delivery_time=now + timedelta(
                minutes=preparation_time + settings.DELIVERY_BUFFER_MINUTES
            ),
        )
        db.add(order)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.warning(
                "Order number %s already taken (attempt %d/%d)",
                order_number, attempt, settings.ORDER_NUMBER_MAX_ATTEMPTS,
            )
            continue
        logger.info("Order %s placed by %s at shop %s", order_number, customer_id, shop_id)
        return order
    raise ValidationError("Could not allocate an order number. Please retry.")


# ─── Transitions ──────────────────────────────────────────────────────────────

@with_optimistic_retry()
async def confirm_payment(db: AsyncSession, user: User, order_id: str, payment_result: dict | None) -> Order:
    order = await load_order(db, order_id)
    transition = check_transition(order, OrderAction.CONFIRM_PAYMENT, await parties_for(db, order, user))

    order.payment_status = PaymentStatus.PAID
    order.is_paid = True
    order.paid_at = utcnow()
    order.payment_result = payment_result
    if transition.target != order.status:
        _apply_status(order, transition.target, "Payment received", "system", user.id)
    await db.commit()
    logger.info("Order %s paid, status %s", order.order_number, order.status.value)
    return order


@with_optimistic_retry()
async def update_status(
    db: AsyncSession, user: User, order_id: str, status: str, tracking_message: str | None = None
) -> Order:
    target = parse_status(status)
    order = await load_order(db, order_id)
    previous = order.status
    transition = check_transition(order, OrderAction.UPDATE_STATUS, await parties_for(db, order, user), target)

    _apply_status(order, transition.target, tracking_message, transition.party.value, user.id)
    if tracking_message:
        order.tracking_updates = [*order.tracking_updates, {
            "status": transition.target.value,
            "message": tracking_message,
            "location": None,
            "timestamp": utcnow().isoformat(),
        }]
    await db.commit()
    logger.info("Order %s: %s -> %s", order.order_number, previous.value, order.status.value)
    return order


@with_optimistic_retry()
async def cancel_order(db: AsyncSession, user: User, order_id: str, reason: str | None = None) -> Order:
    order = await load_order(db, order_id)
    transition = check_transition(order, OrderAction.CANCEL, await parties_for(db, order, user))

    _apply_status(order, OrderStatus.CANCELLED, reason, transition.party.value, user.id)
    await db.commit()
    logger.info("Order %s cancelled by %s: %s", order.order_number, transition.party.value,
                order.cancellation_reason)
    return order


@with_optimistic_retry()
async def add_tracking_update(
    db: AsyncSession, user: User, order_id: str, message: str, location: dict | None = None
) -> Order:
    order = await load_order(db, order_id)
    check_transition(order, OrderAction.ADD_TRACKING, await parties_for(db, order, user))

    order.tracking_updates = [*order.tracking_updates, {
        "status": order.status.value,
        "message": message,
        "location": location,
        "timestamp": utcnow().isoformat(),
    }]
    await db.commit()
    return order


# ─── Review eligibility ───────────────────────────────────────────────────────

def ensure_reviewable(order: Order, user: User, menu_item_id: str | None = None) -> None:
    """Orders can be reviewed by their customer once delivered; item reviews
    additionally need the item among the order's line items."""
    if order.user_id != user.id:
        raise UnauthorizedError("Not authorized to review this order")
    if order.status != OrderStatus.DELIVERED:
        raise ValidationError("Order not eligible for review until it is delivered")
    if menu_item_id is not None and not any(
        line.get("menu_item_id") == menu_item_id for line in order.order_items
    ):
        raise ValidationError("Menu item was not part of this order")


# ─── Listing ──────────────────────────────────────────────────────────────────

async def list_orders(
    db: AsyncSession, *, user_id: str | None = None, shop_id: str | None = None,
    status: OrderStatus | None = None, page: int = 1, limit: int = 10,
) -> tuple[list[Order], int]:
    query = select(Order)
    if user_id is not None:
        query = query.where(Order.user_id == user_id)
    if shop_id is not None:
        query = query.where(Order.shop_id == shop_id)
    if status is not None:
        query = query.where(Order.status == status)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()
    result = await db.execute(
        query.order_by(Order.created_at.desc()).offset((page - 1) * limit).limit(limit)
    )
    return list(result.scalars()), total
