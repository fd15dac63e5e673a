"""
check_transition() is pure: every test here builds an Order in memory and
never touches the database.
"""
import pytest

from foojra.core.errors import UnauthorizedError, ValidationError
from foojra.models.order import Order, OrderStatus, PaymentStatus
from foojra.services.order_lifecycle import (
    OrderAction,
    Party,
    check_transition,
    parse_status,
)

CUSTOMER = {Party.CUSTOMER}
SHOP = {Party.SHOP}


def make_order(status=OrderStatus.PENDING, paid=False) -> Order:
    return Order(
        status=status,
        payment_status=PaymentStatus.PAID if paid else PaymentStatus.PENDING,
        is_paid=paid,
        status_history=[],
        tracking_updates=[],
    )


# ─── Authorization matrix ──────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "action,parties",
    [
        (OrderAction.CONFIRM_PAYMENT, SHOP),
        (OrderAction.UPDATE_STATUS, CUSTOMER),
        (OrderAction.ADD_TRACKING, CUSTOMER),
        (OrderAction.CANCEL, set()),
        (OrderAction.CONFIRM_PAYMENT, set()),
    ],
)
def test_wrong_party_is_unauthorized(action, parties):
    with pytest.raises(UnauthorizedError):
        check_transition(make_order(), action, parties, OrderStatus.CONFIRMED)


@pytest.mark.parametrize("parties", [CUSTOMER, SHOP])
def test_both_sides_may_cancel(parties):
    t = check_transition(make_order(), OrderAction.CANCEL, parties)
    assert t.target == OrderStatus.CANCELLED


def test_customer_who_owns_the_shop_acts_as_shop():
    t = check_transition(make_order(), OrderAction.CANCEL, {Party.CUSTOMER, Party.SHOP})
    assert t.party == Party.SHOP


# ─── Payment ───────────────────────────────────────────────────────────────────

def test_payment_on_pending_order_confirms_it():
    t = check_transition(make_order(), OrderAction.CONFIRM_PAYMENT, CUSTOMER)
    assert t.target == OrderStatus.CONFIRMED


def test_payment_on_preparing_order_keeps_status():
    order = make_order(OrderStatus.PREPARING)
    t = check_transition(order, OrderAction.CONFIRM_PAYMENT, CUSTOMER)
    assert t.target == OrderStatus.PREPARING


def test_second_payment_is_rejected():
    order = make_order(OrderStatus.CONFIRMED, paid=True)
    with pytest.raises(ValidationError, match="already paid"):
        check_transition(order, OrderAction.CONFIRM_PAYMENT, CUSTOMER)


# ─── Status updates ────────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "current,target",
    [
        (OrderStatus.PENDING, OrderStatus.CONFIRMED),
        (OrderStatus.CONFIRMED, OrderStatus.PREPARING),
        (OrderStatus.PREPARING, OrderStatus.READY_FOR_PICKUP),
        (OrderStatus.READY_FOR_PICKUP, OrderStatus.OUT_FOR_DELIVERY),
        (OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED),
        (OrderStatus.PENDING, OrderStatus.DELIVERED),
        (OrderStatus.PREPARING, OrderStatus.CANCELLED),
    ],
)
def test_forward_moves_are_allowed(current, target):
    assert check_transition(make_order(current), OrderAction.UPDATE_STATUS, SHOP, target).target == target


@pytest.mark.parametrize(
    "current,target",
    [
        (OrderStatus.PREPARING, OrderStatus.CONFIRMED),
        (OrderStatus.OUT_FOR_DELIVERY, OrderStatus.PENDING),
        (OrderStatus.CONFIRMED, OrderStatus.CONFIRMED),
    ],
)
def test_backward_or_same_moves_are_rejected(current, target):
    with pytest.raises(ValidationError):
        check_transition(make_order(current), OrderAction.UPDATE_STATUS, SHOP, target)


def test_refund_requires_payment():
    with pytest.raises(ValidationError, match="paid"):
        check_transition(make_order(OrderStatus.CONFIRMED), OrderAction.UPDATE_STATUS, SHOP, OrderStatus.REFUNDED)
    paid = make_order(OrderStatus.CONFIRMED, paid=True)
    t = check_transition(paid, OrderAction.UPDATE_STATUS, SHOP, OrderStatus.REFUNDED)
    assert t.target == OrderStatus.REFUNDED


def test_unknown_status_string_is_a_validation_error():
    with pytest.raises(ValidationError, match="Invalid status"):
        parse_status("Teleported")
    assert parse_status("Ready for Pickup") == OrderStatus.READY_FOR_PICKUP


# ─── Terminal states ───────────────────────────────────────────────────────────

TERMINAL = [OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.REFUNDED]


@pytest.mark.parametrize("current", TERMINAL)
def test_terminal_orders_cannot_be_cancelled(current):
    with pytest.raises(ValidationError, match=f"Cannot cancel order with status: {current.value}"):
        check_transition(make_order(current, paid=True), OrderAction.CANCEL, CUSTOMER)


@pytest.mark.parametrize("current", TERMINAL)
@pytest.mark.parametrize("target", list(OrderStatus))
def test_terminal_orders_reject_every_status_update(current, target):
    with pytest.raises(ValidationError):
        check_transition(make_order(current, paid=True), OrderAction.UPDATE_STATUS, SHOP, target)


@pytest.mark.parametrize("current", TERMINAL)
def test_terminal_orders_reject_payment_and_tracking(current):
    order = make_order(current)
    with pytest.raises(ValidationError):
        check_transition(order, OrderAction.CONFIRM_PAYMENT, CUSTOMER)
    with pytest.raises(ValidationError):
        check_transition(order, OrderAction.ADD_TRACKING, SHOP)


def test_tracking_keeps_current_status():
    t = check_transition(make_order(OrderStatus.OUT_FOR_DELIVERY), OrderAction.ADD_TRACKING, SHOP)
    assert t.target == OrderStatus.OUT_FOR_DELIVERY


def test_check_transition_never_mutates_the_order():
    order = make_order(OrderStatus.PREPARING)
    check_transition(order, OrderAction.UPDATE_STATUS, SHOP, OrderStatus.DELIVERED)
    check_transition(order, OrderAction.CANCEL, CUSTOMER)
    check_transition(order, OrderAction.CONFIRM_PAYMENT, CUSTOMER)
    assert order.status == OrderStatus.PREPARING
    assert order.payment_status == PaymentStatus.PENDING
    assert order.status_history == []
