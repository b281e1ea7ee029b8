# shop/domain/order_status.py
from enum import Enum

from shop.domain.errors import InvalidStateTransition


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"
    KAKAO_PAY = "kakao_pay"
    NAVER_PAY = "naver_pay"
    TOSS_PAY = "toss_pay"
    PAYPAL = "paypal"

    @property
    def is_gateway(self) -> bool:
        """Paid through the payment gateway before the order is placed."""
        return self in GATEWAY_METHODS


GATEWAY_METHODS = frozenset({PaymentMethod.CARD, PaymentMethod.KAKAO_PAY, PaymentMethod.NAVER_PAY})

TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in TRANSITIONS.items() if not targets)

# statusy, z ktorych mozna nadac numer przesylki
SHIPPABLE_STATUSES = frozenset({OrderStatus.CONFIRMED, OrderStatus.PREPARING})


def can_transition(current: str, requested: str) -> bool:
    try:
        return OrderStatus(requested) in TRANSITIONS[OrderStatus(current)]
    except ValueError:
        return False


def ensure_transition(current: str, requested: str) -> OrderStatus:
    """Return the requested status or raise ``InvalidStateTransition``."""
    if not can_transition(current, requested):
        raise InvalidStateTransition(getattr(current, "value", current), getattr(requested, "value", requested))
    return OrderStatus(requested)


def is_cancellable(status: str) -> bool:
    return OrderStatus(status) not in TERMINAL_STATUSES
