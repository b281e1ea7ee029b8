# shop/domain/errors.py
"""Domain errors raised by the cart and order services.

Each error has a stable ``code`` and the HTTP status the API answers with.
Routers translate them in one place (``shop.api.errors``).
"""


class ShopError(Exception):
    code = "SHOP_ERROR"
    status_code = 400

    def __init__(self, message: str | None = None, **extra):
        super().__init__(message or self.code)
        self.message = message or self.code
        self.extra = extra

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, **self.extra}


class OrderValidationError(ShopError):
    code = "VALIDATION_ERROR"
    status_code = 400


class EmptyCart(OrderValidationError):
    code = "EMPTY_CART"

    def __init__(self):
        super().__init__("Cart is empty")


class MissingPaymentAssertion(OrderValidationError):
    code = "PAYMENT_INFO_MISSING"

    def __init__(self, payment_method: str):
        super().__init__(
            f"Payment method {payment_method} requires imp_uid and merchant_uid",
            payment_method=payment_method,
        )


class DuplicateOrder(ShopError):
    code = "DUPLICATE_ORDER"
    status_code = 409

    def __init__(self, order_id: int, order_number: str):
        super().__init__(
            f"An identical order was placed within the last few minutes: {order_number}",
            order_id=order_id,
            order_number=order_number,
        )
        self.order_id = order_id
        self.order_number = order_number


class PaymentVerificationFailed(ShopError):
    code = "PAYMENT_VERIFICATION_FAILED"
    status_code = 402


class ProductUnavailable(ShopError):
    code = "PRODUCT_UNAVAILABLE"
    status_code = 409

    def __init__(self, product_name: str, reason: str):
        super().__init__(f'Product "{product_name}": {reason}', product_name=product_name, reason=reason)
        self.product_name = product_name
        self.reason = reason


class InsufficientStock(ShopError):
    code = "INSUFFICIENT_STOCK"
    status_code = 409

    def __init__(self, product_id: int, requested: int):
        super().__init__(
            f"Product {product_id} has less than {requested} units in stock",
            product_id=product_id,
            requested=requested,
        )
        self.product_id = product_id
        self.requested = requested


class InventoryAdjustmentFailed(ShopError):
    code = "INVENTORY_ADJUSTMENT_FAILED"
    status_code = 409

    def __init__(self, order_id: int, order_number: str):
        super().__init__(
            f"Stock could not be reserved, order {order_number} was cancelled",
            order_id=order_id,
            order_number=order_number,
        )
        self.order_id = order_id
        self.order_number = order_number


class OrderNotFound(ShopError):
    code = "ORDER_NOT_FOUND"
    status_code = 404

    def __init__(self, order_id: int):
        super().__init__(f"Order {order_id} not found", order_id=order_id)


class OrderNotCancellable(ShopError):
    code = "ORDER_NOT_CANCELLABLE"
    status_code = 409

    def __init__(self, order_id: int, status: str):
        super().__init__(f"Order {order_id} in status {status} cannot be cancelled", status=status)


class InvalidStateTransition(ShopError):
    code = "INVALID_STATE_TRANSITION"
    status_code = 409

    def __init__(self, current: str, requested: str):
        super().__init__(
            f"Cannot change order status from {current} to {requested}",
            current=current,
            requested=requested,
        )
        self.current = current
        self.requested = requested


class CheckoutInProgress(ShopError):
    code = "CHECKOUT_IN_PROGRESS"
    status_code = 409

    def __init__(self, user_id: int):
        super().__init__(f"Another checkout for user {user_id} is in progress")


class ProductNotFound(ShopError):
    code = "PRODUCT_NOT_FOUND"
    status_code = 404

    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} not found", product_id=product_id)


class CartItemNotFound(ShopError):
    code = "CART_ITEM_NOT_FOUND"
    status_code = 404

    def __init__(self, item_id: int):
        super().__init__(f"Cart item {item_id} not found", item_id=item_id)


class ConcurrentModification(ShopError):
    code = "CONCURRENT_MODIFICATION"
    status_code = 409


class InfrastructureError(ShopError):
    code = "INFRASTRUCTURE_ERROR"
    status_code = 503


class DuplicateSku(ShopError):
    code = "DUPLICATE_SKU"
    status_code = 409

    def __init__(self, sku: str):
        super().__init__(f"SKU {sku} already exists", sku=sku)


class UserNotFound(ShopError):
    code = "USER_NOT_FOUND"
    status_code = 404

    def __init__(self, user_id: int):
        super().__init__(f"User {user_id} not found", user_id=user_id)


class EmailTaken(ShopError):
    code = "EMAIL_TAKEN"
    status_code = 409

    def __init__(self, email: str):
        super().__init__(f"Email {email} is already registered", email=email)
