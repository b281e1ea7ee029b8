# shop/services/order_service.py
from datetime import datetime, timezone, timedelta
from decimal import Decimal
from math import ceil
from typing import Any, Callable, Dict

from redis.exceptions import RedisError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from shop.data.models.cart import CartModel
from shop.data.models.order import OrderModel
from shop.data.models.order_item import OrderItemModel
from shop.domain.errors import (
    CheckoutInProgress,
    DuplicateOrder,
    EmptyCart,
    InfrastructureError,
    InsufficientStock,
    InventoryAdjustmentFailed,
    MissingPaymentAssertion,
    OrderNotCancellable,
    OrderNotFound,
    OrderValidationError,
    PaymentVerificationFailed,
    ProductUnavailable,
    InvalidStateTransition,
)
from shop.domain.order_status import (
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    SHIPPABLE_STATUSES,
    ensure_transition,
    is_cancellable,
)
from shop.domain.ports import PaymentAssertion, PaymentVerifier, SequenceAllocator
from shop.repos.order_repo import OrderRepo
from shop.repos.product_repo import ProductRepo
from shop.services.cart_service import CartService, check_line_availability
from shop.services.duplicate_guard import DuplicateOrderGuard
from shop.services.lock_service import LockService
from shop.services.order_number import CountingSequence, format_order_number, order_day
from shop.utils.settings import CHECKOUT_LOCK_TTL_SECONDS, UNPAID_ORDER_TTL_SECONDS
from shop.utils.logging import get_logger

logger = get_logger(__name__)

ORDER_NUMBER_ATTEMPTS = 3
AUTO_CANCEL_NOTE = "[insufficient stock, auto-cancelled]"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderService:
    """
    Serwis odpowiedzialny za domenę zamówień.

    Skladanie zamowienia z koszyka to saga bez transakcji obejmujacej
    wszystkie tabele. Kazdy krok commituje osobno:
    1. walidacja (duplikat, platnosc, dostepnosc) - blad = nic nie zapisane
    2. zapis zamowienia
    3. czyszczenie koszyka - blad tylko logowany
    4. zdjecie stanow magazynowych - blad = zwrot stanow + auto-anulowanie
    5. kazdy inny blad po zapisie = usuniecie zamowienia
    """

    def __init__(
        self,
        db: Session,
        verifier: PaymentVerifier | None = None,
        sequence: SequenceAllocator | None = None,
        lock_service: LockService | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.products = ProductRepo(db)
        self.clock = clock or _utcnow
        self.carts = CartService(db, clock=self.clock)
        self.guard = DuplicateOrderGuard(self.repo)
        self.verifier = verifier
        self.sequence = sequence or CountingSequence(self.repo)
        self.lock_service = lock_service

    # ---------- skladanie zamowienia ----------

    def place_order_from_cart(
        self,
        user_id: int,
        shipping_address: Dict[str, Any],
        payment_method: str,
        notes: str | None = None,
        payment: PaymentAssertion | None = None,
        shipping_method: str = "standard",
    ) -> Dict[str, Any]:
        """
        Use Case: Tworzenie zamówienia z aktywnego koszyka.

        Raises:
            EmptyCart, MissingPaymentAssertion: bledne dane wejsciowe.
            DuplicateOrder: identyczny koszyk zamowiony w ciagu ostatnich minut.
            PaymentVerificationFailed: bramka nie potwierdzila platnosci.
            ProductUnavailable: pozycja niedostepna, nic nie zapisano.
            InventoryAdjustmentFailed: zamowienie zapisane, ale anulowane.
            CheckoutInProgress: inny checkout tego uzytkownika trwa.
            InfrastructureError: baza / redis niedostepne.
        """
        token = None
        if self.lock_service is not None:
            try:
                token = self.lock_service.acquire_checkout_lock(user_id, CHECKOUT_LOCK_TTL_SECONDS)
            except RedisError as e:
                raise InfrastructureError(f"Checkout lock unavailable: {e}") from e
            if not token:
                raise CheckoutInProgress(user_id)

        try:
            return self._place_order(user_id, shipping_address, payment_method, notes, payment, shipping_method)
        finally:
            if token:
                try:
                    self.lock_service.release_checkout_lock(user_id, token)
                except RedisError as e:
                    # lock i tak wygasnie po TTL
                    logger.warning(f"Failed to release checkout lock for user {user_id}: {e}")

    def _place_order(self, user_id, shipping_address, payment_method, notes, payment, shipping_method):
        try:
            method = PaymentMethod(payment_method)
        except ValueError:
            raise OrderValidationError(f"Unsupported payment method: {payment_method}")

        cart = self.carts.get_active_cart(user_id)
        if not cart or not cart.items:
            raise EmptyCart()

        now = self.clock()

        dup = self.guard.check(user_id, [(i.product_id, i.quantity) for i in cart.items], now)
        if dup.is_duplicate:
            logger.info(f"Duplicate order for user {user_id}, existing {dup.existing_order_number}")
            raise DuplicateOrder(dup.existing_order_id, dup.existing_order_number)

        if method.is_gateway:
            self._verify_payment(method, payment)

        for item in cart.items:
            reason = check_line_availability(item.product, item.quantity)
            if reason:
                name = item.product.name if item.product else f"#{item.product_id}"
                raise ProductUnavailable(name, reason)

        order = self._persist(user_id, cart, now, method, shipping_address, shipping_method, notes, payment)
        logger.info(f"Order {order.order_number} persisted for user {user_id}")

        try:
            try:
                self.carts.clear_cart(cart)
                logger.info(f"Cart {cart.id} cleared after order {order.order_number}")
            except Exception as e:
                # zamowienie zostaje, uzytkownik zobaczy stary koszyk
                self.db.rollback()
                logger.warning(f"Failed to clear cart {cart.id} after order {order.order_number}: {e}")

            self._reserve_stock(order)
        except InventoryAdjustmentFailed:
            raise
        except Exception as e:
            logger.error(f"Order {order.order_number} failed after persisting, deleting it: {e}")
            self._discard(order)
            if isinstance(e, (SQLAlchemyError, RedisError)):
                raise InfrastructureError(f"Order could not be completed: {e}") from e
            raise

        return self._to_dict(self.repo.save(order))

    def _verify_payment(self, method: PaymentMethod, payment: PaymentAssertion | None) -> None:
        if payment is None or not payment.imp_uid or not payment.merchant_uid:
            raise MissingPaymentAssertion(method.value)
        if self.verifier is None:
            raise PaymentVerificationFailed("No payment verifier configured")

        result = self.verifier.verify(payment.imp_uid, payment.merchant_uid)
        if not result.success:
            logger.warning(f"Payment {payment.imp_uid} rejected: {result.message}")
            raise PaymentVerificationFailed(result.message or "Payment could not be verified", imp_uid=payment.imp_uid)

    def _persist(self, user_id, cart: CartModel, now, method, shipping_address, shipping_method, notes, payment):
        subtotal = sum((Decimal(i.product.price) * i.quantity for i in cart.items), Decimal("0"))
        lines = [
            (i.product_id, i.quantity, i.product.price, i.product.original_price, i.selected_size, i.selected_color)
            for i in cart.items
        ]
        paid = method.is_gateway

        for attempt in range(1, ORDER_NUMBER_ATTEMPTS + 1):
            day = order_day(now)
            try:
                number = format_order_number(day, self.sequence.next_sequence(day))
            except (RedisError, SQLAlchemyError) as e:
                raise InfrastructureError(f"Order number allocation failed: {e}") from e

            order = OrderModel(
                order_number=number,
                user_id=user_id,
                status=OrderStatus.CONFIRMED.value if paid else OrderStatus.PENDING.value,
                subtotal=subtotal,
                total=subtotal,
                total_amount=subtotal,
                shipping_address=shipping_address,
                recipient_name=shipping_address["recipient_name"],
                recipient_phone=shipping_address["phone"],
                shipping_method=shipping_method,
                payment_method=method.value,
                payment_status=PaymentStatus.COMPLETED.value if paid else PaymentStatus.PENDING.value,
                transaction_id=payment.imp_uid if paid else None,
                paid_at=now if paid else None,
                notes=notes,
                expires_at=None if paid else now + timedelta(seconds=UNPAID_ORDER_TTL_SECONDS),
                created_at=now,
                items=[
                    OrderItemModel(
                        product_id=pid,
                        quantity=qty,
                        price=price,
                        original_price=original,
                        selected_size=size,
                        selected_color=color,
                    )
                    for pid, qty, price, original, size, color in lines
                ],
            )
            try:
                return self.repo.create(order)
            except IntegrityError:
                # numer zajety przez rownolegle zamowienie
                self.repo.rollback()
                logger.warning(f"Order number {number} already taken (attempt {attempt})")
            except SQLAlchemyError as e:
                self.repo.rollback()
                raise InfrastructureError(f"Order could not be saved: {e}") from e

        raise InfrastructureError("Could not allocate a unique order number")

    def _reserve_stock(self, order: OrderModel) -> None:
        done: list[tuple[int, int]] = []
        lines = [(i.product_id, i.quantity) for i in order.items]
        for product_id, quantity in lines:
            try:
                self.products.decrement_stock(product_id, quantity)
            except InsufficientStock:
                logger.error(f"Stock for product {product_id} ran out, auto-cancelling {order.order_number}")
                self._restore_stock(done)
                order.set_status(OrderStatus.CANCELLED.value)
                order.append_note(AUTO_CANCEL_NOTE)
                self.repo.save(order)
                raise InventoryAdjustmentFailed(order.id, order.order_number)
            except Exception:
                self._restore_stock(done)
                raise
            done.append((product_id, quantity))
        logger.info(f"Stock decremented for order {order.order_number}")

    def _restore_stock(self, lines) -> None:
        for product_id, quantity in lines:
            try:
                self.products.adjust_stock(product_id, quantity)
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"Failed to restore {quantity} units of product {product_id}: {e}")

    def _discard(self, order: OrderModel) -> None:
        try:
            self.db.rollback()
            self.repo.delete(order)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to delete order {order.id} during compensation: {e}")

    # ---------- zmiany stanu ----------

    def _load(self, order_id: int, user_id: int | None = None) -> OrderModel:
        order = self.repo.get(order_id) if user_id is None else self.repo.get_for_user(order_id, user_id)
        if not order:
            raise OrderNotFound(order_id)
        return order

    def cancel_order(self, order_id: int, user_id: int, is_admin: bool = False, reason: str | None = None):
        """Anuluje zamówienie i zwraca stany magazynowe. Admin moze anulowac dowolne."""
        order = self._load(order_id, None if is_admin else user_id)
        if not is_cancellable(order.status):
            raise OrderNotCancellable(order.id, order.status)
        return self._to_dict(self._cancel(order, reason))

    def _cancel(self, order: OrderModel, reason: str | None) -> OrderModel:
        lines = [(i.product_id, i.quantity) for i in order.items]
        order.set_status(OrderStatus.CANCELLED.value)
        if reason:
            order.append_note(f"[cancelled: {reason}]")
        self.repo.save(order)
        self._restore_stock(lines)
        logger.info(f"Order {order.order_number} cancelled, stock restored")
        return order

    def update_order_status(self, order_id: int, new_status: str, note: str | None = None):
        """Admin: zmiana statusu wg tabeli przejsc."""
        order = self._load(order_id)
        target = ensure_transition(order.status, new_status)
        if target == OrderStatus.CANCELLED:
            return self._to_dict(self._cancel(order, note))

        order.set_status(target.value)
        if note:
            order.append_note(note)
        logger.info(f"Order {order.order_number} status -> {target.value}")
        return self._to_dict(self.repo.save(order))

    def update_shipping_info(self, order_id: int, tracking_number: str, carrier: str):
        """Admin: numer przesylki, tylko z confirmed/preparing, ustawia shipped."""
        order = self._load(order_id)
        if OrderStatus(order.status) not in SHIPPABLE_STATUSES:
            raise InvalidStateTransition(order.status, OrderStatus.SHIPPED.value)

        order.tracking_number = tracking_number
        order.carrier = carrier
        order.set_status(OrderStatus.SHIPPED.value)
        logger.info(f"Order {order.order_number} shipped with {carrier} {tracking_number}")
        return self._to_dict(self.repo.save(order))

    def update_payment_info(self, order_id: int, status: str, transaction_id: str | None = None):
        order = self._load(order_id)
        payment_status = PaymentStatus(status)
        order.set_payment_status(payment_status.value)
        if transaction_id:
            order.transaction_id = transaction_id
        if payment_status == PaymentStatus.COMPLETED:
            order.paid_at = self.clock()
        logger.info(f"Order {order.order_number} payment -> {payment_status.value}")
        return self._to_dict(self.repo.save(order))

    # ---------- odczyt ----------

    def get_order(self, order_id: int, user_id: int | None = None) -> Dict[str, Any]:
        """Use Case: Pobranie zamówienia (Query). ``user_id=None`` = widok admina."""
        return self._to_dict(self._load(order_id, user_id))

    def list_orders(self, user_id: int | None = None, page: int = 1, limit: int = 10, **filters) -> Dict[str, Any]:
        orders, total = self.repo.list_orders(page=page, limit=limit, user_id=user_id, **filters)
        return {
            "orders": [self._to_dict(o) for o in orders],
            "pagination": {
                "current_page": page,
                "total_pages": ceil(total / limit) if limit else 0,
                "total_items": total,
                "items_per_page": limit,
            },
        }

    def order_stats(self, user_id: int | None = None, start=None, end=None, with_daily: bool = False):
        filters = {"user_id": user_id, "start": start, "end": end}
        totals = self.repo.totals(**filters)
        stats = {"status_stats": self.repo.status_stats(**filters), **totals}
        if with_daily:
            count = totals["total_orders"]
            stats["average_order_value"] = (
                (totals["total_amount"] / count).quantize(Decimal("0.01")) if count else Decimal("0")
            )
            stats["daily_stats"] = self.repo.daily_stats(self.clock() - timedelta(days=30))
        return stats

    def _to_dict(self, order: OrderModel) -> Dict[str, Any]:
        items = [
            {
                "id": i.id,
                "product_id": i.product_id,
                # nazwa/obrazek na zywo z produktu, cena z chwili zakupu
                "name": i.product.name if i.product else None,
                "image": i.product.image if i.product else None,
                "category": i.product.category if i.product else None,
                "quantity": i.quantity,
                "price": i.price,
                "original_price": i.original_price,
                "selected_size": i.selected_size,
                "selected_color": i.selected_color,
            }
            for i in order.items
        ]
        return {
            "id": order.id,
            "order_number": order.order_number,
            "user_id": order.user_id,
            "status": order.status,
            "items": items,
            "subtotal": order.subtotal,
            "total": order.total,
            "total_amount": order.total_amount,
            "total_items": order.total_items,
            "shipping_address": order.shipping_address,
            "shipping_method": order.shipping_method,
            "tracking_number": order.tracking_number,
            "carrier": order.carrier,
            "payment_method": order.payment_method,
            "payment_status": order.payment_status,
            "transaction_id": order.transaction_id,
            "paid_at": order.paid_at,
            "notes": order.notes,
            "expires_at": order.expires_at,
            "created_at": order.created_at,
            "updated_at": order.updated_at,
            "summary": {
                "total_items": order.total_items,
                "item_count": len(items),
                "subtotal": order.subtotal,
                "total": order.total,
            },
        }
