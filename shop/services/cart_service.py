from datetime import datetime, timezone, timedelta
from decimal import Decimal
from typing import Dict, Any, Callable

from sqlalchemy.orm import Session

from shop.data.models.cart import CartModel
from shop.data.models.cart_item import CartItemModel
from shop.data.models.product import ProductModel
from shop.domain.errors import ProductNotFound, ProductUnavailable, CartItemNotFound, ConcurrentModification
from shop.repos.cart_repo import CartRepo
from shop.repos.product_repo import ProductRepo
from shop.utils.settings import CART_TTL_SECONDS
from shop.utils.logging import get_logger

logger = get_logger(__name__)

MAX_LINE_QUANTITY = 99


def check_line_availability(product: ProductModel | None, quantity: int) -> str | None:
    """Reason a cart line cannot be bought right now, or None when it can."""
    if product is None:
        return "product no longer exists"
    if product.status != "on_sale":
        return "product is not on sale"
    if product.stock < quantity:
        return f"insufficient stock (available: {product.stock})"
    return None


def cart_totals(items) -> tuple[Decimal, int]:
    # zawsze z aktualnych cen produktow, nie z zapamietanych
    amount = sum((Decimal(i.product.price) * i.quantity for i in items if i.product is not None), Decimal("0"))
    count = sum(i.quantity for i in items)
    return amount, count


class CartService:
    """
    Use case dla domeny cart, wszystko w kontekscie uzytkownika
    commands (add, update, remove, clear) modyfikuja stan + wersje (optimistic locking)
    query (get, checkout_preview) tylko odczyt
    koszyk tworzony leniwie przy pierwszym uzyciu
    """

    def __init__(self, db: Session, clock: Callable[[], datetime] | None = None):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    # ---------- helpers ----------

    def _get_or_create(self, user_id: int) -> CartModel:
        cart = self.repo.get_active_cart_by_user(user_id)
        if cart:
            return cart

        expires = self.clock() + timedelta(seconds=CART_TTL_SECONDS)
        # jeden wiersz na usera: stary (converted/abandoned) koszyk wraca do obiegu
        cart = self.repo.get_cart_by_user(user_id)
        if cart:
            cart.status = "active"
            cart.expires_at = expires
            self.repo.commit()
            return cart

        created = self.repo.create_cart(CartModel(user_id=user_id, status="active", version=1, expires_at=expires))
        logger.info(f"Utworzono nowy koszyk {created.id} dla uzytkownika {user_id}")
        return created

    def _touch(self, cart: CartModel) -> CartModel:
        """Przelicz sumy, podbij wersje i przesun expires_at. Commit albo ConcurrentModification."""
        amount, count = cart_totals(cart.items)
        rowcount = self.repo.update_cart_version(
            cart_id=cart.id,
            old_version=cart.version,
            new_data={
                "version": cart.version + 1,
                "total_amount": amount,
                "total_items": count,
                "expires_at": self.clock() + timedelta(seconds=CART_TTL_SECONDS),
            },
        )
        # UPDATE ... WHERE version = :old nie trafil, ktos nas wyprzedzil
        if rowcount == 0:
            self.repo.rollback()
            raise ConcurrentModification("Cart was modified by another request")

        self.repo.commit()
        return self.repo.refresh(cart)

    def _to_dict(self, cart: CartModel) -> Dict[str, Any]:
        return {
            "cart_id": cart.id,
            "user_id": cart.user_id,
            "status": cart.status,
            "version": cart.version,
            "items": [
                {
                    "id": i.id,
                    "product": {
                        "id": i.product.id,
                        "name": i.product.name,
                        "price": i.product.price,
                        "original_price": i.product.original_price,
                        "image": i.product.image,
                        "category": i.product.category,
                        "stock": i.product.stock,
                        "status": i.product.status,
                    },
                    "quantity": i.quantity,
                    "selected_size": i.selected_size,
                    "selected_color": i.selected_color,
                    "added_at": i.added_at,
                }
                for i in cart.items
                if i.product is not None
            ],
            "total_amount": cart.total_amount,
            "total_items": cart.total_items,
            "expires_at": cart.expires_at,
        }

    # ---------- query ----------

    def get_active_cart(self, user_id: int) -> CartModel | None:
        return self.repo.get_active_cart_by_user(user_id)

    def get_cart(self, user_id: int) -> Dict[str, Any]:
        return self._to_dict(self._get_or_create(user_id))

    def checkout_preview(self, user_id: int) -> Dict[str, Any]:
        cart = self._get_or_create(user_id)
        issues = []
        for item in cart.items:
            reason = check_line_availability(item.product, item.quantity)
            if reason:
                issues.append(
                    {
                        "item_id": item.id,
                        "product_id": item.product_id,
                        "product_name": item.product.name if item.product else "",
                        "reason": reason,
                    }
                )
        amount, count = cart_totals(cart.items)
        return {
            "is_valid": bool(cart.items) and not issues,
            "issues": issues,
            "total_amount": amount,
            "total_items": count,
        }

    # ---------- commands ----------

    def add_item(
        self,
        user_id: int,
        product_id: int,
        quantity: int = 1,
        size: str = "",
        color: str = "",
    ) -> Dict[str, Any]:
        if quantity <= 0:
            raise ValueError("Quantity must be greater than 0")

        product = self.products.get(product_id)
        if not product:
            raise ProductNotFound(product_id)

        cart = self._get_or_create(user_id)
        existing = self.repo.find_line(cart.id, product_id, size, color)
        new_quantity = min(MAX_LINE_QUANTITY, (existing.quantity if existing else 0) + quantity)

        reason = check_line_availability(product, new_quantity)
        if reason:
            raise ProductUnavailable(product.name, reason)

        if existing:
            logger.info(f"Produkt {product_id} juz jest w koszyku {cart.id}, ilosc {existing.quantity} -> {new_quantity}")
            existing.quantity = new_quantity
        else:
            logger.info(f"Dodaje produkt {product_id} do koszyka {cart.id}")
            self.repo.add_cart_item(
                cart,
                CartItemModel(
                    product_id=product_id,
                    product=product,
                    quantity=new_quantity,
                    selected_size=size,
                    selected_color=color,
                    added_at=self.clock(),
                ),
            )

        return self._to_dict(self._touch(cart))

    def update_item_quantity(self, user_id: int, item_id: int, quantity: int) -> Dict[str, Any]:
        cart = self._get_or_create(user_id)
        item = self.repo.get_cart_item(cart.id, item_id)
        if not item:
            raise CartItemNotFound(item_id)

        if quantity <= 0:
            logger.info(f"Ilosc {quantity}, usuwam pozycje {item_id} z koszyka {cart.id}")
            self.repo.delete_cart_item(cart, item)
            return self._to_dict(self._touch(cart))

        quantity = min(MAX_LINE_QUANTITY, quantity)
        reason = check_line_availability(item.product, quantity)
        if reason:
            raise ProductUnavailable(item.product.name if item.product else str(item.product_id), reason)

        item.quantity = quantity
        return self._to_dict(self._touch(cart))

    def remove_item(self, user_id: int, item_id: int) -> Dict[str, Any]:
        cart = self._get_or_create(user_id)
        item = self.repo.get_cart_item(cart.id, item_id)
        if not item:
            raise CartItemNotFound(item_id)

        logger.info(f"Usuwanie pozycji {item_id} z koszyka {cart.id}")
        self.repo.delete_cart_item(cart, item)
        return self._to_dict(self._touch(cart))

    def clear(self, user_id: int) -> Dict[str, Any]:
        cart = self._get_or_create(user_id)
        return self._to_dict(self.clear_cart(cart))

    def clear_cart(self, cart: CartModel) -> CartModel:
        logger.info(f"Czyszczenie koszyka {cart.id}")
        self.repo.clear_items(cart)
        return self._touch(cart)
