# shop/repos/cart_repo.py
from datetime import datetime

from sqlalchemy import update, select
from sqlalchemy.orm import Session

from shop.data.models.cart import CartModel
from shop.data.models.cart_item import CartItemModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart(self, cart_id: int) -> CartModel | None:
        return self.db.get(CartModel, cart_id)

    def get_cart_by_user(self, user_id: int) -> CartModel | None:
        return self.db.execute(
            select(CartModel).where(CartModel.user_id == user_id)
        ).scalar_one_or_none()

    def get_active_cart_by_user(self, user_id: int) -> CartModel | None:
        return self.db.execute(
            select(CartModel).where(CartModel.user_id == user_id, CartModel.status == "active")
        ).scalar_one_or_none()

    def create_cart(self, cart: CartModel) -> CartModel:
        self.db.add(cart)
        self.db.commit()
        self.db.refresh(cart)
        return cart

    def get_cart_item(self, cart_id: int, item_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(CartItemModel.cart_id == cart_id, CartItemModel.id == item_id)
        ).scalar_one_or_none()

    def find_line(self, cart_id: int, product_id: int, size: str, color: str) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
                CartItemModel.selected_size == size,
                CartItemModel.selected_color == color,
            )
        ).scalar_one_or_none()

    def add_cart_item(self, cart: CartModel, item: CartItemModel) -> None:
        cart.items.append(item)
        self.db.flush()

    # delete-orphan: usuniecie z kolekcji kasuje wiersz
    def delete_cart_item(self, cart: CartModel, item: CartItemModel) -> None:
        cart.items.remove(item)
        self.db.flush()

    def clear_items(self, cart: CartModel) -> None:
        cart.items.clear()
        self.db.flush()

    def update_cart_version(self, cart_id: int, old_version: int, new_data: dict) -> int:
        # UPDATE carts SET ... WHERE id = :id AND version = :old
        result = self.db.execute(
            update(CartModel)
            .where(CartModel.id == cart_id, CartModel.version == old_version)
            .values(**new_data)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def refresh(self, cart: CartModel) -> CartModel:
        self.db.refresh(cart)
        return cart

    def delete_expired(self, now: datetime) -> int:
        carts = self.db.execute(select(CartModel).where(CartModel.expires_at < now)).scalars().all()
        for cart in carts:
            self.db.delete(cart)
        self.db.commit()
        return len(carts)

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
