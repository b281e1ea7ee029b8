# shop/repos/product_repo.py
from sqlalchemy import update
from sqlalchemy.orm import Session

from shop.data.models.product import ProductModel
from shop.domain.errors import InsufficientStock


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def get_by_sku(self, sku: str) -> ProductModel | None:
        return self.db.query(ProductModel).filter(ProductModel.sku == sku.upper()).one_or_none()

    def create(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product

    def adjust_stock(self, product_id: int, delta: int) -> bool:
        """Atomic ``stock = stock + delta``; returns False when the product is gone."""
        result = self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id)
            .values(stock=ProductModel.stock + delta)
        )
        self.db.commit()
        return result.rowcount > 0

    def decrement_stock(self, product_id: int, quantity: int) -> None:
        """Atomic decrement guarded by ``stock >= quantity``.

        Raises:
            InsufficientStock: when no row matched, i.e. the product is missing
                or another order consumed the stock first.
        """
        result = self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id, ProductModel.stock >= quantity)
            .values(stock=ProductModel.stock - quantity)
        )
        if result.rowcount == 0:
            self.db.rollback()
            raise InsufficientStock(product_id, quantity)
        self.db.commit()

