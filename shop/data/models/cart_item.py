from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, CheckConstraint
from sqlalchemy.orm import relationship

from shop.data.database import Base


class CartItemModel(Base):
    __tablename__ = "cart_items"
    __table_args__ = (CheckConstraint("quantity BETWEEN 1 AND 99", name="ck_cart_items_quantity"),)

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)

    quantity = Column(Integer, nullable=False)
    selected_size = Column(String(10), nullable=False, default="")
    selected_color = Column(String(20), nullable=False, default="")
    added_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    cart = relationship("CartModel", back_populates="items")
    # dane produktu zawsze na zywo (cena, stan, status)
    product = relationship("ProductModel", lazy="joined")
