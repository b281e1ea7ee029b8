from sqlalchemy import Column, Integer, ForeignKey, String, Numeric
from sqlalchemy.orm import relationship

from shop.data.database import Base


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)

    quantity = Column(Integer, nullable=False)
    # cena jednostkowa z chwili zamowienia, nigdy nie przeliczana
    price = Column(Numeric(12, 2), nullable=False)
    original_price = Column(Numeric(12, 2), nullable=True)
    selected_size = Column(String(10), nullable=False, default="")
    selected_color = Column(String(20), nullable=False, default="")

    order = relationship("OrderModel", back_populates="items")
    # nazwa/obrazek produktu dolaczane na zywo przy odczycie
    product = relationship("ProductModel", lazy="joined")
