from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import Column, Integer, String, DateTime, Numeric, JSON, CheckConstraint

from shop.data.database import Base


class ProductModel(Base):
    __tablename__ = "products"
    __table_args__ = (CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),)

    id = Column(Integer, primary_key=True)
    sku = Column(String(20), nullable=False, unique=True, index=True)
    name = Column(String(100), nullable=False)

    price = Column(Numeric(12, 2), nullable=False)
    original_price = Column(Numeric(12, 2), nullable=True)

    category = Column(String, nullable=False)  # top, bottom, dress, shoes, accessory, etc
    image = Column(String, nullable=False)
    description = Column(String(1000), nullable=True)

    stock = Column(Integer, nullable=False, default=0)
    status = Column(String, nullable=False, default="on_sale")  # on_sale, sold_out, discontinued, hidden
    tags = Column(JSON, nullable=False, default=list)

    discount_type = Column(String, nullable=True)  # percentage | fixed
    discount_value = Column(Numeric(12, 2), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    @property
    def discounted_price(self) -> Decimal:
        if not self.discount_value:
            return self.price
        if self.discount_type == "percentage":
            factor = 1 - Decimal(self.discount_value) / 100
            return (Decimal(self.price) * factor).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        return max(Decimal("0"), Decimal(self.price) - Decimal(self.discount_value))
