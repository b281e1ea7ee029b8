from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric, JSON
from sqlalchemy.orm import relationship

from shop.data.database import Base


NOTES_MAX_LENGTH = 1000


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    # ORD + YYMMDD + 4-cyfrowa sekwencja dzienna
    order_number = Column(String(16), nullable=False, unique=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    status = Column(String, nullable=False, default="pending", index=True)

    subtotal = Column(Numeric(12, 2), nullable=False)
    total = Column(Numeric(12, 2), nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)  # = total, dla kompatybilnosci

    shipping_address = Column(JSON, nullable=False)
    # kopia z adresu, zeby admin mogl szukac po odbiorcy/telefonie
    recipient_name = Column(String(50), nullable=False, index=True)
    recipient_phone = Column(String(30), nullable=False)
    shipping_method = Column(String, nullable=False, default="standard")
    tracking_number = Column(String(50), nullable=True)
    carrier = Column(String(50), nullable=True)

    payment_method = Column(String, nullable=False)
    payment_status = Column(String, nullable=False, default="pending")
    transaction_id = Column(String(100), nullable=True, index=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    notes = Column(String(NOTES_MAX_LENGTH), nullable=True)
    # tylko dla nieoplaconych zamowien w statusie pending
    expires_at = Column(DateTime(timezone=True), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), index=True)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.id",
    )

    @property
    def total_items(self) -> int:
        return sum(i.quantity for i in self.items)

    def set_status(self, status: str) -> None:
        self.status = status
        self._sync_expiry()

    def set_payment_status(self, status: str) -> None:
        self.payment_status = status
        self._sync_expiry()

    def append_note(self, note: str) -> None:
        notes = f"{self.notes} {note}".strip() if self.notes else note
        # najnowsze wpisy sa wazniejsze, obcinamy od poczatku
        self.notes = notes[-NOTES_MAX_LENGTH:]

    def _sync_expiry(self) -> None:
        if self.status != "pending" or self.payment_status != "pending":
            self.expires_at = None
