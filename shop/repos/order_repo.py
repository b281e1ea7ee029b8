# shop/repos/order_repo.py
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select, func, or_
from sqlalchemy.orm import Session

from shop.data.models.order import OrderModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def create(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)
        return order

    def get(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_for_user(self, order_id: int, user_id: int) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel).where(OrderModel.id == order_id, OrderModel.user_id == user_id)
        ).scalar_one_or_none()

    def find_recent_by_user(self, user_id: int, since: datetime, statuses) -> list[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .where(
                    OrderModel.user_id == user_id,
                    OrderModel.created_at >= since,
                    OrderModel.status.in_([getattr(s, "value", s) for s in statuses]),
                )
                .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            ).scalars().all()
        )

    def count_created_between(self, start: datetime, end: datetime) -> int:
        return self.db.execute(
            select(func.count(OrderModel.id)).where(OrderModel.created_at >= start, OrderModel.created_at < end)
        ).scalar_one()

    def last_number_with_prefix(self, prefix: str) -> str | None:
        # dluzszy numer = wyzsza sekwencja (po 9999 dochodzi piata cyfra)
        stmt = (
            select(OrderModel.order_number)
            .where(OrderModel.order_number.like(f"{prefix}%"))
            .order_by(func.length(OrderModel.order_number).desc(), OrderModel.order_number.desc())
            .limit(1)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def find_expired_unpaid(self, now: datetime) -> list[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel).where(
                    OrderModel.status == "pending",
                    OrderModel.payment_status == "pending",
                    OrderModel.expires_at.is_not(None),
                    OrderModel.expires_at < now,
                )
            ).scalars().all()
        )

    def save(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)
        return order

    def delete(self, order: OrderModel) -> None:
        self.db.delete(order)
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()

    # zapytania listujace / statystyki

    def _filters(self, user_id=None, status=None, start=None, end=None, search=None) -> list:
        conds = []
        if user_id is not None:
            conds.append(OrderModel.user_id == user_id)
        if status:
            conds.append(OrderModel.status == getattr(status, "value", status))
        if start is not None:
            conds.append(OrderModel.created_at >= start)
        if end is not None:
            conds.append(OrderModel.created_at <= end)
        if search:
            pattern = f"%{search}%"
            conds.append(
                or_(
                    OrderModel.order_number.ilike(pattern),
                    OrderModel.recipient_name.ilike(pattern),
                    OrderModel.recipient_phone.ilike(pattern),
                )
            )
        return conds

    def list_orders(self, page: int = 1, limit: int = 10, **filters) -> tuple[list[OrderModel], int]:
        """Newest first. Returns ``(orders, total_matching)``."""
        conds = self._filters(**filters)
        total = self.db.execute(select(func.count(OrderModel.id)).where(*conds)).scalar_one()
        orders = self.db.execute(
            select(OrderModel)
            .where(*conds)
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).unique().scalars().all()
        return list(orders), total

    def status_stats(self, **filters) -> list[dict]:
        rows = self.db.execute(
            select(OrderModel.status, func.count(OrderModel.id), func.coalesce(func.sum(OrderModel.total), 0))
            .where(*self._filters(**filters))
            .group_by(OrderModel.status)
        ).all()
        return [{"status": s, "count": c, "total_amount": Decimal(str(t))} for s, c, t in rows]

    def totals(self, **filters) -> dict:
        count, amount = self.db.execute(
            select(func.count(OrderModel.id), func.coalesce(func.sum(OrderModel.total), 0)).where(
                *self._filters(**filters)
            )
        ).one()
        return {"total_orders": count, "total_amount": Decimal(str(amount))}

    def daily_stats(self, since: datetime) -> list[dict]:
        day = func.date(OrderModel.created_at)
        rows = self.db.execute(
            select(day, func.count(OrderModel.id), func.coalesce(func.sum(OrderModel.total), 0))
            .where(OrderModel.created_at >= since)
            .group_by(day)
            .order_by(day)
        ).all()
        return [{"date": str(d), "count": c, "total_amount": Decimal(str(t))} for d, c, t in rows]
