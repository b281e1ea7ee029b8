# shop/services/duplicate_guard.py
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable

from shop.domain.order_status import OrderStatus
from shop.repos.order_repo import OrderRepo
from shop.utils.settings import DUPLICATE_ORDER_WINDOW_SECONDS

# tylko zamowienia "w toku" blokuja ponowne zlozenie
_GUARDED_STATUSES = (OrderStatus.PENDING, OrderStatus.CONFIRMED)


@dataclass
class DuplicateCheck:
    is_duplicate: bool
    existing_order_id: int | None = None
    existing_order_number: str | None = None


def line_signature(lines: Iterable[tuple[int, int]]) -> Counter:
    """Multiset of ``(product_id, quantity)`` pairs; order of lines does not matter."""
    return Counter((int(p), int(q)) for p, q in lines)


class DuplicateOrderGuard:
    def __init__(self, repo: OrderRepo, window_seconds: int = DUPLICATE_ORDER_WINDOW_SECONDS):
        self.repo = repo
        self.window = timedelta(seconds=window_seconds)

    def check(self, user_id: int, lines: Iterable[tuple[int, int]], now: datetime) -> DuplicateCheck:
        candidate = line_signature(lines)
        for order in self.repo.find_recent_by_user(user_id, now - self.window, _GUARDED_STATUSES):
            # pelne dopasowanie: ten sam rozmiar i te same pary, czesciowe nie sa duplikatem
            if line_signature((i.product_id, i.quantity) for i in order.items) == candidate:
                return DuplicateCheck(True, order.id, order.order_number)
        return DuplicateCheck(False)
