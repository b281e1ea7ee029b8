from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from shop.services.duplicate_guard import DuplicateOrderGuard

NOW = datetime(2025, 1, 15, 3, 0, tzinfo=timezone.utc)


def _order(order_id, lines):
    return SimpleNamespace(
        id=order_id,
        order_number=f"ORD250115{order_id:04d}",
        items=[SimpleNamespace(product_id=p, quantity=q) for p, q in lines],
    )


class FakeOrderRepo:
    def __init__(self, orders):
        self.orders = orders
        self.calls = []

    def find_recent_by_user(self, user_id, since, statuses):
        self.calls.append((user_id, since, tuple(s.value for s in statuses)))
        return self.orders


def test_exact_match_in_any_order_is_duplicate():
    repo = FakeOrderRepo([_order(7, [(1, 2), (2, 1)])])
    result = DuplicateOrderGuard(repo).check(10, [(2, 1), (1, 2)], NOW)
    assert result.is_duplicate
    assert result.existing_order_id == 7
    assert result.existing_order_number == "ORD2501150007"


def test_query_uses_window_and_in_progress_statuses():
    repo = FakeOrderRepo([])
    DuplicateOrderGuard(repo, window_seconds=300).check(10, [(1, 1)], NOW)
    user_id, since, statuses = repo.calls[0]
    assert user_id == 10
    assert since == NOW - timedelta(seconds=300)
    assert statuses == ("pending", "confirmed")


def test_different_quantity_is_not_duplicate():
    repo = FakeOrderRepo([_order(1, [(1, 2)])])
    assert not DuplicateOrderGuard(repo).check(10, [(1, 3)], NOW).is_duplicate


def test_partial_overlap_is_not_duplicate():
    repo = FakeOrderRepo([_order(1, [(1, 2), (2, 1)])])
    guard = DuplicateOrderGuard(repo)
    assert not guard.check(10, [(1, 2)], NOW).is_duplicate
    assert not guard.check(10, [(1, 2), (2, 1), (3, 1)], NOW).is_duplicate


def test_matches_any_recent_order():
    repo = FakeOrderRepo([_order(1, [(5, 1)]), _order(2, [(1, 2)])])
    result = DuplicateOrderGuard(repo).check(10, [(1, 2)], NOW)
    assert result.existing_order_id == 2
