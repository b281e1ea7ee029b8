import re
from datetime import date, datetime, timezone

from shop.services.order_number import (
    CountingSequence,
    RedisSequence,
    day_bounds_utc,
    format_order_number,
    order_day,
)


class CountingRepo:
    def __init__(self, count, last=None):
        self.count = count
        self.last = last
        self.calls = []

    def count_created_between(self, start, end):
        self.calls.append((start, end))
        return self.count

    def last_number_with_prefix(self, prefix):
        return self.last if self.last and self.last.startswith(prefix) else None


def test_format_is_bit_exact():
    assert format_order_number(date(2025, 1, 15), 7) == "ORD2501150007"
    assert re.fullmatch(r"ORD\d{10}", format_order_number(date(2030, 12, 31), 9999))


def test_day_is_taken_in_shop_timezone():
    # 15:30 UTC to juz nastepny dzien w Seulu
    assert order_day(datetime(2025, 1, 15, 15, 30, tzinfo=timezone.utc)) == date(2025, 1, 16)
    assert order_day(datetime(2025, 1, 15, 14, 59, tzinfo=timezone.utc)) == date(2025, 1, 15)


def test_day_bounds_are_utc():
    start, end = day_bounds_utc(date(2025, 1, 15))
    assert start == datetime(2025, 1, 14, 15, 0, tzinfo=timezone.utc)
    assert end == datetime(2025, 1, 15, 15, 0, tzinfo=timezone.utc)


def test_counting_sequence_is_count_plus_one():
    repo = CountingRepo(6)
    assert CountingSequence(repo).next_sequence(date(2025, 1, 15)) == 7
    assert repo.calls == [day_bounds_utc(date(2025, 1, 15))]


def test_redis_sequence_seeds_from_database_then_increments(fake_redis):
    repo = CountingRepo(4)
    seq = RedisSequence(repo, client=fake_redis)

    assert seq.next_sequence(date(2025, 1, 15)) == 5
    repo.count = 0
    assert seq.next_sequence(date(2025, 1, 15)) == 6
    assert seq.next_sequence(date(2025, 1, 16)) == 1
    assert fake_redis.ttl["order_seq:20250115"] == RedisSequence.KEY_TTL_SECONDS


def test_counting_sequence_skips_numbers_of_deleted_orders():
    # 3 zamowienia z dnia zostaly, ale wydano juz numer 0005
    repo = CountingRepo(3, last="ORD2501150005")
    assert CountingSequence(repo).next_sequence(date(2025, 1, 15)) == 6
    assert CountingSequence(repo).next_sequence(date(2025, 1, 16)) == 4


def test_sequence_past_9999_is_read_from_the_longer_number():
    repo = CountingRepo(0, last="ORD25011510000")
    assert CountingSequence(repo).next_sequence(date(2025, 1, 15)) == 10001


def test_redis_sequence_seed_skips_deleted_numbers(fake_redis):
    seq = RedisSequence(CountingRepo(1, last="ORD2501150004"), client=fake_redis)
    assert seq.next_sequence(date(2025, 1, 15)) == 5
