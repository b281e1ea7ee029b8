# shop/services/order_number.py
"""Order number allocation.

Numbers look like ``ORD2501150007``: ``ORD``, two-digit year, month and day,
then a four-digit sequence that restarts every calendar day. The day is taken
in ``ORDER_TIMEZONE``; timestamps in the database are UTC.
"""

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

import redis

from shop.repos.order_repo import OrderRepo
from shop.utils.retry import redis_retry
from shop.utils.settings import ORDER_TIMEZONE, REDIS_URL
from shop.utils.logging import get_logger

logger = get_logger(__name__)

ORDER_TZ = ZoneInfo(ORDER_TIMEZONE)


def format_order_number(day: date, seq: int) -> str:
    return f"ORD{day:%y%m%d}{seq:04d}"


def order_day(moment: datetime) -> date:
    """Calendar day of ``moment`` in the shop's timezone."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(ORDER_TZ).date()


def day_bounds_utc(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min, tzinfo=ORDER_TZ)
    end = start + timedelta(days=1)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def used_sequence(repo: OrderRepo, day: date) -> int:
    """Highest sequence the day has already consumed.

    Usually the number of that day's orders. Expired or discarded orders are
    deleted, so the count can fall behind the last issued number; the last
    number still in the table keeps it from being handed out again.
    """
    start, end = day_bounds_utc(day)
    count = repo.count_created_between(start, end)
    prefix = format_order_number(day, 0)[:-4]
    last = repo.last_number_with_prefix(prefix)
    return max(count, int(last[len(prefix):]) if last else 0)


class CountingSequence:
    """Sequence used so far that day + 1. Two concurrent checkouts can get the same value."""

    def __init__(self, repo: OrderRepo):
        self.repo = repo

    def next_sequence(self, day: date) -> int:
        return used_sequence(self.repo, day) + 1


class RedisSequence:
    """Atomic per-day counter (INCR), seeded from the database on first use."""

    KEY_TTL_SECONDS = 2 * 24 * 60 * 60

    def __init__(self, repo: OrderRepo, url: str | None = None, client=None):
        self.repo = repo
        self.redis = client or redis.Redis.from_url(url or REDIS_URL, decode_responses=True)

    @redis_retry()
    def next_sequence(self, day: date) -> int:
        key = f"order_seq:{day:%Y%m%d}"
        # klucz nie istnieje (restart redisa / nowy dzien) -> startujemy od stanu bazy
        if self.redis.set(name=key, value=used_sequence(self.repo, day), nx=True, ex=self.KEY_TTL_SECONDS):
            logger.info(f"Seeded order sequence {key}")
        return int(self.redis.incr(key))
