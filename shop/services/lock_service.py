import uuid

import redis

from shop.utils.retry import redis_retry
from shop.utils.settings import REDIS_URL
from shop.utils.logging import get_logger

logger = get_logger(__name__)

#LUA porownaj i usun, atomicity
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""

#redis wykonuje skrypt lua atomowo, nikt nie wcisnie sie miedzy GET a DEL
#wiec nie usuniemy locka, ktory po wygasnieciu zalozyl ktos inny


class LockService:
    """
    -blokada checkoutu per uzytkownik (jedno skladanie zamowienia naraz)
    -zwalnianie locka tylko przez wlasciciela tokenu
    """

    def __init__(self, url: str | None = None, client=None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def _key(user_id: int) -> str:
        return f"checkout:{user_id}:lock"

    @redis_retry()
    def acquire_checkout_lock(self, user_id: int, ttl: int) -> str | None:
        """Returns the owner token, or None when another checkout holds the lock."""
        key = self._key(user_id)
        token = uuid.uuid4().hex
        logger.info(f"Acquire lock {key}")
        #SET checkout:1:lock "<token>" NX EX 30
        ok = self.redis.set(name=key, value=token, nx=True, ex=ttl)
        return token if ok else None

    @redis_retry()
    def release_checkout_lock(self, user_id: int, token: str) -> bool:
        key = self._key(user_id)
        logger.info(f"Release lock {key}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)
