# shop/api/providers.py
from functools import lru_cache

from fastapi import Depends, HTTPException, Query
import redis
from sqlalchemy.orm import Session

from shop.data.database import get_db
from shop.data.models.user import UserModel
from shop.repos.order_repo import OrderRepo
from shop.services.lock_service import LockService
from shop.services.order_number import CountingSequence, RedisSequence
from shop.services.order_service import OrderService
from shop.services.payment_verifier import PortOneVerifier
from shop.services.user_service import UserService
from shop.utils.settings import CHECKOUT_LOCK_ENABLED, ORDER_SEQUENCE_BACKEND, REDIS_URL


def get_payment_verifier():
    return PortOneVerifier()


@lru_cache
def _lock_service() -> LockService:
    return LockService()


def get_lock_service() -> LockService | None:
    return _lock_service() if CHECKOUT_LOCK_ENABLED else None


@lru_cache
def _sequence_redis() -> redis.Redis:
    # jedna pula polaczen na proces, nie na request
    return redis.Redis.from_url(REDIS_URL, decode_responses=True)


def get_sequence_allocator(db: Session = Depends(get_db)):
    repo = OrderRepo(db)
    if ORDER_SEQUENCE_BACKEND == "redis":
        return RedisSequence(repo, client=_sequence_redis())
    return CountingSequence(repo)


def get_order_service(
    db: Session = Depends(get_db),
    verifier=Depends(get_payment_verifier),
    sequence=Depends(get_sequence_allocator),
    lock_service=Depends(get_lock_service),
) -> OrderService:
    return OrderService(db, verifier=verifier, sequence=sequence, lock_service=lock_service)


def require_admin(user_id: int = Query(...), db: Session = Depends(get_db)) -> UserModel:
    try:
        return UserService(db).require_admin(user_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
