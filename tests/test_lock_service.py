from shop.services.lock_service import LockService


def test_lock_is_exclusive_per_user(fake_redis):
    locks = LockService(client=fake_redis)

    token = locks.acquire_checkout_lock(1, ttl=30)

    assert token
    assert fake_redis.ttl["checkout:1:lock"] == 30
    assert locks.acquire_checkout_lock(1, ttl=30) is None
    assert locks.acquire_checkout_lock(2, ttl=30)


def test_only_owner_can_release(fake_redis):
    locks = LockService(client=fake_redis)
    token = locks.acquire_checkout_lock(1, ttl=30)

    assert not locks.release_checkout_lock(1, "not-my-token")
    assert fake_redis.get("checkout:1:lock") == token
    assert locks.release_checkout_lock(1, token)
    assert locks.acquire_checkout_lock(1, ttl=30)
