# shop/tasks/expire.py
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from shop.celery_worker import celery_app
from shop.data.database import SessionLocal
from shop.repos.cart_repo import CartRepo
from shop.repos.order_repo import OrderRepo
from shop.repos.product_repo import ProductRepo
from shop.utils.logging import get_logger

logger = get_logger(__name__)


def expire_unpaid_orders(db: Session, now: datetime) -> int:
    """Kasuje nieoplacone zamowienia po expires_at, najpierw oddajac stany magazynowe."""
    orders = OrderRepo(db)
    products = ProductRepo(db)
    expired = orders.find_expired_unpaid(now)
    logger.info(f"Found {len(expired)} unpaid orders to expire")

    for order in expired:
        lines = [(i.product_id, i.quantity) for i in order.items]
        number = order.order_number
        orders.delete(order)
        for product_id, quantity in lines:
            products.adjust_stock(product_id, quantity)
        logger.info(f"Unpaid order {number} expired, stock restored")
    return len(expired)


def purge_expired_carts(db: Session, now: datetime) -> int:
    removed = CartRepo(db).delete_expired(now)
    logger.info(f"Purged {removed} expired carts")
    return removed


@celery_app.task(name="shop.tasks.expire.expire_unpaid_orders_task")
def expire_unpaid_orders_task():
    logger.info("Expire unpaid orders task started")
    db = SessionLocal()
    try:
        return expire_unpaid_orders(db, datetime.now(timezone.utc))
    finally:
        db.close()


@celery_app.task(name="shop.tasks.expire.purge_expired_carts_task")
def purge_expired_carts_task():
    logger.info("Purge expired carts task started")
    db = SessionLocal()
    try:
        return purge_expired_carts(db, datetime.now(timezone.utc))
    finally:
        db.close()
