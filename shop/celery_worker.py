# shop/celery_worker.py
from celery import Celery

from shop.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

celery_app = Celery(
    "shop",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# taski musza byc zaimportowane, zeby Celery je zarejestrowal
celery_app.conf.imports = ("shop.tasks.expire",)

celery_app.conf.beat_schedule = {
    "expire-unpaid-orders-every-minute": {
        "task": "shop.tasks.expire.expire_unpaid_orders_task",
        "schedule": 60.0,
    },
    "purge-expired-carts-hourly": {
        "task": "shop.tasks.expire.purge_expired_carts_task",
        "schedule": 60.0 * 60,
    },
}

celery_app.conf.timezone = "UTC"
