# shop/data/seed.py
from decimal import Decimal

from shop.data.database import SessionLocal
from shop.data.models import UserModel, ProductModel
from shop.utils.logging import get_logger

logger = get_logger(__name__)

USERS = [
    {"id": 1, "name": "Admin", "email": "admin@example.com", "user_type": "admin"},
    {"id": 2, "name": "Demo Customer", "email": "customer@example.com", "user_type": "customer"},
]

PRODUCTS = [
    {"sku": "TOP-001", "name": "Basic Cotton Tee", "price": Decimal("19000"), "category": "top", "stock": 50},
    {"sku": "BTM-001", "name": "Wide Denim Pants", "price": Decimal("45000"), "original_price": Decimal("52000"),
     "category": "bottom", "stock": 20},
    {"sku": "SHO-001", "name": "Canvas Sneakers", "price": Decimal("39000"), "category": "shoes", "stock": 5},
    {"sku": "ACC-001", "name": "Leather Belt", "price": Decimal("15000"), "category": "accessory", "stock": 0,
     "status": "sold_out"},
]


def seed():
    db = SessionLocal()
    try:
        # tylko na pustej bazie
        if db.query(UserModel).first():
            return
        db.add_all(UserModel(**u) for u in USERS)
        db.add_all(ProductModel(image=f"/images/{p['sku'].lower()}.jpg", **p) for p in PRODUCTS)
        db.commit()
        logger.info(f"Seeded {len(USERS)} users and {len(PRODUCTS)} products")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
