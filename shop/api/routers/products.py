from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shop.api.errors import domain_errors
from shop.api.providers import require_admin
from shop.data.database import get_db
from shop.domain.schemas import ProductCreate, ProductOut
from shop.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["products"])


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    with domain_errors():
        return ProductService(db).get_product(product_id)


@router.post("/", response_model=ProductOut, status_code=201, dependencies=[Depends(require_admin)])
def create_product(payload: ProductCreate, db: Session = Depends(get_db)):
    with domain_errors():
        return ProductService(db).create_product(payload)
