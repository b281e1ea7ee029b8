from sqlalchemy.orm import Session

from shop.data.models.product import ProductModel
from shop.domain.errors import ProductNotFound, DuplicateSku
from shop.domain.schemas import ProductCreate, ProductOut
from shop.repos.product_repo import ProductRepo
from shop.utils.logging import get_logger

logger = get_logger(__name__)


class ProductService:
    def __init__(self, db: Session):
        self.repo = ProductRepo(db)

    def get_product(self, product_id: int) -> ProductOut:
        product = self.repo.get(product_id)
        if not product:
            raise ProductNotFound(product_id)
        return ProductOut.model_validate(product)

    def create_product(self, payload: ProductCreate) -> ProductOut:
        sku = payload.sku.upper()
        if self.repo.get_by_sku(sku):
            raise DuplicateSku(sku)

        product = self.repo.create(ProductModel(**payload.model_dump(exclude={"sku"}), sku=sku))
        logger.info(f"Product {product.id} ({sku}) created")
        return ProductOut.model_validate(product)
