# shop/main.py
import uvicorn
from sqlalchemy.exc import SQLAlchemyError

from shop.api import create_app
from shop.data.database import Base, engine
from shop.utils.logging import get_logger

# import wszystkich modeli przed create_all, zeby byly w Base.metadata
import shop.data.models  # noqa: F401

logger = get_logger(__name__)

logger.info(f"Models registered in Base.metadata: {list(Base.metadata.tables.keys())}")

try:
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")
except SQLAlchemyError as e:
    logger.error(f"Failed to create tables: {e}")
    raise

app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
