from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .db import Base
from .errors import ProductNotFound, StoreUnavailable
from .logging_config import get_child_logger
from .models import Product

logger = get_child_logger("repository")

# Ids are generated from 1; drivers reject integers past signed 64-bit
MAX_PRODUCT_ID = 2**63 - 1


class CatalogRepository:
    """Reads and writes rows of the ``products`` table."""

    def __init__(self, engine: Engine, session_factory: sessionmaker):
        self.engine = engine
        self.session_factory = session_factory

    def ensure_schema(self) -> None:
        try:
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as e:
            logger.exception("Schema creation failed")
            raise StoreUnavailable("Could not create schema", original_exception=e) from e

    def insert(
        self,
        name: str,
        description: str | None,
        price: Decimal,
        image_key: str | None,
    ) -> int:
        with self.session_factory() as db:
            try:
                p = Product(
                    name=name,
                    description=description,
                    price=price,
                    image_key=image_key,
                )
                db.add(p)
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.exception("Insert failed name=%s image_key=%s", name, image_key)
                raise StoreUnavailable("Failed to create product", original_exception=e) from e
            return p.id

    def list_all(self) -> list[Product]:
        with self.session_factory() as db:
            try:
                return list(db.scalars(select(Product).order_by(Product.id)))
            except SQLAlchemyError as e:
                logger.exception("Listing products failed")
                raise StoreUnavailable("Failed to list products", original_exception=e) from e

    def get_by_id(self, product_id: int) -> Product:
        if not 1 <= product_id <= MAX_PRODUCT_ID:
            raise ProductNotFound(product_id)
        with self.session_factory() as db:
            try:
                p = db.get(Product, product_id)
            except SQLAlchemyError as e:
                logger.exception("Fetching product failed id=%s", product_id)
                raise StoreUnavailable("Failed to fetch product", original_exception=e) from e
        if p is None:
            raise ProductNotFound(product_id)
        return p
