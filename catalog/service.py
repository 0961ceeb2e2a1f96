from .errors import StoreUnavailable
from .logging_config import get_child_logger
from .models import Product
from .repository import CatalogRepository
from .schemas import ImageUpload, ProductCreate, ProductView
from .storage import DEFAULT_URL_TTL, S3BlobStore

logger = get_child_logger("service")


def to_view(p: Product, image_url: str | None) -> ProductView:
    return ProductView(
        id=p.id,
        name=p.name,
        description=p.description,
        price=p.price,
        image_key=p.image_key,
        image_url=image_url,
    )


class ProductService:
    def __init__(
        self,
        repository: CatalogRepository,
        blob_store: S3BlobStore,
        url_ttl: int = DEFAULT_URL_TTL,
    ):
        self.repository = repository
        self.blob_store = blob_store
        self.url_ttl = url_ttl

    def _image_url(self, image_key: str | None) -> str | None:
        if not image_key:
            return None
        return self.blob_store.signed_read_url(image_key, self.url_ttl)

    def list_products(self) -> list[ProductView]:
        rows = self.repository.list_all()
        return [to_view(p, self._image_url(p.image_key)) for p in rows]

    def get_product(self, product_id: int) -> ProductView:
        p = self.repository.get_by_id(product_id)
        return to_view(p, self._image_url(p.image_key))

    def create_product(self, data: ProductCreate, image: ImageUpload | None = None) -> ProductView:
        """
        Upload the image (if any), then insert the row, then sign the key.

        A failed upload aborts before anything is written. A failed insert
        after a successful upload leaves the blob in the bucket unreferenced.
        """
        image_key = None
        if image is not None:
            image_key = self.blob_store.store(image.payload, image.filename, image.content_type)

        try:
            product_id = self.repository.insert(
                name=data.name,
                description=data.description,
                price=data.price,
                image_key=image_key,
            )
        except StoreUnavailable:
            if image_key:
                logger.warning("Orphaned image after failed insert key=%s", image_key)
            raise

        logger.info("Created product id=%s image_key=%s", product_id, image_key)
        return ProductView(
            id=product_id,
            name=data.name,
            description=data.description,
            price=data.price,
            image_key=image_key,
            image_url=self._image_url(image_key),
        )
