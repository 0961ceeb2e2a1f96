from fastapi import APIRouter, Depends, Request, status
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from .errors import InvalidInput
from .schemas import ErrorOut, ImageUpload, ProductCreate, ProductView
from .service import ProductService

FORM_FIELDS = ("name", "description", "price")

router = APIRouter(prefix="/api/products", tags=["products"])
health_router = APIRouter(tags=["health"])


def get_product_service(request: Request) -> ProductService:
    return request.app.state.product_service


def describe_errors(errors) -> str:
    parts = []
    for err in errors:
        loc = ".".join(str(x) for x in err.get("loc", ()) if x not in ("body", "path", "query"))
        parts.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg", "invalid"))
    return "; ".join(parts) or "Invalid input"


async def _read_image(upload: UploadFile) -> ImageUpload | None:
    data = await upload.read()
    if not data:
        return None
    return ImageUpload(
        payload=data,
        filename=upload.filename or "upload",
        content_type=upload.content_type or "application/octet-stream",
    )


async def parse_create_request(request: Request) -> tuple[ProductCreate, ImageUpload | None]:
    """Decode a JSON or form body into a validated ``ProductCreate`` plus optional image."""
    content_type = request.headers.get("content-type", "").lower()
    image = None

    if content_type.startswith("application/json"):
        try:
            fields = await request.json()
        except ValueError:
            raise InvalidInput("Malformed JSON body")
        if not isinstance(fields, dict):
            raise InvalidInput("Expected a JSON object")
    elif content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        # Closing the form releases the spooled upload files
        async with request.form() as form:
            fields = {k: form.get(k) for k in FORM_FIELDS if form.get(k) is not None}
            upload = form.get("image")
            if isinstance(upload, UploadFile):
                image = await _read_image(upload)
    else:
        raise InvalidInput("Expected multipart/form-data or application/json body")

    try:
        data = ProductCreate.model_validate(fields)
    except ValidationError as e:
        raise InvalidInput(describe_errors(e.errors()))
    return data, image


@router.get("", response_model=list[ProductView], responses={500: {"model": ErrorOut}})
def list_products(service: ProductService = Depends(get_product_service)):
    return service.list_products()


@router.get(
    "/{product_id}",
    response_model=ProductView,
    responses={404: {"model": ErrorOut}, 500: {"model": ErrorOut}},
)
def get_product(product_id: int, service: ProductService = Depends(get_product_service)):
    return service.get_product(product_id)


@router.post(
    "",
    response_model=ProductView,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorOut}, 500: {"model": ErrorOut}},
)
async def create_product(request: Request, service: ProductService = Depends(get_product_service)):
    data, image = await parse_create_request(request)
    # S3 and the database client block; keep them off the event loop
    return await run_in_threadpool(service.create_product, data, image)


# Load balancer probe: no dependency checks
@health_router.get("/health")
def health() -> dict[str, str]:
    return {"status": "healthy"}
