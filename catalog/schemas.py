from dataclasses import dataclass
from decimal import Decimal

from pydantic import BaseModel, Field, ConfigDict, field_validator, field_serializer

TWO_PLACES = Decimal("0.01")


class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = ""
    price: Decimal = Field(max_digits=10, decimal_places=2)

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    @field_validator("description", mode="before")
    @classmethod
    def _default_description(cls, v):
        return "" if v is None else v


class ProductView(BaseModel):
    id: int
    name: str
    description: str | None = None
    price: Decimal
    image_key: str | None = None
    image_url: str | None = None

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("price")
    def _price_two_places(self, price: Decimal) -> str:
        return str(price.quantize(TWO_PLACES))


class ErrorOut(BaseModel):
    error: str


@dataclass(frozen=True)
class ImageUpload:
    payload: bytes
    filename: str = "upload"
    content_type: str = "application/octet-stream"
