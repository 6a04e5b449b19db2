from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field, model_validator


class ReceiptUpload(BaseModel):
    image_base64: str | None = None
    image_url: str | None = None
    mime_type: str | None = None

    @model_validator(mode="after")
    def one_image_source(self):
        if (self.image_base64 is None) == (self.image_url is None):
            raise ValueError("Provide exactly one of image_base64 or image_url")
        return self


class ItemCreate(BaseModel):
    name: str
    quantity: int | None = None
    unit_price: Decimal | None = None
    total_price: Decimal | None = None


class QuantityChange(BaseModel):
    delta: int


class ItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    index: int
    name: str
    quantity: int = Field(ge=1)
    unit_price: Decimal
    total_price: Decimal
