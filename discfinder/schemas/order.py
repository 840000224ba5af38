from pydantic import BaseModel, field_validator

SHIPPING_ADDRESS_REQUIRED_FIELDS = ("name", "street_address", "city", "state", "postal_code")


class ShippingAddressIn(BaseModel):
    name: str | None = None
    street_address: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None

    def missing_field(self) -> str | None:
        for field in SHIPPING_ADDRESS_REQUIRED_FIELDS:
            if not (getattr(self, field) or "").strip():
                return field
        return None


class CreateStickerOrderRequest(BaseModel):
    """Either shipping_address_id (saved address) or an inline shipping_address."""

    quantity: int | None = None
    shipping_address_id: int | None = None
    shipping_address: ShippingAddressIn | None = None

    @field_validator("quantity", mode="before")
    @classmethod
    def whole_number(cls, v):
        if v is None or (isinstance(v, int) and not isinstance(v, bool)):
            return v
        raise ValueError("Quantity must be a whole number")


class OrderIdRequest(BaseModel):
    order_id: int | None = None


class UpdateOrderStatusRequest(BaseModel):
    """Print shop request; authenticated by the order's printer token."""

    printer_token: str | None = None
    status: str | None = None
    tracking_number: str | None = None
