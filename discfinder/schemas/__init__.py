from .disc import (
    AssignQRCodeRequest,
    CreateDiscRequest,
    DiscIdRequest,
    FlightNumbers,
    UpdateDiscRequest,
)
from .order import (
    CreateStickerOrderRequest,
    OrderIdRequest,
    ShippingAddressIn,
    UpdateOrderStatusRequest,
)

__all__ = [
    "AssignQRCodeRequest",
    "CreateDiscRequest",
    "CreateStickerOrderRequest",
    "DiscIdRequest",
    "FlightNumbers",
    "OrderIdRequest",
    "ShippingAddressIn",
    "UpdateDiscRequest",
    "UpdateOrderStatusRequest",
]
