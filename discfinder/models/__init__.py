from .audit import AuditLog
from .disc import Disc, DiscPhoto
from .error_log import ErrorLog
from .profile import Profile
from .recovery import ACTIVE_RECOVERY_STATUSES, RecoveryEvent, RecoveryStatus
from .sticker_order import (
    OrderStatus,
    QRCode,
    QRCodeStatus,
    ShippingAddress,
    StickerOrder,
    StickerOrderItem,
)

__all__ = [
    "ACTIVE_RECOVERY_STATUSES",
    "AuditLog",
    "Disc",
    "DiscPhoto",
    "ErrorLog",
    "OrderStatus",
    "Profile",
    "QRCode",
    "QRCodeStatus",
    "RecoveryEvent",
    "RecoveryStatus",
    "ShippingAddress",
    "StickerOrder",
    "StickerOrderItem",
]
