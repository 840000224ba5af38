"""Sticker orders: order, shipping address, issued QR codes and the order/code link rows."""
from datetime import datetime
from enum import Enum

from sqlmodel import Field, SQLModel


class OrderStatus(str, Enum):
    PENDING_PAYMENT = "pending_payment"
    PAID = "paid"
    PROCESSING = "processing"
    PRINTED = "printed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class QRCodeStatus(str, Enum):
    GENERATED = "generated"
    ASSIGNED = "assigned"
    ACTIVE = "active"


class ShippingAddress(SQLModel, table=True):
    __tablename__ = "shipping_addresses"
    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    name: str
    street_address: str
    city: str
    state: str
    postal_code: str
    country: str = "US"
    created_at: datetime = Field(default_factory=datetime.utcnow)


class StickerOrder(SQLModel, table=True):
    __tablename__ = "sticker_orders"
    id: int | None = Field(default=None, primary_key=True)
    order_number: str = Field(unique=True, index=True)
    user_id: str = Field(index=True)
    shipping_address_id: int | None = Field(default=None, foreign_key="shipping_addresses.id")
    quantity: int
    unit_price_cents: int
    total_price_cents: int
    status: str = Field(default=OrderStatus.PENDING_PAYMENT.value, index=True)
    stripe_checkout_session_id: str | None = Field(default=None, index=True)
    stripe_payment_intent_id: str | None = None
    # Capability credential for the print shop; never changes after creation
    printer_token: str = Field(unique=True, index=True)
    pdf_storage_path: str | None = None
    tracking_number: str | None = None  # set iff shipped or delivered
    printed_at: datetime | None = None
    shipped_at: datetime | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class QRCode(SQLModel, table=True):
    __tablename__ = "qr_codes"
    id: int | None = Field(default=None, primary_key=True)
    short_code: str = Field(unique=True, index=True, max_length=12)
    status: str = QRCodeStatus.GENERATED.value
    assigned_to: str | None = Field(default=None, index=True)  # holder: the purchaser
    created_at: datetime = Field(default_factory=datetime.utcnow)


class StickerOrderItem(SQLModel, table=True):
    __tablename__ = "sticker_order_items"
    id: int | None = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="sticker_orders.id", index=True)
    qr_code_id: int = Field(foreign_key="qr_codes.id", unique=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
