from datetime import datetime
from decimal import Decimal

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class Disc(SQLModel, table=True):
    __tablename__ = "discs"
    id: int | None = Field(default=None, primary_key=True)
    owner_id: str | None = Field(default=None, index=True)  # None: abandoned, anyone may claim
    name: str  # always equal to mold
    manufacturer: str | None = None
    mold: str | None = None
    plastic: str | None = None
    color: str | None = None
    weight: int | None = None  # grams
    flight_numbers: dict | None = Field(default=None, sa_column=Column(JSON))
    reward_amount: Decimal | None = Field(default=None, max_digits=10, decimal_places=2)
    notes: str | None = None
    qr_code_id: int | None = Field(default=None, foreign_key="qr_codes.id", unique=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class DiscPhoto(SQLModel, table=True):
    __tablename__ = "disc_photos"
    id: int | None = Field(default=None, primary_key=True)
    disc_id: int = Field(foreign_key="discs.id", index=True)
    storage_path: str
    created_at: datetime = Field(default_factory=datetime.utcnow)
