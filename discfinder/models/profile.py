from datetime import datetime

from sqlmodel import Field, SQLModel


class Profile(SQLModel, table=True):
    """Public-facing user profile; id is the identity provider's subject."""

    __tablename__ = "profiles"
    id: str = Field(primary_key=True)
    email: str | None = None
    username: str | None = None
    full_name: str | None = None
    display_preference: str = "username"  # "username" | "full_name"
    created_at: datetime = Field(default_factory=datetime.utcnow)
