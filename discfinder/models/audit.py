from datetime import datetime

from sqlmodel import Field, SQLModel


class AuditLog(SQLModel, table=True):
    __tablename__ = "audit_logs"
    id: int | None = Field(default=None, primary_key=True)
    event: str = Field(index=True)  # order_paid, codes_issued, disc_claimed, order_status_printed, ...
    user_id: str | None = Field(default=None, index=True)
    subject: str | None = Field(default=None, index=True)  # "order:12", "disc:7"
    ip: str | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
