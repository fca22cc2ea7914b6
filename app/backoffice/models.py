from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class AuditEvent(Base):
    """
    Append-only audit trail event.
    One row per security-relevant action (logins, password resets, customer writes).
    """

    __tablename__ = "audit_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    request_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # No FK: events outlive the customers that caused them.
    actor_customer_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    actor_email: Mapped[str | None] = mapped_column(String(320), nullable=True)

    action: Mapped[str] = mapped_column(String(128), nullable=False)  # e.g. "customer.create"
    entity_type: Mapped[str | None] = mapped_column(String(128), nullable=True)  # e.g. "Customer"
    entity_id: Mapped[str | None] = mapped_column(String(128), nullable=True)

    reason: Mapped[str | None] = mapped_column(String(512), nullable=True)
    metadata_json: Mapped[str | None] = mapped_column(Text, nullable=True)  # small JSON string
    client_ip: Mapped[str | None] = mapped_column(String(64), nullable=True)


# Ensure module models are imported so Base.metadata includes their tables.
# (Kept at bottom to avoid circular imports.)
from app.backoffice.modules.locations.models import City, State  # noqa: E402,F401
from app.backoffice.modules.customers.models import (  # noqa: E402,F401
    Address,
    Customer,
    CustomerPhone,
    CustomerProfile,
)
from app.backoffice.modules.orders.models import Order  # noqa: E402,F401
