"""
SQLAlchemy models for outbound SMS.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from telco_gateway.shared.database import Base


class DeliveryStatus(str, Enum):
    """Delivery state of an outbound SMS."""

    QUEUED = "queued"
    SENT = "sent"
    DELIVERED = "delivered"
    UNDELIVERED = "undelivered"
    FAILED = "failed"


class OutboundMessage(Base):
    """One row per SMS handed to a carrier.

    `provider_message_id` is the only correlation key for delivery updates.
    """

    __tablename__ = "outbound_messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    provider_message_id: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        index=True,
    )
    provider: Mapped[str] = mapped_column(String(32), nullable=False)
    to_number: Mapped[str] = mapped_column(String(20), nullable=False)
    from_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    client_ref: Mapped[str | None] = mapped_column(
        String(128),
        nullable=True,
        index=True,
    )
    # Plain string: carriers may report words outside DeliveryStatus
    delivery_status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=DeliveryStatus.QUEUED.value,
    )
    delivery_error_code: Mapped[str | None] = mapped_column(String(32), nullable=True)
    delivery_error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    delivery_updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return (
            f"<OutboundMessage(id={self.id}, provider={self.provider}, "
            f"sid={self.provider_message_id}, status={self.delivery_status})>"
        )
