"""
SQLAlchemy models for bridged calls and user telephony identity.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from telco_gateway.shared.database import Base


class CallStage(str, Enum):
    """Progress of a two-leg alias call."""

    VALIDATING = "validating"
    LEG_A_DIALING = "legA-dialing"
    LEG_A_RINGING = "legA-ringing"
    LEG_A_ANSWERED = "legA-answered"
    LEG_B_DIALING = "legB-dialing"
    BRIDGED = "bridged"
    COMPLETED = "completed"
    FAILED = "failed"


class User(Base):
    """Telephony identity of an application user."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    forward_phone_number: Mapped[str | None] = mapped_column(String(32), nullable=True)

    assigned_numbers: Mapped[list["AssignedNumber"]] = relationship(
        "AssignedNumber",
        back_populates="user",
        order_by="AssignedNumber.id",
        lazy="selectin",
    )


class AssignedNumber(Base):
    """Platform number leased to a user. Lowest id is the primary number."""

    __tablename__ = "assigned_numbers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    e164: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    user: Mapped[User] = relationship("User", back_populates="assigned_numbers")


class CallSession(Base):
    """One outbound alias call, keyed by the leg A carrier call id."""

    __tablename__ = "call_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    call_sid: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    from_number: Mapped[str] = mapped_column(String(20), nullable=False)
    to_number: Mapped[str] = mapped_column(String(20), nullable=False)
    user_forwarding_number: Mapped[str] = mapped_column(String(20), nullable=False)
    stage: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=CallStage.LEG_A_DIALING.value,
    )
    machine_detection_result: Mapped[str | None] = mapped_column(String(32), nullable=True)
    last_status_event: Mapped[str | None] = mapped_column(String(32), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<CallSession(id={self.id}, call_sid={self.call_sid}, stage={self.stage})>"
