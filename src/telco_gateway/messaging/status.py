"""
Delivery status correlation for SMS status callbacks.

Carriers report delivery progress asynchronously and in no guaranteed order.
Each callback overwrites the delivery fields of the rows carrying its message
id; the last write wins.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from telco_gateway.messaging.models import DeliveryStatus
from telco_gateway.messaging.repository import OutboundMessageRepository
from telco_gateway.shared.logging import get_logger
from telco_gateway.shared.notifier import (
    SMS_STATUS_EVENT,
    ClientNotifierProtocol,
    safe_notify,
)

logger = get_logger(__name__)

# (id field, status field) pairs, tried in order
ID_STATUS_FIELDS: tuple[tuple[str, str], ...] = (
    ("MessageSid", "MessageStatus"),
    ("SmsSid", "SmsStatus"),
)

CARRIER_STATUS_MAP: dict[str, DeliveryStatus] = {
    "accepted": DeliveryStatus.QUEUED,
    "scheduled": DeliveryStatus.QUEUED,
    "queued": DeliveryStatus.QUEUED,
    "sending": DeliveryStatus.SENT,
    "sent": DeliveryStatus.SENT,
    "delivered": DeliveryStatus.DELIVERED,
    "read": DeliveryStatus.DELIVERED,
    "undelivered": DeliveryStatus.UNDELIVERED,
    "failed": DeliveryStatus.FAILED,
    "canceled": DeliveryStatus.FAILED,
}


@dataclass(frozen=True)
class StatusUpdate:
    sid: str
    status: str
    to: str | None = None
    from_number: str | None = None
    error_code: str | None = None
    error_message: str | None = None


def _field(payload: Mapping[str, Any], key: str) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def normalize_delivery_status(raw: str | None) -> str | None:
    """Map a carrier status word onto DeliveryStatus; unknown words pass through lower-cased."""
    if not raw:
        return None
    word = raw.strip().lower()
    mapped = CARRIER_STATUS_MAP.get(word)
    return mapped.value if mapped is not None else word


def extract_status_update(payload: Mapping[str, Any]) -> StatusUpdate | None:
    """Pull (sid, status) out of a callback using the first pair with a usable id."""
    for id_key, status_key in ID_STATUS_FIELDS:
        sid = _field(payload, id_key)
        if not sid:
            continue
        return StatusUpdate(
            sid=sid,
            status=normalize_delivery_status(_field(payload, status_key)) or "",
            to=_field(payload, "To"),
            from_number=_field(payload, "From"),
            error_code=_field(payload, "ErrorCode"),
            error_message=_field(payload, "ErrorMessage"),
        )
    return None


class DeliveryStatusCorrelator:
    """Applies SMS status callbacks to stored outbound messages."""

    def __init__(
        self,
        session: AsyncSession,
        notifier: ClientNotifierProtocol | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._session = session
        self._repo = OutboundMessageRepository(session)
        self._notifier = notifier
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def handle_status_update(self, payload: Mapping[str, Any]) -> None:
        """Record one status callback. Never raises."""
        update = extract_status_update(payload)
        if update is None or not update.status:
            logger.warning(
                "SMS status callback without message id or status ignored",
                extra={"payload_keys": sorted(payload.keys())},
            )
            return

        logger.info(
            "SMS status callback",
            extra={
                "sid": update.sid,
                "To": update.to,
                "From": update.from_number,
                "status": update.status,
                "ErrorCode": update.error_code,
                "ErrorMessage": update.error_message,
            },
        )

        try:
            updated = await self._repo.update_delivery_status(
                provider_message_id=update.sid,
                status=update.status,
                error_code=update.error_code,
                error_message=update.error_message,
                updated_at=self._clock(),
            )
            await self._session.commit()
        except Exception as e:
            logger.warning(
                "Failed to persist delivery status",
                extra={"err": str(e), "sid": update.sid},
            )
            try:
                await self._session.rollback()
            except Exception as rollback_err:
                logger.warning(
                    "Rollback after failed status update also failed",
                    extra={"err": str(rollback_err), "sid": update.sid},
                )
            return

        if updated == 0:
            logger.info("No outbound message matches status callback", extra={"sid": update.sid})
            return

        await safe_notify(
            self._notifier,
            SMS_STATUS_EVENT,
            {
                "sid": update.sid,
                "status": update.status,
                "error_code": update.error_code,
                "error_message": update.error_message,
            },
        )
