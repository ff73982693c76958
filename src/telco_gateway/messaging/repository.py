"""
Repository for outbound SMS records.
"""

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from telco_gateway.messaging.models import DeliveryStatus, OutboundMessage


class OutboundMessageRepository:
    """Repository for outbound message database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        provider: str,
        provider_message_id: str,
        to_number: str,
        body: str,
        client_ref: str | None = None,
        from_number: str | None = None,
        delivery_status: str = DeliveryStatus.QUEUED.value,
    ) -> OutboundMessage:
        message = OutboundMessage(
            provider=provider,
            provider_message_id=provider_message_id,
            to_number=to_number,
            from_number=from_number,
            body=body,
            client_ref=client_ref,
            delivery_status=delivery_status,
        )
        self._session.add(message)
        await self._session.flush()
        await self._session.refresh(message)
        return message

    async def get_by_client_ref(self, client_ref: str) -> OutboundMessage | None:
        stmt = (
            select(OutboundMessage)
            .where(OutboundMessage.client_ref == client_ref)
            .order_by(OutboundMessage.id.asc())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()


    async def update_delivery_status(
        self,
        provider_message_id: str,
        status: str,
        error_code: str | None,
        error_message: str | None,
        updated_at: datetime,
    ) -> int:
        """Overwrite delivery fields of every row carrying `provider_message_id`.

        Last write wins; no ordering between updates is assumed.

        Returns:
            Number of rows updated.
        """
        stmt = (
            update(OutboundMessage)
            .where(OutboundMessage.provider_message_id == provider_message_id)
            .values(
                delivery_status=status,
                delivery_error_code=error_code,
                delivery_error_message=error_message,
                delivery_updated_at=updated_at,
            )
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount or 0
