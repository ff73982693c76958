"""
Outbound SMS service: idempotent send plus persistence of the accepted message.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from telco_gateway.messaging.models import DeliveryStatus
from telco_gateway.messaging.repository import OutboundMessageRepository
from telco_gateway.shared.logging import get_logger
from telco_gateway.telephony.dispatch import NormalizedSendResult, SmsDispatcher

logger = get_logger(__name__)


class OutboundSmsService:
    """Sends SMS for application code and records each accepted message.

    A repeated `client_ref` returns the stored result without a second send.
    """

    def __init__(self, session: AsyncSession, dispatcher: SmsDispatcher) -> None:
        self._session = session
        self._repo = OutboundMessageRepository(session)
        self._dispatcher = dispatcher

    async def send(
        self,
        to: str,
        text: str,
        client_ref: str | None = None,
        preferred: str | None = None,
    ) -> NormalizedSendResult:
        if client_ref:
            existing = await self._repo.get_by_client_ref(client_ref)
            if existing is not None:
                logger.info(
                    "Duplicate client_ref, returning stored SMS",
                    extra={"client_ref": client_ref, "message_id": existing.provider_message_id},
                )
                return NormalizedSendResult(
                    provider=existing.provider,
                    message_id=existing.provider_message_id or "",
                    to=existing.to_number,
                    client_ref=existing.client_ref,
                )

        # Dispatch errors propagate; nothing is stored for an unsent message
        result = await self._dispatcher.send_sms(to, text, client_ref=client_ref, preferred=preferred)

        await self._repo.create(
            provider=result.provider,
            provider_message_id=result.message_id,
            to_number=result.to,
            body=text,
            client_ref=client_ref,
            delivery_status=DeliveryStatus.QUEUED.value,
        )
        await self._session.commit()
        return result
