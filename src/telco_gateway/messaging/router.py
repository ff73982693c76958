"""
SMS API router.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from telco_gateway.messaging.schemas import SendSmsRequest, SendSmsResponse
from telco_gateway.messaging.service import OutboundSmsService
from telco_gateway.shared.database import get_db_session
from telco_gateway.shared.logging import get_logger
from telco_gateway.telephony.dispatch import SmsDispatcher
from telco_gateway.telephony.factory import get_sms_dispatcher

logger = get_logger(__name__)

router = APIRouter(prefix="/api/sms", tags=["sms"])


def get_outbound_sms_service(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    dispatcher: Annotated[SmsDispatcher, Depends(get_sms_dispatcher)],
) -> OutboundSmsService:
    """Dependency for the outbound SMS service."""
    return OutboundSmsService(session=session, dispatcher=dispatcher)


@router.post(
    "",
    response_model=SendSmsResponse,
    responses={
        400: {"description": "Invalid destination phone"},
        502: {"description": "Every SMS provider failed"},
        503: {"description": "SMS provider not configured"},
    },
)
async def send_sms(
    body: SendSmsRequest,
    service: Annotated[OutboundSmsService, Depends(get_outbound_sms_service)],
) -> SendSmsResponse:
    """Send one SMS with provider fallback.

    Domain errors are mapped to HTTP responses by the application's
    exception handlers.
    """
    logger.info(
        "SMS send requested",
        extra={"client_ref": body.client_ref, "preferred": body.preferred},
    )
    result = await service.send(
        to=body.to,
        text=body.text,
        client_ref=body.client_ref,
        preferred=body.preferred,
    )
    return SendSmsResponse(
        provider=result.provider,
        message_id=result.message_id,
        to=result.to,
        client_ref=result.client_ref,
    )
