"""
Alias call API router.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from telco_gateway.calls.bridge import CallBridgeOrchestrator
from telco_gateway.calls.schemas import AliasCallRequest, AliasCallResponse
from telco_gateway.shared.database import get_db_session
from telco_gateway.shared.logging import get_logger
from telco_gateway.shared.notifier import ClientNotifierProtocol, get_client_notifier
from telco_gateway.telephony.config import TelephonyConfig
from telco_gateway.telephony.factory import get_telephony_config, get_voice_provider
from telco_gateway.telephony.interface import VoiceProvider

logger = get_logger(__name__)

router = APIRouter(prefix="/api/calls", tags=["calls"])


def get_call_bridge(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    voice_provider: Annotated[VoiceProvider, Depends(get_voice_provider)],
    config: Annotated[TelephonyConfig, Depends(get_telephony_config)],
    notifier: Annotated[ClientNotifierProtocol | None, Depends(get_client_notifier)],
) -> CallBridgeOrchestrator:
    """Dependency for the call bridge orchestrator."""
    return CallBridgeOrchestrator(
        session=session,
        voice_provider=voice_provider,
        config=config,
        notifier=notifier,
    )


@router.post(
    "/alias",
    response_model=AliasCallResponse,
    response_model_by_alias=True,
    responses={
        400: {"description": "Invalid destination phone"},
        412: {"description": "No platform number or unverified forwarding phone"},
        502: {"description": "Carrier refused the call"},
        503: {"description": "Voice webhooks not configured"},
    },
)
async def start_alias_call(
    body: AliasCallRequest,
    bridge: Annotated[CallBridgeOrchestrator, Depends(get_call_bridge)],
) -> AliasCallResponse:
    """Ring the user's own phone first, then bridge to `to` once they confirm."""
    logger.info("Alias call requested", extra={"user_id": body.user_id})
    result = await bridge.start_alias_call(body.user_id, body.to)
    return AliasCallResponse.model_validate(result.to_dict())
