"""
FastAPI router for carrier webhooks.

Key constraints:
- every route is authenticated by `verified_webhook_form` before any state change
- once authenticated, processing errors are logged and the carrier still gets 200
- voice continuations always answer TwiML, never an error page
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from telco_gateway.calls.bridge import (
    CONFIRM_PATH,
    LEG_B_STATUS_PATH,
    CallBridgeOrchestrator,
    alias_query,
)
from telco_gateway.calls.repository import TelephonyIdentityRepository
from telco_gateway.calls.router import get_call_bridge
from telco_gateway.calls.stages import LEG_B_DIALING_EVENT, is_machine_answer
from telco_gateway.messaging.status import DeliveryStatusCorrelator
from telco_gateway.shared.database import get_db_session
from telco_gateway.shared.logging import correlation_id_var, get_logger
from telco_gateway.shared.notifier import ClientNotifierProtocol, get_client_notifier
from telco_gateway.telephony.config import TelephonyConfig
from telco_gateway.telephony.factory import get_telephony_config
from telco_gateway.telephony.phone import normalize_e164
from telco_gateway.webhooks import twiml
from telco_gateway.webhooks.verification import verified_webhook_form

logger = get_logger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

WebhookForm = Annotated[dict[str, str], Depends(verified_webhook_form)]


def get_status_correlator(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    notifier: Annotated[ClientNotifierProtocol | None, Depends(get_client_notifier)],
) -> DeliveryStatusCorrelator:
    return DeliveryStatusCorrelator(session=session, notifier=notifier)


def get_identity_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> TelephonyIdentityRepository:
    return TelephonyIdentityRepository(session)


@router.post("/sms/status", response_class=PlainTextResponse)
async def sms_status(
    form: WebhookForm,
    correlator: Annotated[DeliveryStatusCorrelator, Depends(get_status_correlator)],
) -> str:
    correlation_id_var.set(form.get("MessageSid") or form.get("SmsSid"))
    await correlator.handle_status_update(form)
    return "ok"


@router.post("/voice/status", response_class=PlainTextResponse)
async def voice_status(
    form: WebhookForm,
    bridge: Annotated[CallBridgeOrchestrator, Depends(get_call_bridge)],
) -> str:
    call_sid = form.get("CallSid", "")
    correlation_id_var.set(call_sid or None)
    logger.info(
        "Voice status callback",
        extra={"call_sid": call_sid, "status": form.get("CallStatus"), "answered_by": form.get("AnsweredBy")},
    )
    try:
        await bridge.handle_status_event(form)
    except Exception:
        logger.exception("Failed to process voice status callback (ACKing 200)")
    return "ok"


@router.post("/voice/alias/leg-b-status", response_class=PlainTextResponse)
async def leg_b_status(
    form: WebhookForm,
    bridge: Annotated[CallBridgeOrchestrator, Depends(get_call_bridge)],
) -> str:
    correlation_id_var.set(form.get("ParentCallSid") or None)
    try:
        await bridge.handle_leg_b_status(form)
    except Exception:
        logger.exception("Failed to process leg B status callback (ACKing 200)")
    return "ok"


@router.post("/voice/alias/leg-a")
async def alias_leg_a(
    request: Request,
    form: WebhookForm,
    config: Annotated[TelephonyConfig, Depends(get_telephony_config)],
) -> Response:
    """Leg A answered: ask the user to confirm before leg B is dialed."""
    qs = request.query_params
    user_id = qs.get("userId", "")
    from_number = qs.get("from", "")
    to = qs.get("to", "")

    if is_machine_answer(form.get("AnsweredBy")):
        logger.info(
            "Leg A answered by machine, hanging up",
            extra={"call_sid": form.get("CallSid"), "answered_by": form.get("AnsweredBy")},
        )
        return twiml.hangup()

    action_url = f"{config.get_webhook_url(CONFIRM_PATH)}?{alias_query(user_id, from_number, to)}"
    return twiml.gather_confirmation(action_url)


@router.post("/voice/alias/confirm")
async def alias_confirm(
    request: Request,
    form: WebhookForm,
    config: Annotated[TelephonyConfig, Depends(get_telephony_config)],
    bridge: Annotated[CallBridgeOrchestrator, Depends(get_call_bridge)],
) -> Response:
    """Bridge to the destination on "1"; anything else cancels."""
    qs = request.query_params
    from_number = normalize_e164(qs.get("from"))
    to = normalize_e164(qs.get("to"))
    digits = (form.get("Digits") or "").strip()
    call_sid = form.get("CallSid", "")

    if digits != "1" or from_number is None or to is None:
        logger.info(
            "Alias call not confirmed",
            extra={"call_sid": call_sid, "digits": digits, "has_numbers": bool(from_number and to)},
        )
        return twiml.say_and_hangup("Call cancelled. Goodbye.")

    if call_sid:
        try:
            await bridge.apply_event(call_sid, LEG_B_DIALING_EVENT)
        except Exception:
            logger.exception("Failed to record leg B dialing", extra={"call_sid": call_sid})

    return twiml.dial_number(
        to,
        caller_id=from_number,
        status_callback_url=config.get_webhook_url(LEG_B_STATUS_PATH),
    )


@router.post("/voice/inbound")
async def inbound_call(
    form: WebhookForm,
    identity: Annotated[TelephonyIdentityRepository, Depends(get_identity_repository)],
) -> Response:
    """Forward a call placed to a platform number to its owner's phone."""
    did = normalize_e164(form.get("To"))
    assigned = await identity.get_by_number(did) if did else None
    user = await identity.get_user(assigned.user_id) if assigned is not None else None
    forwarding = normalize_e164(user.forward_phone_number) if user is not None else None

    if did is None or forwarding is None:
        logger.info(
            "Inbound call to unroutable number",
            extra={"to": form.get("To"), "call_sid": form.get("CallSid")},
        )
        return twiml.say_and_hangup("The number you have called is not in service. Goodbye.")

    logger.info(
        "Forwarding inbound call",
        extra={"did": did, "user_id": assigned.user_id, "call_sid": form.get("CallSid")},
    )
    return twiml.dial_number(forwarding, caller_id=did)
