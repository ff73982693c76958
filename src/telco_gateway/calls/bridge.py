"""
Alias call orchestration.

An alias call lets a user call `to` while showing their platform number:

1. leg A dials the user's own forwarding phone from the platform number;
2. the user answers and presses 1 (continuation TwiML);
3. leg B dials `to` with the platform number as caller id and is bridged.

Everything after leg A creation is driven by carrier status callbacks,
correlated on the leg A call sid.
"""

from dataclasses import dataclass
from typing import Any, Mapping
from urllib.parse import urlencode

from sqlalchemy.ext.asyncio import AsyncSession

from telco_gateway.calls.models import CallSession, CallStage
from telco_gateway.calls.repository import CallSessionRepository, TelephonyIdentityRepository
from telco_gateway.calls.stages import (
    LEG_B_ANSWERED_EVENT,
    is_terminal,
    next_stage,
)
from telco_gateway.shared.exceptions import (
    InvalidDestination,
    NoAssignedNumber,
    UnverifiedForwardingNumber,
)
from telco_gateway.shared.logging import get_logger
from telco_gateway.shared.notifier import (
    CALL_STAGE_EVENT,
    ClientNotifierProtocol,
    safe_notify,
)
from telco_gateway.telephony.config import TelephonyConfig
from telco_gateway.telephony.interface import (
    CallCreateRequest,
    ConfigurationError,
    VoiceProvider,
)
from telco_gateway.telephony.phone import normalize_e164

logger = get_logger(__name__)

LEG_A_PATH = "/webhooks/voice/alias/leg-a"
CONFIRM_PATH = "/webhooks/voice/alias/confirm"
LEG_B_STATUS_PATH = "/webhooks/voice/alias/leg-b-status"

# Leg B statuses that mean the far end picked up
LEG_B_ANSWERED_STATUSES = frozenset({"answered", "in-progress"})
LEG_B_PENDING_STATUSES = frozenset({"queued", "initiated", "ringing"})


@dataclass(frozen=True)
class AliasCallResult:
    from_number: str
    to: str
    user_forwarding_number: str
    stage: CallStage
    call_sid: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": True,
            "from": self.from_number,
            "to": self.to,
            "user_forwarding_number": self.user_forwarding_number,
            "stage": self.stage.value,
            "call_sid": self.call_sid,
        }


def alias_query(user_id: int | str, from_number: str, to: str) -> str:
    """Query string carried by every continuation URL of one alias call."""
    return urlencode({"userId": str(user_id), "from": from_number, "to": to})


class CallBridgeOrchestrator:
    """Starts alias calls and applies their status events."""

    def __init__(
        self,
        session: AsyncSession,
        voice_provider: VoiceProvider,
        config: TelephonyConfig,
        notifier: ClientNotifierProtocol | None = None,
    ) -> None:
        self._session = session
        self._calls = CallSessionRepository(session)
        self._identity = TelephonyIdentityRepository(session)
        self._voice = voice_provider
        self._config = config
        self._notifier = notifier

    async def start_alias_call(self, user_id: int, to: str) -> AliasCallResult:
        """Validate, dial leg A and persist the session.

        Raises:
            InvalidDestination: `to` is not a phone number.
            NoAssignedNumber: the user has no platform number.
            UnverifiedForwardingNumber: the user's forwarding phone is missing or invalid.
            ConfigurationError: no public webhook base URL is configured.
            ProviderError: the carrier refused or failed the call.
        """
        # validating: nothing below runs for a bad destination
        destination = normalize_e164(to)
        if destination is None:
            raise InvalidDestination()

        primary = await self._identity.get_primary_number(user_id)
        if primary is None:
            raise NoAssignedNumber()

        user = await self._identity.get_user(user_id)
        forwarding = normalize_e164(user.forward_phone_number) if user is not None else None
        if forwarding is None:
            raise UnverifiedForwardingNumber()

        if not self._config.webhook_base_url:
            raise ConfigurationError(
                message="Voice webhook base URL is not configured",
                provider=self._voice.name,
                code="WEBHOOK_BASE_URL_MISSING",
            )

        from_number = primary.e164
        continuation_url = (
            f"{self._config.get_webhook_url(LEG_A_PATH)}?"
            f"{alias_query(user_id, from_number, destination)}"
        )

        logger.info(
            "Starting alias call",
            extra={"user_id": user_id, "from": from_number, "to": destination},
        )

        # Leg A rings the user; a carrier failure propagates and nothing is stored
        response = await self._voice.create_call(
            CallCreateRequest(
                to=forwarding,
                from_number=from_number,
                url=continuation_url,
                status_callback_url=self._config.get_voice_status_callback_url(),
                machine_detection=True,
            )
        )

        await self._calls.create(
            call_sid=response.call_sid,
            user_id=user_id,
            from_number=from_number,
            to_number=destination,
            user_forwarding_number=forwarding,
            stage=CallStage.LEG_A_DIALING,
        )
        await self._session.commit()

        result = AliasCallResult(
            from_number=from_number,
            to=destination,
            user_forwarding_number=forwarding,
            stage=CallStage.LEG_A_DIALING,
            call_sid=response.call_sid,
        )
        await safe_notify(
            self._notifier,
            CALL_STAGE_EVENT,
            {"user_id": user_id, "call_sid": response.call_sid, "stage": result.stage.value},
        )
        return result

    async def handle_status_event(self, payload: Mapping[str, Any]) -> CallSession | None:
        """Apply a leg A status callback."""
        call_sid = str(payload.get("CallSid") or "").strip()
        status = str(payload.get("CallStatus") or "").strip().lower()
        if not call_sid or not status:
            logger.warning(
                "Voice status callback without CallSid or CallStatus ignored",
                extra={"payload_keys": sorted(payload.keys())},
            )
            return None

        has_error = bool(payload.get("ErrorCode") or payload.get("ErrorMessage"))
        return await self.apply_event(
            call_sid,
            status,
            has_error=has_error,
            answered_by=payload.get("AnsweredBy") or None,
        )

    async def handle_leg_b_status(self, payload: Mapping[str, Any]) -> CallSession | None:
        """Apply a leg B status callback to the parent (leg A) session."""
        parent_sid = str(payload.get("ParentCallSid") or "").strip()
        status = str(payload.get("CallStatus") or "").strip().lower()
        if not parent_sid or not status:
            logger.warning(
                "Leg B status callback without ParentCallSid or CallStatus ignored",
                extra={"payload_keys": sorted(payload.keys())},
            )
            return None

        # Dialing and ringing of leg B are already covered by legB-dialing
        if status in LEG_B_PENDING_STATUSES:
            return await self._calls.get_by_call_sid(parent_sid)

        event = LEG_B_ANSWERED_EVENT if status in LEG_B_ANSWERED_STATUSES else status
        has_error = bool(payload.get("ErrorCode") or payload.get("ErrorMessage"))
        return await self.apply_event(parent_sid, event, has_error=has_error)

    async def apply_event(
        self,
        call_sid: str,
        event: str,
        has_error: bool = False,
        answered_by: str | None = None,
    ) -> CallSession | None:
        """Record `event` on the session for `call_sid` and advance its stage."""
        call_session = await self._calls.get_by_call_sid(call_sid)
        if call_session is None:
            logger.warning(
                "Call session not found for status event",
                extra={"call_sid": call_sid, "event": event},
            )
            return None

        current = CallStage(call_session.stage)
        if is_terminal(current):
            logger.info(
                "Status event for finished call ignored",
                extra={"call_sid": call_sid, "event": event, "stage": current.value},
            )
            return call_session

        new = next_stage(current, event, has_error=has_error, answered_by=answered_by)

        call_session.last_status_event = event
        if answered_by:
            call_session.machine_detection_result = answered_by
        if new != current:
            call_session.stage = new.value
        await self._session.flush()
        await self._session.commit()

        logger.info(
            "Call status event applied",
            extra={
                "call_sid": call_sid,
                "event": event,
                "from_stage": current.value,
                "to_stage": new.value,
                "has_error": has_error,
                "answered_by": answered_by,
            },
        )

        if new != current:
            await safe_notify(
                self._notifier,
                CALL_STAGE_EVENT,
                {"user_id": call_session.user_id, "call_sid": call_sid, "stage": new.value},
            )
        return call_session
