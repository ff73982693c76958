"""
In-process mock carrier for local development and tests.

Never touches the network; every SMS and call succeeds unless a failure is
configured explicitly.
"""

import logging

from telco_gateway.telephony.config import ProviderType
from telco_gateway.telephony.interface import (
    CallCreateRequest,
    CallCreateResponse,
    SendResult,
    SmsProvider,
    TransportError,
    VoiceProvider,
)

logger = logging.getLogger(__name__)


class MockAdapter(SmsProvider, VoiceProvider):
    """Mock SMS and voice provider."""

    name = ProviderType.MOCK.value

    def __init__(self) -> None:
        self._sent: list[dict[str, str | None]] = []
        self._calls: list[CallCreateRequest] = []
        self._next_sms_id = 1
        self._next_call_id = 1
        self._should_fail = False
        self._fail_error = "Mock failure"
        self._fail_code = "MOCK_ERROR"

    def reset(self) -> None:
        self._sent.clear()
        self._calls.clear()
        self._next_sms_id = 1
        self._next_call_id = 1
        self._should_fail = False

    def configure_failure(
        self,
        should_fail: bool = True,
        error_message: str = "Mock failure",
        error_code: str = "MOCK_ERROR",
    ) -> None:
        self._should_fail = should_fail
        self._fail_error = error_message
        self._fail_code = error_code

    @property
    def sent(self) -> list[dict[str, str | None]]:
        return self._sent.copy()

    @property
    def calls(self) -> list[CallCreateRequest]:
        return self._calls.copy()

    def get_last_call(self) -> CallCreateRequest | None:
        return self._calls[-1] if self._calls else None

    def _fail(self) -> None:
        raise TransportError(
            message=self._fail_error,
            provider=self.name,
            code=self._fail_code,
        )

    def send_sync(
        self,
        to: str,
        text: str,
        client_ref: str | None = None,
    ) -> SendResult:
        logger.info("Mock: sending SMS", extra={"to": to, "client_ref": client_ref})
        if self._should_fail:
            self._fail()

        message_sid = f"MOCK_SMS_{self._next_sms_id:06d}"
        self._next_sms_id += 1
        self._sent.append({"to": to, "text": text, "client_ref": client_ref, "sid": message_sid})

        return SendResult(
            provider=self.name,
            message_sid=message_sid,
            client_ref=client_ref,
            raw_response={"mock": True},
        )

    def create_call_sync(self, request: CallCreateRequest) -> CallCreateResponse:
        logger.info("Mock: initiating call", extra={"to": request.to})
        if self._should_fail:
            self._fail()

        self._calls.append(request)
        call_sid = f"MOCK_CALL_{self._next_call_id:06d}"
        self._next_call_id += 1

        return CallCreateResponse(
            provider=self.name,
            call_sid=call_sid,
            status="queued",
            raw_response={"mock": True, "call_sid": call_sid},
        )
