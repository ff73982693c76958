"""
Twilio carrier adapter.

SMS goes through the Messages resource, outbound call legs through the Calls
resource. Both are form-encoded posts authenticated with the account SID and
auth token.
"""

import logging
from typing import Any

import httpx

from telco_gateway.shared.logging import mask_secret
from telco_gateway.telephony.config import ProviderType, TelephonyConfig
from telco_gateway.telephony.interface import (
    CallCreateRequest,
    CallCreateResponse,
    ConfigurationError,
    SendResult,
    SmsProvider,
    TransportError,
    VoiceProvider,
)

logger = logging.getLogger(__name__)


def _error_body(response: httpx.Response) -> dict[str, Any]:
    if not response.content:
        return {}
    try:
        data = response.json()
    except ValueError:
        return {"message": response.text}
    return data if isinstance(data, dict) else {"message": str(data)}


class TwilioAdapter(SmsProvider, VoiceProvider):
    """Twilio SMS and voice adapter.

    Credentials are read from the injected config on every call so a missing
    value surfaces as ConfigurationError at send time.
    """

    name = ProviderType.TWILIO.value

    def __init__(
        self,
        config: TelephonyConfig,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._config = config
        self._http_client = http_client
        self._owns_client = http_client is None

    def _get_client(self) -> httpx.Client:
        if self._http_client is None:
            self._http_client = httpx.Client(
                timeout=httpx.Timeout(self._config.http_timeout_seconds)
            )
        return self._http_client

    def close(self) -> None:
        if self._owns_client and self._http_client is not None:
            self._http_client.close()
            self._http_client = None

    def _get_auth(self) -> tuple[str, str]:
        sid = self._config.twilio_account_sid
        token = self._config.twilio_auth_token
        if not sid or not token:
            raise ConfigurationError(
                message="Twilio account SID and auth token are required",
                provider=self.name,
                code="TWILIO_NOT_CONFIGURED",
            )
        return (sid, token)

    def _get_api_url(self, endpoint: str) -> str:
        base = self._config.twilio_api_base_url.rstrip("/")
        account_sid = self._config.twilio_account_sid
        return f"{base}/2010-04-01/Accounts/{account_sid}{endpoint}"

    def _post(self, endpoint: str, payload: dict[str, Any], auth: tuple[str, str]) -> dict[str, Any]:
        client = self._get_client()
        try:
            response = client.post(self._get_api_url(endpoint), data=payload, auth=auth)
        except httpx.HTTPError as e:
            logger.exception(
                "HTTP error calling Twilio",
                extra={"endpoint": endpoint},
            )
            raise TransportError(
                message=f"HTTP error: {e!s}",
                provider=self.name,
                code="HTTP_ERROR",
            ) from e

        if response.status_code >= 400:
            error_data = _error_body(response)
            logger.error(
                "Twilio request rejected",
                extra={
                    "endpoint": endpoint,
                    "status_code": response.status_code,
                    "error": error_data,
                },
            )
            try:
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise TransportError(
                    message=str(error_data.get("message") or f"Twilio API error: {response.status_code}"),
                    provider=self.name,
                    code=str(error_data.get("code", response.status_code)),
                    provider_response=error_data,
                ) from e

        try:
            data = response.json()
        except ValueError as e:
            logger.error("Twilio returned a non-JSON body", extra={"endpoint": endpoint})
            raise TransportError(
                message="Twilio returned a non-JSON response",
                provider=self.name,
                code="BAD_RESPONSE",
            ) from e
        if not isinstance(data, dict) or not data.get("sid"):
            logger.error("Twilio response without sid", extra={"endpoint": endpoint})
            raise TransportError(
                message="Twilio response is missing the resource sid",
                provider=self.name,
                code="BAD_RESPONSE",
                provider_response=data if isinstance(data, dict) else None,
            )
        return data

    def send_sync(
        self,
        to: str,
        text: str,
        client_ref: str | None = None,
    ) -> SendResult:
        auth = self._get_auth()

        messaging_service_sid = self._config.twilio_messaging_service_sid
        from_number = self._config.twilio_from_number
        if not messaging_service_sid and not from_number:
            raise ConfigurationError(
                message="Twilio needs a messaging service SID or a from number",
                provider=self.name,
                code="TWILIO_NO_SENDER",
            )

        payload: dict[str, Any] = {"To": to, "Body": text}
        # Pooled sender wins when both are configured
        if messaging_service_sid:
            payload["MessagingServiceSid"] = messaging_service_sid
        else:
            payload["From"] = from_number
        if self._config.twilio_sms_status_callback_url:
            payload["StatusCallback"] = self._config.twilio_sms_status_callback_url

        logger.info(
            "Sending Twilio SMS",
            extra={
                "to": to,
                "client_ref": client_ref,
                "messaging_service_sid": mask_secret(messaging_service_sid),
            },
        )

        data = self._post("/Messages.json", payload, auth)
        return SendResult(
            provider=self.name,
            message_sid=data["sid"],
            client_ref=client_ref,
            status=data.get("status") or "queued",
            raw_response=data,
        )

    def create_call_sync(self, request: CallCreateRequest) -> CallCreateResponse:
        auth = self._get_auth()

        payload: dict[str, Any] = {
            "To": request.to,
            "From": request.from_number,
            "Url": request.url,
            "Method": "POST",
            "StatusCallback": request.status_callback_url,
            "StatusCallbackMethod": "POST",
            "StatusCallbackEvent": list(request.status_callback_events),
        }
        if request.machine_detection:
            payload["MachineDetection"] = "Enable"

        logger.info(
            "Initiating Twilio call",
            extra={"to": request.to, "from": request.from_number},
        )

        data = self._post("/Calls.json", payload, auth)
        return CallCreateResponse(
            provider=self.name,
            call_sid=data["sid"],
            status=data.get("status") or "queued",
            raw_response=data,
        )
