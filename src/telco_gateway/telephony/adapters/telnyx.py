"""
Telnyx carrier adapter (SMS only).
"""

import logging
from typing import Any

import httpx

from telco_gateway.telephony.config import ProviderType, TelephonyConfig
from telco_gateway.telephony.interface import (
    ConfigurationError,
    SendResult,
    SmsProvider,
    TransportError,
)

logger = logging.getLogger(__name__)


def _first_error(response: httpx.Response) -> dict[str, Any]:
    """Pull the first entry of a Telnyx `errors` array, if any."""
    try:
        data = response.json() if response.content else {}
    except ValueError:
        return {"detail": response.text}
    errors = data.get("errors") if isinstance(data, dict) else None
    if errors and isinstance(errors, list) and isinstance(errors[0], dict):
        return errors[0]
    return {}


class TelnyxAdapter(SmsProvider):
    """Telnyx messaging adapter using the v2 JSON API."""

    name = ProviderType.TELNYX.value

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

    def send_sync(
        self,
        to: str,
        text: str,
        client_ref: str | None = None,
    ) -> SendResult:
        api_key = self._config.telnyx_api_key
        if not api_key:
            raise ConfigurationError(
                message="Telnyx API key is required",
                provider=self.name,
                code="TELNYX_NOT_CONFIGURED",
            )

        profile_id = self._config.telnyx_messaging_profile_id
        from_number = self._config.telnyx_from_number
        if not profile_id and not from_number:
            raise ConfigurationError(
                message="Telnyx needs a messaging profile id or a from number",
                provider=self.name,
                code="TELNYX_NO_SENDER",
            )

        payload: dict[str, Any] = {"to": to, "text": text}
        if profile_id:
            payload["messaging_profile_id"] = profile_id
        else:
            payload["from"] = from_number

        url = f"{self._config.telnyx_api_base_url.rstrip('/')}/v2/messages"
        logger.info("Sending Telnyx SMS", extra={"to": to, "client_ref": client_ref})

        try:
            response = self._get_client().post(
                url,
                json=payload,
                headers={"Authorization": f"Bearer {api_key}"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            error = _first_error(e.response)
            logger.error(
                "Telnyx request rejected",
                extra={"status_code": e.response.status_code, "error": error},
            )
            raise TransportError(
                message=str(error.get("detail") or error.get("title") or f"Telnyx API error: {e.response.status_code}"),
                provider=self.name,
                code=str(error.get("code", e.response.status_code)),
                provider_response=error,
            ) from e
        except httpx.HTTPError as e:
            logger.exception("HTTP error calling Telnyx")
            raise TransportError(
                message=f"HTTP error: {e!s}",
                provider=self.name,
                code="HTTP_ERROR",
            ) from e

        try:
            data = (response.json() or {}).get("data") or {}
            message_id = str(data["id"])
            recipients = data.get("to") or []
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error("Unreadable Telnyx response", extra={"status_code": response.status_code})
            raise TransportError(
                message="Telnyx returned an unreadable message response",
                provider=self.name,
                code="BAD_RESPONSE",
            ) from e
        status = recipients[0].get("status") if recipients and isinstance(recipients[0], dict) else None

        return SendResult(
            provider=self.name,
            message_sid=message_id,
            client_ref=client_ref,
            status=status or "queued",
            raw_response=data,
        )
