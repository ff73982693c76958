"""Tests for the Twilio adapter (sync paths, no network)."""

from unittest.mock import MagicMock

import httpx
import pytest

from telco_gateway.telephony.adapters.twilio import TwilioAdapter
from telco_gateway.telephony.config import TelephonyConfig
from telco_gateway.telephony.interface import (
    CallCreateRequest,
    ConfigurationError,
    TransportError,
)


def _client_returning(response: httpx.Response) -> MagicMock:
    client = MagicMock(spec=httpx.Client)
    client.post.return_value = response
    return client


def _message_response() -> httpx.Response:
    return httpx.Response(
        status_code=201,
        json={"sid": "SM_TEST_123", "status": "queued"},
        request=httpx.Request("POST", "https://api.twilio.com/Messages.json"),
    )


class TestTwilioSendSync:
    def test_send_with_from_number(self, telephony_config: TelephonyConfig) -> None:
        client = _client_returning(_message_response())
        adapter = TwilioAdapter(config=telephony_config, http_client=client)

        result = adapter.send_sync("+15550003333", "hello", client_ref="ref-1")

        assert result.provider == "twilio"
        assert result.message_sid == "SM_TEST_123"
        assert result.client_ref == "ref-1"

        url = client.post.call_args[0][0]
        data = client.post.call_args.kwargs["data"]
        assert url.endswith("/Accounts/AC_TEST_ACCOUNT_SID/Messages.json")
        assert data["From"] == "+15550000000"
        assert "MessagingServiceSid" not in data
        assert "StatusCallback" not in data
        assert client.post.call_args.kwargs["auth"] == ("AC_TEST_ACCOUNT_SID", "test_auth_token_12345")

    def test_messaging_service_preferred_over_from(self, telephony_config: TelephonyConfig) -> None:
        cfg = telephony_config.model_copy(update={"twilio_messaging_service_sid": "MG_POOL"})
        client = _client_returning(_message_response())

        TwilioAdapter(config=cfg, http_client=client).send_sync("+15550003333", "hi")

        data = client.post.call_args.kwargs["data"]
        assert data["MessagingServiceSid"] == "MG_POOL"
        assert "From" not in data

    def test_status_callback_included_when_configured(self, telephony_config: TelephonyConfig) -> None:
        cfg = telephony_config.model_copy(
            update={"twilio_sms_status_callback_url": "https://gw.example.com/webhooks/sms/status"}
        )
        client = _client_returning(_message_response())

        TwilioAdapter(config=cfg, http_client=client).send_sync("+15550003333", "hi")

        assert client.post.call_args.kwargs["data"]["StatusCallback"] == (
            "https://gw.example.com/webhooks/sms/status"
        )

    def test_missing_credentials_is_configuration_error(self, telephony_config: TelephonyConfig) -> None:
        cfg = telephony_config.model_copy(update={"twilio_auth_token": ""})
        client = MagicMock(spec=httpx.Client)

        with pytest.raises(ConfigurationError) as exc_info:
            TwilioAdapter(config=cfg, http_client=client).send_sync("+15550003333", "hi")

        assert exc_info.value.provider == "twilio"
        client.post.assert_not_called()

    def test_missing_sender_is_configuration_error(self, telephony_config: TelephonyConfig) -> None:
        cfg = telephony_config.model_copy(
            update={"twilio_from_number": "", "twilio_messaging_service_sid": ""}
        )

        with pytest.raises(ConfigurationError):
            TwilioAdapter(config=cfg, http_client=MagicMock(spec=httpx.Client)).send_sync(
                "+15550003333", "hi"
            )

    def test_api_error_keeps_carrier_code(self, telephony_config: TelephonyConfig) -> None:
        response = httpx.Response(
            status_code=400,
            json={"code": 21211, "message": "Invalid 'To' Phone Number"},
            request=httpx.Request("POST", "https://api.twilio.com/Messages.json"),
        )
        adapter = TwilioAdapter(config=telephony_config, http_client=_client_returning(response))

        with pytest.raises(TransportError) as exc_info:
            adapter.send_sync("+15550003333", "hi")

        assert exc_info.value.code == "21211"
        assert "Invalid 'To' Phone Number" in exc_info.value.message
        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)

    def test_network_error_is_transport_error(self, telephony_config: TelephonyConfig) -> None:
        client = MagicMock(spec=httpx.Client)
        client.post.side_effect = httpx.ConnectTimeout("timed out")

        with pytest.raises(TransportError) as exc_info:
            TwilioAdapter(config=telephony_config, http_client=client).send_sync("+15550003333", "hi")

        assert exc_info.value.code == "HTTP_ERROR"
        assert isinstance(exc_info.value.__cause__, httpx.ConnectTimeout)

    def test_non_json_success_body_is_transport_error(self, telephony_config: TelephonyConfig) -> None:
        response = httpx.Response(
            status_code=200,
            text="<html>proxy</html>",
            request=httpx.Request("POST", "https://api.twilio.com/Messages.json"),
        )
        adapter = TwilioAdapter(config=telephony_config, http_client=_client_returning(response))

        with pytest.raises(TransportError) as exc_info:
            adapter.send_sync("+15550003333", "hi")

        assert exc_info.value.code == "BAD_RESPONSE"
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_success_body_without_sid_is_transport_error(self, telephony_config: TelephonyConfig) -> None:
        response = httpx.Response(
            status_code=201,
            json={"status": "queued"},
            request=httpx.Request("POST", "https://api.twilio.com/Messages.json"),
        )
        adapter = TwilioAdapter(config=telephony_config, http_client=_client_returning(response))

        with pytest.raises(TransportError) as exc_info:
            adapter.send_sync("+15550003333", "hi")

        assert exc_info.value.code == "BAD_RESPONSE"


class TestTwilioCreateCallSync:
    def test_create_call_posts_call_resource(self, telephony_config: TelephonyConfig) -> None:
        response = httpx.Response(
            status_code=201,
            json={"sid": "CA_TEST_1", "status": "queued"},
            request=httpx.Request("POST", "https://api.twilio.com/Calls.json"),
        )
        client = _client_returning(response)
        adapter = TwilioAdapter(config=telephony_config, http_client=client)

        result = adapter.create_call_sync(
            CallCreateRequest(
                to="+15550002222",
                from_number="+15550001111",
                url="https://gw.example.com/webhooks/voice/alias/leg-a?userId=1",
                status_callback_url="https://gw.example.com/webhooks/voice/status",
            )
        )

        assert result.call_sid == "CA_TEST_1"
        url = client.post.call_args[0][0]
        data = client.post.call_args.kwargs["data"]
        assert url.endswith("/Calls.json")
        assert data["MachineDetection"] == "Enable"
        assert data["StatusCallbackEvent"] == ["initiated", "ringing", "answered", "completed"]
        assert data["Url"].endswith("leg-a?userId=1")


@pytest.mark.asyncio
async def test_async_send_delegates_to_sync(telephony_config: TelephonyConfig) -> None:
    adapter = TwilioAdapter(config=telephony_config, http_client=_client_returning(_message_response()))

    result = await adapter.send("+15550003333", "hello")

    assert result.message_sid == "SM_TEST_123"
