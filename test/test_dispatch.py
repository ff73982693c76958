"""Tests for SMS dispatch with provider fallback."""

from unittest.mock import MagicMock

import httpx
import pytest

from telco_gateway.shared.exceptions import InvalidDestination
from telco_gateway.telephony.adapters import MockAdapter, TelnyxAdapter
from telco_gateway.telephony.config import TelephonyConfig
from telco_gateway.telephony.dispatch import SmsDispatcher
from telco_gateway.telephony.interface import (
    AllProvidersFailedError,
    ConfigurationError,
    SendResult,
    SmsProvider,
    TransportError,
)
from telco_gateway.telephony.registry import ProviderRegistry


class ScriptedProvider(SmsProvider):
    """Provider that either fails with `error` or succeeds, recording call order."""

    def __init__(self, name: str, calls: list[str], error: Exception | None = None) -> None:
        self.name = name
        self._calls = calls
        self._error = error

    def send_sync(self, to: str, text: str, client_ref: str | None = None) -> SendResult:
        self._calls.append(self.name)
        if self._error is not None:
            raise self._error
        return SendResult(provider=self.name, message_sid=f"{self.name}-1", client_ref=client_ref)


@pytest.mark.asyncio
async def test_first_provider_success_stops_loop() -> None:
    calls: list[str] = []
    dispatcher = SmsDispatcher(
        ProviderRegistry([ScriptedProvider("A", calls), ScriptedProvider("B", calls)])
    )

    result = await dispatcher.send_sms("(555) 000-3333", "hi", client_ref="r1")

    assert calls == ["A"]
    assert result.provider == "A"
    assert result.message_id == "A-1"
    assert result.to == "+15550003333"
    assert result.client_ref == "r1"


@pytest.mark.asyncio
async def test_preferred_failing_falls_back_to_next() -> None:
    calls: list[str] = []
    registry = ProviderRegistry(
        [
            ScriptedProvider("B", calls),
            ScriptedProvider("A", calls, TransportError("boom", provider="A", code="500")),
        ]
    )

    result = await SmsDispatcher(registry).send_sms("+15550003333", "hi", preferred="A")

    assert calls == ["A", "B"]
    assert result.provider == "B"


@pytest.mark.asyncio
async def test_unknown_preferred_is_ignored() -> None:
    calls: list[str] = []
    registry = ProviderRegistry([ScriptedProvider("A", calls), ScriptedProvider("B", calls)])

    result = await SmsDispatcher(registry).send_sms("+15550003333", "hi", preferred="nope")

    assert result.provider == "A"
    assert calls == ["A"]


@pytest.mark.asyncio
async def test_all_failed_carries_every_failure() -> None:
    calls: list[str] = []
    registry = ProviderRegistry(
        [
            ScriptedProvider("A", calls, ConfigurationError("no creds", provider="A")),
            ScriptedProvider("B", calls, TransportError("timeout", provider="B", code="HTTP_ERROR")),
        ]
    )

    with pytest.raises(AllProvidersFailedError) as exc_info:
        await SmsDispatcher(registry).send_sms("+15550003333", "hi")

    assert calls == ["A", "B"]
    assert [f.provider for f in exc_info.value.failures] == ["A", "B"]
    assert "A:" in str(exc_info.value)
    assert "timeout" in str(exc_info.value)


@pytest.mark.asyncio
async def test_unreadable_carrier_reply_falls_back(telephony_config: TelephonyConfig) -> None:
    client = MagicMock(spec=httpx.Client)
    client.post.return_value = httpx.Response(
        status_code=200,
        json={"data": {}},
        request=httpx.Request("POST", "https://api.telnyx.com/v2/messages"),
    )
    mock = MockAdapter()
    registry = ProviderRegistry([TelnyxAdapter(config=telephony_config, http_client=client), mock])

    result = await SmsDispatcher(registry).send_sms("+15550003333", "hi")

    client.post.assert_called_once()
    assert result.provider == "mock"
    assert len(mock.sent) == 1


@pytest.mark.asyncio
async def test_invalid_destination_calls_no_provider() -> None:
    calls: list[str] = []
    dispatcher = SmsDispatcher(ProviderRegistry([ScriptedProvider("A", calls)]))

    with pytest.raises(InvalidDestination):
        await dispatcher.send_sms("not-a-phone", "hi")

    assert calls == []


def test_registry_rejects_duplicate_names() -> None:
    registry = ProviderRegistry([ScriptedProvider("A", [])])

    with pytest.raises(ValueError):
        registry.register(ScriptedProvider("A", []))
