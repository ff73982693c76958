"""
Carrier adapter interfaces.

- SmsProvider defines `send`
- VoiceProvider defines `create_call`
- ProviderError and subclasses are the only errors adapters raise
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import anyio

from telco_gateway.shared.exceptions import GatewayError

# Carrier status events leg A subscribes to
CALL_STATUS_EVENTS: tuple[str, ...] = ("initiated", "ringing", "answered", "completed")


@dataclass(frozen=True)
class SendResult:
    """Result of one adapter accepting an SMS."""

    provider: str
    message_sid: str
    client_ref: str | None = None
    status: str = "queued"
    raw_response: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CallCreateRequest:
    """Request to place an outbound call leg."""

    to: str
    from_number: str
    url: str
    status_callback_url: str
    status_callback_events: tuple[str, ...] = CALL_STATUS_EVENTS
    machine_detection: bool = True


@dataclass(frozen=True)
class CallCreateResponse:
    """Synchronous carrier answer to a call creation."""

    provider: str
    call_sid: str
    status: str
    raw_response: dict[str, Any] = field(default_factory=dict)


class ProviderError(GatewayError):
    """Base exception for carrier adapter failures."""

    status_code = 502
    code = "PROVIDER_ERROR"

    def __init__(
        self,
        message: str,
        provider: str,
        code: str | None = None,
        provider_response: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code=code)
        self.provider = provider
        self.provider_response = provider_response or {}


class ConfigurationError(ProviderError):
    """Carrier is missing credentials or a send origin."""

    status_code = 503
    code = "CONFIGURATION_ERROR"


class TransportError(ProviderError):
    """The carrier call itself failed (network, timeout, 4xx/5xx)."""

    code = "TRANSPORT_ERROR"


class AllProvidersFailedError(GatewayError):
    """Every configured adapter failed; carries each adapter's error."""

    status_code = 502
    code = "ALL_PROVIDERS_FAILED"

    def __init__(self, failures: list[ProviderError]) -> None:
        self.failures = list(failures)
        if self.failures:
            reasons = "; ".join(f"{f.provider}: [{f.code}] {f.message}" for f in self.failures)
        else:
            reasons = "no SMS providers configured"
        super().__init__(f"All SMS providers failed ({reasons})")


class SmsProvider(ABC):
    """Common send capability of every carrier adapter.

    `send_sync` is the source of truth; `send` runs it in a worker thread so
    the event loop never blocks on carrier HTTP.
    """

    name: str

    async def send(
        self,
        to: str,
        text: str,
        client_ref: str | None = None,
    ) -> SendResult:
        return await anyio.to_thread.run_sync(self.send_sync, to, text, client_ref)

    @abstractmethod
    def send_sync(
        self,
        to: str,
        text: str,
        client_ref: str | None = None,
    ) -> SendResult:
        """Send one SMS, raising ProviderError on failure."""
        ...


class VoiceProvider(ABC):
    """Outbound call capability."""

    name: str

    async def create_call(self, request: CallCreateRequest) -> CallCreateResponse:
        return await anyio.to_thread.run_sync(self.create_call_sync, request)

    @abstractmethod
    def create_call_sync(self, request: CallCreateRequest) -> CallCreateResponse:
        """Place a call leg, raising ProviderError on failure."""
        ...
