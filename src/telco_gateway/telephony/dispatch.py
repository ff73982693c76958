"""
SMS dispatch with sequential provider fallback.
"""

from dataclasses import dataclass

from telco_gateway.shared.exceptions import InvalidDestination
from telco_gateway.shared.logging import get_logger
from telco_gateway.telephony.interface import (
    AllProvidersFailedError,
    ConfigurationError,
    ProviderError,
)
from telco_gateway.telephony.phone import normalize_e164
from telco_gateway.telephony.registry import ProviderRegistry

logger = get_logger(__name__)


@dataclass(frozen=True)
class NormalizedSendResult:
    """Provider-independent outcome of a successful send."""

    provider: str
    message_id: str
    to: str
    client_ref: str | None = None


class SmsDispatcher:
    """Sends one SMS through the first provider that accepts it.

    Providers are tried one at a time in registry order; `preferred`, when it
    names a registered provider, goes first.
    """

    def __init__(self, registry: ProviderRegistry) -> None:
        self._registry = registry

    async def send_sms(
        self,
        to: str,
        text: str,
        client_ref: str | None = None,
        preferred: str | None = None,
    ) -> NormalizedSendResult:
        """Send `text` to `to`.

        Raises:
            InvalidDestination: `to` is not a phone number. No provider is called.
            AllProvidersFailedError: every provider raised ProviderError.
        """
        destination = normalize_e164(to)
        if destination is None:
            raise InvalidDestination()

        if preferred and preferred not in self._registry:
            logger.warning(
                "Ignoring unknown preferred SMS provider",
                extra={"preferred": preferred, "registered": self._registry.names()},
            )

        failures: list[ProviderError] = []
        for provider in self._registry.ordered(preferred):
            try:
                result = await provider.send(destination, text, client_ref)
            except ProviderError as e:
                log = logger.error if isinstance(e, ConfigurationError) else logger.warning
                log(
                    "SMS provider failed, trying next",
                    extra={
                        "provider": provider.name,
                        "error_code": e.code,
                        "error": e.message,
                        "client_ref": client_ref,
                    },
                )
                failures.append(e)
                continue

            logger.info(
                "SMS accepted",
                extra={
                    "provider": result.provider,
                    "message_id": result.message_sid,
                    "client_ref": client_ref,
                    "attempts": len(failures) + 1,
                },
            )
            return NormalizedSendResult(
                provider=result.provider,
                message_id=result.message_sid,
                to=destination,
                client_ref=client_ref,
            )

        raise AllProvidersFailedError(failures)
