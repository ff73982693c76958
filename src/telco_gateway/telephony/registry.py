"""
Ordered name -> adapter registry. Registration order is fallback priority.
"""

from collections.abc import Iterable

from telco_gateway.telephony.interface import SmsProvider


class ProviderRegistry:
    def __init__(self, providers: Iterable[SmsProvider] = ()) -> None:
        self._providers: dict[str, SmsProvider] = {}
        for provider in providers:
            self.register(provider)

    def register(self, provider: SmsProvider) -> None:
        if provider.name in self._providers:
            raise ValueError(f"SMS provider already registered: {provider.name}")
        self._providers[provider.name] = provider

    def get(self, name: str) -> SmsProvider | None:
        return self._providers.get(name)

    def names(self) -> list[str]:
        return list(self._providers)

    def ordered(self, preferred: str | None = None) -> list[SmsProvider]:
        """Providers in priority order, with `preferred` moved to the front when known."""
        providers = list(self._providers.values())
        if preferred and preferred in self._providers:
            head = self._providers[preferred]
            providers = [head] + [p for p in providers if p is not head]
        return providers

    def __contains__(self, name: object) -> bool:
        return name in self._providers

