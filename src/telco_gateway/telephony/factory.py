"""
Telephony wiring.

Single source of truth for configuration:
- use TelephonyConfig (Pydantic Settings) which loads from OS env + .env
- never read raw os.getenv("TWILIO_*") here
"""

from __future__ import annotations

import logging
from functools import lru_cache

from telco_gateway.shared.logging import mask_secret
from telco_gateway.telephony.adapters import MockAdapter, TelnyxAdapter, TwilioAdapter
from telco_gateway.telephony.config import ProviderType, TelephonyConfig
from telco_gateway.telephony.config import get_telephony_config as _load_telephony_config
from telco_gateway.telephony.dispatch import SmsDispatcher
from telco_gateway.telephony.interface import SmsProvider, VoiceProvider
from telco_gateway.telephony.registry import ProviderRegistry

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_telephony_config() -> TelephonyConfig:
    """Return the process-wide TelephonyConfig."""
    return _load_telephony_config()


def build_sms_provider(provider_type: ProviderType, cfg: TelephonyConfig) -> SmsProvider:
    if provider_type == ProviderType.TWILIO:
        return TwilioAdapter(cfg)
    if provider_type == ProviderType.TELNYX:
        return TelnyxAdapter(cfg)
    if provider_type == ProviderType.MOCK:
        return MockAdapter()
    raise ValueError(f"Unsupported SMS provider: {provider_type}")


def build_voice_provider(cfg: TelephonyConfig) -> VoiceProvider:
    if cfg.voice_provider == ProviderType.TWILIO:
        return TwilioAdapter(cfg)
    if cfg.voice_provider == ProviderType.MOCK:
        return MockAdapter()
    raise ValueError(f"Unsupported voice provider: {cfg.voice_provider}")


def build_registry(cfg: TelephonyConfig) -> ProviderRegistry:
    registry = ProviderRegistry()
    for provider_type in cfg.sms_providers:
        if provider_type.value in registry:
            logger.warning("Duplicate SMS provider in config", extra={"provider": provider_type.value})
            continue
        registry.register(build_sms_provider(provider_type, cfg))
    return registry


@lru_cache(maxsize=1)
def get_provider_registry() -> ProviderRegistry:
    cfg = get_telephony_config()
    logger.info(
        "Telephony config resolved",
        extra={
            "sms_providers": [p.value for p in cfg.sms_providers],
            "voice_provider": cfg.voice_provider.value,
            "twilio_account_sid": mask_secret(cfg.twilio_account_sid),
            "telnyx_api_key": mask_secret(cfg.telnyx_api_key),
            "webhook_base_url": cfg.webhook_base_url,
            "verify_webhook_signatures": cfg.verify_webhook_signatures,
        },
    )
    return build_registry(cfg)


@lru_cache(maxsize=1)
def get_voice_provider() -> VoiceProvider:
    return build_voice_provider(get_telephony_config())


def get_sms_dispatcher() -> SmsDispatcher:
    return SmsDispatcher(get_provider_registry())


def close_providers() -> None:
    """Close carrier HTTP clients and drop cached providers."""
    providers: list[object] = []
    if get_provider_registry.cache_info().currsize:
        providers.extend(get_provider_registry().ordered())
    if get_voice_provider.cache_info().currsize:
        providers.append(get_voice_provider())
    closed: set[int] = set()
    for provider in providers:
        close = getattr(provider, "close", None)
        if close is None or id(provider) in closed:
            continue
        closed.add(id(provider))
        close()
    get_provider_registry.cache_clear()
    get_voice_provider.cache_clear()
