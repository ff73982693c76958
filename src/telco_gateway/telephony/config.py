"""
Telephony carrier configuration.

One `TelephonyConfig` is built at process start and handed to every adapter.
Adapters read the credential fields when they send, so a missing credential
is a call-time `ConfigurationError` rather than a startup crash.
"""

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProviderType(str, Enum):
    """Supported carrier integrations."""

    TWILIO = "twilio"
    TELNYX = "telnyx"
    MOCK = "mock"


class TelephonyConfig(BaseSettings):
    """Carrier configuration from environment."""

    model_config = SettingsConfigDict(
        env_prefix="TELEPHONY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Provider selection. Order is fallback priority.
    sms_providers: list[ProviderType] = Field(
        default_factory=lambda: [ProviderType.TWILIO],
        description='JSON list, e.g. ["twilio","telnyx"]',
    )
    voice_provider: ProviderType = Field(default=ProviderType.TWILIO)

    # Twilio
    twilio_account_sid: str = Field(default="")
    twilio_auth_token: str = Field(default="")
    twilio_messaging_service_sid: str = Field(default="")
    twilio_from_number: str = Field(default="")
    twilio_sms_status_callback_url: str = Field(default="")
    twilio_api_base_url: str = Field(default="https://api.twilio.com")

    # Telnyx
    telnyx_api_key: str = Field(default="")
    telnyx_messaging_profile_id: str = Field(default="")
    telnyx_from_number: str = Field(default="")
    telnyx_api_base_url: str = Field(default="https://api.telnyx.com")

    # Public base URL the carrier uses to reach our voice webhooks
    webhook_base_url: str = Field(default="")
    voice_status_callback_url: str = Field(
        default="",
        description="Leg A status callback. Derived from webhook_base_url when empty.",
    )

    # Every carrier HTTP call is bounded by this timeout
    http_timeout_seconds: float = Field(default=10.0, gt=0, le=120)

    # Inbound webhook authenticity
    webhook_signing_secret: str = Field(default="")
    webhook_tolerance_seconds: int = Field(default=300, ge=1, le=3600)
    verify_webhook_signatures: bool = Field(default=True)

    def get_webhook_url(self, path: str = "/webhooks/voice/status") -> str:
        base = self.webhook_base_url.rstrip("/")
        return f"{base}{path}"

    def get_voice_status_callback_url(self) -> str:
        if self.voice_status_callback_url:
            return self.voice_status_callback_url
        return self.get_webhook_url("/webhooks/voice/status")


def get_telephony_config() -> TelephonyConfig:
    return TelephonyConfig()
