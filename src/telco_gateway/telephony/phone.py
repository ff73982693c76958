"""
E.164 normalization.

Input starting with "+" is parsed as international; anything else is parsed
against a default region (US unless told otherwise).
"""

import re

import phonenumbers

DEFAULT_REGION = "US"

E164_PATTERN = re.compile(r"^\+[1-9]\d{1,14}$")


def to_e164(raw: str | None, default_region: str = DEFAULT_REGION) -> str | None:
    """Return the E.164 form of `raw`, or None when it is not a possible number."""
    if not raw or not isinstance(raw, str):
        return None
    candidate = raw.strip()
    if not candidate:
        return None

    region = None if candidate.startswith("+") else default_region
    try:
        parsed = phonenumbers.parse(candidate, region)
    except phonenumbers.NumberParseException:
        return None

    if not phonenumbers.is_possible_number(parsed):
        return None

    formatted = phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)
    return formatted if E164_PATTERN.match(formatted) else None


def normalize_e164(raw: str | None) -> str | None:
    return to_e164(raw, DEFAULT_REGION)


def is_e164(raw: str | None, default_region: str = DEFAULT_REGION) -> bool:
    return to_e164(raw, default_region) is not None
