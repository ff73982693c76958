"""Tests for E.164 normalization."""

import pytest

from telco_gateway.telephony.phone import is_e164, normalize_e164, to_e164


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("+15550003333", "+15550003333"),
        ("(555) 000-3333", "+15550003333"),
        ("555.000.3333", "+15550003333"),
        (" +44 20 7946 0958 ", "+442079460958"),
    ],
)
def test_normalizes_to_e164(raw: str, expected: str) -> None:
    assert normalize_e164(raw) == expected


@pytest.mark.parametrize("raw", ["", "   ", "not-a-phone", "12", None])
def test_rejects_non_numbers(raw: str | None) -> None:
    assert normalize_e164(raw) is None
    assert not is_e164(raw)


def test_default_region_applies_to_national_numbers() -> None:
    assert to_e164("020 7946 0958", default_region="GB") == "+442079460958"
