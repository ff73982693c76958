"""Tests for webhook signing and verification."""

import hashlib
import hmac

from telco_gateway.telephony.signing import sign, verify

SECRET = "s3cret"
BODY = "MessageSid=SM1&MessageStatus=delivered"
NOW_MS = 1_700_000_000_000


class TestSign:
    def test_signature_format(self) -> None:
        expected = hmac.new(
            SECRET.encode(), f"{NOW_MS}.{BODY}".encode(), hashlib.sha256
        ).hexdigest()
        assert sign(SECRET, NOW_MS, BODY) == f"sha256={expected}"

    def test_bytes_and_str_body_agree(self) -> None:
        assert sign(SECRET, NOW_MS, BODY) == sign(SECRET, str(NOW_MS), BODY.encode())


class TestVerify:
    def test_valid_signature_within_window(self) -> None:
        ts = NOW_MS - 299_000
        assert verify(SECRET, ts, BODY, sign(SECRET, ts, BODY), 300, current_ms=NOW_MS)

    def test_future_timestamp_within_window(self) -> None:
        ts = NOW_MS + 10_000
        assert verify(SECRET, ts, BODY, sign(SECRET, ts, BODY), 300, current_ms=NOW_MS)

    def test_stale_timestamp_rejected(self) -> None:
        ts = NOW_MS - 301_000
        assert not verify(SECRET, ts, BODY, sign(SECRET, ts, BODY), 300, current_ms=NOW_MS)

    def test_non_numeric_timestamp_rejected(self) -> None:
        assert not verify(SECRET, "yesterday", BODY, sign(SECRET, "yesterday", BODY), current_ms=NOW_MS)

    def test_non_finite_timestamp_rejected(self) -> None:
        assert not verify(SECRET, "nan", BODY, sign(SECRET, "nan", BODY), current_ms=NOW_MS)
        assert not verify(SECRET, "inf", BODY, sign(SECRET, "inf", BODY), current_ms=NOW_MS)

    def test_missing_header_rejected(self) -> None:
        assert not verify(SECRET, NOW_MS, BODY, None, current_ms=NOW_MS)
        assert not verify(SECRET, NOW_MS, BODY, "", current_ms=NOW_MS)

    def test_different_length_signature_rejected(self) -> None:
        good = sign(SECRET, NOW_MS, BODY)
        assert not verify(SECRET, NOW_MS, BODY, good[:-1], current_ms=NOW_MS)
        assert not verify(SECRET, NOW_MS, BODY, good + "0", current_ms=NOW_MS)

    def test_tampered_body_rejected(self) -> None:
        sig = sign(SECRET, NOW_MS, BODY)
        assert not verify(SECRET, NOW_MS, BODY + "&x=1", sig, current_ms=NOW_MS)

    def test_wrong_secret_rejected(self) -> None:
        sig = sign("other", NOW_MS, BODY)
        assert not verify(SECRET, NOW_MS, BODY, sig, current_ms=NOW_MS)
