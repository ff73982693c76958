"""
Authenticity check for inbound carrier webhooks.

Signed requests carry:
- X-Signature: "sha256=<hex hmac>" over "<timestamp>.<raw body>"
- X-Signature-Timestamp: Unix epoch milliseconds (or a `Timestamp` form field)
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from telco_gateway.shared.logging import get_logger
from telco_gateway.telephony import signing
from telco_gateway.telephony.config import TelephonyConfig
from telco_gateway.telephony.factory import get_telephony_config

logger = get_logger(__name__)

SIGNATURE_HEADER = "X-Signature"
TIMESTAMP_HEADER = "X-Signature-Timestamp"
TIMESTAMP_FORM_FIELD = "Timestamp"


def _reject(reason: str, path: str) -> HTTPException:
    # Only the reason is logged; never the body or the signature
    logger.warning("Webhook rejected", extra={"reason": reason, "path": path})
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail={"code": "INVALID_SIGNATURE", "message": "Webhook signature rejected"},
    )


async def verified_webhook_form(
    request: Request,
    config: Annotated[TelephonyConfig, Depends(get_telephony_config)],
) -> dict[str, str]:
    """FastAPI dependency returning the form payload of an authentic webhook.

    Raises:
        HTTPException: 403 when the request is not authentic.
    """
    raw_body = await request.body()
    form = {k: str(v) for k, v in (await request.form()).items()}
    path = request.url.path

    if not config.verify_webhook_signatures:
        logger.warning("Webhook signature verification disabled", extra={"path": path})
        return form

    secret = config.webhook_signing_secret
    if not secret:
        raise _reject("signing secret not configured", path)

    signature = request.headers.get(SIGNATURE_HEADER)
    if not signature:
        raise _reject("missing signature header", path)

    timestamp = request.headers.get(TIMESTAMP_HEADER) or form.get(TIMESTAMP_FORM_FIELD)
    if not timestamp:
        raise _reject("missing timestamp", path)

    if not signing.verify(
        secret,
        timestamp,
        raw_body,
        signature,
        tolerance_seconds=config.webhook_tolerance_seconds,
    ):
        raise _reject("signature mismatch or stale timestamp", path)

    return form
