"""
Real-time client notification hook.

The host application injects an implementation (socket server, pub/sub, ...);
the gateway runs without one.
"""

from typing import Any, Protocol

from fastapi import Request

from telco_gateway.shared.logging import get_logger

logger = get_logger(__name__)

CALL_STAGE_EVENT = "call:stage"
SMS_STATUS_EVENT = "sms:status"


class ClientNotifierProtocol(Protocol):
    """Pushes gateway events to connected clients."""

    async def notify(self, event: str, payload: dict[str, Any]) -> None:
        ...


async def safe_notify(
    notifier: ClientNotifierProtocol | None,
    event: str,
    payload: dict[str, Any],
) -> None:
    """Notify when a notifier is configured; a failing notifier is only logged."""
    if notifier is None:
        return
    try:
        await notifier.notify(event, payload)
    except Exception:
        logger.exception("Client notification failed", extra={"event": event})


def get_client_notifier(request: Request) -> ClientNotifierProtocol | None:
    """FastAPI dependency: the notifier the host app put on `app.state`, if any."""
    return getattr(request.app.state, "client_notifier", None)
