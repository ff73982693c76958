"""
Domain exception taxonomy.

Every error raised to callers carries the HTTP status the API layer maps it
to, plus a stable machine-readable code.
"""


class GatewayError(Exception):
    """Base exception for the gateway."""

    status_code: int = 500
    code: str = "GATEWAY_ERROR"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class PreconditionError(GatewayError):
    """Caller input or account state does not allow the operation.

    Surfaced synchronously, nothing persisted, never retried.
    """

    status_code = 412
    code = "PRECONDITION_FAILED"


class InvalidDestination(PreconditionError):
    status_code = 400
    code = "INVALID_DESTINATION"

    def __init__(self, message: str = "Invalid destination phone") -> None:
        super().__init__(message)


class NoAssignedNumber(PreconditionError):
    code = "NO_ASSIGNED_NUMBER"

    def __init__(self, message: str = "No platform number assigned") -> None:
        super().__init__(message)


class UnverifiedForwardingNumber(PreconditionError):
    code = "UNVERIFIED_FORWARDING_NUMBER"

    def __init__(self, message: str = "User forwarding phone not verified") -> None:
        super().__init__(message)
