"""Error taxonomy shared by repositories, services and the HTTP layer.

Every error carries the HTTP status it maps to and a message that is safe to
show to callers. Store and upstream failures keep their cause for the server
log but never expose it in ``public_message``.
"""

from __future__ import annotations


class FscsError(Exception):
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.public_message = message if message is not None else self.default_message
        super().__init__(self.public_message)


class NotFoundError(FscsError):
    status_code = 404
    default_message = "Not found"


class UnauthorizedError(FscsError):
    status_code = 401
    default_message = "Unauthorized"


class ValidationError(FscsError):
    status_code = 400
    default_message = "Invalid request"


class StoreError(FscsError):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        # Only the generic message leaves the process; the cause stays chained.
        super().__init__(None)
        self.detail = message


class UpstreamError(FscsError):
    status_code = 500
    default_message = "Upstream service unavailable"

    def __init__(self, message: str | None = None, *, source: str | None = None) -> None:
        super().__init__(None)
        self.detail = message
        self.source = source
