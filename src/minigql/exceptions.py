"""Exception hierarchy for minigql.

All minigql exceptions inherit from :class:`MiniGQLError`, so callers can catch
every library failure with one ``except`` clause while still telling a
service-reported :class:`RemoteError` apart from transport and decode failures.
"""

from __future__ import annotations

from typing import Any


class MiniGQLError(Exception):
    """Base exception for all minigql errors."""


class ConfigError(MiniGQLError):
    """Configuration loading or validation failure."""


class ContextError(MiniGQLError):
    """The execution context was done before or during the exchange."""


class ContextCancelledError(ContextError):
    """The execution context was explicitly cancelled."""

    def __init__(self, message: str = "context canceled") -> None:
        super().__init__(message)


class DeadlineExceededError(ContextError):
    """The execution context's deadline passed."""

    def __init__(self, message: str = "context deadline exceeded") -> None:
        super().__init__(message)


class SerializationError(MiniGQLError):
    """The request could not be encoded as JSON."""


class TransportError(MiniGQLError):
    """Network-level failure reported by the HTTP transport.

    The originating ``httpx`` exception is chained as ``__cause__``.
    """


class BodyReadError(MiniGQLError):
    """The response body could not be read."""


class DecodeError(MiniGQLError):
    """The response body is not a valid GraphQL envelope for the destination.

    Attributes:
        status_code: HTTP status of the response that failed to decode.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RemoteError(MiniGQLError):
    """An error reported by the GraphQL service in the ``errors`` array.

    Only the first reported error is surfaced.

    Attributes:
        message: The service-supplied message, without prefix.
        locations: Source locations, when the service reported them.
        path: Response path of the failing field, when reported.
        extensions: Service-specific extra information.
        data: Whatever ``data`` accompanied the error (decoded into the
            destination type when one was given).
    """

    prefix = "graphql: "

    def __init__(
        self,
        message: str,
        *,
        locations: list[dict[str, Any]] | None = None,
        path: list[Any] | None = None,
        extensions: dict[str, Any] | None = None,
        data: Any = None,
    ) -> None:
        super().__init__(f"{self.prefix}{message}")
        self.message = message
        self.locations = locations
        self.path = path
        self.extensions = extensions
        self.data = data
