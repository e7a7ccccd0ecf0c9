"""GraphQL clients over httpx.

:class:`Client` runs each request synchronously on the caller's thread;
:class:`AsyncClient` is the asyncio counterpart. Both share one pipeline:

    check context -> encode -> POST -> read body -> decode -> first remote error

Every call performs exactly one HTTP exchange. Nothing is retried or cached,
and the HTTP status code is not inspected: a non-2xx response with a GraphQL
body is decoded like any other.
"""

from __future__ import annotations

import asyncio
import http.cookiejar
import logging
import threading
from types import TracebackType
from typing import Any, TypeVar, overload

import httpx
from pydantic import TypeAdapter, ValidationError

from minigql.config import ClientConfig
from minigql.context import Context
from minigql.exceptions import (
    BodyReadError,
    ContextCancelledError,
    ContextError,
    DeadlineExceededError,
    DecodeError,
    TransportError,
)
from minigql.models import ResponseEnvelope
from minigql.request import Request

_LOG = logging.getLogger(__name__)

T = TypeVar("T")

_JSON_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}

_default_http_lock = threading.Lock()
_default_http: httpx.Client | None = None


def _cookie_jar() -> http.cookiejar.CookieJar:
    """A jar that refuses every cookie, so no call leaks state into the next."""
    return http.cookiejar.CookieJar(policy=http.cookiejar.DefaultCookiePolicy(allowed_domains=[]))


def _default_http_client() -> httpx.Client:
    """Process-wide ``httpx.Client`` used by clients built without a transport."""
    global _default_http
    with _default_http_lock:
        if _default_http is None:
            _default_http = httpx.Client(cookies=_cookie_jar(), follow_redirects=False)
        return _default_http


def _effective_timeout(configured: float | None, context: Context) -> float | None:
    remaining = context.remaining()
    if configured is None:
        return remaining
    if remaining is None:
        return configured
    return min(configured, remaining)


def _context_error(exc: Exception, context: Context) -> ContextError | None:
    """The context's error when ``exc`` is a timeout caused by the context being done."""
    if isinstance(exc, httpx.TimeoutException):
        return context.err()
    return None


def _decode_response(body: bytes, destination: Any, *, status_code: int) -> Any:
    try:
        envelope = ResponseEnvelope.model_validate_json(body)
    except ValidationError as exc:
        raise DecodeError(f"decoding response: {exc}", status_code=status_code) from exc

    data = envelope.data
    if destination is not None and data is not None:
        try:
            data = TypeAdapter(destination).validate_python(data)
        except ValidationError as exc:
            raise DecodeError(f"decoding response: {exc}", status_code=status_code) from exc

    if envelope.errors:
        # Only the first reported error is surfaced; the rest are dropped.
        _LOG.debug("GraphQL response reported %d error(s)", len(envelope.errors))
        raise envelope.errors[0].to_exception(data=data)

    return data if destination is not None else None


class Client:
    """Synchronous GraphQL client. Safe to share across threads.

    Args:
        endpoint: URL requests are POSTed to.
        transport: httpx transport used for every exchange. It stays owned by
            the caller and is not closed by :meth:`close`. When omitted, a
            process-wide default client is shared.
        timeout: Per-exchange timeout in seconds; the execution context's
            deadline still applies when it is sooner.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        transport: httpx.BaseTransport | None = None,
        timeout: float | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._timeout = timeout
        if transport is not None:
            self._http = httpx.Client(transport=transport, cookies=_cookie_jar(), follow_redirects=False)
        else:
            self._http = _default_http_client()

    @classmethod
    def from_config(cls, config: ClientConfig, *, transport: httpx.BaseTransport | None = None) -> Client:
        return cls(config.endpoint, transport=transport, timeout=config.timeout)

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @overload
    def execute(self, request: Request, destination: None = None, *, context: Context | None = None) -> None: ...

    @overload
    def execute(self, request: Request, destination: type[T], *, context: Context | None = None) -> T: ...

    def execute(self, request: Request, destination: Any = None, *, context: Context | None = None) -> Any:
        """Run ``request`` and decode its ``data`` into ``destination``.

        Args:
            request: The request to send. It is not modified.
            destination: Any type pydantic can validate into (a model,
                dataclass, TypedDict, ``dict[str, Any]``...). With ``None`` the
                body is still checked for errors but no data is returned.
            context: Cancellation token; checked before any network activity
                and its deadline bounds the exchange. An explicit cancel while
                the exchange is blocking is not observed.

        Returns:
            The decoded ``data`` value, or ``None`` when no destination was given.

        Raises:
            ContextCancelledError: The context was cancelled before sending.
            DeadlineExceededError: The deadline passed before or during the exchange.
            SerializationError: A variable is not JSON-encodable.
            TransportError: The exchange failed at the network level.
            BodyReadError: The response body could not be read.
            DecodeError: The body is not a GraphQL response matching ``destination``.
            RemoteError: The service reported errors; the first one is raised.
        """
        ctx = context or Context.background()
        ctx.raise_if_done()

        content = request.encode()
        http_request = self._http.build_request(
            "POST",
            self._endpoint,
            content=content,
            headers=_JSON_HEADERS,
            timeout=httpx.Timeout(_effective_timeout(self._timeout, ctx)),
        )
        _LOG.debug("POST %s operation=%s", self._endpoint, request.operation_name or "-")

        try:
            response = self._http.send(http_request, stream=True)
        except httpx.TransportError as exc:
            ctx_err = _context_error(exc, ctx)
            if ctx_err is not None:
                raise ctx_err from exc
            raise TransportError(str(exc)) from exc

        try:
            try:
                body = response.read()
            except (httpx.TransportError, httpx.StreamError) as exc:
                ctx_err = _context_error(exc, ctx)
                if ctx_err is not None:
                    raise ctx_err from exc
                raise BodyReadError(f"reading body: {exc}") from exc
        finally:
            response.close()

        _LOG.debug("Response %d from %s (%d bytes)", response.status_code, self._endpoint, len(body))
        return _decode_response(body, destination, status_code=response.status_code)

    def close(self) -> None:
        """Release the client.

        Neither the shared default pool nor a caller-supplied transport is
        closed here; whoever created the transport closes it.
        """

    def __enter__(self) -> Client:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()


class AsyncClient:
    """asyncio GraphQL client with the same contract as :class:`Client`.

    Connection pools are bound to an event loop, so without a transport each
    instance opens its own and closes it in :meth:`aclose`. A caller-supplied
    transport is left open.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._timeout = timeout
        self._owns_transport = transport is None
        self._http = httpx.AsyncClient(transport=transport, cookies=_cookie_jar(), follow_redirects=False)

    @classmethod
    def from_config(
        cls, config: ClientConfig, *, transport: httpx.AsyncBaseTransport | None = None
    ) -> AsyncClient:
        return cls(config.endpoint, transport=transport, timeout=config.timeout)

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @overload
    async def execute(self, request: Request, destination: None = None, *, context: Context | None = None) -> None: ...

    @overload
    async def execute(self, request: Request, destination: type[T], *, context: Context | None = None) -> T: ...

    async def execute(self, request: Request, destination: Any = None, *, context: Context | None = None) -> Any:
        """Async form of :meth:`Client.execute`.

        The exchange and body read run as a task raced against the context:
        the deadline is enforced with :func:`asyncio.timeout` and an explicit
        :meth:`Context.cancel` aborts the task with
        :class:`ContextCancelledError`. Cancelling the awaiting task aborts
        the exchange as usual.
        """
        ctx = context or Context.background()
        ctx.raise_if_done()

        content = request.encode()
        http_request = self._http.build_request(
            "POST",
            self._endpoint,
            content=content,
            headers=_JSON_HEADERS,
            timeout=httpx.Timeout(self._timeout),
        )
        _LOG.debug("POST %s operation=%s", self._endpoint, request.operation_name or "-")

        loop = asyncio.get_running_loop()
        cancelled: asyncio.Future[None] = loop.create_future()

        def _wake() -> None:
            if not cancelled.done():
                cancelled.set_result(None)

        def _on_cancel() -> None:
            loop.call_soon_threadsafe(_wake)

        unregister = ctx.on_cancel(_on_cancel)
        exchange = asyncio.ensure_future(self._exchange(http_request, ctx))
        try:
            async with asyncio.timeout(ctx.remaining()):
                await asyncio.wait({exchange, cancelled}, return_when=asyncio.FIRST_COMPLETED)
            if not exchange.done():
                raise ctx.err() or ContextCancelledError()
            body, status_code = exchange.result()
        except TimeoutError as exc:
            raise DeadlineExceededError() from exc
        finally:
            unregister()
            cancelled.cancel()
            if not exchange.done():
                exchange.cancel()

        _LOG.debug("Response %d from %s (%d bytes)", status_code, self._endpoint, len(body))
        return _decode_response(body, destination, status_code=status_code)

    async def _exchange(self, http_request: httpx.Request, ctx: Context) -> tuple[bytes, int]:
        try:
            response = await self._http.send(http_request, stream=True)
        except httpx.TransportError as exc:
            ctx_err = _context_error(exc, ctx)
            if ctx_err is not None:
                raise ctx_err from exc
            raise TransportError(str(exc)) from exc

        try:
            try:
                body = await response.aread()
            except (httpx.TransportError, httpx.StreamError) as exc:
                ctx_err = _context_error(exc, ctx)
                if ctx_err is not None:
                    raise ctx_err from exc
                raise BodyReadError(f"reading body: {exc}") from exc
        finally:
            await response.aclose()
        return body, response.status_code

    async def aclose(self) -> None:
        """Close the connection pool this client opened; a caller-supplied transport stays open."""
        if self._owns_transport:
            await self._http.aclose()

    async def __aenter__(self) -> AsyncClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()
