"""Generic typed REST calls on top of ``httpx.AsyncClient``.

``RestApi`` is the base for concrete API surfaces. It composes the request
URI from an optional parameter object, sends the request, reads the body
while honouring a ``CancellationToken`` and hands the bytes to the first
formatter that accepts the response content type.

Errors:
 - transport failures and non-success status codes are httpx exceptions and
   propagate untouched; this layer never retries
 - formatter parse errors become ``InvalidResponseError`` with the original
   exception chained as ``__cause__``
 - no matching formatter raises ``UnsupportedMediaTypeError``
"""

from __future__ import annotations

import time
from typing import IO, Any, TypeVar, overload

import httpx

from .cancellation import CancellationToken, ensure_token
from .errors import InvalidResponseError, UnsupportedMediaTypeError, type_name
from .formatters import MediaTypeFormatterCollection, parse_content_type
from .logging import get_logger
from .observability import get_tracer
from .query import serialize_parameters
from .uri import add_query

T = TypeVar("T")


class RestApi:
    """Base class for a RESTful API reached through an ``httpx.AsyncClient``."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        formatters: MediaTypeFormatterCollection | None = None,
    ):
        if http_client is None:
            raise ValueError("http_client is required")
        self._http_client = http_client
        self._formatters = formatters if formatters is not None else MediaTypeFormatterCollection()

    @property
    def http_client(self) -> httpx.AsyncClient:
        return self._http_client

    @property
    def formatters(self) -> MediaTypeFormatterCollection:
        return self._formatters

    # ---- request helpers ----------------------------------------------
    @staticmethod
    def build_uri(path: str, parameters: Any | None = None) -> str:
        if parameters is None:
            return path
        return add_query(path, serialize_parameters(parameters))

    async def _open(
        self,
        method: str,
        uri: str,
        token: CancellationToken,
        json: Any | None = None,
    ) -> httpx.Response:
        token.raise_if_cancelled()
        request = self._http_client.build_request(method, uri, json=json)
        get_logger().log_request(method, str(request.url))
        response = await token.wait_for(self._http_client.send(request, stream=True))
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError:
            await response.aclose()
            raise
        return response

    @staticmethod
    async def _read_body(response: httpx.Response, token: CancellationToken) -> bytes:
        buffer = bytearray()
        try:
            chunks = response.aiter_bytes()
            while True:
                token.raise_if_cancelled()
                try:
                    chunk = await token.wait_for(chunks.__anext__())
                except StopAsyncIteration:
                    break
                buffer.extend(chunk)
            token.raise_if_cancelled()
        except BaseException:
            buffer.clear()
            raise
        finally:
            await response.aclose()
        return bytes(buffer)

    def _deserialize(self, body: bytes, content_type: str | None, result_type: Any) -> Any:
        media_type, charset = parse_content_type(content_type)
        formatter = self._formatters.find_reader(result_type, media_type)
        if formatter is None:
            raise UnsupportedMediaTypeError(result_type, media_type)
        try:
            return formatter.read(body, result_type, charset)
        except formatter.read_errors as exc:
            raise InvalidResponseError(result_type) from exc

    # ---- public API ----------------------------------------------------
    @overload
    async def fetch(
        self,
        path: str,
        result_type: type[T],
        parameters: Any | None = None,
        *,
        cancellation_token: CancellationToken | None = None,
    ) -> T: ...

    @overload
    async def fetch(
        self,
        path: str,
        result_type: Any,
        parameters: Any | None = None,
        *,
        cancellation_token: CancellationToken | None = None,
    ) -> Any: ...

    async def fetch(
        self,
        path: str,
        result_type: Any,
        parameters: Any | None = None,
        *,
        cancellation_token: CancellationToken | None = None,
    ) -> Any:
        """Send a GET request and read the body as ``result_type``.

        Public fields of ``parameters`` are sent as query-string parameters.
        """
        return await self.send(
            "GET", path, result_type, parameters, cancellation_token=cancellation_token
        )

    async def send(
        self,
        method: str,
        path: str,
        result_type: Any,
        parameters: Any | None = None,
        *,
        json: Any | None = None,
        cancellation_token: CancellationToken | None = None,
    ) -> Any:
        token = ensure_token(cancellation_token)
        uri = self.build_uri(path, parameters)
        logger = get_logger()
        start = time.perf_counter()
        with get_tracer().start_as_current_span(f"fixi.{method}") as span:
            span.set_attribute("http.request.method", method)
            span.set_attribute("url.path", path)
            try:
                response = await self._open(method, uri, token, json=json)
                span.set_attribute("http.response.status_code", response.status_code)
                body = await self._read_body(response, token)
                result = self._deserialize(
                    body, response.headers.get("content-type"), result_type
                )
            except InvalidResponseError as exc:
                logger.log_error(
                    f"{method} {uri} returned an unreadable body",
                    error=str(exc.__cause__ or exc),
                    result_type=exc.type_name,
                )
                raise
            except httpx.HTTPError as exc:
                logger.log_error(f"{method} {uri} failed", error=str(exc))
                raise
        logger.log_performance(
            "request",
            (time.perf_counter() - start) * 1000,
            method=method,
            url=uri,
            status=response.status_code,
            result_type=type_name(result_type),
        )
        return result

    async def download(
        self,
        path: str,
        destination: IO[bytes],
        parameters: Any | None = None,
        *,
        cancellation_token: CancellationToken | None = None,
    ) -> int:
        """Stream the response body of a GET request into ``destination``.

        The body is buffered until fully read, so a cancelled download never
        leaves partial content in ``destination``. Returns the byte count.
        """
        token = ensure_token(cancellation_token)
        uri = self.build_uri(path, parameters)
        with get_logger().timed_operation("download", url=uri):
            with get_tracer().start_as_current_span("fixi.GET") as span:
                span.set_attribute("http.request.method", "GET")
                span.set_attribute("url.path", path)
                response = await self._open("GET", uri, token)
                span.set_attribute("http.response.status_code", response.status_code)
                body = await self._read_body(response, token)
            destination.write(body)
        return len(body)


__all__ = ["RestApi"]
