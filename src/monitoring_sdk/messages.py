"""
Request and response values passed through the middleware pipeline.

Both carry a single-use body: once read, the content is gone. A middleware that
needs to inspect a body and still forward the message must ``clone()`` it first:

    async def on_response(self, response, context):
        payload = response.clone().json()
        ...
        return None

Reading without cloning leaves the forwarded message with a consumed body, and
the next reader gets a ``BodyConsumedError``.
"""

import json as jsonlib
from http import HTTPStatus
from typing import Any
from typing import Mapping

import httpx

from monitoring_sdk.exceptions import BodyConsumedError

UNSET: Any = object()


class Body:
    """Owned byte buffer with a consumed flag."""

    def __init__(self, content: bytes = b""):
        self._content = content
        self._consumed = False

    @property
    def consumed(self) -> bool:
        return self._consumed

    def read(self) -> bytes:
        if self._consumed:
            raise BodyConsumedError("Body has already been consumed")
        self._consumed = True
        content, self._content = self._content, b""
        return content

    def clone(self) -> "Body":
        if self._consumed:
            raise BodyConsumedError("Cannot clone a body that was already consumed")
        return Body(self._content)


def _as_body(content: bytes | str | Body | None) -> Body | None:
    if content is None or isinstance(content, Body):
        return content
    if isinstance(content, str):
        content = content.encode("utf-8")
    return Body(content)


class _Message:
    def __init__(
        self,
        headers: Mapping[str, str] | httpx.Headers | None,
        body: Body | None,
    ):
        self.headers = httpx.Headers(headers)
        self.body = body

    @property
    def body_used(self) -> bool:
        return self.body is not None and self.body.consumed

    def read(self) -> bytes:
        if self.body is None:
            return b""
        return self.body.read()

    def text(self) -> str:
        return self.read().decode("utf-8")

    def json(self) -> Any:
        return jsonlib.loads(self.read())


class Request(_Message):
    """
    Outgoing HTTP request.

    Args:
        method (str): HTTP method, e.g. 'GET'
        url (str): Absolute URL without the query string
        headers (Mapping | None): Request headers (case-insensitive)
        params (dict | None): Query parameters
        content (bytes | str | Body | None): Raw body
        json (Any): JSON payload, encoded into the body. None is sent as JSON null;
            leave the argument out for no JSON body
    """

    def __init__(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | httpx.Headers | None = None,
        params: dict[str, Any] | None = None,
        content: bytes | str | Body | None = None,
        json: Any = UNSET,
    ):
        body = _as_body(content)
        if json is not UNSET:
            body = Body(jsonlib.dumps(json).encode("utf-8"))
        super().__init__(headers, body)
        self.method = method.upper()
        self.url = url
        self.params = dict(params) if params else {}
        if json is not UNSET and "content-type" not in self.headers:
            self.headers["Content-Type"] = "application/json"

    def clone(self) -> "Request":
        return Request(
            self.method,
            self.url,
            headers=self.headers.copy(),
            params=self.params,
            content=self.body.clone() if self.body is not None else None,
        )

    def replace(
        self,
        *,
        method: str | None = None,
        url: str | None = None,
        headers: Mapping[str, str] | httpx.Headers | None = None,
        params: dict[str, Any] | None = None,
        content: bytes | str | Body | None = UNSET,
    ) -> "Request":
        """
        Build a replacement request. The body is handed over, not copied,
        so the original request must not be read afterwards.
        """
        return Request(
            method or self.method,
            url or self.url,
            headers=self.headers.copy() if headers is None else headers,
            params=self.params if params is None else params,
            content=self.body if content is UNSET else content,
        )

    def with_headers(self, headers: Mapping[str, str]) -> "Request":
        merged = self.headers.copy()
        merged.update(headers)
        return self.replace(headers=merged)

    def __repr__(self) -> str:
        return f"<Request {self.method} {self.url}>"


class Response(_Message):
    """
    Incoming HTTP response as produced by a transport.

    Args:
        status_code (int): HTTP status code
        headers (Mapping | None): Response headers (case-insensitive)
        content (bytes | str | Body | None): Raw body
        url (str): URL the response was received from
    """

    def __init__(
        self,
        status_code: int,
        headers: Mapping[str, str] | httpx.Headers | None = None,
        content: bytes | str | Body | None = None,
        url: str = "",
    ):
        super().__init__(headers, _as_body(content))
        self.status_code = status_code
        self.url = url

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def reason_phrase(self) -> str:
        try:
            return HTTPStatus(self.status_code).phrase
        except ValueError:
            return ""

    def clone(self) -> "Response":
        return Response(
            self.status_code,
            headers=self.headers.copy(),
            content=self.body.clone() if self.body is not None else None,
            url=self.url,
        )

    def replace(
        self,
        *,
        status_code: int | None = None,
        headers: Mapping[str, str] | httpx.Headers | None = None,
        content: bytes | str | Body | None = UNSET,
    ) -> "Response":
        """Build a replacement response, handing over the body."""
        return Response(
            self.status_code if status_code is None else status_code,
            headers=self.headers.copy() if headers is None else headers,
            content=self.body if content is UNSET else content,
            url=self.url,
        )

    def __repr__(self) -> str:
        return f"<Response [{self.status_code}] {self.url}>"
