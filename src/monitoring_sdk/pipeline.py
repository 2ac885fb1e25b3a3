"""
Middleware pipeline for MonitoringClient.

The pipeline applies every registered middleware around a single call:

    on_request:  M1 -> M2 -> M3 -> transport
    on_response: M3 -> M2 -> M1 -> caller

A hook returning None leaves the message as it is and the chain moves on.
A hook raising aborts the chain and the exception reaches the caller unchanged.

The registered sequence is an immutable tuple swapped on every `use`/`eject`,
so a dispatch already in flight keeps the sequence it started with.
"""

import inspect
import logging
from typing import Any
from typing import Awaitable
from typing import Callable
from typing import Iterator
from typing import Sequence

from monitoring_sdk.exceptions import InvalidMiddlewareResult
from monitoring_sdk.messages import Request
from monitoring_sdk.messages import Response
from monitoring_sdk.middleware import Middleware
from monitoring_sdk.middleware import MiddlewareContext

logger = logging.getLogger("monitoring_sdk.pipeline")

Send = Callable[[Request], Awaitable[Response]]


async def _call_hook(hook: Callable[..., Any], message: Any, context: MiddlewareContext) -> Any:
    result = hook(message, context)
    if inspect.isawaitable(result):
        result = await result
    return result


class MiddlewarePipeline:
    """
    Ordered chain of middleware applied to every outbound call.

    Args:
        middlewares (Sequence[Middleware] | None): Initial middleware, in order

    Example:
        pipeline = MiddlewarePipeline([AuthMiddleware(provider)])
        pipeline.use(LoggingMiddleware())
        response = await pipeline.dispatch(request, context, transport.send)
    """

    def __init__(self, middlewares: Sequence[Middleware] | None = None):
        self._middlewares: tuple[Middleware, ...] = tuple(middlewares or ())

    @property
    def middlewares(self) -> tuple[Middleware, ...]:
        return self._middlewares

    def __len__(self) -> int:
        return len(self._middlewares)

    def __iter__(self) -> Iterator[Middleware]:
        return iter(self._middlewares)

    def use(self, *middlewares: Middleware) -> None:
        """Append middleware to the end of the chain. Duplicates are allowed."""
        self._middlewares = self._middlewares + middlewares
        for mw in middlewares:
            logger.debug(f"Registered middleware {type(mw).__name__}")

    def eject(self, *middlewares: Middleware) -> None:
        """
        Remove the first registration of each given middleware.

        Matching is by identity. A middleware registered twice has to be
        ejected twice. Ejecting something that is not registered does nothing.
        """
        current = list(self._middlewares)
        for mw in middlewares:
            for index, registered in enumerate(current):
                if registered is mw:
                    del current[index]
                    logger.debug(f"Ejected middleware {type(mw).__name__}")
                    break
        self._middlewares = tuple(current)

    async def dispatch(
        self,
        request: Request,
        context: MiddlewareContext,
        send: Send,
    ) -> Response:
        """
        Run request hooks, the transport call, then response hooks in reverse.

        Args:
            request (Request): Outgoing request
            context (MiddlewareContext): Call metadata shared by all hooks
            send (Send): Transport collaborator issuing the final request

        Returns:
            Response: The response after all response hooks ran

        Raises:
            InvalidMiddlewareResult: If a hook returns something other than a replacement or None
            Exception: Whatever a hook or the transport raised, unchanged
        """
        middlewares = self._middlewares

        for mw in middlewares:
            hook = getattr(mw, "on_request", None)
            if hook is None:
                continue
            result = await _call_hook(hook, request, context)
            if result is None:
                continue
            if not isinstance(result, Request):
                raise InvalidMiddlewareResult(
                    f"{type(mw).__name__}.on_request must return a Request or None, "
                    f"got {type(result).__name__}"
                )
            request = result

        logger.debug(f"Sending {request.method} {request.url} [{context.request_id}]")
        response = await send(request)

        for mw in reversed(middlewares):
            hook = getattr(mw, "on_response", None)
            if hook is None:
                continue
            result = await _call_hook(hook, response, context)
            if result is None:
                continue
            if not isinstance(result, Response):
                raise InvalidMiddlewareResult(
                    f"{type(mw).__name__}.on_response must return a Response or None, "
                    f"got {type(result).__name__}"
                )
            response = result

        return response
