"""
Tests for the middleware pipeline.

This module tests the dispatch contract including:
- Forward order for request hooks, reverse order for response hooks
- Skip semantics of hooks returning None
- Replacement of requests and responses
- Abort on errors raised by hooks or the transport
- Registration and removal, including during an in-flight dispatch
- Single-consumption bodies passing through the chain
"""

import asyncio

import httpx
import pytest

from monitoring_sdk.exceptions import BodyConsumedError
from monitoring_sdk.exceptions import InvalidMiddlewareResult
from monitoring_sdk.messages import Request
from monitoring_sdk.pipeline import MiddlewarePipeline
from tests.fakes import MockTransport
from tests.fakes import RecordingMiddleware
from tests.fakes import json_response
from tests.fakes import make_context
from tests.fakes import make_request


class HookError(Exception):
    pass


@pytest.mark.asyncio
async def test_request_hooks_run_forward_and_response_hooks_in_reverse():
    log = []
    transport = MockTransport()
    pipeline = MiddlewarePipeline(
        [RecordingMiddleware(name, log) for name in ("m1", "m2", "m3")]
    )

    await pipeline.dispatch(make_request(), make_context(), transport.send)

    assert log == [
        "request:m1",
        "request:m2",
        "request:m3",
        "response:m3",
        "response:m2",
        "response:m1",
    ]
    assert transport.request_count == 1


@pytest.mark.asyncio
async def test_empty_pipeline_passes_request_and_response_through():
    transport = MockTransport(lambda call: json_response(200, {"ok": True}))
    pipeline = MiddlewarePipeline()

    response = await pipeline.dispatch(
        make_request("POST", json={"a": 1}), make_context(), transport.send
    )

    assert response.json() == {"ok": True}
    assert transport.last_call["body"] == b'{"a": 1}'


@pytest.mark.asyncio
async def test_no_change_keeps_previous_request_and_next_stage_runs():
    seen = []

    class Skip:
        def on_request(self, request, context):
            return None

    class Inspect:
        def on_request(self, request, context):
            seen.append(request)

    original = make_request("POST", json={"x": 1})
    transport = MockTransport()
    pipeline = MiddlewarePipeline([Skip(), Inspect()])

    await pipeline.dispatch(original, make_context(), transport.send)

    assert seen == [original]
    assert seen[0] is original
    assert transport.last_call["body"] == b'{"x": 1}'


@pytest.mark.asyncio
async def test_header_set_by_first_middleware_reaches_transport():
    observed = {}

    class SetHeader:
        async def on_request(self, request, context):
            return request.with_headers({"foo": "bar"})

    class ReadHeaders:
        async def on_request(self, request, context):
            observed["foo"] = request.headers.get("foo")

    transport = MockTransport()
    pipeline = MiddlewarePipeline([SetHeader(), ReadHeaders()])

    await pipeline.dispatch(make_request(), make_context(), transport.send)

    assert observed["foo"] == "bar"
    assert transport.last_call["headers"]["foo"] == "bar"


@pytest.mark.asyncio
async def test_first_registered_response_change_dominates():
    seen_by_b = []

    class ForceOk:
        async def on_response(self, response, context):
            return response.replace(status_code=200)

    class NoChange:
        async def on_response(self, response, context):
            seen_by_b.append(response.status_code)
            return None

    transport = MockTransport(lambda call: json_response(503, {"message": "down"}))
    pipeline = MiddlewarePipeline()
    pipeline.use(ForceOk())
    pipeline.use(NoChange())

    response = await pipeline.dispatch(make_request(), make_context(), transport.send)

    # B ran first and saw the raw status, A ran last
    assert seen_by_b == [503]
    assert response.status_code == 200
    assert response.json() == {"message": "down"}


@pytest.mark.asyncio
async def test_replacement_request_is_seen_by_later_hooks_and_transport():
    class Rewrite:
        def on_request(self, request, context):
            return request.replace(method="PUT", params={"page": "2"})

    transport = MockTransport()
    pipeline = MiddlewarePipeline([Rewrite()])

    await pipeline.dispatch(make_request(), make_context(), transport.send)

    assert transport.last_call["method"] == "PUT"
    assert transport.last_call["params"] == {"page": "2"}


@pytest.mark.asyncio
async def test_request_hook_error_prevents_transport_call():
    log = []

    class Fail:
        async def on_request(self, request, context):
            raise HookError("nope")

    transport = MockTransport()
    pipeline = MiddlewarePipeline(
        [RecordingMiddleware("m1", log), Fail(), RecordingMiddleware("m3", log)]
    )

    with pytest.raises(HookError, match="nope"):
        await pipeline.dispatch(make_request(), make_context(), transport.send)

    assert transport.request_count == 0
    assert log == ["request:m1"]


@pytest.mark.asyncio
async def test_response_hook_error_aborts_remaining_response_hooks():
    log = []

    class Fail:
        async def on_response(self, response, context):
            raise HookError("bad response")

    transport = MockTransport()
    pipeline = MiddlewarePipeline(
        [RecordingMiddleware("m1", log), Fail(), RecordingMiddleware("m3", log)]
    )

    with pytest.raises(HookError, match="bad response"):
        await pipeline.dispatch(make_request(), make_context(), transport.send)

    assert transport.request_count == 1
    assert log == ["request:m1", "request:m3", "response:m3"]


@pytest.mark.asyncio
async def test_transport_error_propagates_without_response_hooks():
    log = []

    def handler(call):
        raise httpx.ConnectError("connection refused")

    pipeline = MiddlewarePipeline([RecordingMiddleware("m1", log)])

    with pytest.raises(httpx.ConnectError):
        await pipeline.dispatch(make_request(), make_context(), MockTransport(handler).send)

    assert log == ["request:m1"]


@pytest.mark.asyncio
async def test_cancelled_transport_skips_response_hooks():
    log = []
    started = asyncio.Event()

    async def hang(request):
        started.set()
        await asyncio.Event().wait()

    pipeline = MiddlewarePipeline([RecordingMiddleware("m1", log)])
    task = asyncio.create_task(pipeline.dispatch(make_request(), make_context(), hang))
    await started.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert log == ["request:m1"]


@pytest.mark.asyncio
async def test_sync_and_async_hooks_can_be_mixed():
    class SyncHeader:
        def on_request(self, request, context):
            return request.with_headers({"x-sync": "1"})

    class AsyncHeader:
        async def on_request(self, request, context):
            await asyncio.sleep(0)
            return request.with_headers({"x-async": "1"})

    transport = MockTransport()
    pipeline = MiddlewarePipeline([SyncHeader(), AsyncHeader()])

    await pipeline.dispatch(make_request(), make_context(), transport.send)

    assert transport.last_call["headers"]["x-sync"] == "1"
    assert transport.last_call["headers"]["x-async"] == "1"


@pytest.mark.asyncio
async def test_middleware_with_only_one_hook():
    log = []

    class OnlyResponse:
        def on_response(self, response, context):
            log.append("response")

    class OnlyRequest:
        def on_request(self, request, context):
            log.append("request")

    pipeline = MiddlewarePipeline([OnlyResponse(), OnlyRequest()])
    await pipeline.dispatch(make_request(), make_context(), MockTransport().send)

    assert log == ["request", "response"]


@pytest.mark.asyncio
async def test_invalid_request_hook_result_raises_type_error():
    class Bad:
        def on_request(self, request, context):
            return {"headers": {}}

    transport = MockTransport()
    pipeline = MiddlewarePipeline([Bad()])

    with pytest.raises(InvalidMiddlewareResult, match="Bad.on_request"):
        await pipeline.dispatch(make_request(), make_context(), transport.send)

    assert transport.request_count == 0
    assert issubclass(InvalidMiddlewareResult, TypeError)


@pytest.mark.asyncio
async def test_invalid_response_hook_result_raises_type_error():
    class Bad:
        def on_response(self, response, context):
            return make_request()

    pipeline = MiddlewarePipeline([Bad()])

    with pytest.raises(InvalidMiddlewareResult, match="must return a Response"):
        await pipeline.dispatch(make_request(), make_context(), MockTransport().send)


@pytest.mark.asyncio
async def test_context_is_shared_by_all_hooks():
    contexts = []

    class Capture:
        def on_request(self, request, context):
            contexts.append(context)

        def on_response(self, response, context):
            contexts.append(context)

    context = make_context("/v2/monitoring/alerts/{alert_uuid}", alert_uuid="abc")
    pipeline = MiddlewarePipeline([Capture(), Capture()])
    await pipeline.dispatch(make_request(), context, MockTransport().send)

    assert len(contexts) == 4
    assert all(c is context for c in contexts)


class TestRegistration:
    def test_use_appends_in_order(self):
        a, b, c = object(), object(), object()
        pipeline = MiddlewarePipeline([a])
        pipeline.use(b, c)

        assert pipeline.middlewares == (a, b, c)
        assert len(pipeline) == 3
        assert list(pipeline) == [a, b, c]

    def test_eject_removes_middleware(self):
        a, b, c = object(), object(), object()
        pipeline = MiddlewarePipeline([a, b, c])

        pipeline.eject(b)

        assert pipeline.middlewares == (a, c)

    def test_eject_unregistered_is_noop(self):
        a = object()
        pipeline = MiddlewarePipeline([a])

        pipeline.eject(object())

        assert pipeline.middlewares == (a,)

    def test_eject_removes_only_first_occurrence(self):
        a, b = object(), object()
        pipeline = MiddlewarePipeline([a, b, a])

        pipeline.eject(a)
        assert pipeline.middlewares == (b, a)

        pipeline.eject(a)
        assert pipeline.middlewares == (b,)

    def test_eject_matches_by_identity(self):
        class AlwaysEqual:
            def __eq__(self, other):
                return True

            __hash__ = object.__hash__

        first, second = AlwaysEqual(), AlwaysEqual()
        pipeline = MiddlewarePipeline([first, second])

        pipeline.eject(second)

        assert pipeline.middlewares[0] is first
        assert len(pipeline) == 1


@pytest.mark.asyncio
async def test_duplicate_registration_runs_twice():
    log = []
    mw = RecordingMiddleware("dup", log)
    pipeline = MiddlewarePipeline()
    pipeline.use(mw)
    pipeline.use(mw)

    await pipeline.dispatch(make_request(), make_context(), MockTransport().send)
    assert log.count("request:dup") == 2
    assert log.count("response:dup") == 2

    log.clear()
    pipeline.eject(mw)
    await pipeline.dispatch(make_request(), make_context(), MockTransport().send)
    assert log == ["request:dup", "response:dup"]


@pytest.mark.asyncio
async def test_eject_between_dispatches_affects_later_dispatches():
    log = []
    m1, m2 = RecordingMiddleware("m1", log), RecordingMiddleware("m2", log)
    pipeline = MiddlewarePipeline([m1, m2])
    transport = MockTransport()

    await pipeline.dispatch(make_request(), make_context(), transport.send)
    pipeline.eject(m1)
    log.clear()
    await pipeline.dispatch(make_request(), make_context(), transport.send)

    assert log == ["request:m2", "response:m2"]


@pytest.mark.asyncio
async def test_in_flight_dispatch_keeps_its_snapshot():
    log = []
    entered = asyncio.Event()
    release = asyncio.Event()

    class Blocking:
        async def on_request(self, request, context):
            log.append("request:blocking")
            entered.set()
            await release.wait()

    later = RecordingMiddleware("later", log)
    added = RecordingMiddleware("added", log)
    pipeline = MiddlewarePipeline([Blocking(), later])
    transport = MockTransport()

    task = asyncio.create_task(
        pipeline.dispatch(make_request(), make_context(), transport.send)
    )
    await entered.wait()
    pipeline.eject(later)
    pipeline.use(added)
    release.set()
    await task

    assert log == ["request:blocking", "request:later", "response:later"]

    log.clear()
    await pipeline.dispatch(make_request(), make_context(), transport.send)
    assert log == ["request:blocking", "request:added", "response:added"]


@pytest.mark.asyncio
async def test_concurrent_dispatches_share_pipeline():
    transport = MockTransport(
        lambda call: json_response(200, {"path": call["url"]})
    )
    pipeline = MiddlewarePipeline([RecordingMiddleware("m", [])])

    responses = await asyncio.gather(
        *(
            pipeline.dispatch(
                make_request(path=f"/v2/monitoring/alerts/{i}"),
                make_context(),
                transport.send,
            )
            for i in range(5)
        )
    )

    assert [r.json()["path"] for r in responses] == [
        f"https://api.test/v2/monitoring/alerts/{i}" for i in range(5)
    ]


class TestBodies:
    @pytest.mark.asyncio
    async def test_hook_reading_without_clone_breaks_transport_read(self):
        class Greedy:
            def on_request(self, request, context):
                request.json()

        pipeline = MiddlewarePipeline([Greedy()])

        with pytest.raises(BodyConsumedError):
            await pipeline.dispatch(
                make_request("POST", json={"a": 1}), make_context(), MockTransport().send
            )

    @pytest.mark.asyncio
    async def test_hook_reading_a_clone_keeps_body_for_transport(self):
        peeked = []

        class Peek:
            def on_request(self, request, context):
                peeked.append(request.clone().json())

        transport = MockTransport()
        pipeline = MiddlewarePipeline([Peek()])

        await pipeline.dispatch(
            make_request("POST", json={"a": 1}), make_context(), transport.send
        )

        assert peeked == [{"a": 1}]
        assert transport.last_call["body"] == b'{"a": 1}'

    @pytest.mark.asyncio
    async def test_response_body_read_twice_without_clone_fails(self):
        class Greedy:
            def on_response(self, response, context):
                response.read()

        pipeline = MiddlewarePipeline([Greedy()])
        response = await pipeline.dispatch(
            make_request(), make_context(), MockTransport().send
        )

        assert response.body_used
        with pytest.raises(BodyConsumedError):
            response.json()

    @pytest.mark.asyncio
    async def test_pipeline_does_not_touch_bodies(self):
        request = Request("POST", "https://api.test/x", content=b"payload")
        captured = []

        async def send(req):
            captured.append(req)
            return json_response(200, {"k": "v"})

        response = await MiddlewarePipeline().dispatch(request, make_context(), send)

        assert captured[0] is request
        assert not request.body_used
        assert not response.body_used
