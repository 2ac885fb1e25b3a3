import pytest

from monitoring_sdk.exceptions import BodyConsumedError
from monitoring_sdk.messages import Body
from monitoring_sdk.messages import Request
from monitoring_sdk.messages import Response


class TestBody:
    def test_read_consumes(self):
        body = Body(b"abc")

        assert body.read() == b"abc"
        assert body.consumed
        with pytest.raises(BodyConsumedError):
            body.read()

    def test_clone_is_independent(self):
        body = Body(b"abc")
        copy = body.clone()

        assert copy.read() == b"abc"
        assert not body.consumed
        assert body.read() == b"abc"

    def test_clone_after_read_fails(self):
        body = Body(b"abc")
        body.read()

        with pytest.raises(BodyConsumedError):
            body.clone()


class TestRequest:
    def test_json_body_sets_content_type(self):
        request = Request("post", "https://api.test/x", json={"a": [1, 2]})

        assert request.method == "POST"
        assert request.headers["content-type"] == "application/json"
        assert request.json() == {"a": [1, 2]}
        assert request.body_used

    def test_explicit_content_type_is_kept(self):
        request = Request(
            "POST",
            "https://api.test/x",
            headers={"Content-Type": "application/merge-patch+json"},
            json={},
        )

        assert request.headers["Content-Type"] == "application/merge-patch+json"

    def test_request_without_body(self):
        request = Request("GET", "https://api.test/x")

        assert request.body is None
        assert not request.body_used
        assert request.read() == b""

    def test_json_none_is_sent_as_null(self):
        request = Request("PUT", "https://api.test/x", json=None)

        assert request.headers["content-type"] == "application/json"
        assert request.read() == b"null"

    def test_headers_are_case_insensitive(self):
        request = Request("GET", "https://api.test/x", headers={"X-Trace": "1"})

        assert request.headers["x-trace"] == "1"

    def test_clone_duplicates_body_and_headers(self):
        request = Request("POST", "https://api.test/x", content="hello")
        copy = request.clone()
        copy.headers["x-extra"] = "1"

        assert copy.text() == "hello"
        assert request.text() == "hello"
        assert "x-extra" not in request.headers

    def test_with_headers_returns_new_request(self):
        request = Request("GET", "https://api.test/x", headers={"a": "1"})
        updated = request.with_headers({"b": "2"})

        assert updated is not request
        assert dict(updated.headers) == {"a": "1", "b": "2"}
        assert "b" not in request.headers

    def test_replace_hands_over_body(self):
        request = Request("POST", "https://api.test/x", content=b"data")
        replaced = request.replace(url="https://api.test/y")

        assert replaced.url == "https://api.test/y"
        assert replaced.method == "POST"
        assert replaced.body is request.body
        assert replaced.read() == b"data"

    def test_replace_with_new_content(self):
        request = Request("POST", "https://api.test/x", content=b"old")
        replaced = request.replace(content=b"new")

        assert replaced.read() == b"new"
        assert request.read() == b"old"


class TestResponse:
    def test_ok_and_reason_phrase(self):
        assert Response(204).ok
        assert not Response(404).ok
        assert Response(404).reason_phrase == "Not Found"
        assert Response(599).reason_phrase == ""

    def test_clone_before_read(self):
        response = Response(200, content=b'{"status": "success"}')
        peek = response.clone()

        assert peek.json() == {"status": "success"}
        assert response.json() == {"status": "success"}

    def test_double_read_fails(self):
        response = Response(200, content=b"x")
        response.text()

        with pytest.raises(BodyConsumedError):
            response.text()
        with pytest.raises(BodyConsumedError):
            response.clone()

    def test_replace_status_keeps_body_and_url(self):
        response = Response(500, content=b"err", url="https://api.test/x")
        replaced = response.replace(status_code=200)

        assert replaced.status_code == 200
        assert replaced.url == "https://api.test/x"
        assert replaced.text() == "err"
