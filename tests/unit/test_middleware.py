"""
Unit tests for the middleware pipeline and access logging.
"""

import json
import logging

import pytest

from webcache.http import HTTPRequest, HTTPResponse, ResponseBuilder
from webcache.middleware import LoggingMiddleware, Middleware, MiddlewarePipeline


def make_request(path: str = "/style.css") -> HTTPRequest:
    return HTTPRequest(
        method="GET",
        path=path,
        headers={"user-agent": "pytest"},
        client_address=("10.0.0.7", 51234),
    )


def ok_handler(request: HTTPRequest) -> HTTPResponse:
    return ResponseBuilder().body(b"hello").build()


class Recorder(Middleware):
    """Appends its tag on the way in and on the way out."""

    def __init__(self, tag: str, calls: list):
        self.tag = tag
        self.calls = calls

    def __call__(self, request, next):
        self.calls.append(f"{self.tag}:in")
        response = next(request)
        self.calls.append(f"{self.tag}:out")
        return response


class TestMiddlewarePipeline:
    """Tests for MiddlewarePipeline."""

    def test_first_added_is_outermost(self):
        calls = []
        pipeline = MiddlewarePipeline().add(Recorder("a", calls)).add(Recorder("b", calls))

        pipeline.wrap(ok_handler)(make_request())

        assert calls == ["a:in", "b:in", "b:out", "a:out"]

    def test_empty_pipeline_is_handler(self):
        pipeline = MiddlewarePipeline()

        assert len(pipeline) == 0
        assert pipeline.wrap(ok_handler)(make_request()).body == b"hello"

    def test_iteration_and_names(self):
        pipeline = MiddlewarePipeline().add(LoggingMiddleware())

        assert [m.name for m in pipeline] == ["LoggingMiddleware"]


class TestLoggingMiddleware:
    """Tests for LoggingMiddleware."""

    def test_adds_request_id(self):
        response = LoggingMiddleware()(make_request(), ok_handler)

        assert len(response.headers["X-Request-ID"]) == 8

    def test_request_id_optional(self):
        response = LoggingMiddleware(include_request_id=False)(make_request(), ok_handler)
        assert "X-Request-ID" not in response.headers

    def test_text_log_line(self, caplog):
        with caplog.at_level(logging.INFO, logger="webcache.access"):
            LoggingMiddleware()(make_request(), ok_handler)

        [record] = caplog.records
        assert record.name == "webcache.access"
        assert '"GET /style.css" 200 5' in record.getMessage()
        assert record.getMessage().startswith("10.0.0.7 - - [")

    def test_redirect_target_logged(self, caplog):
        def redirect_handler(request):
            return ResponseBuilder().redirect("/error/404").build()

        with caplog.at_level(logging.INFO, logger="webcache.access"):
            LoggingMiddleware()(make_request("/nope"), redirect_handler)

        assert caplog.records[0].getMessage().endswith("-> /error/404")

    def test_json_log_line(self, caplog):
        with caplog.at_level(logging.INFO, logger="webcache.access"):
            response = LoggingMiddleware(log_format="json")(make_request(), ok_handler)

        entry = json.loads(caplog.records[0].getMessage())
        assert entry["request_id"] == response.headers["X-Request-ID"]
        assert entry["method"] == "GET"
        assert entry["path"] == "/style.css"
        assert entry["status_code"] == 200
        assert entry["content_length"] == 5
        assert entry["user_agent"] == "pytest"
        assert "location" not in entry

    def test_skip_paths(self, caplog):
        with caplog.at_level(logging.INFO, logger="webcache.access"):
            LoggingMiddleware(skip_paths=["/style.css"])(make_request(), ok_handler)

        assert caplog.records == []

    def test_failure_is_logged_and_raised(self, caplog):
        def broken(request):
            raise RuntimeError("boom")

        with caplog.at_level(logging.INFO, logger="webcache.access"):
            with pytest.raises(RuntimeError):
                LoggingMiddleware()(make_request(), broken)

        assert caplog.records[0].levelno == logging.ERROR
        assert "RuntimeError: boom" in caplog.records[0].getMessage()
