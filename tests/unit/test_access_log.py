"""
Unit tests for access log records.
"""

import json
import logging
import time

import pytest

from staticserver.access_log import RequestLog, log_access, make_record


@pytest.fixture
def record() -> RequestLog:
    return RequestLog(
        connection_id="a1b2c3d4",
        client_ip="127.0.0.1",
        method="GET",
        path="/index.html",
        status_code=200,
        content_length=1234,
        duration_ms=5.236,
        timestamp="10/Jun/2024:10:55:36 +0000",
    )


class TestRequestLog:

    def test_to_text(self, record: RequestLog):
        assert record.to_text() == (
            '127.0.0.1 - - [10/Jun/2024:10:55:36 +0000] "GET /index.html" 200 1234 5.24ms'
        )

    def test_to_dict(self, record: RequestLog):
        data = record.to_dict()

        assert data["connection_id"] == "a1b2c3d4"
        assert data["status_code"] == 200
        assert data["duration_ms"] == 5.24

    def test_json_format(self, record: RequestLog):
        assert json.loads(record.format("json")) == record.to_dict()

    def test_text_is_default(self, record: RequestLog):
        assert record.format() == record.to_text()


class TestMakeRecord:

    def test_unparsed_request_uses_dash(self):
        record = make_record("id", "10.0.0.1", None, None, 400, 0, time.time())

        assert record.method == "-"
        assert record.path == "-"
        assert '"- -" 400 0' in record.to_text()

    def test_duration_measured(self):
        record = make_record("id", "10.0.0.1", "GET", "/", 200, 5, time.time() - 0.5)

        assert record.duration_ms >= 500


def test_log_access_emits_one_line(record: RequestLog, caplog: pytest.LogCaptureFixture):
    with caplog.at_level(logging.INFO, logger="staticserver.access"):
        log_access(record, "json")

    assert len(caplog.records) == 1
    assert json.loads(caplog.records[0].getMessage())["path"] == "/index.html"
