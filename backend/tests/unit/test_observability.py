"""Request id propagation and metrics path normalization."""

import logging

from drivebook.core.request_context import (
    NO_REQUEST,
    RequestIdLogFilter,
    bind_request_id,
    current_request_id,
    unbind_request_id,
)
from drivebook.middleware.prometheus_middleware import normalize_path
from drivebook.monitoring.prometheus_metrics import prometheus_metrics


class TestNormalizePath:
    def test_ulids_are_collapsed(self):
        path = "/api/v1/instructors/01ARZ3NDEKTSV4RRFFQ69G5FAV/slots"
        assert normalize_path(path) == "/api/v1/instructors/:id/slots"

    def test_numbers_are_collapsed(self):
        assert normalize_path("/items/42") == "/items/:id"

    def test_plain_segments_untouched(self):
        assert normalize_path("/api/v1/appointments/student") == "/api/v1/appointments/student"


class TestRequestContext:
    def test_bind_and_unbind(self):
        token = bind_request_id("req-1")
        try:
            assert current_request_id() == "req-1"
        finally:
            unbind_request_id(token)
        assert current_request_id() is None
        assert current_request_id(NO_REQUEST) == "-"

    def test_filter_stamps_records(self):
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        token = bind_request_id("req-2")
        try:
            assert RequestIdLogFilter().filter(record)
        finally:
            unbind_request_id(token)
        assert record.request_id == "req-2"

    def test_filter_outside_a_request(self):
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        RequestIdLogFilter().filter(record)
        assert record.request_id == NO_REQUEST


def test_metrics_payload_contains_domain_counters():
    prometheus_metrics.inc_slot_booking_conflict("already_booked")
    payload = prometheus_metrics.get_metrics().decode("utf-8")
    assert "drivebook_slot_booking_conflicts_total" in payload
    assert 'reason="already_booked"' in payload
    assert prometheus_metrics.get_content_type().startswith("text/plain")
