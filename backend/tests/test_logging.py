"""
Tests for structured logging helpers.
"""
from loguru import logger

from artpalette.utils.ids import generate_request_id
from artpalette.utils.logging import StructuredLogger, get_logger


class TestStructuredLogger:
    """Test extra binding and stage timing"""

    def _capture(self):
        records = []
        sink_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
        return records, sink_id

    def test_extra_is_bound(self):
        log = StructuredLogger(level="DEBUG")
        records, sink_id = self._capture()

        log.info("hello", extra={"request_id": "pal-1"})
        logger.remove(sink_id)

        assert records[-1]["message"] == "hello"
        assert records[-1]["extra"]["request_id"] == "pal-1"

    def test_stage_records_timing(self):
        log = StructuredLogger(level="DEBUG")
        records, sink_id = self._capture()

        with log.stage("decode", "pal-2") as fields:
            fields["bytes"] = 10
        logger.remove(sink_id)

        extra = records[-1]["extra"]
        assert extra["request_id"] == "pal-2"
        assert extra["bytes"] == 10
        assert extra["ms_decode"] >= 0.0

    def test_get_logger_is_singleton(self):
        assert get_logger() is get_logger()


def test_request_id_format():
    request_id = generate_request_id("room")
    prefix, timestamp, suffix = request_id.split("-")
    assert prefix == "room"
    assert timestamp.isdigit() and len(timestamp) == 14
    assert len(suffix) == 8
