"""Unit tests for the structlog configuration."""

from __future__ import annotations

import io
import json
import logging

import pytest

from docaugment.utils.logging import configure_logging, get_logger, operation_context


@pytest.fixture()
def restore_logging(quiet_logging: io.StringIO):
    yield
    configure_logging(log_level="WARNING", stream=quiet_logging)


class TestConfigureLogging:
    def test_json_lines_to_stream(self, restore_logging) -> None:
        buffer = io.StringIO()
        configure_logging(log_level="INFO", json_output=True, stream=buffer)

        get_logger("docaugment.sample").info("sample_event", document_id=3)

        record = json.loads(buffer.getvalue().strip().splitlines()[-1])
        assert record["event"] == "sample_event"
        assert record["document_id"] == 3
        assert record["level"] == "info"
        assert record["logger_name"] == "docaugment.sample"
        assert "timestamp" in record

    def test_level_filtering(self, restore_logging) -> None:
        buffer = io.StringIO()
        configure_logging(log_level="WARNING", json_output=True, stream=buffer)

        log = get_logger("docaugment.filtered")
        log.info("hidden_event")
        log.warning("shown_event")

        output = buffer.getvalue()
        assert "hidden_event" not in output
        assert "shown_event" in output

    def test_sdk_request_lines_hidden_below_debug(self, restore_logging) -> None:
        buffer = io.StringIO()
        configure_logging(log_level="INFO", json_output=True, stream=buffer)

        logging.getLogger("httpx").info("HTTP Request: POST /v1/embeddings")
        logging.getLogger("httpx").warning("connection reset")

        output = buffer.getvalue()
        assert "HTTP Request" not in output
        assert "connection reset" in output

    def test_sdk_request_lines_shown_when_debugging(self, restore_logging) -> None:
        buffer = io.StringIO()
        configure_logging(log_level="DEBUG", json_output=True, stream=buffer)

        logging.getLogger("openai").info("HTTP Request: POST /v1/chat/completions")

        assert "HTTP Request" in buffer.getvalue()


class TestOperationContext:
    def test_ids_bound_inside_block_only(self, restore_logging) -> None:
        buffer = io.StringIO()
        configure_logging(log_level="INFO", json_output=True, stream=buffer)
        log = get_logger("docaugment.context")

        with operation_context("summarize", document_id=7, user_id=None):
            log.info("inside_event")
        log.info("outside_event")

        inside, outside = (json.loads(line) for line in buffer.getvalue().strip().splitlines())
        assert inside["operation"] == "summarize"
        assert inside["document_id"] == 7
        assert "user_id" not in inside
        assert "operation" not in outside
        assert "document_id" not in outside
