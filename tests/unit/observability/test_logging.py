"""Unit tests for structured logging setup."""

from __future__ import annotations

import io
import json
import logging

import pytest

from flexlm_options.observability.logging import (
    DEFAULT_LOGGER_NAME,
    configure_logging,
    get_logger,
)


@pytest.fixture(autouse=True)
def _restore_package_logger():
    yield
    configure_logging("WARNING", stream=io.StringIO())


@pytest.mark.unit
def test_json_lines_carry_event_and_fields() -> None:
    stream = io.StringIO()
    configure_logging("INFO", json_output=True, stream=stream)

    get_logger("flexlm_options.tests").info("license_file_parsed", products=3, names=("a", "b"))

    (line,) = stream.getvalue().splitlines()
    event = json.loads(line)
    assert event["message"] == "license_file_parsed"
    assert event["level"] == "INFO"
    assert event["logger"] == "flexlm_options.tests"
    assert event["fields"] == {"products": 3, "names": ["a", "b"]}
    assert event["timestamp"].endswith("Z")


@pytest.mark.unit
def test_console_lines_and_level_filtering() -> None:
    stream = io.StringIO()
    configure_logging("WARNING", stream=stream)
    log = get_logger("flexlm_options.tests")

    log.info("hidden")
    log.warning("shown", reason="x")

    assert stream.getvalue() == 'WARNING flexlm_options.tests: shown reason="x"\n'


@pytest.mark.unit
def test_reconfiguring_replaces_handler() -> None:
    configure_logging("INFO", stream=io.StringIO())
    logger = configure_logging("DEBUG", stream=io.StringIO())

    marked = [h for h in logger.handlers if getattr(h, "_flexlm_options_handler", False)]
    assert len(marked) == 1
    assert logger.name == DEFAULT_LOGGER_NAME
    assert logger.level == logging.DEBUG
    assert not logger.propagate


@pytest.mark.unit
def test_unknown_level_rejected() -> None:
    with pytest.raises(ValueError, match="unsupported logging level"):
        configure_logging("LOUD")
