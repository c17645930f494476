"""Test structlog configuration."""

import json
from collections.abc import Iterator

import pytest
import structlog

from repokit.core.config import Settings
from repokit.core.logging import configure_logging, get_logger


@pytest.fixture(autouse=True)
def reset_structlog() -> Iterator[None]:
    yield
    structlog.reset_defaults()


def test_json_output_carries_app_context(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(Settings(log_format="json", log_level="INFO", environment="testing"))

    get_logger("repokit.test").info("Entity stored", model="Author", entity_id=1)

    line = capsys.readouterr().out.strip().splitlines()[-1]
    entry = json.loads(line)
    assert entry["event"] == "Entity stored"
    assert entry["model"] == "Author"
    assert entry["level"] == "info"
    assert entry["environment"] == "testing"
    assert entry["service"] == "repokit"
    assert "timestamp" in entry


def test_level_filtering(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(Settings(log_format="json", log_level="WARNING"))

    logger = get_logger("repokit.test")
    logger.debug("hidden")
    logger.warning("shown")

    out = capsys.readouterr().out
    assert "hidden" not in out
    assert "shown" in out


def test_json_output_serializes_exceptions(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(Settings(log_format="json", log_level="INFO"))

    try:
        raise RuntimeError("boom")
    except RuntimeError as exc:
        get_logger("repokit.test").error("Query failed", exc_info=exc)

    entry = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert entry["exception"][0]["exc_type"] == "RuntimeError"
    assert entry["exception"][0]["exc_value"] == "boom"


def test_console_renderer_in_development(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(Settings(log_format="console", environment="development"))

    get_logger("repokit.test").info("console line")

    out = capsys.readouterr().out
    assert "console line" in out
    with pytest.raises(json.JSONDecodeError):
        json.loads(out.strip().splitlines()[-1])
