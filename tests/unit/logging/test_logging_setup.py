import json
import logging
import sys

import pytest
from pydantic import ValidationError

from strata.logging import (
    LoggerFactory,
    LoggerFactoryProtocol,
    LoggingSettings,
    LogLevel,
    StructuredFormatter,
    configure_logging,
    current_log_context,
    get_logger,
    log_context,
)


def _record(msg="hello %s", args=("world",), exc_info=None, **extra):
    record = logging.LogRecord(
        name="strata.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=args,
        exc_info=exc_info,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def _strata_handlers():
    return [
        handler
        for handler in logging.getLogger("strata").handlers
        if getattr(handler, "_strata_handler", False)
    ]


@pytest.mark.parametrize(
    "env,expected",
    [
        ({}, LoggingSettings()),
        ({"LEVEL": "debug"}, LoggingSettings(level="DEBUG")),
        ({"JSON_FORMAT": "true"}, LoggingSettings(json_format=True)),
        ({"INCLUDE_TIMESTAMP": "false"}, LoggingSettings(include_timestamp=False)),
        ({"CONSOLE_ENABLED": "false"}, LoggingSettings(console_enabled=False)),
        (
            {"FILE_ENABLED": "true", "FILE_PATH": "/tmp/strata.log"},
            LoggingSettings(file_enabled=True, file_path="/tmp/strata.log"),
        ),
        ({"PROPAGATE": "false"}, LoggingSettings(propagate=False)),
    ],
)
def test_logging_settings_env(monkeypatch, env, expected):
    for key, value in env.items():
        monkeypatch.setenv(f"STRATA_LOGGING_{key}", value)

    settings = LoggingSettings.load()

    for field in LoggingSettings.model_fields:
        assert getattr(settings, field) == getattr(expected, field)


def test_logging_settings_rejects_unknown_level(monkeypatch):
    monkeypatch.setenv("STRATA_LOGGING_LEVEL", "LOUD")

    with pytest.raises(ValidationError):
        LoggingSettings.load()


def test_log_level_conversions():
    assert LogLevel.from_string(" warning ") is LogLevel.WARNING
    assert LogLevel.ERROR.to_stdlib_level() == logging.ERROR
    assert LoggingSettings(level="critical").log_level is LogLevel.CRITICAL
    with pytest.raises(ValueError):
        LogLevel.from_string("verbose")


def test_text_format_appends_extras():
    formatter = StructuredFormatter(include_timestamp=False)

    output = formatter.format(_record(user="ada", note="two words"))

    assert output == '[INFO] strata.test: hello world user=ada note="two words"'


def test_text_format_without_level():
    formatter = StructuredFormatter(include_timestamp=False, include_level=False)

    assert formatter.format(_record()) == "strata.test: hello world"


def test_text_format_includes_bound_context():
    formatter = StructuredFormatter(include_timestamp=False)

    with log_context(module="Orders"):
        output = formatter.format(_record(count=3))

    assert output == "[INFO] strata.test: hello world module=Orders count=3"


def test_json_format():
    formatter = StructuredFormatter(json_format=True)

    with log_context(workload="checkout"):
        data = json.loads(formatter.format(_record(user="ada")))

    assert data["logger"] == "strata.test"
    assert data["message"] == "hello world"
    assert data["level"] == "INFO"
    assert data["user"] == "ada"
    assert data["workload"] == "checkout"
    assert "timestamp" in data


def test_json_format_includes_exceptions():
    formatter = StructuredFormatter(json_format=True, include_timestamp=False)
    try:
        raise ValueError("bad value")
    except ValueError:
        record = _record(exc_info=sys.exc_info())

    data = json.loads(formatter.format(record))

    assert data["error"] == "bad value"
    assert "ValueError" in data["exception"]
    assert "timestamp" not in data


def test_log_context_nests_and_restores():
    assert current_log_context() == {}

    with log_context(a=1) as outer:
        assert outer == {"a": 1}
        with log_context(b=2) as inner:
            assert inner == {"a": 1, "b": 2}
        assert current_log_context() == {"a": 1}

    assert current_log_context() == {}


def test_get_logger_nests_names_under_strata():
    assert get_logger("composition").name == "strata.composition"
    assert get_logger("strata.composition").name == "strata.composition"
    assert get_logger("strata").name == "strata"


def test_get_logger_level_override():
    logger = get_logger("level_override", LogLevel.ERROR)

    assert logger.level == logging.ERROR


def test_configure_logging_replaces_its_own_handlers():
    configure_logging(LoggingSettings(level="debug"))
    logger = configure_logging(LoggingSettings(level="warning", propagate=False))

    assert len(_strata_handlers()) == 1
    assert logger.level == logging.WARNING
    assert logger.propagate is False


def test_configure_logging_without_console():
    configure_logging(LoggingSettings(console_enabled=False))

    assert _strata_handlers() == []


def test_configure_logging_writes_to_a_file(tmp_path):
    path = tmp_path / "strata.log"
    configure_logging(
        LoggingSettings(
            console_enabled=False,
            file_enabled=True,
            file_path=str(path),
            include_timestamp=False,
        )
    )

    get_logger("file_test").warning("disk is %s", "full")
    for handler in _strata_handlers():
        handler.flush()

    assert path.read_text().strip() == "[WARNING] strata.file_test: disk is full"


def test_logger_factory_satisfies_the_protocol(logger_factory):
    assert isinstance(logger_factory, LoggerFactoryProtocol)
    assert logger_factory.create_logger("orders").name == "strata.orders"


def test_logger_factory_can_configure_logging():
    LoggerFactory(LoggingSettings(level="error"), configure=True)

    assert logging.getLogger("strata").level == logging.ERROR
    assert len(_strata_handlers()) == 1


def test_scoped_logger_binds_context(logger_factory, caplog):
    with caplog.at_level(logging.INFO, logger="strata"):
        with logger_factory.scoped_logger("orders", workload="checkout") as logger:
            assert current_log_context() == {"workload": "checkout"}
            logger.info("placing order")

    assert current_log_context() == {}
    assert caplog.records[-1].name == "strata.orders"
