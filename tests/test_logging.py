"""Tests for logging utilities and the error hierarchy."""

import logging
from io import StringIO

import pytest

from quditflow.circuit import QuditCircuit
from quditflow.errors import (
    AlreadyMeasuredError,
    BoundMismatchError,
    IntegrityViolationError,
    InvalidCursorError,
    InvalidIndexError,
    QuditflowError,
    UnsupportedOperationError,
)
from quditflow.gates import H
from quditflow.logging import (
    configure_logging,
    get_logger,
    set_log_level,
)


def test_get_logger_returns_logger():
    """Test that get_logger returns a logger instance."""
    logger = get_logger("test_module")
    assert isinstance(logger, logging.Logger)
    assert logger.name.startswith("quditflow.")


def test_get_logger_keeps_package_names():
    """Module names inside the package are not prefixed twice."""
    assert get_logger("quditflow.circuit.core").name == "quditflow.circuit.core"
    assert get_logger().name == "quditflow"


def test_get_logger_caching():
    """Test that get_logger caches loggers."""
    logger1 = get_logger("test_module")
    logger2 = get_logger("test_module")
    assert logger1 is logger2


def test_get_logger_different_modules():
    """Test that different modules get different loggers."""
    logger1 = get_logger("module1")
    logger2 = get_logger("module2")
    assert logger1 is not logger2
    assert logger1.name != logger2.name


def test_set_log_level():
    """Test that set_log_level updates logger levels."""
    logger = get_logger("test_module")

    set_log_level(logging.INFO)
    assert logger.level <= logging.INFO

    set_log_level(logging.WARNING)
    assert logger.level <= logging.WARNING


def test_set_log_level_string():
    """Test that set_log_level accepts string levels."""
    logger = get_logger("test_module")

    set_log_level("DEBUG")
    assert logger.level == logging.DEBUG

    set_log_level("ERROR")
    assert logger.level == logging.ERROR

    set_log_level("WARNING")


def test_configure_logging():
    """Test configure_logging function."""
    stream = StringIO()
    configure_logging(level=logging.DEBUG, stream=stream)
    try:
        logger = get_logger("test_module")
        logger.debug("Debug message")
        assert "Debug message" in stream.getvalue()
    finally:
        configure_logging(level=logging.WARNING)


def test_builder_logs_appends_and_rejections():
    """Appends and rejected appends are logged at DEBUG level."""
    get_logger("quditflow.circuit.core")
    stream = StringIO()
    configure_logging(level=logging.DEBUG, stream=stream)
    try:
        qc = QuditCircuit(1, name="logged")
        qc.gate(H(), 0)
        with pytest.raises(InvalidIndexError):
            qc.gate(H(), 3)
        output = stream.getvalue()
        assert "step 0: SINGLE 'H'" in output
        assert "rejected gate at step 1" in output
    finally:
        configure_logging(level=logging.WARNING)


def test_logger_does_not_propagate():
    """Test that loggers don't propagate to root logger."""
    logger = get_logger("test_module")
    assert logger.propagate is False


class TestErrors:
    def test_message_carries_step_and_operation(self):
        err = InvalidIndexError("qudit 5 out of range", operation="gate", step=3)
        assert str(err) == "At step 3: qudit 5 out of range [gate]"
        assert err.step == 3
        assert err.operation == "gate"

    def test_message_without_context(self):
        assert str(QuditflowError("boom")) == "boom"

    @pytest.mark.parametrize(
        "exc_type, builtin",
        [
            (InvalidIndexError, ValueError),
            (AlreadyMeasuredError, ValueError),
            (BoundMismatchError, ValueError),
            (IntegrityViolationError, RuntimeError),
            (InvalidCursorError, RuntimeError),
            (UnsupportedOperationError, NotImplementedError),
        ],
    )
    def test_builtin_bases(self, exc_type, builtin):
        err = exc_type("x")
        assert isinstance(err, QuditflowError)
        assert isinstance(err, builtin)
