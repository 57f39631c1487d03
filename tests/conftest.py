"""Shared fixtures for vector pipe tests."""

import os

import pytest
import structlog
from structlog.testing import CapturingLogger, LogCapture

from vectorpipe.common.metrics import MetricsCollector


@pytest.fixture
def log_capture():
    """LogCapture processor collecting structured entries."""
    return LogCapture()


@pytest.fixture
def capture_logger(log_capture):
    """Logger that routes every event into ``log_capture``."""
    return structlog.wrap_logger(
        CapturingLogger(),
        processors=[log_capture],
        wrapper_class=structlog.BoundLogger,
    )


@pytest.fixture
def metrics():
    """Metrics collector with its own registry."""
    return MetricsCollector("test-service")


@pytest.fixture
def fifo_path(tmp_path):
    """Path of a freshly created named pipe."""
    if not hasattr(os, "mkfifo"):
        pytest.skip("Named pipes are not supported on this platform")
    path = tmp_path / "vector_pipe"
    os.mkfifo(path)
    return str(path)
