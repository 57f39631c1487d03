"""Tests for named pipe checks and the session line reader."""

import os
import threading
import time

import pytest
from vectorpipe.pipe.consumer import ShutdownSignal
from vectorpipe.pipe.fifo import (
    NotAFifoError,
    PipeLineReader,
    PipeNotFoundError,
    PipePreconditionError,
    check_pipe,
    is_fifo,
)

from tests.helpers import write_in_background


def test_check_pipe_accepts_fifo(fifo_path):
    check_pipe(fifo_path)
    assert is_fifo(fifo_path) is True


def test_check_pipe_missing_path(tmp_path):
    """A missing path is reported as PipeNotFoundError."""
    path = str(tmp_path / "missing")
    with pytest.raises(PipeNotFoundError) as exc_info:
        check_pipe(path)
    assert exc_info.value.path == path
    assert is_fifo(path) is False


def test_check_pipe_regular_file(tmp_path):
    """A regular file is rejected with its type named."""
    path = tmp_path / "plain"
    path.write_text("{}\n")
    with pytest.raises(NotAFifoError) as exc_info:
        check_pipe(str(path))
    assert exc_info.value.file_type == "regular file"
    assert is_fifo(str(path)) is False


def test_check_pipe_directory(tmp_path):
    with pytest.raises(NotAFifoError) as exc_info:
        check_pipe(str(tmp_path))
    assert exc_info.value.file_type == "directory"


def test_precondition_errors_share_a_base():
    assert issubclass(PipeNotFoundError, PipePreconditionError)
    assert issubclass(NotAFifoError, PipePreconditionError)


def test_reader_requires_open(fifo_path):
    with pytest.raises(ValueError):
        iter(PipeLineReader(fifo_path))


@pytest.mark.parametrize("read_timeout", [None, 0.05])
def test_reader_yields_lines_in_order(fifo_path, read_timeout):
    """Lines arrive in write order and the session ends when the writer closes."""
    writer = write_in_background(fifo_path, b'{"vector": [1.0]}\nsecond\r\nthird\n')

    with PipeLineReader(fifo_path, read_timeout=read_timeout) as reader:
        lines = list(reader)
    writer.join(timeout=5)

    assert [line.text for line in lines] == ['{"vector": [1.0]}', "second", "third"]
    assert all(line.ok for line in lines)


@pytest.mark.parametrize("read_timeout", [None, 0.05])
def test_reader_yields_trailing_fragment(fifo_path, read_timeout):
    """Data without a final newline is still delivered at end-of-stream."""
    writer = write_in_background(fifo_path, b"first\nlast")

    with PipeLineReader(fifo_path, read_timeout=read_timeout) as reader:
        texts = [line.text for line in reader]
    writer.join(timeout=5)

    assert texts == ["first", "last"]


@pytest.mark.parametrize("read_timeout", [None, 0.05])
def test_undecodable_line_does_not_end_session(fifo_path, read_timeout):
    """An invalid UTF-8 line surfaces as an error and reading continues."""
    writer = write_in_background(fifo_path, b"ok\n\xff\xfe\nstill ok\n")

    with PipeLineReader(fifo_path, read_timeout=read_timeout) as reader:
        lines = list(reader)
    writer.join(timeout=5)

    assert len(lines) == 3
    assert lines[0].text == "ok"
    assert not lines[1].ok
    assert isinstance(lines[1].error, UnicodeDecodeError)
    assert lines[2].text == "still ok"


def test_cancellable_reader_stops_on_shutdown(fifo_path):
    """With no writer connected, a stop request ends the session promptly."""
    shutdown = ShutdownSignal()
    collected = []

    def _read():
        with PipeLineReader(fifo_path, read_timeout=0.05, shutdown=shutdown) as reader:
            collected.extend(reader)

    thread = threading.Thread(target=_read, daemon=True)
    thread.start()
    time.sleep(0.2)
    assert thread.is_alive()

    shutdown.request_stop()
    thread.join(timeout=2)

    assert not thread.is_alive()
    assert collected == []


def test_reader_releases_handle(fifo_path):
    reader = PipeLineReader(fifo_path, read_timeout=0.05)
    with reader:
        assert reader._fd is not None
    assert reader._fd is None
    with pytest.raises(ValueError):
        iter(reader)


HIGH_FD = 1100


@pytest.fixture
def high_fd_pipe(fifo_path, monkeypatch):
    """Route read-only opens of ``fifo_path`` to a descriptor above 1023."""
    resource = pytest.importorskip("resource")
    fcntl = pytest.importorskip("fcntl")

    soft, hard = resource.getrlimit(resource.RLIMIT_NOFILE)
    if hard != resource.RLIM_INFINITY and hard <= HIGH_FD:
        pytest.skip("descriptor limit too low")
    if soft != resource.RLIM_INFINITY and soft <= HIGH_FD:
        raised = HIGH_FD * 2 if hard == resource.RLIM_INFINITY else min(hard, HIGH_FD * 2)
        resource.setrlimit(resource.RLIMIT_NOFILE, (raised, hard))

    real_open = os.open

    def _open(path, flags, *args, **kwargs):
        fd = real_open(path, flags, *args, **kwargs)
        if os.fspath(path) != fifo_path or flags & (os.O_WRONLY | os.O_RDWR):
            return fd
        high = fcntl.fcntl(fd, fcntl.F_DUPFD, HIGH_FD)
        os.close(fd)
        return high

    monkeypatch.setattr(os, "open", _open)
    yield fifo_path
    resource.setrlimit(resource.RLIMIT_NOFILE, (soft, hard))


def test_cancellable_reader_handles_high_descriptors(high_fd_pipe):
    """Descriptor numbers past the select() limit still read normally."""
    writer = write_in_background(high_fd_pipe, b"first\nsecond\n")

    with PipeLineReader(high_fd_pipe, read_timeout=0.05) as reader:
        assert reader._fd >= HIGH_FD
        texts = [line.text for line in reader]
    writer.join(timeout=5)

    assert texts == ["first", "second"]
