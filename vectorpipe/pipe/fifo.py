"""Named pipe access: existence checks and a line reader.

The FIFO itself is an external resource; nothing here creates, removes or
changes permissions on it.

``PipeLineReader`` supports two modes:
- blocking (``read_timeout=None``): open and iterate lines with plain blocking
  calls. The calling thread is suspended until a line or end-of-stream.
- cancellable (``read_timeout`` in seconds): open non-blocking and wait for
  data on a ``selectors`` selector, checking the shutdown signal between
  waits so the session can be abandoned within ``read_timeout``.
"""

import os
import selectors
import stat
from dataclasses import dataclass
from typing import Iterator, Optional

import structlog

logger = structlog.get_logger("pipe.fifo")

READ_CHUNK_SIZE = 65536


class PipePreconditionError(RuntimeError):
    """The configured path cannot be used as a named pipe."""

    def __init__(self, path: str, message: str):
        super().__init__(message)
        self.path = path


class PipeNotFoundError(PipePreconditionError):
    """The named pipe path does not exist."""

    def __init__(self, path: str):
        super().__init__(path, f"Named pipe does not exist at {path}")


class NotAFifoError(PipePreconditionError):
    """The path exists but is not a FIFO special file."""

    def __init__(self, path: str, file_type: str):
        super().__init__(path, f"The path {path} is not a named pipe ({file_type})")
        self.file_type = file_type


def _describe_mode(mode: int) -> str:
    if stat.S_ISREG(mode):
        return "regular file"
    if stat.S_ISDIR(mode):
        return "directory"
    if stat.S_ISSOCK(mode):
        return "socket"
    if stat.S_ISCHR(mode):
        return "character device"
    if stat.S_ISBLK(mode):
        return "block device"
    if stat.S_ISLNK(mode):
        return "symlink"
    return "unknown"


def check_pipe(path: str) -> None:
    """Verify ``path`` exists and is a FIFO.

    Raises ``PipeNotFoundError`` or ``NotAFifoError``; any other ``stat``
    failure is raised as ``PipePreconditionError``.
    """
    try:
        mode = os.stat(path).st_mode
    except FileNotFoundError:
        raise PipeNotFoundError(path)
    except OSError as e:
        raise PipePreconditionError(path, f"Unable to fetch metadata for {path}: {e}") from e

    if not stat.S_ISFIFO(mode):
        raise NotAFifoError(path, _describe_mode(mode))


def is_fifo(path: str) -> bool:
    """Return True if ``path`` exists and is a FIFO special file."""
    try:
        check_pipe(path)
    except PipePreconditionError:
        return False
    return True


@dataclass(frozen=True)
class PipeLine:
    """One item read from the pipe: either decoded text or a read error."""
    text: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _strip_terminator(raw: bytes) -> bytes:
    if raw.endswith(b"\n"):
        raw = raw[:-1]
        if raw.endswith(b"\r"):
            raw = raw[:-1]
    return raw


def _decode(raw: bytes) -> PipeLine:
    try:
        return PipeLine(text=_strip_terminator(raw).decode("utf-8"))
    except UnicodeDecodeError as e:
        return PipeLine(error=e)


class PipeLineReader:
    """Reads newline-delimited text from a FIFO for one session.

    Use as a context manager; iterating yields ``PipeLine`` items until the
    writer closes its end (or, in cancellable mode, until ``shutdown`` is set).
    The handle is released on exit from the ``with`` block.
    """

    def __init__(self, path: str, read_timeout: Optional[float] = None, shutdown=None):
        self.path = path
        self.read_timeout = read_timeout
        self.shutdown = shutdown
        self._file = None
        self._fd: Optional[int] = None
        self._selector: Optional[selectors.BaseSelector] = None

    @property
    def cancellable(self) -> bool:
        return self.read_timeout is not None

    def open(self) -> "PipeLineReader":
        if self.cancellable:
            # O_NONBLOCK keeps open() from waiting for a writer to connect.
            self._fd = os.open(self.path, os.O_RDONLY | os.O_NONBLOCK)
            try:
                self._selector = selectors.DefaultSelector()
                self._selector.register(self._fd, selectors.EVENT_READ)
            except Exception:
                self.close()
                raise
        else:
            self._file = open(self.path, "rb")
        return self

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None
        if self._selector is not None:
            self._selector.close()
            self._selector = None
        if self._fd is not None:
            os.close(self._fd)
            self._fd = None

    def __enter__(self) -> "PipeLineReader":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[PipeLine]:
        if self._file is None and self._fd is None:
            raise ValueError("Pipe reader is not open")
        if self.cancellable:
            return self._iter_cancellable()
        return self._iter_blocking()

    def _iter_blocking(self) -> Iterator[PipeLine]:
        try:
            for raw in self._file:
                yield _decode(raw)
        except OSError as e:
            yield PipeLine(error=e)

    def _stop_requested(self) -> bool:
        return self.shutdown is not None and self.shutdown.is_set()

    def _iter_cancellable(self) -> Iterator[PipeLine]:
        buffer = b""
        while not self._stop_requested():
            if not self._selector.select(self.read_timeout):
                continue
            try:
                chunk = os.read(self._fd, READ_CHUNK_SIZE)
            except BlockingIOError:
                continue
            except OSError as e:
                # The descriptor is unusable; report and end the session.
                yield PipeLine(error=e)
                return

            if not chunk:
                break

            buffer += chunk
            while b"\n" in buffer:
                raw, buffer = buffer.split(b"\n", 1)
                yield _decode(raw + b"\n")
        else:
            logger.debug("Pipe session abandoned on shutdown", path=self.path)
            return

        if buffer:
            yield _decode(buffer)
