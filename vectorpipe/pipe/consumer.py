"""Named pipe consumer loop.

Reads vector records from a FIFO, validates each vector and logs the outcome.
Nothing is persisted; the log stream and the metrics counters are the only
observable output.

State machine
- ``RUNNING``: outer loop active. Checks the shutdown signal, then the pipe
  preconditions, then opens a read session.
- ``DRAINING``: inside a session, consuming lines until the writer closes its
  end (or, with a read timeout, until shutdown is requested).
- ``STOPPED``: terminal. Reached when shutdown is observed at the top of the
  outer loop, when a fatal precondition fails, or when a session raises
  unexpectedly. ``stop_reason`` records which.

Cancellation is cooperative. With ``read_timeout=None`` the session read
blocks, so a stop request is only observed once the current session ends;
if the writer never closes, the loop never observes it. Pass a read timeout
to bound that latency.
"""

import threading
from enum import Enum
from typing import Optional

import structlog

from ..common.metrics import MetricsCollector, get_metrics_collector
from .fifo import NotAFifoError, PipeNotFoundError, PipePreconditionError, PipeLineReader, check_pipe
from .records import (
    RecordParseError,
    ValidationOutcome,
    extract_vector,
    is_valid_vector,
    parse_record,
)

DEFAULT_POLL_INTERVAL = 0.1
DEFAULT_READ_TIMEOUT = 0.1


class ShutdownSignal:
    """Monotonic stop flag shared between a lifecycle owner and a loop.

    Only the owner calls ``request_stop``; the loop reads it. Once set it is
    never cleared.
    """

    def __init__(self):
        self._event = threading.Event()

    def request_stop(self) -> None:
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Sleep up to ``timeout`` seconds, returning early if stop is requested."""
        return self._event.wait(timeout)


class LoopState(Enum):
    RUNNING = "running"
    DRAINING = "draining"
    STOPPED = "stopped"


class StopReason(Enum):
    SHUTDOWN = "shutdown"
    PIPE_MISSING = "pipe_missing"
    NOT_A_FIFO = "not_a_fifo"
    OPEN_FAILED = "open_failed"
    FAILED = "failed"


class ConsumerLoop:
    """Consumes vector records from a named pipe until told to stop.

    Parameters
    - pipe_path: Path of the pre-existing FIFO
    - shutdown: ``ShutdownSignal`` owned by the caller
    - poll_interval: Sleep in seconds between sessions
    - read_timeout: Seconds per selector wait; ``None`` for blocking reads
    - wait_for_pipe: Retry instead of stopping when the pipe does not exist
    - logger: structlog logger receiving the outcomes
    - metrics: ``MetricsCollector`` counting sessions and outcomes
    """

    def __init__(
        self,
        pipe_path: str,
        shutdown: ShutdownSignal,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        read_timeout: Optional[float] = DEFAULT_READ_TIMEOUT,
        wait_for_pipe: bool = False,
        logger=None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.pipe_path = pipe_path
        self.shutdown = shutdown
        self.poll_interval = poll_interval
        self.read_timeout = read_timeout
        self.wait_for_pipe = wait_for_pipe
        if logger is None:
            logger = structlog.get_logger("pipe_consumer")
        self.logger = logger.bind(pipe_path=pipe_path)
        self.metrics = metrics if metrics is not None else get_metrics_collector("vector-pipe")

        self.state = LoopState.RUNNING
        self.stop_reason: Optional[StopReason] = None

    def _stop(self, reason: StopReason) -> StopReason:
        self.state = LoopState.STOPPED
        self.stop_reason = reason
        self.logger.info("Pipe consumer stopped", reason=reason.value)
        return reason

    def run(self) -> StopReason:
        """Run the loop on the calling thread and return why it stopped."""
        self.state = LoopState.RUNNING
        self.stop_reason = None

        while not self.shutdown.is_set():
            try:
                check_pipe(self.pipe_path)
            except PipeNotFoundError as e:
                if self.wait_for_pipe:
                    self.logger.warning("Named pipe does not exist, waiting", error=str(e))
                    self.shutdown.wait(self.poll_interval)
                    continue
                self.logger.error("Named pipe does not exist", error=str(e))
                return self._stop(StopReason.PIPE_MISSING)
            except NotAFifoError as e:
                self.logger.error("The path is not a named pipe", file_type=e.file_type)
                return self._stop(StopReason.NOT_A_FIFO)
            except PipePreconditionError as e:
                self.logger.error("Unable to fetch metadata for the named pipe", error=str(e))
                return self._stop(StopReason.OPEN_FAILED)

            try:
                self._run_session()
            except OSError as e:
                self.logger.error("Failed to open named pipe", error=str(e))
                return self._stop(StopReason.OPEN_FAILED)
            except Exception as e:
                self.logger.error("Pipe consumer failed", error=str(e), error_type=type(e).__name__)
                return self._stop(StopReason.FAILED)

            self.state = LoopState.RUNNING
            self.shutdown.wait(self.poll_interval)

        return self._stop(StopReason.SHUTDOWN)

    def _run_session(self) -> None:
        """Open the pipe and drain it until the writer closes."""
        reader = PipeLineReader(self.pipe_path, read_timeout=self.read_timeout, shutdown=self.shutdown)
        self.logger.info("Listening for vectors on named pipe")
        with reader:
            self.state = LoopState.DRAINING
            self.metrics.record_pipe_session()
            for line in reader:
                if line.ok:
                    outcome = self.process_line(line.text)
                else:
                    self.logger.error("Error reading from named pipe", error=str(line.error))
                    outcome = ValidationOutcome.READ_ERROR
                self.metrics.record_pipe_record(outcome.value)

    def process_line(self, line: str) -> ValidationOutcome:
        """Decode, validate and log a single line."""
        try:
            record = parse_record(line)
        except RecordParseError as e:
            self.logger.error("Failed to parse record from pipe", error=str(e))
            return ValidationOutcome.PARSE_ERROR

        vector = extract_vector(record)
        if vector is None:
            self.logger.info("No vector found in record", fields=sorted(record))
            return ValidationOutcome.NO_VECTOR

        self.logger.info("Received vector", vector=vector, dimension=len(vector))
        if is_valid_vector(vector):
            self.logger.info("Vector is valid", dimension=len(vector))
            return ValidationOutcome.VALID

        self.logger.warning("Invalid vector received", dimension=len(vector))
        return ValidationOutcome.INVALID
