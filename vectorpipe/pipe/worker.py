"""Lifecycle owner running a ``ConsumerLoop`` on a dedicated thread."""

import threading
from typing import Optional

import structlog

from .consumer import ConsumerLoop, ShutdownSignal, StopReason

logger = structlog.get_logger("pipe_worker")


class PipeConsumerWorker:
    """Owns the shutdown signal and the consumer thread.

    The loop may end on its own (fatal precondition); callers detect that via
    ``is_alive()`` and ``stop_reason``.
    """

    def __init__(self, pipe_path: str, shutdown: Optional[ShutdownSignal] = None, **loop_kwargs):
        self.shutdown = shutdown or ShutdownSignal()
        self.loop = ConsumerLoop(pipe_path, self.shutdown, **loop_kwargs)
        self._thread: Optional[threading.Thread] = None

    @property
    def stop_reason(self) -> Optional[StopReason]:
        return self.loop.stop_reason

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("Pipe consumer worker already started")
        self._thread = threading.Thread(
            target=self.loop.run,
            name="vector-pipe-consumer",
            daemon=True,
        )
        self._thread.start()
        logger.info("Pipe consumer worker started", pipe_path=self.loop.pipe_path)

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the consumer thread; returns True once it has ended."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def stop(self, timeout: Optional[float] = None) -> bool:
        """Request shutdown and wait for the thread to end."""
        self.shutdown.request_stop()
        stopped = self.join(timeout)
        if not stopped:
            logger.warning(
                "Pipe consumer still running after stop request",
                pipe_path=self.loop.pipe_path,
                timeout=timeout,
            )
        return stopped
