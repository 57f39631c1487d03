"""Helpers for tests that drive a real named pipe."""

import errno
import os
import threading
import time


def events(log_capture):
    """Event names captured so far, in order."""
    return [entry["event"] for entry in list(log_capture.entries)]


def wait_for(predicate, timeout=5.0, interval=0.01):
    """Poll ``predicate`` until it is truthy or ``timeout`` elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return bool(predicate())


def write_payload(path, payload, timeout=5.0):
    """Open the FIFO for writing once a reader is present, write, close.

    A non-blocking open fails with ENXIO while no reader has the pipe open,
    so the open is retried until ``timeout``.
    """
    deadline = time.monotonic() + timeout
    while True:
        try:
            fd = os.open(path, os.O_WRONLY | os.O_NONBLOCK)
            break
        except OSError as e:
            if e.errno != errno.ENXIO or time.monotonic() > deadline:
                raise
            time.sleep(0.01)

    try:
        os.set_blocking(fd, True)
        os.write(fd, payload)
    finally:
        os.close(fd)


def write_lines(path, lines, timeout=5.0):
    """Write newline-terminated text lines in a single writer session."""
    write_payload(path, "".join(line + "\n" for line in lines).encode("utf-8"), timeout)


def write_in_background(path, payload, timeout=5.0):
    """Run ``write_payload`` on a thread; returns the started thread."""
    thread = threading.Thread(target=write_payload, args=(path, payload, timeout), daemon=True)
    thread.start()
    return thread
