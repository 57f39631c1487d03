#!/usr/bin/env python3
"""Command-line entrypoint for the vector pipe service.

Commands
- ``consume``: run the named pipe consumer until SIGINT/SIGTERM
- ``vectorize``: send one text to the vectorization endpoint and print the
  response as JSON
"""

import argparse
import signal
import sys
from typing import List, Optional

import structlog

from .client.vectorization import VectorizationClient, VectorizationError
from .common.config import VectorPipeConfig, get_config
from .common.logging import configure_logging
from .pipe.consumer import StopReason
from .pipe.worker import PipeConsumerWorker

logger = structlog.get_logger("vectorpipe")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="vectorpipe", description="Vector pipe service")
    subparsers = parser.add_subparsers(dest="command", required=True)

    consume = subparsers.add_parser("consume", help="Consume vectors from the named pipe")
    consume.add_argument("--pipe-path", type=str, default=None)
    consume.add_argument(
        "--blocking",
        action="store_true",
        default=False,
        help="Use plain blocking reads (stop is only observed between sessions)",
    )

    vectorize = subparsers.add_parser("vectorize", help="Vectorize a text")
    vectorize.add_argument("text", type=str)
    vectorize.add_argument("--pooling-strategy", type=str, default=None)
    vectorize.add_argument("--endpoint", type=str, default=None)

    return parser.parse_args(argv)


def run_consumer(args: argparse.Namespace, config: VectorPipeConfig) -> int:
    worker = PipeConsumerWorker(
        args.pipe_path or config.ml_pipe_path,
        poll_interval=config.poll_interval_seconds,
        read_timeout=None if args.blocking else config.read_timeout_seconds,
        wait_for_pipe=config.ml_pipe_wait_for_pipe,
    )

    def _handle_signal(signum, frame):
        logger.info("Shutdown requested", signal=signal.Signals(signum).name)
        worker.shutdown.request_stop()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    worker.start()
    # Join in slices so the main thread keeps handling signals.
    while not worker.join(timeout=0.5):
        pass

    return 0 if worker.stop_reason == StopReason.SHUTDOWN else 1


def run_vectorize(args: argparse.Namespace, config: VectorPipeConfig) -> int:
    endpoint = args.endpoint or config.ml_vectorizer_url
    pooling_strategy = args.pooling_strategy or config.ml_vectorizer_pooling_strategy

    try:
        with VectorizationClient(endpoint, timeout=config.ml_vectorizer_timeout) as client:
            response = client.vectorize(args.text, pooling_strategy)
    except VectorizationError as e:
        logger.error("Vectorization failed", endpoint=endpoint, error=str(e))
        return 1

    print(response.model_dump_json())
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    config = get_config()
    configure_logging("vector-pipe", config.ml_log_level, config.ml_log_format, env=config.ml_env)

    if args.command == "consume":
        return run_consumer(args, config)
    return run_vectorize(args, config)


if __name__ == "__main__":
    sys.exit(main())
