"""Common utilities shared across the service.

Includes:
- ``config``: pydantic-settings configuration from environment variables.
- ``logging``: structured logging setup with structlog.
- ``metrics``: Prometheus counters for the pipe consumer and client.

Import pattern:
- from vectorpipe.common.config import VectorPipeConfig
- from vectorpipe.common.logging import configure_logging
"""
