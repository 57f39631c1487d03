"""Configuration management for the vector pipe service.

Settings are read from environment variables (case-insensitive), an optional
``.env`` file, or the defaults below. ``pydantic-settings`` maps each field to
the environment variable of the same name, so ``ml_pipe_path`` is populated
from ``ML_PIPE_PATH``.

Usage
- ``config = VectorPipeConfig()`` in the entrypoint, or ``get_config()``
- Pass derived values (seconds, paths) into ``ConsumerLoop`` and
  ``VectorizationClient`` rather than letting them read the environment
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Settings shared by every entrypoint (environment and logging)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    ml_env: str = Field(default="local")

    # Logging
    ml_log_level: str = Field(default="INFO")
    ml_log_format: str = Field(default="json")


class VectorPipeConfig(BaseConfig):
    """Configuration for the pipe consumer and the vectorization client.

    Durations are configured in milliseconds to keep env values integral;
    use the ``*_seconds`` properties when handing them to the runtime.
    """

    # Named pipe consumer
    ml_pipe_path: str = Field(default="/tmp/vector_pipe")
    ml_pipe_poll_interval_ms: int = Field(default=100, ge=0)
    ml_pipe_read_timeout_ms: int = Field(default=100, ge=0)
    ml_pipe_wait_for_pipe: bool = Field(default=False)

    # Vectorization endpoint
    ml_vectorizer_url: str = Field(default="http://localhost:8000")
    ml_vectorizer_timeout: float = Field(default=30.0, gt=0)
    ml_vectorizer_pooling_strategy: str = Field(default="mean")

    @property
    def poll_interval_seconds(self) -> float:
        return self.ml_pipe_poll_interval_ms / 1000.0

    @property
    def read_timeout_seconds(self) -> Optional[float]:
        """Read timeout for the cancellable reader; ``None`` means blocking reads."""
        if self.ml_pipe_read_timeout_ms == 0:
            return None
        return self.ml_pipe_read_timeout_ms / 1000.0


def get_config() -> VectorPipeConfig:
    """Build the service configuration from the current environment."""
    return VectorPipeConfig()
