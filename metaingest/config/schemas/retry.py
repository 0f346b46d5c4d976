"""Retry policy schema."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, model_validator


class RetryConfig(BaseModel):
    """Configuration for retry behavior.

    Uses exponential backoff:
    delay = initial_backoff * (multiplier ^ (attempt - 1)), capped at max_backoff.
    All durations are in seconds.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_retries: Annotated[int, Field(ge=0, le=100)] = 3
    initial_backoff: Annotated[float, Field(gt=0.0)] = 0.1
    max_backoff: Annotated[float, Field(gt=0.0)] = 10.0
    multiplier: Annotated[float, Field(ge=1.0)] = 2.0
    jitter: Annotated[float, Field(ge=0.0, le=1.0)] = 0.1

    @model_validator(mode="after")
    def validate_backoff_bounds(self) -> "RetryConfig":
        """Ensure max_backoff is not below initial_backoff."""
        if self.max_backoff < self.initial_backoff:
            msg = (
                f"max_backoff ({self.max_backoff}) must be >= "
                f"initial_backoff ({self.initial_backoff})"
            )
            raise ValueError(msg)
        return self

    @property
    def max_attempts(self) -> int:
        """Get the total number of attempts including the first call."""
        return self.max_retries + 1
