"""Bounded exponential backoff for stream reconnection."""

from __future__ import annotations

from dataclasses import dataclass

# Keeps `2 ** attempt` inside float range for any caller-supplied attempt.
_MAX_EXPONENT = 32


@dataclass(slots=True, frozen=True)
class ReconnectBackoff:
    """Delay schedule `min(base * 2^attempt, cap)` with an attempt ceiling."""

    base_delay_seconds: float = 1.0
    max_delay_seconds: float = 30.0
    max_attempts: int = 10

    def __post_init__(self) -> None:
        if self.base_delay_seconds <= 0:
            raise ValueError("base_delay_seconds must be > 0.")
        if self.max_delay_seconds < self.base_delay_seconds:
            raise ValueError("max_delay_seconds must be >= base_delay_seconds.")
        if self.max_attempts < 0:
            raise ValueError("max_attempts must be >= 0.")

    def delay_for(self, attempt: int) -> float:
        """Return the wait before reconnect attempt number `attempt` (0-based)."""

        exponent = min(max(attempt, 0), _MAX_EXPONENT)
        return min(self.base_delay_seconds * (2**exponent), self.max_delay_seconds)

    def exhausted(self, attempt: int) -> bool:
        """Return whether `attempt` reached the retry ceiling."""

        return attempt >= self.max_attempts


__all__ = ["ReconnectBackoff"]
