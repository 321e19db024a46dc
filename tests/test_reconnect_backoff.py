from __future__ import annotations

import pytest

from clonedrive_transfer_sync.infrastructure.events import ReconnectBackoff


def test_delay_sequence_doubles_up_to_cap() -> None:
    backoff = ReconnectBackoff()

    assert [backoff.delay_for(attempt) for attempt in range(7)] == [1, 2, 4, 8, 16, 30, 30]


def test_delay_stays_capped_for_large_attempts() -> None:
    backoff = ReconnectBackoff(base_delay_seconds=0.5, max_delay_seconds=5.0)

    assert backoff.delay_for(1000) == 5.0
    assert backoff.delay_for(-3) == 0.5


def test_exhausted_after_max_attempts() -> None:
    backoff = ReconnectBackoff(max_attempts=10)

    assert backoff.exhausted(9) is False
    assert backoff.exhausted(10) is True


@pytest.mark.parametrize(
    "kwargs",
    [
        {"base_delay_seconds": 0},
        {"base_delay_seconds": 5, "max_delay_seconds": 1},
        {"max_attempts": -1},
    ],
)
def test_invalid_backoff_settings_are_rejected(kwargs: dict[str, float]) -> None:
    with pytest.raises(ValueError):
        ReconnectBackoff(**kwargs)
