"""Fake Time implementation for testing."""

from datetime import datetime

from vkt.gateway.time.abc import Time

DEFAULT_FAKE_NOW = datetime(2024, 1, 15, 14, 30, 0)


class FakeTime(Time):
    """Time that never sleeps and always returns a fixed instant.

    Sleep durations are recorded for assertions.
    """

    def __init__(self, *, now: datetime | None = None) -> None:
        self._now = now if now is not None else DEFAULT_FAKE_NOW
        self._sleep_calls: list[float] = []

    def sleep(self, seconds: float) -> None:
        self._sleep_calls.append(seconds)

    def now(self) -> datetime:
        return self._now

    @property
    def sleep_calls(self) -> list[float]:
        """Durations passed to sleep(), in call order."""
        return list(self._sleep_calls)
