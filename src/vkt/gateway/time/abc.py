"""Time abstraction so sleeps and timestamps can be faked in tests."""

from abc import ABC, abstractmethod
from datetime import datetime


class Time(ABC):
    """Abstract time operations."""

    @abstractmethod
    def sleep(self, seconds: float) -> None:
        """Block for the given number of seconds."""
        ...

    @abstractmethod
    def now(self) -> datetime:
        """Return the current local time."""
        ...
