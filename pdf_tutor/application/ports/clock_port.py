from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime


class ClockPort(ABC):
    """Port for time-related operations (vector metadata timestamps, run timing)."""

    @abstractmethod
    def now(self) -> datetime:
        """Return current UTC datetime."""
        ...

    def timestamp_ms(self) -> int:
        return int(self.now().timestamp() * 1000)
