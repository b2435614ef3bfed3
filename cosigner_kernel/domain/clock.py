"""
Clock -- Deterministic time abstraction.

Responsibility:
    Provides an injectable clock so that domain and service code never call
    ``datetime.now()`` or ``time.time()`` directly.  Authorization expiry
    and default detection both compare against ``Clock.timestamp()``.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O (except SystemClock,
    which is the one sanctioned I/O boundary for time).
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class Clock(ABC):
    """
    Abstract clock interface.

    Contract:
        All services that need current time receive a Clock instance via
        constructor injection.

    Guarantees:
        - ``now()`` returns a timezone-aware ``datetime``.
        - ``timestamp()`` returns whole Unix seconds, the unit used by
          authorization expirations, due times and required arrears.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Get the current time."""
        ...

    def timestamp(self) -> int:
        """Get the current time as whole Unix seconds."""
        return int(self.now().timestamp())


class SystemClock(Clock):
    """
    Production clock that returns actual system time.

    Non-goals:
        Not suitable for deterministic replay or testing.
    """

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Test clock with controlled time.

    Guarantees:
        - ``now()`` returns the same value on repeated calls until
          ``advance()`` or ``set_time()`` is called.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._fixed_time = fixed_time or datetime(
            2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc
        )
        self._advance_seconds = 0

    @classmethod
    def at(cls, timestamp: int) -> "DeterministicClock":
        """Create a clock fixed at the given Unix timestamp."""
        return cls(datetime.fromtimestamp(timestamp, tz=timezone.utc))

    def now(self) -> datetime:
        return self._fixed_time + timedelta(seconds=self._advance_seconds)

    def set_time(self, time: datetime) -> None:
        """Set the clock to a specific time."""
        self._fixed_time = time
        self._advance_seconds = 0

    def advance(self, seconds: int = 1) -> None:
        """Advance the clock by the specified seconds."""
        self._advance_seconds += seconds
