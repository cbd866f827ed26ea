"""Time authority port.

Services that need timestamps inject a TimeAuthorityProtocol instead of
calling datetime.now() directly, so retry windows, breaker timeouts and
queue schedules can be driven deterministically in tests.

Production: SystemTimeAuthority (infrastructure/time_authority.py)
Tests: FakeTimeAuthority (tests/helpers/fake_time_authority.py)
"""

from abc import ABC, abstractmethod
from datetime import datetime


class TimeAuthorityProtocol(ABC):
    """Abstract interface for time authority.

    Example usage:
        class MyService:
            def __init__(self, time_authority: TimeAuthorityProtocol) -> None:
                self._time = time_authority

            def process(self) -> None:
                now = self._time.now()  # NOT datetime.now()
    """

    @abstractmethod
    def now(self) -> datetime:
        """Return the current time as a timezone-aware UTC datetime."""
        ...

    @abstractmethod
    def monotonic(self) -> float:
        """Return monotonic clock value for measuring elapsed time.

        Returns:
            Monotonically increasing float value (in seconds).

        Note:
            Breaker timeouts and monitoring periods are measured on this
            clock so wall-clock adjustments never reopen or close a circuit.
        """
        ...
