"""
Clock abstractions for deterministic timestamps.

The downloader stamps every fetched directory with the time it was retrieved.
Asking a Clock object for "now" instead of calling datetime.now() directly
lets tests freeze that timestamp.
"""

from datetime import datetime, timezone
from typing import Protocol


class Clock(Protocol):
    """
    Abstract time source protocol.

    **Usage**: Consumers accept a Clock (constructor argument) and call
    clock.now() whenever they need the current time. Production code passes a
    RealClock; tests pass a FrozenClock.

    **Example**:
        client = WwffDirectoryClient(settings, clock=FrozenClock(fixed))
        download = client.fetch()
        assert download.fetched_at == fixed
    """

    def now(self) -> datetime:
        """
        Return the current time according to this clock.

        Returns:
            datetime object representing "now" (timezone-aware, UTC).
        """
        ...


class RealClock:
    """Clock that returns the actual current system time (UTC)."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FrozenClock:
    """
    Clock that always returns a fixed timestamp (for deterministic tests).

    **Usage**:
        clock = FrozenClock(datetime(2024, 5, 1, tzinfo=timezone.utc))
        clock.now()  # Always 2024-05-01T00:00:00+00:00
    """

    def __init__(self, fixed_now: datetime):
        """
        Args:
            fixed_now: The datetime to return on every call to now().
                       Should be timezone-aware (UTC recommended).
        """
        self._fixed_now = fixed_now

    def now(self) -> datetime:
        return self._fixed_now
