"""System clock implementation of TimeAuthorityProtocol."""

from __future__ import annotations

import time
from datetime import datetime, timezone

from submission_delivery.application.ports.time_authority import (
    TimeAuthorityProtocol,
)


class SystemTimeAuthority(TimeAuthorityProtocol):
    """Production time authority backed by the host clock."""

    def now(self) -> datetime:
        """Return the current UTC time."""
        return datetime.now(timezone.utc)

    def monotonic(self) -> float:
        """Return time.monotonic()."""
        return time.monotonic()
