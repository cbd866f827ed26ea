"""Test helpers for submission delivery tests.

Helpers:
    FakeTimeAuthority: Controllable clock (wall, monotonic and sleep)

Usage:
    from tests.helpers import FakeTimeAuthority
"""

from tests.helpers.fake_time_authority import FakeTimeAuthority

__all__ = ["FakeTimeAuthority"]
