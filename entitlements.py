"""Entry ceiling for the free tier.

Projection and matching behave the same on every tier; only creating new
entries is limited.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

FREE_TIER_ENTRY_LIMIT = 15


class Tier(str, Enum):
    FREE = "free"
    PRO = "pro"
    LIFETIME = "lifetime"


class EntryLimitError(ValueError):
    """Raised when a free user tries to add past the entry ceiling."""


def remaining_entries(tier: Tier, total_entries: int) -> Optional[int]:
    """Return how many more entries ``tier`` may add, or ``None`` if unlimited."""

    if tier != Tier.FREE:
        return None
    return max(0, FREE_TIER_ENTRY_LIMIT - total_entries)


def check_entry_limit(tier: Tier, total_entries: int) -> None:
    """Raise :class:`EntryLimitError` if another entry is not allowed."""

    if remaining_entries(tier, total_entries) == 0:
        raise EntryLimitError(
            f"You've reached the free tier limit of {FREE_TIER_ENTRY_LIMIT} entries. "
            "Upgrade to Pro for unlimited entries!"
        )
