import os
import sys
from pathlib import Path

import pytest

# Ensure the project root is on the import path
sys.path.insert(0, os.path.abspath(os.path.join(Path(__file__).resolve().parent, "..")))

from entitlements import (
    FREE_TIER_ENTRY_LIMIT,
    EntryLimitError,
    Tier,
    check_entry_limit,
    remaining_entries,
)


def test_free_tier_counts_down():
    assert remaining_entries(Tier.FREE, 0) == FREE_TIER_ENTRY_LIMIT
    assert remaining_entries(Tier.FREE, 14) == 1
    assert remaining_entries(Tier.FREE, 20) == 0


def test_free_tier_refused_at_limit():
    check_entry_limit(Tier.FREE, FREE_TIER_ENTRY_LIMIT - 1)
    with pytest.raises(EntryLimitError, match="free tier limit of 15"):
        check_entry_limit(Tier.FREE, FREE_TIER_ENTRY_LIMIT)


@pytest.mark.parametrize("tier", [Tier.PRO, Tier.LIFETIME])
def test_paid_tiers_unlimited(tier):
    assert remaining_entries(tier, 1000) is None
    check_entry_limit(tier, 1000)
