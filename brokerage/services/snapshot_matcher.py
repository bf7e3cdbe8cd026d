"""Compare a signed snapshot against the listing's current facts."""

from typing import Optional

from brokerage.models.snapshot import Snapshot


def snapshot_differences(stored: Optional[Snapshot], current: Snapshot) -> list[str]:
    """Names of the tracked fields that differ.

    A missing stored snapshot counts as every field differing.
    """
    current_print = current.fingerprint()
    if stored is None:
        return list(current_print)
    stored_print = stored.fingerprint()
    return [field for field, value in current_print.items() if stored_print[field] != value]


def snapshots_match(stored: Optional[Snapshot], current: Snapshot) -> bool:
    """True only when a stored snapshot exists and equals the current one."""
    if stored is None:
        return False
    return stored.fingerprint() == current.fingerprint()
