"""
helpers.py - Shared constants and helper functions for ElectionLedger tests
"""

from datetime import datetime
from typing import List

from election_ledger import ElectionLedger


ADMIN = "admin"
START = datetime(2025, 1, 1, 9, 0)
VOTERS = [f"0xvoter{i:02d}" for i in range(10)]


def make_ledger(initial_time: datetime = START) -> ElectionLedger:
    """Fresh quiet ledger administered by ADMIN."""
    return ElectionLedger(ADMIN, initial_time=initial_time, verbose=False)


def open_session(
    ledger: ElectionLedger,
    names=("Alice", "Bob", "Carol"),
    duration: int = 3600,
    title: str = "Board Election",
) -> List[int]:
    """Create a session and return its candidate ids."""
    ledger.create_session(ADMIN, title, duration, list(names))
    return ledger.candidate_ids()


def snapshot(ledger: ElectionLedger) -> dict:
    """Everything a failed operation must leave untouched."""
    return {
        "session": ledger.session,
        "listing": ledger.list_candidates(),
        "authorized": set(ledger._authorized),
        "voted": set(ledger._voted),
        "next_id": ledger._next_candidate_id,
        "log": ledger.notifications(),
    }


def assert_tally_consistent(ledger: ElectionLedger) -> None:
    result = ledger.verify_tally()
    assert result["valid"], f"Tally inconsistent: {result['discrepancies']}"
