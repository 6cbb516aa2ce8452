#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: One Election, Step by Step

A pedagogical walkthrough of the election ledger. Each step builds on the
previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3:  Setup         - The empty ledger, opening a session, authorizing voters
  4-6:  Voting        - Casting votes, rejections, live tallies
  7-9:  Lifecycle     - Expiry, ending a session, a second session that remembers voters

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List
import sys

from election_ledger import (
    ElectionLedger, NotificationType, ElectionError,
    compute_vote_shares, compute_standings,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    start_time: datetime = datetime(2025, 1, 1, 9, 0, 0)
    administrator: str = "admin"

    title: str = "Board Election"
    duration_seconds: int = 3600
    candidates: List[str] = field(default_factory=lambda: ["Alice", "Bob", "Carol"])
    voters: List[str] = field(default_factory=lambda: [f"0xvoter{i}" for i in range(1, 7)])

    # voter index -> candidate id, cast during step 4
    ballots: List[int] = field(default_factory=lambda: [1, 2, 2, 3, 1])


CONFIG = DemoConfig()

QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    """Print a step header with learning objective."""
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    """Print a section header within a step."""
    print(f"\n--- {text} ---\n")


def show_tally(ledger: ElectionLedger):
    listing = ledger.list_candidates()
    shares = compute_vote_shares(ledger)
    for cid, name, votes in zip(listing.ids, listing.names, listing.vote_counts):
        print(f"  #{cid:<3} {name:<10} {votes:>3} votes  {shares[cid]:6.1%}")


def attempt(description: str, operation):
    """Run an operation that is expected to be rejected and show why."""
    print(f">>> {description}")
    try:
        operation()
        print("    (accepted)")
    except ElectionError as e:
        print(f"    {type(e).__name__}: {e.reason}")


# ============================================================================
# PHASE 1: SETUP (Steps 1-3)
# ============================================================================

def step_01_empty_ledger() -> ElectionLedger:
    step_header(1, "The Empty Ledger",
        "A ledger starts with an administrator, a clock and nothing else.")

    print(f">>> ledger = ElectionLedger({CONFIG.administrator!r}, initial_time={CONFIG.start_time!r})")
    ledger = ElectionLedger(CONFIG.administrator, initial_time=CONFIG.start_time, verbose=True)

    section_header("Initial State")
    print(f"Administrator: {ledger.administrator}")
    print(f"Current time:  {ledger.current_time}")
    print(f"Status:        {ledger.status.value}")
    print(f"Session info:  {ledger.get_session_info()}")
    return ledger


def step_02_create_session(ledger: ElectionLedger):
    step_header(2, "Opening a Session",
        "Only the administrator opens a session; it needs two or more candidates.")

    attempt("ledger.create_session('0xvoter1', ...)  # not the administrator",
            lambda: ledger.create_session("0xvoter1", CONFIG.title, 60, CONFIG.candidates))
    attempt("ledger.create_session(admin, ..., ['Solo'])",
            lambda: ledger.create_session(CONFIG.administrator, CONFIG.title, 60, ["Solo"]))

    print(f"\n>>> ledger.create_session(admin, {CONFIG.title!r}, {CONFIG.duration_seconds}, {CONFIG.candidates})")
    ledger.create_session(CONFIG.administrator, CONFIG.title, CONFIG.duration_seconds, CONFIG.candidates)

    section_header("Slate")
    show_tally(ledger)


def step_03_authorize(ledger: ElectionLedger):
    step_header(3, "Authorizing Voters",
        "Authorization is independent of sessions and idempotent.")

    print(f">>> ledger.authorize_voters(admin, {CONFIG.voters})")
    ledger.authorize_voters(CONFIG.administrator, CONFIG.voters)
    print(">>> ledger.authorize_voter(admin, '0xvoter1')  # again: no-op")
    ledger.authorize_voter(CONFIG.administrator, CONFIG.voters[0])


# ============================================================================
# PHASE 2: VOTING (Steps 4-6)
# ============================================================================

def step_04_cast_votes(ledger: ElectionLedger):
    step_header(4, "Casting Votes",
        "Each authorized identity casts exactly one vote.")

    for voter, cid in zip(CONFIG.voters, CONFIG.ballots):
        ledger.cast_vote(voter, cid)

    section_header("Live Tally")
    show_tally(ledger)


def step_05_rejections(ledger: ElectionLedger):
    step_header(5, "Rejected Votes",
        "Every rejection happens before anything changes.")

    attempt("ledger.cast_vote('0xstranger', 1)",
            lambda: ledger.cast_vote("0xstranger", 1))
    attempt(f"ledger.cast_vote({CONFIG.voters[0]!r}, 2)  # second vote",
            lambda: ledger.cast_vote(CONFIG.voters[0], 2))
    attempt(f"ledger.cast_vote({CONFIG.voters[-1]!r}, 99)",
            lambda: ledger.cast_vote(CONFIG.voters[-1], 99))

    print(f"\nTally still consistent: {ledger.verify_tally()['valid']}")


def step_06_results(ledger: ElectionLedger):
    step_header(6, "Results and Standings",
        "Ties go to the candidate listed first.")

    print(f">>> ledger.get_results()\n    {ledger.get_results()}")
    section_header("Standings")
    for rank, candidate in enumerate(compute_standings(ledger), start=1):
        print(f"  {rank}. {candidate.name} ({candidate.vote_count})")


# ============================================================================
# PHASE 3: LIFECYCLE (Steps 7-9)
# ============================================================================

def step_07_expiry(ledger: ElectionLedger):
    step_header(7, "The Voting Window Closes",
        "After end_time, votes are refused even though the session is still active.")

    late = ledger.session.end_time + timedelta(seconds=1)
    print(f">>> ledger.environment.advance_time({late!r})")
    ledger.environment.advance_time(late)
    attempt(f"ledger.cast_vote({CONFIG.voters[-1]!r}, 1)",
            lambda: ledger.cast_vote(CONFIG.voters[-1], 1))


def step_08_end_session(ledger: ElectionLedger):
    step_header(8, "Ending the Session",
        "The slate and counts stay readable until the next session.")

    ledger.end_session(CONFIG.administrator)
    print(f"\nStatus:  {ledger.status.value}")
    print(f"Results: {ledger.get_results()}")


def step_09_second_session(ledger: ElectionLedger):
    step_header(9, "A Second Session Remembers Every Voter",
        "New slate, new ids; earlier voters stay locked out.")

    ledger.create_session(CONFIG.administrator, "Runoff", 600, ["Alice", "Bob"])
    ids = ledger.candidate_ids()
    print(f"New candidate ids: {ids}")

    attempt(f"ledger.cast_vote({CONFIG.voters[0]!r}, {ids[1]})",
            lambda: ledger.cast_vote(CONFIG.voters[0], ids[1]))
    attempt(f"ledger.cast_vote({CONFIG.voters[-1]!r}, {ids[1]})  # never voted",
            lambda: ledger.cast_vote(CONFIG.voters[-1], ids[1]))

    section_header("Notification Log")
    for n in ledger.notifications():
        print(f"  {n!r}")
    print(f"\nVotes recorded in log: {len(ledger.notifications(NotificationType.VOTE_CAST))}")


def main():
    print("=" * 70)
    print("       ELECTION LEDGER TUTORIAL")
    print("=" * 70)

    ledger = step_01_empty_ledger()
    wait_for_enter()
    step_02_create_session(ledger)
    wait_for_enter()
    step_03_authorize(ledger)
    wait_for_enter()

    step_04_cast_votes(ledger)
    wait_for_enter()
    step_05_rejections(ledger)
    wait_for_enter()
    step_06_results(ledger)
    wait_for_enter()

    step_07_expiry(ledger)
    wait_for_enter()
    step_08_end_session(ledger)
    wait_for_enter()
    step_09_second_session(ledger)

    print("\n" + "=" * 70)
    print("       TUTORIAL COMPLETE!")
    print("=" * 70)
    print("""
    You've learned:

      - Only the administrator runs sessions and authorizes voters
      - One vote per identity, for the lifetime of the ledger
      - Votes count only inside [start_time, end_time] of an active session
      - Results break ties in favour of the first-listed candidate
      - The notification log is the audit trail

    Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()
