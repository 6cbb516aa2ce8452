"""
election_ledger - Single-Election Voting Ledger

An in-memory ledger for one election at a time: an administrator opens a
time-bounded session with a candidate slate, authorized identities cast at most
one vote each (ever, across sessions), and anyone can query live tallies.

Usage:
    from datetime import datetime, timedelta
    from election_ledger import ElectionLedger

    ledger = ElectionLedger("admin", initial_time=datetime(2025, 1, 1))
    ledger.create_session("admin", "Board Election", 3600, ["Alice", "Bob"])
    ledger.authorize_voters("admin", ["0xa1", "0xb2"])

    ledger.cast_vote("0xa1", 1)
    ledger.get_results()          # ElectionResults(winner_name='Alice', winner_votes=1, total_votes=1)

    ledger.environment.advance_time(datetime(2025, 1, 1, 2))
    ledger.end_session("admin")
"""

# Core types
from .core import (
    ElectionView,
    Candidate,
    VotingSession,
    Notification,
    NotificationType,
    SessionStatus,
    ElectionResults,
    CandidateListing,
    SessionInfo,
    CandidateId,
    VoterId,
    ElectionError,
    Unauthorized,
    AlreadyVoted,
    InvalidState,
    SessionAlreadyActive,
    NoActiveSession,
    VotingNotStarted,
    VotingEnded,
    InvalidInput,
    InsufficientCandidates,
    InvalidDuration,
    CandidateNotFound,
    NoCandidates,
    validate_identity,
    MIN_CANDIDATES,
    FIRST_CANDIDATE_ID,
    EPOCH,
)

# Execution environment
from .environment import (
    ExecutionEnvironment,
    OperationScope,
    NotificationHandler,
)

# Ledger
from .election import ElectionLedger

# Tallies
from .tally import (
    load_tally,
    leading_index,
    compute_results,
    compute_vote_shares,
    compute_standings,
)

__all__ = [
    # Core
    'ElectionView', 'Candidate', 'VotingSession', 'Notification', 'NotificationType',
    'SessionStatus', 'ElectionResults', 'CandidateListing', 'SessionInfo',
    'CandidateId', 'VoterId', 'validate_identity',
    'MIN_CANDIDATES', 'FIRST_CANDIDATE_ID', 'EPOCH',
    # Errors
    'ElectionError', 'Unauthorized', 'AlreadyVoted',
    'InvalidState', 'SessionAlreadyActive', 'NoActiveSession', 'VotingNotStarted', 'VotingEnded',
    'InvalidInput', 'InsufficientCandidates', 'InvalidDuration', 'CandidateNotFound', 'NoCandidates',
    # Environment
    'ExecutionEnvironment', 'OperationScope', 'NotificationHandler',
    # Ledger
    'ElectionLedger',
    # Tallies
    'load_tally', 'leading_index', 'compute_results', 'compute_vote_shares', 'compute_standings',
]

__version__ = '1.0.0'
