"""
Core types for the election ledger.

This module provides the foundational data structures and protocols:
1. Protocols: ElectionView for read-only ledger access
2. Immutable data structures: Candidate, VotingSession, Notification
3. Query results: ElectionResults, CandidateListing, SessionInfo
4. Exceptions: ElectionError and the domain-specific error types
5. Identity validation

Nothing in this module mutates ledger state.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import (
    Dict, List, Optional, Any, Protocol, Tuple, NamedTuple, runtime_checkable
)


# ============================================================================
# CONSTANTS
# ============================================================================

# A session needs at least this many candidates to be created.
MIN_CANDIDATES = 2

# Ids are handed out from this value and never reused across sessions.
FIRST_CANDIDATE_ID = 1

# Default logical start time of a fresh execution environment.
EPOCH = datetime(1970, 1, 1)


# ============================================================================
# TYPE ALIASES
# ============================================================================

# Authenticated participant identity (an address).
VoterId = str

# Candidate identifier, unique across the lifetime of a ledger.
CandidateId = int


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class ElectionView(Protocol):
    """
    Read-only interface to election state.

    Tally functions accept an ElectionView to declare their read-only intent.
    ElectionLedger implements this protocol; tests use FakeElectionView.
    """

    @property
    def current_time(self) -> datetime:
        """Return the current logical time."""
        ...

    @property
    def session(self) -> Optional['VotingSession']:
        """Return the current session, or None before the first one."""
        ...

    def candidate_ids(self) -> List[CandidateId]:
        """Return the current slate's ids in insertion order."""
        ...

    def get_candidate(self, candidate_id: CandidateId) -> 'Candidate':
        """Return a candidate of the current slate."""
        ...

    def is_authorized(self, address: VoterId) -> bool:
        """Return True if the identity may vote."""
        ...

    def has_voted(self, address: VoterId) -> bool:
        """Return True if the identity has ever cast a vote."""
        ...


# ============================================================================
# ENUMS
# ============================================================================

class SessionStatus(Enum):
    """
    Lifecycle position of the ledger's session.

    UNINITIALIZED: No session has been created yet.
    ACTIVE: A session is open; votes may be cast inside its time window.
    ENDED: The last session was closed by the administrator.
    """
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    ENDED = "ended"


class NotificationType(Enum):
    """Kinds of entries written to the append-only notification log."""
    SESSION_CREATED = "session_created"
    CANDIDATE_ADDED = "candidate_added"
    VOTE_CAST = "vote_cast"
    SESSION_ENDED = "session_ended"


# ============================================================================
# EXCEPTIONS
# ============================================================================

class ElectionError(Exception):
    """Base exception for all election ledger errors."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class Unauthorized(ElectionError):
    """Raised when the caller lacks the role or authorization an operation requires."""
    pass


class AlreadyVoted(ElectionError):
    """Raised when an identity that has voted before tries to vote again."""
    pass


class InvalidState(ElectionError):
    """Base for operations refused because of the session lifecycle or time window."""
    pass


class SessionAlreadyActive(InvalidState):
    """Raised when creating a session while another one is active."""
    pass


class NoActiveSession(InvalidState):
    """Raised when an operation needs an active session and none is open."""
    pass


class VotingNotStarted(InvalidState):
    """Raised when a vote arrives before the session's start time."""
    pass


class VotingEnded(InvalidState):
    """Raised when a vote arrives after the session's end time."""
    pass


class InvalidInput(ElectionError):
    """Base for operations refused because of their arguments."""
    pass


class InsufficientCandidates(InvalidInput):
    """Raised when a session is created with fewer than MIN_CANDIDATES names."""
    pass


class InvalidDuration(InvalidInput):
    """Raised when a session duration is not positive."""
    pass


class CandidateNotFound(InvalidInput):
    """Raised when a candidate id is not part of the current slate."""
    pass


class NoCandidates(InvalidInput):
    """Raised when results are requested for an empty slate."""
    pass


def validate_identity(address: Any) -> VoterId:
    """
    Check that an identity is a non-empty string and return it.

    Raises:
        ValueError: If the identity is not a string or is blank.
    """
    if not isinstance(address, str):
        raise ValueError(f"Identity must be a string, got {type(address)}")
    if not address.strip():
        raise ValueError("Identity cannot be empty")
    return address


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class Candidate:
    """
    A single entry of the current slate.

    Attributes:
        id: Ledger-wide unique id (>= FIRST_CANDIDATE_ID).
        name: Display name.
        vote_count: Votes received in the current session.
    """
    id: CandidateId
    name: str
    vote_count: int = 0

    def __post_init__(self):
        if isinstance(self.id, bool) or not isinstance(self.id, int):
            raise ValueError(f"Candidate id must be int, got {type(self.id)}")
        if self.id < FIRST_CANDIDATE_ID:
            raise ValueError(f"Candidate id must be >= {FIRST_CANDIDATE_ID}, got {self.id}")
        if not isinstance(self.name, str):
            raise ValueError(f"Candidate name must be str, got {type(self.name)}")
        if self.vote_count < 0:
            raise ValueError(f"Candidate vote_count cannot be negative, got {self.vote_count}")

    def with_vote(self) -> 'Candidate':
        """Return a copy carrying one more vote."""
        return replace(self, vote_count=self.vote_count + 1)

    def __repr__(self) -> str:
        return f"Candidate(#{self.id} {self.name!r}: {self.vote_count})"


@dataclass(frozen=True, slots=True)
class VotingSession:
    """
    The single time-bounded election instance.

    Attributes:
        title: Human-readable session title.
        start_time: When voting opens (inclusive).
        end_time: When voting closes (inclusive).
        is_active: True from creation until the administrator ends it.
        total_votes: Votes cast in this session.
    """
    title: str
    start_time: datetime
    end_time: datetime
    is_active: bool = True
    total_votes: int = 0

    def __post_init__(self):
        if not self.start_time < self.end_time:
            raise ValueError(
                f"Session start_time must precede end_time: {self.start_time} >= {self.end_time}"
            )
        if self.total_votes < 0:
            raise ValueError(f"Session total_votes cannot be negative, got {self.total_votes}")

    def is_open_at(self, timestamp: datetime) -> bool:
        """True if the session is active and timestamp lies inside [start_time, end_time]."""
        return self.is_active and self.start_time <= timestamp <= self.end_time

    def with_vote(self) -> 'VotingSession':
        return replace(self, total_votes=self.total_votes + 1)

    def closed(self) -> 'VotingSession':
        return replace(self, is_active=False)


@dataclass(frozen=True, slots=True)
class Notification:
    """
    Immutable entry of the append-only notification log.

    Attributes:
        sequence_number: Monotonic position in the log (0-based).
        timestamp: Logical time the emitting operation ran at.
        kind: What happened.
        params: Payload as frozen tuple of (key, value) pairs, in emission order.
    """
    sequence_number: int
    timestamp: datetime
    kind: NotificationType
    params: Tuple[Tuple[str, Any], ...] = ()

    @property
    def params_dict(self) -> Dict[str, Any]:
        """Get params as a dictionary for convenience."""
        return dict(self.params)

    @property
    def event_id(self) -> str:
        """Deterministic id: kind, sequence and time."""
        return f"{self.kind.value}:{self.sequence_number:012d}:{self.timestamp.isoformat()}"

    def __repr__(self) -> str:
        body = ", ".join(f"{k}={v!r}" for k, v in self.params)
        return f"Notification(#{self.sequence_number} {self.kind.value}: {body})"


# ============================================================================
# QUERY RESULTS
# ============================================================================

class ElectionResults(NamedTuple):
    """Leader and totals. winner_name is "" and winner_votes 0 when nobody has votes."""
    winner_name: str
    winner_votes: int
    total_votes: int


class CandidateListing(NamedTuple):
    """The current slate as parallel tuples, in registry order."""
    ids: Tuple[CandidateId, ...]
    names: Tuple[str, ...]
    vote_counts: Tuple[int, ...]


class SessionInfo(NamedTuple):
    """Session fields plus the querying identity's entry in the global voted set."""
    title: str
    start_time: Optional[datetime]
    end_time: Optional[datetime]
    is_active: bool
    total_votes: int
    caller_has_voted: bool
