"""
election.py - Stateful Single-Election Voting Ledger

The ElectionLedger is the central state manager of the package. It is the only
module that mutates election state.

Key responsibilities:
    - Implements the ElectionView protocol for read-only access by tally functions
    - Runs every mutating operation inside one atomic environment scope
      (check authorization -> check state -> mutate -> notify)
    - Owns the session, the candidate slate, the authorization set and the
      global voted set
    - Always validates before mutating: a rejected operation changes nothing

The voted set is never cleared. Creating a new session replaces the slate but
every identity that voted in any earlier session stays locked out.
"""

from __future__ import annotations
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Set
import copy

from .core import (
    # Types
    Candidate, VotingSession, Notification, NotificationType, SessionStatus,
    ElectionResults, CandidateListing, SessionInfo,
    CandidateId, VoterId,
    # Constants
    MIN_CANDIDATES, FIRST_CANDIDATE_ID,
    # Exceptions
    ElectionError, Unauthorized, AlreadyVoted,
    SessionAlreadyActive, NoActiveSession, VotingNotStarted, VotingEnded,
    InsufficientCandidates, InvalidDuration, CandidateNotFound, NoCandidates,
    # Helper functions
    validate_identity,
)
from .environment import ExecutionEnvironment
from .tally import compute_results


class ElectionLedger:
    """
    Single-election voting ledger with administrator-controlled sessions.

    Implements the ElectionView protocol, so the ledger itself can be passed to
    the pure functions in tally.py.

    Every operation takes the authenticated caller identity explicitly; the
    environment supplies time, serialization and the notification log.

    Example:
        ledger = ElectionLedger("admin", initial_time=datetime(2025, 1, 1))
        ledger.create_session("admin", "Board Election", 3600, ["Alice", "Bob"])
        ledger.authorize_voter("admin", "0xabc")
        ledger.cast_vote("0xabc", 1)
        ledger.get_results()   # ElectionResults('Alice', 1, 1)
    """

    def __init__(
        self,
        administrator: VoterId,
        environment: Optional[ExecutionEnvironment] = None,
        initial_time: Optional[datetime] = None,
        verbose: bool = True,
    ):
        """
        Create a ledger.

        Args:
            administrator: Identity allowed to run sessions and authorize voters
            environment: Execution environment to run on (created if omitted)
            initial_time: Starting time for a newly created environment
            verbose: Print a status line per operation (default: True)
        """
        self.administrator = validate_identity(administrator)
        if environment is None:
            environment = ExecutionEnvironment(initial_time, verbose=verbose)
        self.environment = environment
        self.verbose = verbose
        self._session: Optional[VotingSession] = None
        self._candidates: Dict[CandidateId, Candidate] = {}
        self._candidate_registry: List[CandidateId] = []
        self._authorized: Set[VoterId] = set()
        self._voted: Set[VoterId] = set()
        self._next_candidate_id: int = FIRST_CANDIDATE_ID

    # ========================================================================
    # ElectionView PROTOCOL IMPLEMENTATION (read-only methods)
    # ========================================================================

    @property
    def current_time(self) -> datetime:
        return self.environment.current_time

    @property
    def session(self) -> Optional[VotingSession]:
        """The current session (None before the first create_session)."""
        return self._session

    @property
    def status(self) -> SessionStatus:
        session = self._session
        if session is None:
            return SessionStatus.UNINITIALIZED
        return SessionStatus.ACTIVE if session.is_active else SessionStatus.ENDED

    def candidate_ids(self) -> List[CandidateId]:
        """Ids of the current slate in insertion order."""
        with self.environment.read():
            return list(self._candidate_registry)

    def get_candidate(self, candidate_id: CandidateId) -> Candidate:
        """
        Get a candidate of the current slate.

        Raises:
            CandidateNotFound: If the id is not on the current slate
        """
        with self.environment.read():
            candidate = self._lookup_candidate(candidate_id)
        if candidate is None:
            raise CandidateNotFound(f"Candidate {candidate_id} not found")
        return candidate

    def candidate_count(self) -> int:
        return len(self._candidate_registry)

    def is_authorized(self, address: VoterId) -> bool:
        return address in self._authorized

    def has_voted(self, address: VoterId) -> bool:
        """True if the identity voted in any session, ever."""
        return address in self._voted

    def notifications(self, kind: Optional[NotificationType] = None) -> List[Notification]:
        """Committed notifications, optionally filtered by kind."""
        return self.environment.notifications(kind)

    # ========================================================================
    # GUARDS
    # ========================================================================

    def _reject(self, error: ElectionError) -> ElectionError:
        if self.verbose:
            print(f"✗ REJECTED: {error.reason}")
        return error

    def _require_administrator(self, caller: VoterId) -> None:
        if caller != self.administrator:
            raise self._reject(Unauthorized(
                f"Only the administrator can perform this action (caller {caller})"
            ))

    def _require_authorized(self, caller: VoterId) -> None:
        if caller not in self._authorized:
            raise self._reject(Unauthorized(f"{caller} is not authorized to vote"))

    def _require_active_session(self) -> VotingSession:
        session = self._session
        if session is None or not session.is_active:
            raise self._reject(NoActiveSession("No active voting session"))
        return session

    def _require_voting_window(self, session: VotingSession, now: datetime) -> None:
        if session.is_open_at(now):
            return
        if now < session.start_time:
            raise self._reject(VotingNotStarted(
                f"Voting has not started: {now} < {session.start_time}"
            ))
        raise self._reject(VotingEnded(
            f"Voting has ended: {now} > {session.end_time}"
        ))

    def _require_not_voted(self, caller: VoterId) -> None:
        if caller in self._voted:
            raise self._reject(AlreadyVoted(f"{caller} has already voted"))

    def _lookup_candidate(self, candidate_id: CandidateId) -> Optional[Candidate]:
        # True == 1 and 1.0 == 1 would otherwise hit the dict
        if isinstance(candidate_id, bool) or not isinstance(candidate_id, int):
            return None
        return self._candidates.get(candidate_id)

    def _require_candidate(self, candidate_id: CandidateId) -> Candidate:
        candidate = self._lookup_candidate(candidate_id)
        if candidate is None:
            raise self._reject(CandidateNotFound(f"Candidate {candidate_id!r} not found"))
        return candidate

    def _require_window_end(self, start_time: datetime, duration_seconds: float) -> datetime:
        if duration_seconds <= 0:
            raise self._reject(InvalidDuration(
                f"Duration must be positive, got {duration_seconds}"
            ))
        try:
            duration = timedelta(seconds=duration_seconds)
            end_time = start_time + duration
        except (OverflowError, ValueError):
            raise self._reject(InvalidDuration(
                f"Duration {duration_seconds}s is out of range"
            )) from None
        if duration <= timedelta(0):
            raise self._reject(InvalidDuration(
                f"Duration {duration_seconds}s is shorter than one microsecond"
            ))
        return end_time

    # ========================================================================
    # SESSION LIFECYCLE (Mutating)
    # ========================================================================

    def create_session(
        self,
        caller: VoterId,
        title: str,
        duration_seconds: float,
        candidate_names: Iterable[str],
    ) -> None:
        """
        Open a new session with a fresh slate.

        The previous slate is discarded; candidate ids continue from the last
        id ever assigned. The voted set is left untouched.

        Args:
            caller: Must be the administrator
            title: Session title
            duration_seconds: Length of the voting window, > 0
            candidate_names: At least MIN_CANDIDATES names, in slate order

        Raises:
            Unauthorized: If caller is not the administrator
            SessionAlreadyActive: If a session is currently active
            InsufficientCandidates: If fewer than MIN_CANDIDATES names are given
            InvalidDuration: If duration_seconds is not a positive, representable length
        """
        validate_identity(caller)
        names = list(candidate_names)

        with self.environment.atomic() as scope:
            self._require_administrator(caller)
            if self._session is not None and self._session.is_active:
                raise self._reject(SessionAlreadyActive(
                    f"Session {self._session.title!r} is still active"
                ))
            if len(names) < MIN_CANDIDATES:
                raise self._reject(InsufficientCandidates(
                    f"At least {MIN_CANDIDATES} candidates required, got {len(names)}"
                ))
            end_time = self._require_window_end(scope.timestamp, duration_seconds)

            # New session and slate are fully built before any field is touched
            session = VotingSession(
                title=title,
                start_time=scope.timestamp,
                end_time=end_time,
            )
            first_id = self._next_candidate_id
            slate = [
                Candidate(id=first_id + offset, name=name)
                for offset, name in enumerate(names)
            ]

            self._candidates.clear()
            self._candidate_registry.clear()
            for candidate in slate:
                self._candidates[candidate.id] = candidate
                self._candidate_registry.append(candidate.id)
            self._next_candidate_id = first_id + len(slate)
            self._session = session

            scope.emit(
                NotificationType.SESSION_CREATED,
                title=session.title,
                start_time=session.start_time,
                end_time=session.end_time,
            )
            for candidate in slate:
                scope.emit(NotificationType.CANDIDATE_ADDED, id=candidate.id, name=candidate.name)

        if self.verbose:
            print(f"✓ SESSION CREATED: {title!r} [{session.start_time} → {session.end_time}] "
                  f"candidates={[c.name for c in slate]}")

    def end_session(self, caller: VoterId) -> None:
        """
        Close the active session.

        The administrator may end a session before its end_time. Candidates and
        counts stay queryable until the next create_session.

        Raises:
            Unauthorized: If caller is not the administrator
            NoActiveSession: If no session is active
        """
        validate_identity(caller)
        with self.environment.atomic() as scope:
            self._require_administrator(caller)
            session = self._require_active_session()
            self._session = session.closed()
            scope.emit(
                NotificationType.SESSION_ENDED,
                title=session.title,
                total_votes=session.total_votes,
            )

        if self.verbose:
            print(f"✓ SESSION ENDED: {session.title!r} total_votes={session.total_votes}")

    # ========================================================================
    # AUTHORIZATION (Mutating)
    # ========================================================================

    def authorize_voter(self, caller: VoterId, address: VoterId) -> None:
        """Add one identity to the authorization set. Re-authorizing is a no-op."""
        self.authorize_voters(caller, [address])

    def authorize_voters(self, caller: VoterId, addresses: Iterable[VoterId]) -> None:
        """
        Add identities to the authorization set.

        Every address is validated before any is added.

        Raises:
            Unauthorized: If caller is not the administrator
            ValueError: If an address is not a non-empty string
        """
        validate_identity(caller)
        batch = [validate_identity(address) for address in addresses]
        with self.environment.atomic():
            self._require_administrator(caller)
            added = [address for address in dict.fromkeys(batch) if address not in self._authorized]
            self._authorized.update(added)

        if self.verbose:
            print(f"✓ AUTHORIZED: {len(added)} new of {len(batch)} given")

    # ========================================================================
    # VOTING (Mutating)
    # ========================================================================

    def cast_vote(self, caller: VoterId, candidate_id: CandidateId) -> None:
        """
        Record the caller's single vote for a candidate of the current slate.

        Checks, in order: authorization, active session, time window,
        no earlier vote, candidate exists.

        Raises:
            Unauthorized: If caller is not on the authorization list
            NoActiveSession: If no session is active
            VotingNotStarted: If current time is before start_time
            VotingEnded: If current time is after end_time
            AlreadyVoted: If caller has voted in any session before
            CandidateNotFound: If candidate_id is not on the current slate
        """
        validate_identity(caller)
        with self.environment.atomic() as scope:
            self._require_authorized(caller)
            session = self._require_active_session()
            self._require_voting_window(session, scope.timestamp)
            self._require_not_voted(caller)
            candidate = self._require_candidate(candidate_id)

            self._voted.add(caller)
            self._candidates[candidate.id] = candidate.with_vote()
            self._session = session.with_vote()
            scope.emit(NotificationType.VOTE_CAST, voter=caller, candidate_id=candidate.id)

        if self.verbose:
            print(f"✓ VOTE CAST: {caller} → #{candidate.id} {candidate.name}")

    # ========================================================================
    # QUERIES
    # ========================================================================

    def get_results(self) -> ElectionResults:
        """
        Leader of the current slate and the session total.

        Works in any session state. When no candidate has a vote the winner
        fields are ("", 0); an empty slate is an error instead.

        Raises:
            NoCandidates: If the current slate is empty
        """
        with self.environment.read():
            if not self._candidate_registry:
                raise self._reject(NoCandidates("No candidates in the current session"))
            return compute_results(self)

    def list_candidates(self) -> CandidateListing:
        """The current slate as parallel (ids, names, vote_counts) tuples."""
        with self.environment.read():
            slate = [self._candidates[cid] for cid in self._candidate_registry]
        return CandidateListing(
            ids=tuple(c.id for c in slate),
            names=tuple(c.name for c in slate),
            vote_counts=tuple(c.vote_count for c in slate),
        )

    def get_session_info(self, caller: Optional[VoterId] = None) -> SessionInfo:
        """
        Session fields plus whether caller has ever voted.

        Before the first session, title is "" and both times are None.
        """
        with self.environment.read():
            session = self._session
            caller_has_voted = caller is not None and caller in self._voted
        if session is None:
            return SessionInfo("", None, None, False, 0, caller_has_voted)
        return SessionInfo(
            title=session.title,
            start_time=session.start_time,
            end_time=session.end_time,
            is_active=session.is_active,
            total_votes=session.total_votes,
            caller_has_voted=caller_has_voted,
        )

    def verify_tally(self) -> Dict[str, Any]:
        """
        Check that per-candidate counts add up to the session total.

        Returns:
            Dict with keys:
            - 'valid': bool - True if the counts are consistent
            - 'total_votes': int - The session's total_votes (0 without a session)
            - 'counted': int - Sum of vote_count over the current slate
            - 'discrepancies': List[Dict] - One entry per violated check

        Example:
            result = ledger.verify_tally()
            assert result['valid'], result['discrepancies']
        """
        with self.environment.read():
            session = self._session
            counted = sum(self._candidates[cid].vote_count for cid in self._candidate_registry)
            total = session.total_votes if session is not None else 0
            voters = len(self._voted)

        discrepancies = []
        if counted != total:
            discrepancies.append({
                'check': 'sum_of_counts',
                'expected': total,
                'actual': counted,
                'difference': counted - total,
            })
        # Every counted vote belongs to a distinct identity in the voted set
        if total > voters:
            discrepancies.append({
                'check': 'voters',
                'expected': total,
                'actual': voters,
                'difference': voters - total,
            })

        return {
            'valid': len(discrepancies) == 0,
            'total_votes': total,
            'counted': counted,
            'discrepancies': discrepancies,
        }

    # ========================================================================
    # LEDGER OPERATIONS
    # ========================================================================

    def clone(self) -> ElectionLedger:
        """
        Create an independent copy of this ledger.

        Cloned state includes the session, slate, authorization and voted sets,
        the id counter, and a cloned environment (clock and notification log,
        without subscribers).

        Returns:
            A new ElectionLedger with identical state
        """
        with self.environment.read():
            cloned = ElectionLedger.__new__(ElectionLedger)
            cloned.administrator = self.administrator
            cloned.environment = self.environment.clone()
            cloned.verbose = self.verbose
            cloned._session = self._session
            cloned._candidates = dict(self._candidates)
            cloned._candidate_registry = list(self._candidate_registry)
            cloned._authorized = copy.copy(self._authorized)
            cloned._voted = copy.copy(self._voted)
            cloned._next_candidate_id = self._next_candidate_id
            return cloned
