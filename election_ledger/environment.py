"""
environment.py - Execution Environment for the Election Ledger

The environment is the collaborator the ledger runs on. It supplies:
    - A logical clock that only moves forward
    - Serialized operation scopes: every mutating operation runs to completion
      under one re-entrant lock, so no two operations interleave
    - An append-only notification log with subscribers

Notifications emitted inside an operation scope are buffered and committed to
the log only when the scope exits cleanly. A rejected operation therefore
leaves no trace in the log.
"""

from __future__ import annotations
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Dict, Iterator, List, Optional, Set, Tuple
import threading

from .core import EPOCH, Notification, NotificationType


# Subscriber type: receives each committed notification in sequence order.
NotificationHandler = Callable[[Notification], None]


class OperationScope:
    """
    Buffer for the notifications of one in-flight operation.

    Created by ExecutionEnvironment.atomic(); not meant to be built directly.
    """

    def __init__(self, timestamp: datetime):
        self.timestamp = timestamp
        self._pending: List[Tuple[NotificationType, Tuple[Tuple[str, Any], ...]]] = []

    def emit(self, kind: NotificationType, **params: Any) -> None:
        """Queue a notification; it is logged only if the operation completes."""
        self._pending.append((kind, tuple(params.items())))

    @property
    def pending(self) -> List[Tuple[NotificationType, Tuple[Tuple[str, Any], ...]]]:
        return list(self._pending)


class ExecutionEnvironment:
    """
    Clock, serialization and notification log for an ElectionLedger.

    Thread Safety:
        All state is guarded by a single RLock. atomic() and read() both hold it,
        so a query never observes a partially applied mutation. Subscribers run
        while the lock is held and may call read-only queries. A subscriber
        that raises does not fail the committed operation: the exception is
        recorded in handler_failures and delivery continues with the next
        handler.

    Example:
        env = ExecutionEnvironment(initial_time=datetime(2025, 1, 1))
        env.subscribe(print, kinds={NotificationType.VOTE_CAST})
        with env.atomic() as scope:
            scope.emit(NotificationType.VOTE_CAST, voter="alice", candidate_id=1)
    """

    def __init__(self, initial_time: Optional[datetime] = None, verbose: bool = True):
        """
        Create an environment.

        Args:
            initial_time: Starting logical time (default: 1970-01-01)
            verbose: Print a line for each committed notification (default: True)
        """
        self._current_time: datetime = initial_time or EPOCH
        self.verbose = verbose
        self._lock = threading.RLock()
        self._log: List[Notification] = []
        self._next_sequence: int = 0
        self._subscribers: List[Tuple[NotificationHandler, Optional[Set[NotificationType]]]] = []
        # (notification, handler, exception) for every handler that raised
        self.handler_failures: List[Tuple[Notification, NotificationHandler, Exception]] = []

    # ========================================================================
    # TIME MANAGEMENT
    # ========================================================================

    @property
    def current_time(self) -> datetime:
        """Current logical time."""
        return self._current_time

    def advance_time(self, new_time: datetime) -> None:
        """
        Advance the logical clock to a new time.

        Time can only move forward, never backward.

        Raises:
            ValueError: If new_time is before the current time
        """
        with self._lock:
            if new_time < self._current_time:
                raise ValueError(
                    f"Cannot move time backwards: {new_time} < {self._current_time}"
                )
            self._current_time = new_time

    # ========================================================================
    # SERIALIZATION
    # ========================================================================

    @contextmanager
    def atomic(self) -> Iterator[OperationScope]:
        """
        Run one mutating operation as an indivisible unit.

        The lock is held for the whole check -> mutate -> notify sequence.
        Buffered notifications are committed on clean exit and discarded if the
        body raises.
        """
        with self._lock:
            scope = OperationScope(self._current_time)
            yield scope
            self._commit(scope)

    @contextmanager
    def read(self) -> Iterator[None]:
        """Hold the lock for a consistent-snapshot read."""
        with self._lock:
            yield

    def _commit(self, scope: OperationScope) -> None:
        committed = []
        for kind, params in scope.pending:
            notification = Notification(
                sequence_number=self._next_sequence,
                timestamp=scope.timestamp,
                kind=kind,
                params=params,
            )
            self._next_sequence += 1
            self._log.append(notification)
            committed.append(notification)
            if self.verbose:
                print(f"  📣 {notification!r}")

        for notification in committed:
            for handler, kinds in list(self._subscribers):
                if kinds is None or notification.kind in kinds:
                    self._deliver(handler, notification)

    def _deliver(self, handler: NotificationHandler, notification: Notification) -> None:
        # Handler errors never propagate into an operation that already committed
        try:
            handler(notification)
        except Exception as e:
            self.handler_failures.append((notification, handler, e))
            if self.verbose:
                print(f"  ⚠️  SUBSCRIBER FAILED: {handler!r} on #{notification.sequence_number}: {e!r}")

    # ========================================================================
    # NOTIFICATION LOG
    # ========================================================================

    def subscribe(
        self,
        handler: NotificationHandler,
        kinds: Optional[Set[NotificationType]] = None,
    ) -> None:
        """
        Register a handler for committed notifications.

        Args:
            handler: Called once per notification, in sequence order
            kinds: Only deliver these notification types (default: all)
        """
        with self._lock:
            self._subscribers.append((handler, set(kinds) if kinds is not None else None))

    def unsubscribe(self, handler: NotificationHandler) -> None:
        """Remove every registration of handler. Unknown handlers are ignored."""
        with self._lock:
            self._subscribers = [(h, k) for h, k in self._subscribers if h != handler]

    def notifications(
        self,
        kind: Optional[NotificationType] = None,
        since: int = 0,
    ) -> List[Notification]:
        """
        Return committed notifications.

        Args:
            kind: Only return this notification type
            since: Only return entries with sequence_number >= since
        """
        with self._lock:
            return [
                n for n in self._log[since:]
                if kind is None or n.kind == kind
            ]

    def clone(self) -> ExecutionEnvironment:
        """
        Copy clock and log into an independent environment.

        Subscribers are not carried over.
        """
        with self._lock:
            cloned = ExecutionEnvironment(self._current_time, verbose=self.verbose)
            cloned._log = list(self._log)
            cloned._next_sequence = self._next_sequence
            return cloned
