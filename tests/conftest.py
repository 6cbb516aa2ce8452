"""
conftest.py - Shared pytest fixtures for ElectionLedger tests

Provides common fixtures used across unit and functional tests:
- Basic ledgers (empty, with an active session, with authorized voters)
- Notification capture
"""

import pytest
from typing import List

from election_ledger import ExecutionEnvironment, Notification

from tests.helpers import ADMIN, START, VOTERS, make_ledger, open_session


# =============================================================================
# BASIC FIXTURES
# =============================================================================

@pytest.fixture
def ledger():
    """Fresh ledger with no session."""
    return make_ledger()


@pytest.fixture
def active_ledger():
    """Ledger with an active three-candidate session (ids 1, 2, 3)."""
    ledger = make_ledger()
    open_session(ledger)
    return ledger


@pytest.fixture
def voting_ledger(active_ledger):
    """Active session with VOTERS authorized."""
    active_ledger.authorize_voters(ADMIN, VOTERS)
    return active_ledger


@pytest.fixture
def captured(voting_ledger):
    """List that receives every notification committed from now on."""
    received: List[Notification] = []
    voting_ledger.environment.subscribe(received.append)
    return received


@pytest.fixture
def environment():
    """Quiet environment starting at START."""
    return ExecutionEnvironment(initial_time=START, verbose=False)
