"""
test_election_scenarios.py - End-to-end election lifecycles

Scenarios:
- The board election walkthrough: create, authorize, vote, double vote, expiry, end
- Several consecutive sessions with a shared voter population
- Notification log as the full audit trail of a session
"""

import pytest
from datetime import timedelta

from election_ledger import (
    ElectionLedger, ElectionResults, NotificationType, SessionStatus,
    AlreadyVoted, VotingEnded, SessionAlreadyActive, NoActiveSession,
    compute_standings,
)

from tests.helpers import ADMIN, START, make_ledger, assert_tally_consistent


class TestBoardElection:
    """The reference walkthrough, step by step."""

    def test_full_walkthrough(self):
        ledger = make_ledger()
        x, late = "0xX", "0xLate"

        ledger.create_session(ADMIN, "Board Election", 3600, ["Alice", "Bob"])
        listing = ledger.list_candidates()
        assert listing.ids == (1, 2)
        info = ledger.get_session_info()
        assert info.is_active
        assert info.end_time == info.start_time + timedelta(seconds=3600)

        ledger.authorize_voter(ADMIN, x)
        ledger.cast_vote(x, 1)
        assert ledger.get_candidate(1).vote_count == 1
        assert ledger.get_session_info(x) == info._replace(total_votes=1, caller_has_voted=True)

        with pytest.raises(AlreadyVoted):
            ledger.cast_vote(x, 2)

        ledger.authorize_voter(ADMIN, late)
        ledger.environment.advance_time(info.end_time + timedelta(seconds=1))
        with pytest.raises(VotingEnded):
            ledger.cast_vote(late, 2)

        ledger.end_session(ADMIN)
        assert ledger.get_session_info().is_active is False
        ended = ledger.notifications(NotificationType.SESSION_ENDED)
        assert len(ended) == 1
        assert ended[0].params_dict["total_votes"] == 1
        assert ledger.get_results() == ElectionResults("Alice", 1, 1)


class TestConsecutiveSessions:
    """A shared electorate across several sessions."""

    def test_three_sessions_one_vote_each_voter(self):
        ledger = make_ledger()
        electorate = [f"0x{i:03d}" for i in range(9)]
        ledger.authorize_voters(ADMIN, electorate)

        # Each session gets its own third of the electorate; earlier voters stay locked out
        for round_no in range(3):
            if round_no:
                ledger.end_session(ADMIN)
                ledger.environment.advance_time(START + timedelta(days=round_no))
            ledger.create_session(ADMIN, f"Round {round_no}", 600, ["Yes", "No"])
            yes_id, no_id = ledger.candidate_ids()

            voters = electorate[round_no * 3:(round_no + 1) * 3]
            for v in voters:
                ledger.cast_vote(v, yes_id)
            for v in electorate[:round_no * 3]:
                with pytest.raises(AlreadyVoted):
                    ledger.cast_vote(v, no_id)

            assert ledger.get_results() == ElectionResults("Yes", 3, 3)
            assert_tally_consistent(ledger)

        assert ledger.candidate_ids() == [5, 6]
        assert all(ledger.has_voted(v) for v in electorate)

    def test_state_machine_transitions(self):
        ledger = make_ledger()
        assert ledger.status == SessionStatus.UNINITIALIZED
        with pytest.raises(NoActiveSession):
            ledger.end_session(ADMIN)

        ledger.create_session(ADMIN, "One", 60, ["A", "B"])
        assert ledger.status == SessionStatus.ACTIVE
        with pytest.raises(SessionAlreadyActive):
            ledger.create_session(ADMIN, "Two", 60, ["C", "D"])

        ledger.end_session(ADMIN)
        assert ledger.status == SessionStatus.ENDED

        ledger.create_session(ADMIN, "Two", 60, ["C", "D"])
        assert ledger.status == SessionStatus.ACTIVE

    def test_expired_but_not_ended_blocks_new_session(self):
        ledger = make_ledger()
        ledger.create_session(ADMIN, "One", 60, ["A", "B"])
        ledger.environment.advance_time(START + timedelta(hours=1))
        with pytest.raises(SessionAlreadyActive):
            ledger.create_session(ADMIN, "Two", 60, ["C", "D"])


class TestAuditTrail:
    """The notification log replays what happened."""

    def test_log_reconstructs_tally(self):
        ledger = make_ledger()
        ledger.create_session(ADMIN, "Poll", 600, ["A", "B", "C"])
        votes = {"0x1": 2, "0x2": 3, "0x3": 2, "0x4": 1}
        ledger.authorize_voters(ADMIN, votes)
        for voter, cid in votes.items():
            ledger.cast_vote(voter, cid)

        rebuilt = {cid: 0 for cid in ledger.candidate_ids()}
        for n in ledger.notifications(NotificationType.VOTE_CAST):
            rebuilt[n.params_dict["candidate_id"]] += 1

        listing = ledger.list_candidates()
        assert rebuilt == dict(zip(listing.ids, listing.vote_counts))
        assert [c.name for c in compute_standings(ledger)] == ["B", "A", "C"]

    def test_subscriber_sees_session_in_order(self):
        ledger = make_ledger()
        seen = []
        ledger.environment.subscribe(lambda n: seen.append(n.kind))
        ledger.authorize_voter(ADMIN, "0x1")
        ledger.create_session(ADMIN, "Poll", 600, ["A", "B"])
        ledger.cast_vote("0x1", 2)
        ledger.end_session(ADMIN)
        assert seen == [
            NotificationType.SESSION_CREATED,
            NotificationType.CANDIDATE_ADDED,
            NotificationType.CANDIDATE_ADDED,
            NotificationType.VOTE_CAST,
            NotificationType.SESSION_ENDED,
        ]

    def test_verbose_output(self, capsys):
        ledger = ElectionLedger(ADMIN, initial_time=START, verbose=True)
        ledger.create_session(ADMIN, "Poll", 600, ["A", "B"])
        ledger.end_session(ADMIN)
        with pytest.raises(NoActiveSession):
            ledger.end_session(ADMIN)
        out = capsys.readouterr().out
        assert "SESSION CREATED" in out
        assert "SESSION ENDED" in out
        assert "REJECTED: No active voting session" in out
