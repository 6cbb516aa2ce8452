"""
Tally Conformance Tests

INVARIANT: Counts are conserved and the leader is first-past-the-post.

    Σ(vote_count over the slate) = total_votes   after any sequence of votes

    leader = first candidate (insertion order) whose vote_count is maximal and > 0
    no positive count ⟹ results = ("", 0, total_votes)
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from election_ledger import ElectionResults

from tests.helpers import ADMIN, make_ledger, open_session, assert_tally_consistent


def _ledger_with_counts(counts):
    """Build a ledger whose slate received exactly these counts."""
    ledger = make_ledger()
    names = tuple(f"C{i}" for i in range(len(counts)))
    ids = open_session(ledger, names=names)
    voters = [f"0x{i:05d}" for i in range(sum(counts))]
    ledger.authorize_voters(ADMIN, voters)
    it = iter(voters)
    for cid, count in zip(ids, counts):
        for _ in range(count):
            ledger.cast_vote(next(it), cid)
    return ledger, names


class TestTallyProperties:

    @given(st.lists(st.integers(min_value=0, max_value=6), min_size=2, max_size=6))
    @settings(max_examples=50)
    def test_counts_sum_to_total(self, counts):
        """
        PROPERTY: per-candidate counts always add up to the session total.
        """
        ledger, _ = _ledger_with_counts(counts)
        assert sum(ledger.list_candidates().vote_counts) == ledger.get_session_info().total_votes
        assert_tally_consistent(ledger)

    @given(st.lists(st.integers(min_value=0, max_value=6), min_size=2, max_size=6))
    @settings(max_examples=50)
    def test_leader_matches_reference_scan(self, counts):
        """
        PROPERTY: get_results agrees with a left-to-right strictly-greater scan.
        """
        ledger, names = _ledger_with_counts(counts)

        best_name, best_votes = "", 0
        for name, count in zip(names, counts):
            if count > best_votes:
                best_name, best_votes = name, count

        assert ledger.get_results() == ElectionResults(best_name, best_votes, sum(counts))


class TestTallyExamples:

    def test_tie_first_inserted_wins(self):
        ledger, _ = _ledger_with_counts([3, 3])
        assert ledger.get_results() == ElectionResults("C0", 3, 6)

    def test_all_zero_three_candidates(self):
        ledger, _ = _ledger_with_counts([0, 0, 0])
        assert ledger.get_results() == ElectionResults("", 0, 0)
