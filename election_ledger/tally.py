"""
tally.py - Pure tally functions over an ElectionView

All functions take a read-only view and return fresh values:
1. load_tally() - Extract the slate once as parallel arrays
2. leading_index() - Pure leader selection on a counts array
3. compute_results() - Leader name, leader votes and session total
4. compute_vote_shares() - Each candidate's share of the session total
5. compute_standings() - Slate ordered by votes, ties kept in insertion order

Tie-break rule: a later candidate only overtakes the leader with strictly more
votes, so among equal counts the earliest inserted candidate leads.
numpy.argmax returns the first maximal index, which is exactly that rule.
"""

from __future__ import annotations
from typing import Dict, List, Optional, Tuple

import numpy as np

from .core import (
    ElectionView, Candidate, CandidateId, ElectionResults,
)


def load_tally(view: ElectionView) -> Tuple[List[CandidateId], List[str], np.ndarray]:
    """
    Read the current slate in registry order.

    Returns:
        (ids, names, counts) where counts is an int64 array aligned with ids.
    """
    ids = view.candidate_ids()
    candidates = [view.get_candidate(cid) for cid in ids]
    names = [c.name for c in candidates]
    counts = np.array([c.vote_count for c in candidates], dtype=np.int64)
    return ids, names, counts


def leading_index(counts: np.ndarray) -> Optional[int]:
    """
    Index of the leader in a counts array.

    Returns None for an empty array or when no entry is positive.
    """
    if counts.size == 0 or counts.max() <= 0:
        return None
    return int(np.argmax(counts))


def _session_total(view: ElectionView) -> int:
    session = view.session
    return session.total_votes if session is not None else 0


def compute_results(view: ElectionView) -> ElectionResults:
    """
    Compute the leader of the current slate.

    The caller is responsible for rejecting an empty slate; here an empty slate
    simply has no leader.
    """
    _, names, counts = load_tally(view)
    total = _session_total(view)
    idx = leading_index(counts)
    if idx is None:
        return ElectionResults(winner_name="", winner_votes=0, total_votes=total)
    return ElectionResults(
        winner_name=names[idx],
        winner_votes=int(counts[idx]),
        total_votes=total,
    )


def compute_vote_shares(view: ElectionView) -> Dict[CandidateId, float]:
    """
    Share of the session total held by each candidate.

    All shares are 0.0 when no votes have been cast.
    """
    ids, _, counts = load_tally(view)
    total = _session_total(view)
    if total <= 0:
        shares = np.zeros(len(ids), dtype=np.float64)
    else:
        shares = counts / float(total)
    return {cid: float(share) for cid, share in zip(ids, shares)}


def compute_standings(view: ElectionView) -> List[Candidate]:
    """Candidates by descending vote count; equal counts stay in insertion order."""
    ids, _, counts = load_tally(view)
    order = np.argsort(-counts, kind="stable")
    return [view.get_candidate(ids[i]) for i in order]
