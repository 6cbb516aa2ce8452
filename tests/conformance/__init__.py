"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the election ledger.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. test_one_vote.py - One vote per identity, ever, across sessions
2. test_tally.py - Per-candidate counts sum to the session total; leader selection
3. test_atomicity.py - Rejected operations leave state and log unchanged
4. test_lifecycle.py - Session state machine transitions

These tests use hypothesis for property-based testing.
"""
