from __future__ import annotations

import string

from authgate.auth import RedirectStateGenerator, new_state_token


def test_tokens_are_printable_and_unique():
    tokens = {new_state_token() for _ in range(200)}
    assert len(tokens) == 200
    allowed = set(string.ascii_letters + string.digits + "-_")
    for t in tokens:
        assert len(t) >= 40
        assert set(t) <= allowed


def test_verify_accepts_latest_token_once():
    states = RedirectStateGenerator()
    token = states.issue()
    assert states.outstanding
    assert states.verify(token)
    # Single use.
    assert not states.outstanding
    assert not states.verify(token)


def test_issue_supersedes_previous_token():
    states = RedirectStateGenerator()
    first = states.issue()
    second = states.issue()
    assert first != second
    assert not states.verify(first)


def test_mismatch_retires_token():
    tokens = iter(["S1"])
    states = RedirectStateGenerator(token_factory=lambda: next(tokens))
    states.issue()
    assert not states.verify("S2")
    assert not states.verify("S1")


def test_verify_rejects_empty_and_unissued():
    states = RedirectStateGenerator()
    assert not states.verify("anything")
    states.issue()
    assert not states.verify("")


def test_discard():
    states = RedirectStateGenerator()
    token = states.issue()
    states.discard()
    assert not states.verify(token)


def test_discard_of_superseded_token_keeps_current():
    tokens = iter(["S1", "S2"])
    states = RedirectStateGenerator(token_factory=lambda: next(tokens))
    states.issue()
    states.issue()
    states.discard("S1")
    assert states.outstanding
    assert states.verify("S2")
