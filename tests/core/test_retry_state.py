"""Tests for RetryState and rate-limit envelope detection."""

import pytest

from marketdesk.core.retry_state import (
    CallPhase, RetryState, extract_error_ids, is_rate_limited,
)


def test_initial_state():
    state = RetryState.initial()
    assert state.attempt == 0
    assert state.backoff_ms == 1000
    assert state.max_attempts == 5
    assert state.phase == CallPhase.INIT
    assert not state.exhausted


def test_backoff_doubles_each_round_until_exhausted():
    state = RetryState.initial(max_attempts=5, initial_backoff_ms=1000)
    waits = []
    while True:
        state = state.requesting().rate_limited()
        waits.append(state.backoff_ms)
        state = state.after_backoff()
        if state.exhausted:
            break
    assert waits == [1000, 2000, 4000, 8000, 16000]
    assert state.attempt == 5
    assert state.phase == CallPhase.FAILED


def test_after_backoff_is_waiting_below_ceiling():
    state = RetryState.initial(max_attempts=3).rate_limited().after_backoff()
    assert state.phase == CallPhase.WAITING
    assert state.attempt == 1


def test_transitions_do_not_mutate():
    state = RetryState.initial()
    state.after_backoff()
    assert state.attempt == 0
    assert state.backoff_ms == 1000


def test_zero_attempts_rejected():
    with pytest.raises(ValueError):
        RetryState.initial(max_attempts=0)


def test_rest_envelope_rate_limit_detected():
    payload = {"errors": [{"errorId": 10001, "domain": "ACCESS", "message": "Too many"}]}
    assert is_rate_limited(payload, ["10001"])


def test_finding_envelope_rate_limit_detected():
    payload = {"errorMessage": [{"error": [{"errorId": ["10001"], "domain": ["Security"]}]}]}
    assert is_rate_limited(payload, ["10001"])


def test_other_error_ids_are_not_rate_limits():
    payload = {"errors": [{"errorId": 12001, "message": "Invalid filter"}]}
    assert not is_rate_limited(payload, ["10001"])


def test_malformed_envelopes_never_raise():
    for payload in (None, "text", [], {"errors": "x"}, {"errorMessage": [None, {"error": "x"}]}):
        assert extract_error_ids(payload) == []
        assert not is_rate_limited(payload, ["10001"])


def test_non_rate_limit_failure_keeps_counters():
    state = RetryState.initial().requesting().failed()
    assert state.phase == CallPhase.FAILED
    assert state.attempt == 0
    assert state.backoff_ms == 1000
