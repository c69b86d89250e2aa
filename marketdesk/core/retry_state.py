"""Retry State - explicit attempt/backoff state machine for rate-limited eBay calls.

Invariants:
    - RetryState is immutable; every transition returns a new state
    - Each rate-limited attempt waits backoff_ms, then backoff_ms doubles (1000, 2000, 4000, ...)
    - attempt counts rate-limited attempts already waited out; exhausted iff attempt >= max_attempts
    - Only the rate-limit signal advances the machine; every other failure is terminal

State machine for one outbound search call:
    INIT -> REQUESTING -> (SUCCESS | RATE_LIMITED | FAILED)
    RATE_LIMITED -> WAITING -> REQUESTING   (attempt < max_attempts)
    RATE_LIMITED -> FAILED                  (attempt == max_attempts)

Design Decisions:
    - Pure module (no sleep, no IO): the client drives the waits
    - Rate-limit detection reads both eBay error envelopes (legacy Finding and REST)
"""

from collections.abc import Iterable
from dataclasses import dataclass, replace
from enum import Enum


class CallPhase(str, Enum):
    """Phases of a single outbound call."""
    INIT = "init"
    REQUESTING = "requesting"
    RATE_LIMITED = "rate_limited"
    WAITING = "waiting"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class RetryState:
    """Attempt counter and current backoff for one outbound request."""
    attempt: int
    backoff_ms: int
    max_attempts: int
    phase: CallPhase = CallPhase.INIT

    @classmethod
    def initial(cls, max_attempts: int = 5, initial_backoff_ms: int = 1000) -> "RetryState":
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        return cls(attempt=0, backoff_ms=initial_backoff_ms, max_attempts=max_attempts)

    @property
    def exhausted(self) -> bool:
        return self.attempt >= self.max_attempts

    def requesting(self) -> "RetryState":
        return replace(self, phase=CallPhase.REQUESTING)

    def rate_limited(self) -> "RetryState":
        return replace(self, phase=CallPhase.RATE_LIMITED)

    def after_backoff(self) -> "RetryState":
        """Count the attempt and double the backoff; FAILED at the ceiling."""
        attempt = self.attempt + 1
        phase = (
            CallPhase.FAILED if attempt >= self.max_attempts
            else CallPhase.WAITING
        )
        return replace(
            self, attempt=attempt, backoff_ms=self.backoff_ms * 2, phase=phase,
        )

    def succeeded(self) -> "RetryState":
        return replace(self, phase=CallPhase.SUCCESS)

    def failed(self) -> "RetryState":
        return replace(self, phase=CallPhase.FAILED)


def extract_error_ids(payload: object) -> list[str]:
    """Collect eBay error ids from either error envelope. Never raises."""
    if not isinstance(payload, dict):
        return []
    ids: list[str] = []

    # REST envelope: {"errors": [{"errorId": 10001, ...}]}
    errors = payload.get("errors")
    if isinstance(errors, list):
        for err in errors:
            if isinstance(err, dict) and err.get("errorId") is not None:
                ids.append(str(err["errorId"]))

    # Finding envelope: {"errorMessage": [{"error": [{"errorId": ["10001"]}]}]}
    messages = payload.get("errorMessage")
    if isinstance(messages, list):
        for msg in messages:
            inner = msg.get("error") if isinstance(msg, dict) else None
            if not isinstance(inner, list):
                continue
            for err in inner:
                raw = err.get("errorId") if isinstance(err, dict) else None
                if isinstance(raw, list):
                    ids.extend(str(v) for v in raw)
                elif raw is not None:
                    ids.append(str(raw))
    return ids


def is_rate_limited(payload: object, error_ids: Iterable[str]) -> bool:
    """True when the error body carries one of the rate-limit error ids."""
    wanted = {str(e) for e in error_ids}
    return any(e in wanted for e in extract_error_ids(payload))
