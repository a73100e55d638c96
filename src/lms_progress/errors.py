"""Exception types raised by the progress pipeline.

Only transport-level problems surface as exceptions. Missing records are a
normal "not interacted yet" outcome and malformed records resolve to their
safest default state, so neither has an exception type here.
"""

from __future__ import annotations


class ProgressError(Exception):
    """Base class for errors raised by lms_progress."""


class TransportFailure(ProgressError):
    """A source adapter call failed as a whole (network, auth, server error).

    Raised from a refresh pass as a retryable error. The previously resolved
    state is left untouched when this propagates.
    """

    def __init__(self, operation: str, message: str = "", *, retryable: bool = True):
        self.operation = operation
        self.retryable = retryable
        detail = f"{operation} failed"
        if message:
            detail = f"{detail}: {message}"
        super().__init__(detail)
