"""ripplestore error hierarchy.

All ripplestore-specific errors inherit from RippleError for easy catching.
Errors raised by user functions (computations, subscribers, equality
checks) are never wrapped; they propagate as raised.
"""


class RippleError(Exception):
    """Base error for all ripplestore operations."""


class AsyncComputationError(RippleError, TypeError):
    """A tracked function returned an awaitable.

    Reads made after the first await happen outside the tracked run, so
    the computation would never re-run when those values change.
    """
