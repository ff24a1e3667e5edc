"""ripplestore: reactive containers with automatic dependency tracking."""

from importlib.metadata import version as _version

__version__ = _version("ripplestore")

from ripplestore._errors import RippleError, AsyncComputationError
from ripplestore._runtime import (
    Runtime,
    get_pending_count,
    get_runtime,
    reset_runtime,
    use_runtime,
)
from ripplestore.container import Container, Readable, readable
from ripplestore.derived import Derived, derived
from ripplestore.action import action, batch, transaction
from ripplestore.reaction import Reaction, observe, reaction
from ripplestore.when import after_change, when_matches, when_readable

__all__ = [
    "Container",
    "Readable",
    "readable",
    "Derived",
    "derived",
    "batch",
    "action",
    "transaction",
    "Reaction",
    "observe",
    "reaction",
    "when_matches",
    "when_readable",
    "after_change",
    "Runtime",
    "get_runtime",
    "use_runtime",
    "reset_runtime",
    "get_pending_count",
    "RippleError",
    "AsyncComputationError",
]
