"""Core functionality for the commit squash tool."""

from .config import SquashConfig
from .message import CommitMessageResolver
from .types import (
    Commit, CommitRange, RepositoryState, SquashResult, SquashStage, ReplayOutcome,
    SquashError, InsufficientSelectionError, NoParentForAnchorError,
    NoMessageProvidedError, HistoryUnavailableError, UnsupportedHistoryError,
    DetachedHeadError, ReplayConflictError, GatewayFailureError, SquashTimeoutError
)

__all__ = [
    "SquashConfig", "CommitMessageResolver",
    "Commit", "CommitRange", "RepositoryState", "SquashResult", "SquashStage", "ReplayOutcome",
    "SquashError", "InsufficientSelectionError", "NoParentForAnchorError",
    "NoMessageProvidedError", "HistoryUnavailableError", "UnsupportedHistoryError",
    "DetachedHeadError", "ReplayConflictError", "GatewayFailureError", "SquashTimeoutError"
]
