"""Git access for the commit squash tool."""

from .gateway import GitGateway
from .history import CommitHistoryReader
from .replay import CommitReplayer
from .state import RepositoryStateSnapshot

__all__ = ["GitGateway", "CommitHistoryReader", "CommitReplayer", "RepositoryStateSnapshot"]
