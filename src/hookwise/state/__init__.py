"""Turn state persistence and file change tracking."""

from hookwise.state.tracker import FileTracker, extract_paths, hash_file, hash_files
from hookwise.state.turn import TurnState, TurnStateHandle, TurnStateStore

__all__ = [
    "FileTracker",
    "TurnState",
    "TurnStateHandle",
    "TurnStateStore",
    "extract_paths",
    "hash_file",
    "hash_files",
]
