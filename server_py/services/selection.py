"""Selection of source files, kept as plain paths independent of the tree."""
from typing import List, Set

from core.logging import log_info
from schemas.entities import FileReference
from services.tree_store import RemoteTreeStore, normalize_path
from utils.file_types import get_language


class SelectionTracker:
    """Set of chosen file paths.

    A path can be selected before its node has been listed; only
    ``materialize`` decides which selections are usable right now.
    """

    def __init__(self):
        self._selected: Set[str] = set()

    @property
    def paths(self) -> Set[str]:
        return set(self._selected)

    def is_selected(self, path: str) -> bool:
        return normalize_path(path) in self._selected

    def toggle(self, path: str) -> bool:
        """Flip selection of ``path``; returns the new state."""
        path = normalize_path(path)
        if path in self._selected:
            self._selected.discard(path)
            return False
        self._selected.add(path)
        return True

    def select_all(self, tree: RemoteTreeStore) -> int:
        """Select every recognized code file in the already-listed subtree."""
        code_files = [
            node.path for node in tree.walk()
            if not node.is_directory and get_language(node.name)
        ]
        self._selected = set(code_files)
        log_info(f"Selected {len(code_files)} code files", "selection")
        return len(code_files)

    def clear(self) -> None:
        self._selected.clear()

    def materialize(self, tree: RemoteTreeStore) -> List[FileReference]:
        """Selected files that exist in ``tree`` as code files, in tree order."""
        if not self._selected:
            return []
        return [
            FileReference(name=node.name, path=node.path)
            for node in tree.walk()
            if node.path in self._selected
            and not node.is_directory
            and get_language(node.name)
        ]
