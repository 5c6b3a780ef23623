"""Lazily materialized model of a remote repository's file tree.

Nodes live in a flat ``path -> TreeNode`` arena; a directory's ``children``
holds child paths. Directories are listed on first expansion only, and the
whole arena is dropped when the session switches repository.
"""
from typing import Any, Dict, Iterator, List, Optional

from core.logging import log_info, log_debug, log_warning
from schemas.entities import NodeKind, TreeNode
from utils.exceptions import DirectoryExpectedError, ValidationError
from utils.file_types import is_ignored

ROOT_PATH = ""


def normalize_path(path: Optional[str]) -> str:
    return (path or "").strip().strip("/")


def _collation_key(name: str):
    # punctuation and symbols, then digits, then letters; case-insensitive
    return tuple((2 if c.isalpha() else 1 if c.isdigit() else 0, c.casefold()) for c in name)


def sort_key(node: TreeNode):
    # directories first, then name; lowercase before uppercase breaks ties
    return (0 if node.is_directory else 1, _collation_key(node.name), node.name.swapcase())


def build_nodes(entries: List[Dict[str, Any]]) -> List[TreeNode]:
    """Turn raw listing entries into filtered, display-ordered nodes."""
    nodes = []
    for entry in entries:
        name, path = entry["name"], normalize_path(entry["path"])
        if is_ignored(name, path):
            continue
        kind = NodeKind.directory if entry.get("type") == "dir" else NodeKind.file
        nodes.append(TreeNode(name=name, path=path, kind=kind, size=entry.get("size")))
    return sorted(nodes, key=sort_key)


class RemoteTreeStore:
    """Partially materialized tree for one repository at a time."""

    def __init__(self, client: Any = None, repository: Optional[str] = None):
        self.client = client
        self.repository: Optional[str] = None
        self.epoch = 0
        self._nodes: Dict[str, TreeNode] = {}
        self._parents: Dict[str, str] = {}
        self.reset(repository, client)

    def reset(self, repository: Optional[str], client: Any = None) -> None:
        """Discard the whole tree and start over for ``repository``."""
        self.epoch += 1
        self.repository = repository
        if client is not None:
            self.client = client
        self._nodes = {ROOT_PATH: TreeNode(name="", path=ROOT_PATH, kind=NodeKind.directory)}
        self._parents = {}
        log_debug(f"Tree reset for {repository or '<none>'} (epoch {self.epoch})", "tree")

    @property
    def root(self) -> TreeNode:
        return self._nodes[ROOT_PATH]

    def get(self, path: str) -> Optional[TreeNode]:
        return self._nodes.get(normalize_path(path))

    def __contains__(self, path: str) -> bool:
        return normalize_path(path) in self._nodes

    def __len__(self) -> int:
        return len(self._nodes) - 1

    def parent_of(self, path: str) -> Optional[str]:
        return self._parents.get(normalize_path(path))

    def children_of(self, path: str = ROOT_PATH) -> List[TreeNode]:
        node = self.get(path)
        if node is None or not node.children:
            return []
        return [self._nodes[child] for child in node.children]

    async def list_children(self, path: str = ROOT_PATH) -> List[TreeNode]:
        """Fetch one directory level from the remote repository.

        Raises FetchError on transport failure and DirectoryExpectedError if
        ``path`` is a file.
        """
        if not self.repository or self.client is None:
            raise ValidationError("No repository selected")
        entries = await self.client.list_directory(self.repository, normalize_path(path))
        return build_nodes(entries)

    def materialize(self, path: str, children: List[TreeNode], epoch: Optional[int] = None) -> bool:
        """Attach ``children`` to the directory at ``path``.

        Returns False without touching the tree when the path is unknown or
        the listing belongs to an earlier epoch. Nodes that survive a
        re-listing keep their own materialized children.
        """
        path = normalize_path(path)
        if epoch is not None and epoch != self.epoch:
            log_debug(f"Discarding listing for '{path}' from epoch {epoch}", "tree")
            return False

        parent = self._nodes.get(path)
        if parent is None:
            log_debug(f"Discarding listing for unknown path '{path}'", "tree")
            return False
        if not parent.is_directory:
            raise DirectoryExpectedError(f"Path is not a directory: {path}")

        child_paths = []
        for child in children:
            existing = self._nodes.get(child.path)
            if existing is not None and existing.kind == child.kind:
                existing.size = child.size
            else:
                if existing is not None:
                    self._discard(child.path)
                self._nodes[child.path] = child.model_copy(update={"children": None})
            self._parents[child.path] = path
            child_paths.append(child.path)

        for stale in set(parent.children or []) - set(child_paths):
            self._discard(stale)

        parent.children = child_paths
        return True

    def _discard(self, path: str) -> None:
        node = self._nodes.pop(path, None)
        self._parents.pop(path, None)
        if node is not None and node.children:
            for child in node.children:
                self._discard(child)

    async def expand(self, path: str = ROOT_PATH, refresh: bool = False) -> List[TreeNode]:
        """List a directory on first expansion and return its children.

        A response that arrives after the tree was reset is dropped.
        """
        path = normalize_path(path)
        node = self.get(path)
        if node is None:
            raise ValidationError(f"Path not in current tree: {path or '/'}")
        if not node.is_directory:
            raise DirectoryExpectedError(f"Path is not a directory: {path}")
        if node.is_materialized and not refresh:
            return self.children_of(path)

        epoch, repository = self.epoch, self.repository
        children = await self.list_children(path)

        if epoch != self.epoch or repository != self.repository:
            log_warning(f"Stale listing for '{path}' in {repository} ignored", "tree")
            return []

        self.materialize(path, children, epoch=epoch)
        log_info(f"Materialized {len(children)} entries under '{path or '/'}' in {repository}", "tree")
        return self.children_of(path)

    async def load_root(self) -> List[TreeNode]:
        return await self.expand(ROOT_PATH)

    def walk(self, path: str = ROOT_PATH) -> Iterator[TreeNode]:
        """Depth-first over materialized nodes below ``path``, in display order."""
        for child in self.children_of(path):
            yield child
            if child.is_directory:
                yield from self.walk(child.path)

    def snapshot(self, path: str = ROOT_PATH) -> List[Dict[str, Any]]:
        """Nested plain-dict view; unlisted directories have ``children: None``."""
        result = []
        for child in self.children_of(path):
            item = child.model_dump(exclude={"children"}, mode="json")
            if child.is_directory:
                item["children"] = self.snapshot(child.path) if child.is_materialized else None
            result.append(item)
        return result
