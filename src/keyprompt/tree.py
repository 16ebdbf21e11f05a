"""Lazily expanding option tree for hierarchical prompts.

The tree is independent of rendering.  A cursor *path* is a list of sibling
indices from the root; it is clamped against the current shape of the tree
(:meth:`OptionTree.resolve`) before every use, so nodes may grow and shrink
underneath it.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Iterator, Literal, Protocol, Sequence

logger = logging.getLogger(__name__)

Direction = Literal["up", "down", "left", "right"]


@dataclass
class OptionNode:
    """A named option.

    ``children`` is ``None`` for a leaf.  An expandable node that is
    collapsed, or not yet expanded, has an empty list.
    """

    name: str
    children: list[OptionNode] | None = None

    @property
    def expandable(self) -> bool:
        return self.children is not None


class OptionSource(Protocol):
    """Supplies the nodes of an :class:`OptionTree` on demand."""

    def children(self, names: Sequence[str]) -> list[OptionNode]:
        """Return the children of the node reached by *names* from the root."""
        ...

    def parent(self, name: str) -> str:
        """Return the root name one level above *name*."""
        ...

    def join(self, names: Sequence[str]) -> str:
        """Return the value of the node reached by *names*."""
        ...


class DirectorySource:
    """Option source backed by the filesystem.

    Subdirectories (and symlinks to directories) are expandable; with
    ``only_dirs`` regular files are left out altogether.
    """

    def __init__(self, only_dirs: bool = False) -> None:
        self.only_dirs = only_dirs

    def children(self, names: Sequence[str]) -> list[OptionNode]:
        directory = os.path.join(*names)
        try:
            entries = sorted(os.scandir(directory), key=lambda e: e.name)
        except OSError as exc:
            logger.debug("cannot list %s: %s", directory, exc)
            return []

        nodes: list[OptionNode] = []
        for entry in entries:
            try:
                is_directory = entry.is_dir()
            except OSError:
                # Broken symlink or permission error - treat as file
                is_directory = False
            if self.only_dirs and not is_directory:
                continue
            nodes.append(OptionNode(entry.name, [] if is_directory else None))
        return nodes

    def parent(self, name: str) -> str:
        return os.path.dirname(os.path.abspath(name))

    def join(self, names: Sequence[str]) -> str:
        return os.path.abspath(os.path.join(*names))


class OptionTree:
    """A navigable tree of options with a clamped cursor path."""

    def __init__(self, source: OptionSource, root_name: str) -> None:
        self.source = source
        self.root = OptionNode(root_name, source.children([root_name]))
        self.path: list[int] = [0]

    # -- shape ------------------------------------------------------------

    def expand(self, node: OptionNode, names: Sequence[str]) -> None:
        """Populate an expandable *node*, unless it already has children."""
        if node.children is None or node.children:
            return
        node.children = self.source.children(names)
        logger.debug("expanded %s: %d children", "/".join(names), len(node.children))

    def collapse(self, node: OptionNode) -> None:
        if node.children is not None:
            node.children = []

    def resolve(self) -> list[int]:
        """Clamp the cursor path to the tree's current shape and return it."""
        resolved: list[int] = []
        node = self.root
        for index in self.path:
            if not node.children:
                break
            index = max(0, min(index, len(node.children) - 1))
            resolved.append(index)
            node = node.children[index]
        self.path[:] = resolved
        return self.path

    # -- cursor -----------------------------------------------------------

    @property
    def node(self) -> OptionNode:
        """The node under the cursor (the root when the path is empty)."""
        node = self.root
        for index in self.resolve():
            node = node.children[index]  # type: ignore[index]
        return node

    @property
    def names(self) -> list[str]:
        """Names from the root (inclusive) down to the cursor node."""
        names = [self.root.name]
        node = self.root
        for index in self.resolve():
            node = node.children[index]  # type: ignore[index]
            names.append(node.name)
        return names

    @property
    def layer(self) -> list[OptionNode]:
        """Siblings of the cursor node, the cursor node included."""
        path = self.resolve()
        if not path:
            return []
        node = self.root
        for index in path[:-1]:
            node = node.children[index]  # type: ignore[index]
        return node.children or []

    @property
    def value(self) -> str:
        return self.source.join(self.names)

    def rows(self) -> Iterator[tuple[OptionNode, int, bool]]:
        """Yield ``(node, depth, selected)`` for every visible node.

        The root comes first at depth 0; the children of expanded nodes
        follow their parent.
        """
        path = self.resolve()

        def walk(
            node: OptionNode, depth: int, on_path: bool
        ) -> Iterator[tuple[OptionNode, int, bool]]:
            selected = on_path and depth == len(path)
            yield node, depth, selected
            for i, child in enumerate(node.children or ()):
                yield from walk(
                    child, depth + 1, on_path and depth < len(path) and path[depth] == i
                )

        yield from walk(self.root, 0, True)

    @property
    def cursor(self) -> int:
        """Index of the cursor node among :meth:`rows`."""
        for i, (_node, _depth, selected) in enumerate(self.rows()):
            if selected:
                return i
        return 0

    def navigate(self, direction: Direction) -> None:
        path = self.resolve()

        if direction in ("up", "down"):
            if not path:
                return
            count = len(self.layer)
            step = -1 if direction == "up" else 1
            path[-1] = (path[-1] + step) % count
            return

        if direction == "right":
            node = self.node
            if node.children is None:
                return
            self.expand(node, self.names)
            if node.children:
                path.append(0)
            return

        if direction == "left":
            previous = list(path)
            del path[-1:]
            node = self.node
            if node.children and path:
                self.collapse(node)
            elif not previous:
                self._reroot()

    def _reroot(self) -> None:
        parent = self.source.parent(self.root.name)
        if parent == self.root.name:
            return
        logger.debug("re-rooting tree at %s", parent)
        self.root = OptionNode(parent, self.source.children([parent]))
