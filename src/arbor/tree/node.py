from __future__ import annotations

import weakref
from typing import Literal

from arbor.exceptions import ContractException
from arbor.handlers.base import DirectoryHandler, Handler, LeafHandler


class Node:
    """
    Represents a node (leaf or directory) in the virtual tree.

    Attributes:
        name: Name of this node, unique among its siblings
        handler: Handler object answering operations for this node
        parent: Directory this node belongs to (None for root or detached nodes)
    """

    def __init__(
        self,
        *,
        name: str,
        handler: Handler,
        parent: Directory | None = None,
    ) -> None:
        self.name = name
        self.handler = handler
        self._path = f"/{name}"
        self.parent = parent

    @property
    def parent(self) -> Directory | None:
        """Parent directory; held weakly so children never keep their parent alive."""

        return self._parent_ref() if self._parent_ref is not None else None

    @parent.setter
    def parent(self, value: Directory | None) -> None:
        self._parent_ref = weakref.ref(value) if value is not None else None

        if value is not None:
            parent_path = value.path
            self._path = f"{parent_path.rstrip('/')}/{self.name}"

    @property
    def path(self) -> str:
        """
        Full virtual path, fixed when the node is attached to a parent.

        A node never attached sits at `/<name>`; a detached node keeps the path
        it was last reachable at.
        """

        return self._path

    @property
    def is_directory(self) -> bool:
        return False


class Directory(Node):
    """
    Represents a directory node in the virtual tree.

    Attributes:
        use_cache: Whether children are kept between fetches (fixed at construction)
        builtin_progress: Whether progress is shown while fetching children
        cache_valid: Children come from a successful fetch and were not invalidated
    """

    handler: DirectoryHandler

    def __init__(
        self,
        *,
        name: str,
        handler: DirectoryHandler,
        parent: Directory | None = None,
    ) -> None:
        super().__init__(name=name, handler=handler, parent=parent)

        self.use_cache = bool(handler.use_cache)
        self.builtin_progress = bool(handler.builtin_progress)
        self.cache_valid = False
        self._children: dict[str, Node] = {}

    @property
    def children(self) -> dict[str, Node]:
        """Get children dict."""

        return self._children

    @property
    def is_directory(self) -> bool:
        return True

    def add_child(self, child: Node) -> None:
        """Add a child node to this directory."""

        child.parent = self
        self.children[child.name] = child

    def remove_child(self, name: str) -> Node | None:
        """Remove and return a child node by name."""
        child = self.children.pop(name, None)

        if child:
            child.parent = None

        return child

    def get_child(self, name: str) -> Node | None:
        """Get a child node by name."""
        return self.children.get(name)

    def clear_children(self) -> None:
        for child in self.children.values():
            child.parent = None

        self.children.clear()

    def replace_children(self, children: list[Node]) -> None:
        """Swap in a complete new set of children."""

        self.clear_children()

        for child in children:
            self.add_child(child)

    def invalidate(self) -> None:
        """Forget cached children so the next listing fetches again."""

        self.cache_valid = False
        self.clear_children()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"name={self.name!r}, "
            f"is_dir=true, "
            f"use_cache={self.use_cache}, "
            f"cache_valid={self.cache_valid}, "
            f"children={len(self.children)})"
        )


class Root(Directory):
    """
    Represents the root node of the virtual tree.

    Attributes:
        parent: None (root has no parent)
    """

    def __init__(self, handler: DirectoryHandler) -> None:
        super().__init__(
            name=handler.name,
            handler=handler,
            parent=None,
        )

    @property
    def path(self) -> Literal["/"]:
        return "/"


class Leaf(Node):
    """Represents a leaf node in the virtual tree. Leaves never have children."""

    handler: LeafHandler

    def __init__(
        self,
        *,
        name: str,
        handler: LeafHandler,
        parent: Directory | None = None,
    ) -> None:
        super().__init__(name=name, handler=handler, parent=parent)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, path={self.path!r})"


def node_from_handler(handler: object, parent: Directory | None = None) -> Node:
    """Build the node variant matching a handler returned by a fetch."""

    if isinstance(handler, DirectoryHandler):
        return Directory(name=handler.name, handler=handler, parent=parent)

    if isinstance(handler, LeafHandler):
        return Leaf(name=handler.name, handler=handler, parent=parent)

    raise ContractException(
        f"Expected a DirectoryHandler or LeafHandler, got {type(handler).__name__}: {handler!r}"
    )
