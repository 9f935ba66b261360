from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from kink import di

from arbor.content.stream import AccessMode, ContentStream
from arbor.engine.invoker import InvocationEngine
from arbor.exceptions import ContractException
from arbor.handlers.base import Operation
from arbor.tree.node import Directory, Leaf, Node
from arbor.utils.logging import logger

if TYPE_CHECKING:
    from arbor.core.context import ProviderContext


class NodeService:
    """Base for services answering navigation requests for one node."""

    def __init__(self, node: Node, engine: InvocationEngine | None = None) -> None:
        self.node = node
        self._engine = engine

    @property
    def engine(self) -> InvocationEngine:
        if self._engine is None:
            self._engine = di[InvocationEngine]

        return self._engine

    @property
    def name(self) -> str:
        return self.node.name


class DirectoryNodeService(NodeService):
    """Defines actions that apply to a directory node."""

    node: Directory

    def get_children(self, context: ProviderContext) -> Iterable[Node]:
        node = self.node

        if (
            node.use_cache
            and node.cache_valid
            and not context.force
            and not context.using_dynamic_parameters
        ):
            logger.log("CACHE", f"Using cached children of '{node.name}'")
            return list(node.children.values())

        return self.engine.fetch_children(node, context)

    def get_child(self, name: str, context: ProviderContext) -> Node | None:
        """Find a child by name, fetching children when it is not known yet."""

        node = self.node
        child = node.get_child(name)

        if child is not None:
            return child

        # A valid cache that does not know the name means there is no such child.
        if node.use_cache and node.cache_valid and not context.force:
            return None

        for child in self.get_children(context):
            if child.name == name:
                return child

        return None

    def get_child_item_parameters(self, context: ProviderContext) -> Any:
        results = self.engine.invoke(
            self.node, Operation.GET_CHILD_ITEM_DYNAMIC_PARAMETERS, context
        )
        return results[0] if results else None


class LeafNodeService(NodeService):
    """Defines actions that apply to a leaf node."""

    node: Leaf

    def get_content_reader(self, context: ProviderContext) -> ContentStream:
        results = self.engine.invoke(self.node, Operation.GET_CONTENT, context)

        return ContentStream(
            results,
            AccessMode.READ,
            node=self.node,
            context=context,
            engine=self.engine,
        )

    def get_content_writer(self, context: ProviderContext) -> ContentStream:
        return ContentStream(
            None,
            AccessMode.WRITE,
            node=self.node,
            context=context,
            engine=self.engine,
        )

    def clear_content(self, context: ProviderContext) -> None:
        # Setting content clears it first; the handler's SetContent replaces it anyway.
        return None

    def invoke_item_parameters(self, context: ProviderContext) -> Any:
        results = self.engine.invoke(
            self.node, Operation.INVOKE_ITEM_DYNAMIC_PARAMETERS, context
        )
        return results[0] if results else None

    def invoke_item(self, context: ProviderContext, path: str | None = None) -> list[Any]:
        self.node.handler.call_state.dynamic_parameters = context.dynamic_parameters

        return self.engine.invoke(
            self.node,
            Operation.INVOKE_ITEM,
            context,
            (path or self.node.path,),
        )


def service_for(node: Node, engine: InvocationEngine | None = None) -> NodeService:
    """Route a node to the service for its variant."""

    if isinstance(node, Directory):
        return DirectoryNodeService(node, engine)

    if isinstance(node, Leaf):
        return LeafNodeService(node, engine)

    raise ContractException(f"Unknown node type {type(node).__name__}")
