"""
Virtual drive.

A thin navigation facade over a tree answered by handlers:

    drive = VirtualDrive(Planets("solar"))
    drive.get_child_items("/")
    drive.get_content("/earth")
    drive.set_content("/earth", ["blue", "green"])

The drive owns the root node, the handler gateway and the invocation engine,
and registers the latter two in the kink container for node services.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping
from typing import Any

from kink import di

from arbor.content.stream import ContentStream
from arbor.core.context import ProviderContext
from arbor.core.host import HostSink, LoguruHost
from arbor.engine.invoker import InvocationEngine
from arbor.exceptions import (
    ContractException,
    ItemNotFoundException,
    NotContainerNodeException,
)
from arbor.handlers.base import DirectoryHandler
from arbor.handlers.gateway import HandlerGateway
from arbor.tree.node import Directory, Leaf, Node, Root
from arbor.tree.services import DirectoryNodeService, LeafNodeService
from arbor.utils import normalize_path, split_path
from arbor.utils.logging import logger


class VirtualDrive:
    """Filesystem-like navigation over a tree computed by handlers."""

    def __init__(
        self,
        root: DirectoryHandler,
        *,
        host: HostSink | None = None,
        poll_interval_ms: int | None = None,
    ) -> None:
        if not isinstance(root, DirectoryHandler):
            raise ContractException(
                f"Root handler must be a DirectoryHandler, got {type(root).__name__}",
                error_id="RootNodeTypeMustBeContainer",
            )

        self.host = host or LoguruHost()
        self.root = Root(root)

        di[HandlerGateway] = self.gateway = HandlerGateway()
        di[InvocationEngine] = self.engine = InvocationEngine(
            self.gateway, poll_interval_ms=poll_interval_ms
        )

        self._stop_event = threading.Event()

        logger.log("DRIVE", f"Virtual drive ready with root '{root.name}'")

    def new_context(
        self,
        path: str = "/",
        *,
        force: bool = False,
        dynamic_parameters: Mapping[str, Any] | None = None,
    ) -> ProviderContext:
        """Create the context for one call; `stop()` signals the latest one."""

        self._stop_event = threading.Event()

        return ProviderContext(
            host=self.host,
            path=path,
            force=force,
            dynamic_parameters=dynamic_parameters,
            stop_event=self._stop_event,
        )

    def stop(self) -> None:
        """Ask the operation currently in progress to stop."""

        self._stop_event.set()

    def resolve(self, path: str, context: ProviderContext | None = None) -> Node | None:
        """Walk the tree from the root, fetching directories along the way."""

        context = context or self.new_context(path)
        current: Node = self.root

        for part in split_path(path):
            if not isinstance(current, Directory):
                return None

            # Force and dynamic parameters only apply to the requested item.
            step_context = context.replace(
                path=current.path,
                force=False,
                dynamic_parameters=None,
            )
            child = DirectoryNodeService(current, self.engine).get_child(
                part, step_context
            )

            if child is None:
                return None

            current = child

        return current

    def exists(self, path: str) -> bool:
        return self.resolve(path) is not None

    def get_child_items(
        self,
        path: str = "/",
        *,
        force: bool = False,
        dynamic_parameters: Mapping[str, Any] | None = None,
    ) -> list[Node]:
        context = self.new_context(
            path, force=force, dynamic_parameters=dynamic_parameters
        )
        node = self._require(path, context)

        if not isinstance(node, Directory):
            raise NotContainerNodeException(context.path)

        return list(DirectoryNodeService(node, self.engine).get_children(context))

    def get_child_names(self, path: str = "/", *, force: bool = False) -> list[str]:
        return [child.name for child in self.get_child_items(path, force=force)]

    def get_child_item_parameters(self, path: str = "/") -> Any:
        context = self.new_context(path)
        node = self._require(path, context)

        if not isinstance(node, Directory):
            raise NotContainerNodeException(context.path)

        return DirectoryNodeService(node, self.engine).get_child_item_parameters(context)

    def open_reader(self, path: str) -> ContentStream:
        context = self.new_context(path)
        return self._leaf_service(path, context).get_content_reader(context)

    def open_writer(self, path: str) -> ContentStream:
        context = self.new_context(path)
        service = self._leaf_service(path, context)
        service.clear_content(context)
        return service.get_content_writer(context)

    def get_content(self, path: str, count: int = 0) -> list[str]:
        with self.open_reader(path) as stream:
            return stream.read(count)

    def set_content(self, path: str, content: Iterable[Any]) -> None:
        with self.open_writer(path) as stream:
            stream.write(content)

    def invoke_item(
        self,
        path: str,
        *,
        dynamic_parameters: Mapping[str, Any] | None = None,
    ) -> list[Any]:
        context = self.new_context(path, dynamic_parameters=dynamic_parameters)
        return self._leaf_service(path, context).invoke_item(context, context.path)

    def invoke_item_parameters(self, path: str) -> Any:
        context = self.new_context(path)
        return self._leaf_service(path, context).invoke_item_parameters(context)

    def invalidate(self, path: str = "/") -> None:
        """Drop cached children of a directory so the next listing fetches again."""

        context = self.new_context(path)
        node = self._require(path, context)

        if not isinstance(node, Directory):
            raise NotContainerNodeException(context.path)

        node.invalidate()
        logger.log("CACHE", f"Invalidated cached children of {normalize_path(path)}")

    def _require(self, path: str, context: ProviderContext) -> Node:
        node = self.resolve(path, context)

        if node is None:
            raise ItemNotFoundException(context.path)

        return node

    def _leaf_service(self, path: str, context: ProviderContext) -> LeafNodeService:
        node = self._require(path, context)

        if not isinstance(node, Leaf):
            raise ContractException(
                f"'{context.path}' is a container; content operations need a leaf.",
                error_id="NotLeafNode",
            )

        return LeafNodeService(node, self.engine)
