"""
Handler capability classes.

A virtual tree is described by user code: every node is answered by a handler
object deriving from `DirectoryHandler` or `LeafHandler`. Arbor never looks up
handler methods by name; the operation a node supports follows from which of
the two classes its handler derives from.

Usage:
    class Planets(DirectoryHandler):
        def get_child_item(self):
            yield Planet("earth")
            yield Planet("mars")

    class Planet(LeafHandler):
        def get_content(self):
            return f"{self.name} orbits the sun"
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any

from arbor.exceptions import (
    ErrorRecord,
    HandlerException,
    NodeNameException,
    SetContentNotSupportedException,
)

if TYPE_CHECKING:
    from arbor.core.context import ProviderContext
    from arbor.handlers.gateway import HandlerChannel


class Operation(str, Enum):
    """Logical operations a handler can be asked to perform."""

    GET_CHILD_ITEM = "GetChildItem"
    GET_CHILD_ITEM_DYNAMIC_PARAMETERS = "GetChildItemDynamicParameters"
    GET_CONTENT = "GetContent"
    SET_CONTENT = "SetContent"
    INVOKE_ITEM = "InvokeItem"
    INVOKE_ITEM_DYNAMIC_PARAMETERS = "InvokeItemDynamicParameters"


class CallState:
    """
    State visible to a handler while one of its operations is running.

    The gateway binds it before calling the handler and the engine clears it
    once the call completes, so nothing leaks from one call into the next.
    """

    def __init__(self, node_name: str) -> None:
        self._node_name = node_name
        self._channel: HandlerChannel | None = None
        self._context: ProviderContext | None = None
        self.dynamic_parameters: Mapping[str, Any] | None = None
        self.path: str | None = None
        self.force = False

    def bind(self, context: ProviderContext, channel: HandlerChannel) -> None:
        self._context = context
        self._channel = channel
        self.path = context.path
        self.force = context.force
        if context.dynamic_parameters is not None:
            self.dynamic_parameters = context.dynamic_parameters

    def detach(self) -> None:
        self._channel = None

    def clear(self) -> None:
        self._context = None
        self.dynamic_parameters = None
        self.path = None
        self.force = False

    @property
    def stopping(self) -> bool:
        """Handlers producing many items should check this between items."""

        if self._channel is not None and self._channel.stopped:
            return True
        return self._context is not None and self._context.stopping

    def write_error(self, error: BaseException | str) -> None:
        """Report a non-terminating error; the call keeps running."""

        if self._channel is None:
            raise RuntimeError(
                f"write_error called on '{self._node_name}' outside of a handler call"
            )

        if not isinstance(error, BaseException):
            error = HandlerException(error)

        record = ErrorRecord.from_exception(error, node_name=self._node_name)
        self._channel.write_error(record)


class Handler:
    """Base for objects answering operations for one node of the virtual tree."""

    def __init__(self, name: str) -> None:
        if not isinstance(name, str) or not name.strip():
            raise NodeNameException()

        self.name = name
        self.call_state = CallState(name)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


class DirectoryHandler(Handler):
    """
    Handler for a directory node.

    Attributes:
        use_cache: Keep children from a successful fetch until invalidated
        builtin_progress: Show progress while a slow fetch is running
    """

    def __init__(
        self,
        name: str,
        *,
        use_cache: bool = False,
        builtin_progress: bool = True,
    ) -> None:
        super().__init__(name)

        self.use_cache = use_cache
        self.builtin_progress = builtin_progress

    def get_child_item(self) -> Iterable[Handler] | None:
        """Return the handlers of this directory's children."""

        return None

    def get_child_item_dynamic_parameters(self) -> Any:
        """Describe extra parameters accepted when listing this directory."""

        return None


class LeafHandler(Handler):
    """Handler for a leaf node."""

    def get_content(self) -> Iterable[Any] | Any:
        """Return this leaf's content; each object becomes one line."""

        return None

    def set_content(self, content_path: str, path: str) -> Iterable[Handler] | None:
        """Persist the content written to `content_path` for the leaf at `path`."""

        raise SetContentNotSupportedException(self.name)

    def invoke_item(self, path: str) -> Iterable[Any] | None:
        return None

    def invoke_item_dynamic_parameters(self) -> Any:
        return None
