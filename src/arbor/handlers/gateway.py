from __future__ import annotations

import threading
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from arbor.exceptions import ContractException, ErrorRecord
from arbor.handlers.base import DirectoryHandler, Handler, LeafHandler, Operation
from arbor.utils.logging import logger

if TYPE_CHECKING:
    from arbor.core.context import ProviderContext


OutputSink = Callable[[Any], None]
ErrorSink = Callable[[ErrorRecord], None]


_DISPATCH: dict[Operation, tuple[type[Handler], Callable[[Any, tuple[str, ...]], Any]]] = {
    Operation.GET_CHILD_ITEM: (
        DirectoryHandler,
        lambda handler, args: handler.get_child_item(*args),
    ),
    Operation.GET_CHILD_ITEM_DYNAMIC_PARAMETERS: (
        DirectoryHandler,
        lambda handler, args: handler.get_child_item_dynamic_parameters(*args),
    ),
    Operation.GET_CONTENT: (
        LeafHandler,
        lambda handler, args: handler.get_content(*args),
    ),
    Operation.SET_CONTENT: (
        LeafHandler,
        lambda handler, args: handler.set_content(*args),
    ),
    Operation.INVOKE_ITEM: (
        LeafHandler,
        lambda handler, args: handler.invoke_item(*args),
    ),
    Operation.INVOKE_ITEM_DYNAMIC_PARAMETERS: (
        LeafHandler,
        lambda handler, args: handler.invoke_item_dynamic_parameters(*args),
    ),
}


class HandlerChannel:
    """
    Execution channel a handler call runs on.

    Each call starts a fresh invocation with `begin()`; `stop()` only signals
    the invocation that is current at that moment, so stopping an abandoned
    call never affects the next one.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._error_hook: ErrorSink | None = None

    def begin(self) -> threading.Event:
        """Reset per-call state and return the stop signal of the new invocation."""

        with self._lock:
            self._stop_event = threading.Event()
            self._error_hook = None
            return self._stop_event

    def stop(self) -> None:
        with self._lock:
            self._stop_event.set()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def attach_error_hook(self, hook: ErrorSink) -> None:
        with self._lock:
            self._error_hook = hook

    def detach_error_hook(self) -> None:
        with self._lock:
            self._error_hook = None

    def write_error(self, record: ErrorRecord) -> None:
        hook = self._error_hook

        if hook is None:
            logger.warning(f"Dropping error with no listener attached: {record}")
            return

        hook(record)


def _as_results(output: Any) -> Iterable[Any]:
    if output is None:
        return ()
    if isinstance(output, (str, bytes, Mapping)):
        return (output,)
    if isinstance(output, Iterable):
        return output
    return (output,)


def _until_stopped(items: Iterable[Any], stop_event: threading.Event) -> Iterator[Any]:
    iterator = iter(items)

    try:
        while not stop_event.is_set():
            try:
                item = next(iterator)
            except StopIteration:
                return
            yield item
    finally:
        close = getattr(iterator, "close", None)
        if close is not None:
            close()


class HandlerGateway:
    """
    Calls a handler operation and pushes what it produces to the given sinks.

    The gateway owns no caching or retry policy. Results are handed to
    `on_output` one by one as the handler produces them, faults are handed to
    `on_error` as `ErrorRecord` objects. A handler that raises is turned into
    an error record; results it produced before raising are kept.
    """

    def __init__(self) -> None:
        self.channel = HandlerChannel()

    def open_channel(self) -> HandlerChannel:
        """Create a dedicated channel for a call that runs on its own worker."""

        return HandlerChannel()

    def call(
        self,
        target: Handler,
        operation: Operation,
        args: Sequence[str] = (),
        on_output: OutputSink | None = None,
        on_error: ErrorSink | None = None,
        *,
        context: ProviderContext,
        channel: HandlerChannel | None = None,
    ) -> None:
        capability, invoke = _DISPATCH[operation]

        if not isinstance(target, capability):
            raise ContractException(
                f"{operation.value} requires a {capability.__name__}, "
                f"got {target.__class__.__name__} for '{getattr(target, 'name', target)}'"
            )

        channel = channel or self.channel
        stop_event = channel.begin()

        def report(record: ErrorRecord) -> None:
            if on_error is not None:
                on_error(record)
            else:
                logger.log("HANDLER", f"Unhandled handler error: {record}")

        channel.attach_error_hook(report)
        target.call_state.bind(context, channel)

        logger.log(
            "HANDLER",
            f"Calling {operation.value} on '{target.name}' with {len(args)} argument(s)",
        )

        try:
            try:
                output = invoke(target, tuple(args))

                for item in _until_stopped(_as_results(output), stop_event):
                    if on_output is not None:
                        on_output(item)
            except ContractException:
                raise
            except Exception as e:
                report(ErrorRecord.from_exception(e, node_name=target.name))

            if stop_event.is_set():
                logger.log("HANDLER", f"{operation.value} on '{target.name}' was stopped")
        finally:
            channel.detach_error_hook()
            target.call_state.detach()

    def collect(
        self,
        target: Handler,
        operation: Operation,
        args: Sequence[str] = (),
        *,
        context: ProviderContext,
    ) -> tuple[list[Any], list[ErrorRecord]]:
        """Run a call on the shared channel and return its results and errors."""

        results: list[Any] = []
        errors: list[ErrorRecord] = []

        self.call(
            target,
            operation,
            args,
            results.append,
            errors.append,
            context=context,
        )

        return results, errors
