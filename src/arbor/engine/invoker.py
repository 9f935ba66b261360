"""
Invocation engine.

Calls directory handlers to materialize children and decides what is kept:

- The handler call runs on its own worker thread while the caller polls it
- Progress is reported only once a call outlives the first polling interval
- Handler errors are collected, reported to the host and never fatal
- Results are cached in the tree, or streamed as transient nodes when the
  directory does not cache or the call carried dynamic parameters
"""

from __future__ import annotations

import concurrent.futures
from collections.abc import Iterable, Iterator, Sequence
from typing import TYPE_CHECKING, Any

from arbor.engine.progress import ProgressTracker
from arbor.exceptions import ErrorRecord, InvocationFailedException
from arbor.handlers.base import Handler, Operation
from arbor.settings import settings_manager
from arbor.tree.node import Directory, Leaf, Node, node_from_handler
from arbor.utils import benchmark
from arbor.utils.logging import logger

if TYPE_CHECKING:
    from arbor.core.context import ProviderContext
    from arbor.handlers.gateway import HandlerGateway


class InvocationEngine:
    """Orchestrates handler calls against the virtual tree."""

    PROGRESS_ID = 1
    ERROR_SOURCE = "Arbor"

    def __init__(
        self,
        gateway: HandlerGateway,
        *,
        poll_interval_ms: int | None = None,
    ) -> None:
        engine_settings = settings_manager.settings.engine

        if poll_interval_ms is None:
            poll_interval_ms = engine_settings.poll_interval_ms
        if poll_interval_ms < 1:
            raise ValueError(f"poll_interval_ms must be at least 1, got {poll_interval_ms}")

        self.gateway = gateway
        self.poll_interval_ms = poll_interval_ms
        self.progress_activity = engine_settings.progress_activity
        self.worker_thread_prefix = engine_settings.worker_thread_prefix

    @property
    def poll_interval(self) -> float:
        """Polling interval in seconds."""

        return self.poll_interval_ms / 1000

    def fetch_children(
        self,
        node: Directory,
        context: ProviderContext,
        *,
        add_node_only: bool = False,
    ) -> Iterable[Node]:
        """
        Call the directory's handler and return its children.

        Args:
            node: Directory to fetch children for
            context: Per-call context (host, force, stop signal, dynamic parameters)
            add_node_only: Add/update returned children without dropping the others

        Returns:
            The materialized children when the directory caches, otherwise a lazy
            stream of transient nodes that never touches the directory's children.
        """

        percent_complete = 1
        progress = ProgressTracker(
            self.PROGRESS_ID,
            self.progress_activity,
            f"Fetching data for '{node.name}'",
            enabled=node.builtin_progress,
            host=context.host,
        )
        channel = self.gateway.open_channel()
        executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix=self.worker_thread_prefix,
        )

        results = list[Any]()
        errors = list[ErrorRecord]()

        try:
            with benchmark(
                log=lambda elapsed: logger.log(
                    "ENGINE", f"GetChildItem on '{node.name}' took {elapsed}s"
                )
            ):
                future = executor.submit(
                    self.gateway.call,
                    node.handler,
                    Operation.GET_CHILD_ITEM,
                    (),
                    results.append,
                    errors.append,
                    context=context,
                    channel=channel,
                )

                done = self._wait(future)

                if not done and not channel.stopped and not context.stopping:
                    progress.start()

                while not done and not channel.stopped and not context.stopping:
                    done = self._wait(future)
                    percent_complete += 1
                    progress.update(percent_complete)

                progress.end()

            if not done or context.stopping:
                # Children and cache flag stay as they were; a handler that saw
                # the stop may have returned early with partial results.
                logger.log(
                    "ENGINE",
                    f"Stopped before GetChildItem on '{node.name}' completed",
                )
                return []

            failure = future.exception()
            if failure is not None:
                raise failure

            if errors:
                if context.force:
                    node.invalidate()

                    # Drop the failing node so it does not show up again stale.
                    parent = node.parent
                    if parent is not None:
                        parent.remove_child(node.name)

                self._report_errors(node.name, context, errors)

            if not results:
                context.host.write_debug(
                    f"GetChildItem returned nothing for '{node.name}' at {context.path}"
                )

                # An empty result after errors is not a genuinely empty directory.
                if not errors:
                    node.cache_valid = True

                if context.force:
                    node.clear_children()

                return []

            if node.use_cache and not context.using_dynamic_parameters:
                return self._results_with_cache(
                    results, errors, node, context, add_node_only
                )

            return self._results_without_cache(results, node, context)
        finally:
            channel.stop()
            executor.shutdown(wait=False, cancel_futures=True)
            node.handler.call_state.clear()
            self._end_progress(progress, node)

    def invoke(
        self,
        node: Node,
        operation: Operation,
        context: ProviderContext,
        args: Sequence[str] = (),
    ) -> list[Any]:
        """Run an operation synchronously, report its errors and return its results."""

        results = list[Any]()
        errors = list[ErrorRecord]()

        try:
            self.gateway.call(
                node.handler,
                operation,
                args,
                results.append,
                errors.append,
                context=context,
            )
        finally:
            node.handler.call_state.clear()

        if errors:
            self._report_errors(node.name, context, errors)

        return [result for result in results if result is not None]

    def persist_content(
        self,
        node: Leaf,
        content_path: str,
        context: ProviderContext,
    ) -> list[Node]:
        """
        Hand content written to a transient file to the leaf's SetContent handler.

        Raises:
            InvocationFailedException: If the handler reported any error
        """

        results = list[Any]()
        errors = list[ErrorRecord]()

        try:
            self.gateway.call(
                node.handler,
                Operation.SET_CONTENT,
                (content_path, node.path),
                results.append,
                errors.append,
                context=context,
            )
        finally:
            node.handler.call_state.clear()

        if errors:
            for error in errors:
                if error.stack_trace:
                    context.host.write_debug(error.stack_trace)

            raise InvocationFailedException(
                operation=Operation.SET_CONTENT.value,
                node_name=node.name,
                errors=errors,
            )

        # SetContent may hand back new or updated siblings; merge them if cached.
        handlers = [result for result in results if isinstance(result, Handler)]
        parent = node.parent

        if handlers and parent is not None and parent.use_cache:
            return self._results_with_cache(
                handlers, [], parent, context, add_node_only=True
            )

        return []

    @staticmethod
    def _end_progress(progress: ProgressTracker, node: Directory) -> None:
        # Runs during cleanup; a failing host must not mask the fetch outcome.
        try:
            progress.end()
        except Exception as e:
            logger.warning(f"Could not end progress for '{node.name}': {e}")

    def _wait(self, future: concurrent.futures.Future) -> bool:
        concurrent.futures.wait([future], timeout=self.poll_interval)
        return future.done()

    def _results_with_cache(
        self,
        results: list[Any],
        errors: list[ErrorRecord],
        node: Directory,
        context: ProviderContext,
        add_node_only: bool,
    ) -> list[Node]:
        # Build the complete set first so a stop never leaves half the children.
        materialized = dict[str, Node]()

        for result in results:
            if result is None:
                continue

            if context.stopping:
                logger.log(
                    "CACHE",
                    f"Stopped while caching children of '{node.name}', keeping previous children",
                )
                return []

            child = self._child_node(node, result)
            materialized[child.name] = child

        children = list(materialized.values())

        if add_node_only:
            for child in children:
                node.add_child(child)
        else:
            node.replace_children(children)

            if not errors:
                node.cache_valid = True

        logger.log(
            "CACHE",
            f"Cached {len(children)} children for '{node.name}' (valid={node.cache_valid})",
        )

        return children

    def _results_without_cache(
        self,
        results: list[Any],
        node: Directory,
        context: ProviderContext,
    ) -> Iterator[Node]:
        for result in results:
            if context.stopping:
                logger.log("ENGINE", f"Stopped listing children of '{node.name}'")
                return

            if result is None:
                continue

            yield node_from_handler(result, parent=node)

    @staticmethod
    def _child_node(node: Directory, result: Any) -> Node:
        child = node_from_handler(result)
        existing = node.get_child(child.name)

        # Reuse the known node so its own cached children survive a refresh.
        if existing is not None and type(existing) is type(child):
            existing.handler = result
            return existing

        return child

    def _report_errors(
        self,
        item: str,
        context: ProviderContext,
        errors: list[ErrorRecord],
    ) -> None:
        for error in errors:
            message = (
                f"Unable to process '{item}'. It may not exist or its handler failed: "
                f"{error.message}"
            )
            context.host.report_error(
                error.error_id, message, error.category, self.ERROR_SOURCE
            )

            if error.stack_trace:
                # Debug hint with the handler's stack for more info
                context.host.write_debug(error.stack_trace)
