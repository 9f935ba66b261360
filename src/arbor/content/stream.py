"""
Content streams for leaf nodes.

A leaf's content is exposed as lines backed by a transient local file that
only lives as long as the stream. Streams opened for writing hand the file to
the leaf's SetContent handler exactly once when closed.
"""

from __future__ import annotations

import contextlib
import os
import tempfile
from collections.abc import Iterable
from enum import Enum
from typing import TYPE_CHECKING, Any

from kink import di

from arbor.exceptions import ContentStreamException, ErrorCategory, ErrorRecord
from arbor.settings import settings_manager
from arbor.utils.logging import logger

if TYPE_CHECKING:
    from arbor.core.context import ProviderContext
    from arbor.engine.invoker import InvocationEngine
    from arbor.tree.node import Leaf


class AccessMode(str, Enum):
    READ = "read"
    WRITE = "write"


class ContentStream:
    """Line-oriented reader/writer over a transient file for one leaf."""

    def __init__(
        self,
        objects: Iterable[Any] | None,
        mode: AccessMode,
        *,
        node: Leaf,
        context: ProviderContext,
        engine: InvocationEngine | None = None,
    ) -> None:
        content_settings = settings_manager.settings.content

        self.mode = mode
        self.node = node
        self.context = context
        self.encoding = content_settings.encoding
        self.newline = content_settings.newline
        self._engine = engine
        self._closed = False

        temp_dir = content_settings.temp_dir
        if temp_dir is not None:
            temp_dir.mkdir(parents=True, exist_ok=True)

        fd, self.temp_path = tempfile.mkstemp(
            prefix="arbor-",
            suffix=".content",
            dir=str(temp_dir) if temp_dir is not None else None,
        )
        self._file = os.fdopen(fd, "w+b")

        try:
            self._create_buffer(objects)
        except BaseException:
            self._file.close()
            os.remove(self.temp_path)
            raise

        logger.log(
            "CONTENT",
            f"Opened {mode.value} stream for '{node.name}' at {self.temp_path}",
        )

    @property
    def engine(self) -> InvocationEngine:
        if self._engine is None:
            from arbor.engine.invoker import InvocationEngine

            self._engine = di[InvocationEngine]

        return self._engine

    @property
    def closed(self) -> bool:
        return self._closed

    def _create_buffer(self, objects: Iterable[Any] | None) -> None:
        if self.mode is AccessMode.READ and objects is not None:
            for obj in objects:
                self._write_line(obj)

            self._file.flush()

        self._file.seek(0)

    def read(self, count: int = 0) -> list[str]:
        """
        Read lines from the buffer.

        Args:
            count: Number of lines to read; zero or less reads to the end

        Returns:
            The lines read, without line terminators. On an I/O, decode or
            permission fault the error is reported to the host and the lines
            read so far are returned.
        """

        if self.mode is not AccessMode.READ:
            raise ContentStreamException(
                "Cannot read from a stream opened for writing", path=self.temp_path
            )

        lines = list[str]()
        read_to_end = count <= 0

        try:
            while read_to_end or len(lines) < count:
                if self.context.stopping:
                    break

                raw = self._file.readline()
                if not raw:
                    # EOF
                    break

                lines.append(self._decode(raw))
        except (OSError, ValueError) as e:
            self.context.host.write_error(
                ErrorRecord.from_exception(
                    e,
                    node_name=self.node.name,
                    error_id="GetContentReaderIOError",
                    category=ErrorCategory.READ_ERROR,
                )
            )

        return lines

    def write(self, content: Iterable[Any]) -> Iterable[Any]:
        """Append one line per non-None item, flattening one level of lists."""

        if self.mode is not AccessMode.WRITE:
            raise ContentStreamException(
                "Cannot write to a stream opened for reading", path=self.temp_path
            )

        items = [content] if isinstance(content, (str, bytes)) else content

        for item in items:
            if isinstance(item, (list, tuple)):
                for obj in item:
                    self._write_line(obj)
            else:
                self._write_line(item)

        return content

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        """Flush pending writes and move the position; unread buffered data is dropped."""

        self._file.flush()
        return self._file.seek(offset, whence)

    def close(self) -> None:
        """
        Close the stream, persisting written content through the leaf's handler.

        The transient file is removed even when persisting fails; the failure
        is raised afterwards.
        """

        if self._closed:
            return

        self._closed = True

        try:
            try:
                self._file.flush()
            finally:
                self._file.close()

            if self.mode is AccessMode.WRITE:
                logger.log(
                    "CONTENT",
                    f"Persisting content of '{self.node.name}' from {self.temp_path}",
                )
                self.engine.persist_content(self.node, self.temp_path, self.context)
        finally:
            with contextlib.suppress(FileNotFoundError):
                os.remove(self.temp_path)

            logger.log("CONTENT", f"Released content buffer {self.temp_path}")

    def __enter__(self) -> ContentStream:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def _write_line(self, obj: Any) -> None:
        if obj is None:
            return

        self._file.write(f"{obj}{self.newline}".encode(self.encoding))

    def _decode(self, raw: bytes) -> str:
        line = raw.decode(self.encoding)

        if line.endswith("\n"):
            line = line[:-1]
        if line.endswith("\r"):
            line = line[:-1]

        return line
