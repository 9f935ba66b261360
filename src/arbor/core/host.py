from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from arbor.utils.logging import logger

if TYPE_CHECKING:
    from arbor.exceptions import ErrorCategory, ErrorRecord


@dataclass(frozen=True)
class ProgressRecord:
    """One progress indication written to the host."""

    progress_id: int
    activity: str
    description: str
    percent_complete: int
    completed: bool = False


class HostSink(Protocol):
    """What the engine and content streams need from the hosting shell."""

    def write_error(self, record: ErrorRecord) -> None: ...

    def write_debug(self, message: str) -> None: ...

    def report_error(
        self,
        error_id: str,
        message: str,
        category: ErrorCategory,
        source: str,
    ) -> None: ...

    def write_progress(self, record: ProgressRecord) -> None: ...


class LoguruHost:
    """
    Default host sink writing everything through loguru.

    Everything written is also kept in memory so callers can inspect what a
    call reported after it returns.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.errors: list[ErrorRecord] = []
        self.reported: list[tuple[str, str, ErrorCategory, str]] = []
        self.debug_messages: list[str] = []
        self.progress: list[ProgressRecord] = []

    def write_error(self, record: ErrorRecord) -> None:
        with self._lock:
            self.errors.append(record)
        logger.error(str(record))

    def write_debug(self, message: str) -> None:
        with self._lock:
            self.debug_messages.append(message)
        logger.debug(message)

    def report_error(
        self,
        error_id: str,
        message: str,
        category: ErrorCategory,
        source: str,
    ) -> None:
        with self._lock:
            self.reported.append((error_id, message, category, source))
        logger.bind(source=source).error(f"[{error_id}] {message}")

    def write_progress(self, record: ProgressRecord) -> None:
        with self._lock:
            self.progress.append(record)

        if record.completed:
            logger.log("PROGRESS", f"{record.activity}: {record.description} - done")
        else:
            logger.log(
                "PROGRESS",
                f"{record.activity}: {record.description} ({record.percent_complete}%)",
            )
