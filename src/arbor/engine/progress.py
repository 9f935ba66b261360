from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from arbor.core.host import ProgressRecord

if TYPE_CHECKING:
    from arbor.core.host import HostSink


class ProgressState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    ENDED = "ended"


class ProgressTracker:
    """
    Reports progress of a slow handler call to the host.

    Only started once a call has outlived the first polling interval. `end()`
    may be called any number of times, including from cleanup after an early
    return; starting again after the tracker ended begins a new report.
    """

    MAX_PERCENT = 99

    def __init__(
        self,
        progress_id: int,
        activity: str,
        description: str,
        *,
        enabled: bool,
        host: HostSink,
    ) -> None:
        self.progress_id = progress_id
        self.activity = activity
        self.description = description
        self.enabled = enabled
        self.host = host
        self.state = ProgressState.IDLE
        self.percent_complete = 0

    def start(self) -> None:
        if not self.enabled or self.state is ProgressState.ACTIVE:
            return

        self.state = ProgressState.ACTIVE
        self.percent_complete = 1
        self._write()

    def update(self, percent_complete: int) -> None:
        if self.state is not ProgressState.ACTIVE:
            return

        percent_complete = min(percent_complete, self.MAX_PERCENT)
        if percent_complete <= self.percent_complete:
            return

        self.percent_complete = percent_complete
        self._write()

    def end(self) -> None:
        if self.state is not ProgressState.ACTIVE:
            if self.state is ProgressState.IDLE:
                self.state = ProgressState.ENDED
            return

        self.state = ProgressState.ENDED
        self._write(completed=True)

    @property
    def active(self) -> bool:
        return self.state is ProgressState.ACTIVE

    def _write(self, completed: bool = False) -> None:
        self.host.write_progress(
            ProgressRecord(
                progress_id=self.progress_id,
                activity=self.activity,
                description=self.description,
                percent_complete=100 if completed else self.percent_complete,
                completed=completed,
            )
        )
