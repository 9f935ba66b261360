from __future__ import annotations

import dataclasses
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from arbor.utils import normalize_path

if TYPE_CHECKING:
    from .host import HostSink


@dataclass(frozen=True)
class ProviderContext:
    """
    Per-call state threaded through every engine and content stream call.

    Attributes:
        host: Sink receiving errors, debug messages and progress
        path: Logical path the call was made for
        force: Caller asked for stale or failing entries to be dropped
        dynamic_parameters: Parameters that make the call's results uncacheable
        stop_event: Set by the host when the caller wants the operation to stop
    """

    host: HostSink
    path: str = "/"
    force: bool = False
    dynamic_parameters: Mapping[str, Any] | None = None
    stop_event: threading.Event = field(default_factory=threading.Event, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", normalize_path(self.path))

    @property
    def stopping(self) -> bool:
        """Whether the host has asked the current operation to stop."""

        return self.stop_event.is_set()

    @property
    def using_dynamic_parameters(self) -> bool:
        return bool(self.dynamic_parameters)

    def replace(self, **changes: Any) -> ProviderContext:
        """Return a copy with the given fields changed, sharing the stop signal."""

        return dataclasses.replace(self, **changes)
