# src/tests/conftest.py
from __future__ import annotations

import threading
import time
from pathlib import Path

import pytest

from arbor.core import LoguruHost, ProviderContext
from arbor.engine import InvocationEngine
from arbor.handlers import DirectoryHandler, HandlerGateway, LeafHandler
from arbor.tree.drive import VirtualDrive
from arbor.utils.logging import setup_logger

# Setup logger for tests to ensure custom log levels are available
setup_logger("DEBUG")


class Planet(LeafHandler):
    """Leaf keeping its content in memory; SetContent stores what was written."""

    def __init__(self, name, lines=None, *, writable=True, siblings=None):
        super().__init__(name)
        self.lines = list(lines or [])
        self.writable = writable
        self.siblings = list(siblings or [])
        self.persisted = list[tuple[str, str, str]]()
        self.invocations = list[tuple[str, object]]()

    def get_content(self):
        return self.lines

    def set_content(self, content_path, path):
        if not self.writable:
            return super().set_content(content_path, path)

        raw = Path(content_path).read_text(encoding="utf-8")
        self.persisted.append((content_path, path, raw))
        self.lines = raw.splitlines()
        return self.siblings

    def invoke_item(self, path):
        self.invocations.append((path, self.call_state.dynamic_parameters))
        return [f"invoked {path}", None]

    def invoke_item_dynamic_parameters(self):
        return {"orbit": int}


class Planets(DirectoryHandler):
    """Directory answering a fixed list of children."""

    def __init__(
        self,
        name="solar",
        children=None,
        *,
        use_cache=True,
        builtin_progress=True,
        delay=0.0,
        errors=(),
        raise_after=None,
    ):
        super().__init__(name, use_cache=use_cache, builtin_progress=builtin_progress)
        self.children = list(children or [])
        self.delay = delay
        self.errors = list(errors)
        self.raise_after = raise_after
        self.calls = 0
        self.seen_parameters = list[object]()
        self.observed_stop = threading.Event()

    def get_child_item(self):
        self.calls += 1
        self.seen_parameters.append(self.call_state.dynamic_parameters)

        deadline = time.monotonic() + self.delay
        while time.monotonic() < deadline:
            if self.call_state.stopping:
                self.observed_stop.set()
                return
            time.sleep(0.01)

        for error in self.errors:
            self.call_state.write_error(error)

        for index, child in enumerate(self.children):
            if self.raise_after is not None and index == self.raise_after:
                raise OSError("backend went away")
            yield child

    def get_child_item_dynamic_parameters(self):
        return {"filter": str}


@pytest.fixture
def host():
    return LoguruHost()


@pytest.fixture
def context(host):
    return ProviderContext(host=host)


@pytest.fixture
def gateway():
    return HandlerGateway()


@pytest.fixture
def engine(gateway):
    return InvocationEngine(gateway, poll_interval_ms=20)


@pytest.fixture
def earth():
    return Planet("earth", ["blue", "green"])


@pytest.fixture
def solar(earth):
    return Planets(
        "solar",
        [
            earth,
            Planet("mars", ["red"]),
            Planets("moons", [Planet("luna", ["grey"])]),
        ],
    )


@pytest.fixture
def drive(solar, host):
    return VirtualDrive(solar, host=host, poll_interval_ms=20)
