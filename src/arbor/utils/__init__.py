import os
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from time import time
from loguru import logger
from pathlib import Path

root_dir = Path(__file__).resolve().parents[3]

data_dir_path = Path(os.environ.get("ARBOR_DATA_DIR", root_dir / "data"))


def normalize_path(path: str | None) -> str:
    """Normalize a virtual path to canonical form."""
    path = (path or "/").strip().replace("\\", "/")
    if not path.startswith("/"):
        path = "/" + path
    # Remove trailing slashes except for root
    if len(path) > 1 and path.endswith("/"):
        path = path.rstrip("/") or "/"
    return path


def split_path(path: str) -> list[str]:
    """Split a normalized path into its non-empty parts."""
    return [part for part in normalize_path(path).split("/") if part]


@contextmanager
def benchmark(
    *,
    log: Callable[[float], None] | None,
    decimal_places: int = 3,
) -> Iterator[None]:
    """Context manager for benchmarking code execution time."""

    start_time = time()

    try:
        yield
    finally:
        end_time = time()
        elapsed = end_time - start_time

        if log:
            log(round(elapsed, decimal_places))
        else:
            logger.debug(f"Execution time: {elapsed:.{decimal_places}f} seconds")
