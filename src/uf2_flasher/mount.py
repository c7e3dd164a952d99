"""
Helpers for locating bootloader volumes.

The wait loop simply polls the candidate paths; no filesystem
monitoring API is used.
"""

from __future__ import annotations

import getpass
import logging
import sys
import time
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .targets import FlashTarget

logger = logging.getLogger(__name__)


DEFAULT_POLL_INTERVAL = 1.0


class MountTimeoutError(TimeoutError):
    """Raised when none of the waited-for paths appeared in time."""

    def __init__(self, paths: Sequence[Path], timeout: float):
        self.paths = list(paths)
        self.timeout = timeout
        names = ", ".join(str(p) for p in self.paths)
        super().__init__(f"Timed out after {timeout:g}s waiting for: {names}")


def default_mounts_path() -> Path:
    """Return the directory removable volumes are mounted under."""
    if sys.platform == "darwin":
        return Path("/Volumes")

    user = getpass.getuser()
    candidates = [Path("/media") / user, Path("/run/media") / user, Path("/media")]
    for candidate in candidates:
        if candidate.is_dir():
            return candidate
    return candidates[0]


def bootloader_paths(target: FlashTarget, mounts_path: Path) -> List[Path]:
    """Return the paths where the target's bootloader volumes would be mounted."""
    return [Path(mounts_path) / name for name in target.volume_names]


def wait_until_exists(
    paths: Sequence[Path],
    interval: float = DEFAULT_POLL_INTERVAL,
    timeout: Optional[float] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Path:
    """
    Wait until one of the given paths exists.

    Paths are checked in order once per interval.

    Args:
        paths: Candidate paths
        interval: Seconds between checks
        timeout: Give up after this many seconds (None waits forever)
        sleep: Sleep function, replaceable in tests

    Returns:
        The first path found to exist.

    Raises:
        MountTimeoutError: If timeout elapses first.
    """
    if not paths:
        raise ValueError("No paths to wait for")

    deadline = None if timeout is None else time.monotonic() + timeout
    while True:
        for path in paths:
            if Path(path).exists():
                logger.debug(f"Found {path}")
                return Path(path)
        if deadline is not None and time.monotonic() >= deadline:
            raise MountTimeoutError(paths, timeout)
        sleep(interval)
