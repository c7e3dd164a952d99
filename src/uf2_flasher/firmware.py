"""
Firmware selection for UF2 downloads.

Finds the UF2 file in a download directory that was created most recently
and actually contains blocks for a given flash target.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional

from .targets import FlashTarget
from .uf2 import UF2Error, read_blocks

logger = logging.getLogger(__name__)


UF2_SUFFIX = ".uf2"


def has_family_blocks(path: str | Path, target: FlashTarget) -> bool:
    """
    Check if a UF2 file has at least one block meant for the target.

    Stops reading at the first matching block.

    Raises:
        OSError: If the file cannot be read.
        MalformedStreamError: If the file ends in a partial block before a match.
    """
    with read_blocks(path) as blocks:
        for block in blocks:
            if target.accepts(block.family_id()):
                return True
    return False


def file_created_time(path: str | Path) -> float:
    """Return the creation time of a file, or its mtime where the platform has none."""
    st = os.stat(path)
    return getattr(st, "st_birthtime", st.st_mtime)


def find_firmware_candidates(directory: str | Path, target: FlashTarget) -> List[Path]:
    """
    List the UF2 files in a directory that contain blocks for the target.

    Files that cannot be read or decoded are treated as non-matching.
    """
    candidates = []
    for path in sorted(Path(directory).iterdir()):
        if path.suffix.lower() != UF2_SUFFIX or not path.is_file():
            continue
        try:
            matched = has_family_blocks(path, target)
        except (OSError, UF2Error) as e:
            logger.warning(f"Skipping unreadable firmware {path.name}: {e}")
            continue
        if matched:
            candidates.append(path)
        else:
            logger.debug(f"No matching family blocks in {path.name}")
    return candidates


def most_recent_firmware(directory: str | Path, target: FlashTarget) -> Optional[Path]:
    """
    Find the most recently created matching firmware file.

    Ties on creation time are broken by path order.

    Returns:
        Path of the firmware file, or None if no file matches.
    """
    candidates = find_firmware_candidates(directory, target)
    if not candidates:
        return None
    return max(candidates, key=lambda p: (file_created_time(p), p))
