"""
Core workflow actions for UF2 flashing.

This module exposes the select/wait/copy workflow and the block dump
formatting that the CLI calls into.
"""

import logging
import shutil
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional

from ..firmware import most_recent_firmware
from ..mount import (
    DEFAULT_POLL_INTERVAL,
    MountTimeoutError,
    bootloader_paths,
    default_mounts_path,
    wait_until_exists,
)
from ..targets import FlashTarget, family_name
from ..uf2 import Block
from .results import OperationResult

logger = logging.getLogger(__name__)


def flash_firmware(
    download_dir: Path,
    target: FlashTarget,
    mounts_path: Optional[Path] = None,
    interval: float = DEFAULT_POLL_INTERVAL,
    timeout: Optional[float] = None,
    dry_run: bool = False,
    on_status: Optional[Callable[[str], None]] = None,
) -> OperationResult:
    """
    Flash the most recent matching firmware onto the target's bootloader volume.

    Steps:
    1. Pick the newest .uf2 file in download_dir with blocks for the target
    2. Wait for one of the target's bootloader volumes to be mounted
    3. Copy the firmware onto that volume (skipped when dry_run is set)

    Args:
        download_dir: Directory holding downloaded firmware files
        target: Flash target from the registry
        mounts_path: Where volumes are mounted (platform default if None)
        interval: Seconds between mount checks
        timeout: Give up waiting after this many seconds (None waits forever)
        dry_run: Select and wait, but do not copy
        on_status: Optional callback receiving progress messages

    Returns:
        OperationResult describing what happened.

    Raises:
        OSError: If the download directory cannot be listed.
    """
    operation = "flash_firmware"

    def status(message: str) -> None:
        logger.debug(message)
        if on_status:
            on_status(message)

    download_dir = Path(download_dir)
    firmware = most_recent_firmware(download_dir, target)
    if firmware is None:
        return OperationResult.failure(
            operation,
            f"No firmware found in `{download_dir}`",
            target=target.name,
        )
    status(f"Firmware: {firmware}")

    mounts = Path(mounts_path) if mounts_path is not None else default_mounts_path()
    status(f"Waiting for {target.name} volume to become available in `{mounts}`...")
    try:
        volume = wait_until_exists(
            bootloader_paths(target, mounts),
            interval=interval,
            timeout=timeout,
        )
    except MountTimeoutError as e:
        return OperationResult.failure(
            operation,
            str(e),
            target=target.name,
            firmware_path=str(firmware),
        )
    status(f"Found `{volume}`, flashing...")

    result = OperationResult.success(
        operation,
        target=target.name,
        firmware_path=str(firmware),
        destination=str(volume),
        bytes_len=firmware.stat().st_size,
    )
    if dry_run:
        result.add_warning("Dry run - firmware was not copied")
        return result

    try:
        copied = shutil.copy(firmware, volume)
    except OSError as e:
        result.add_error(f"Copy to `{volume}` failed: {e}")
        return result
    result.metadata["copied_to"] = str(copied)
    logger.info(f"Copied {firmware.name} to {volume}")
    return result


def format_block(block: Block, show_names: bool = False, show_flags: bool = False) -> str:
    """
    Format one block as a dump line.

    Example:
        Block: 0 (12), payload len: 256 family id: 9807b007
        Block: 0 (12), payload len: 256 family id: 9807b007 flags: FAMILY_ID_PRESENT
    """
    line = f"Block: {block.block_no} ({block.num_blocks}), payload len: {block.payload_size}"
    family_id = block.family_id()
    if family_id is not None:
        line += f" family id: {family_id:x}"
        if show_names:
            name = family_name(family_id)
            if name:
                line += f" ({name})"
    if show_flags:
        line += f" flags: {'|'.join(block.flag_names()) or 'none'}"
    return line


def dump_blocks(
    blocks: Iterable[Block],
    show_names: bool = False,
    show_flags: bool = False,
) -> Iterator[str]:
    """Yield one dump line per block, decoding lazily."""
    for block in blocks:
        yield format_block(block, show_names=show_names, show_flags=show_flags)
