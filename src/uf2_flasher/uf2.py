"""
UF2 block stream decoding.

A UF2 file is a sequence of self-contained 512-byte blocks:

    offset  size  field
    0       4     magic_start0 (0x0A324655)
    4       4     magic_start1 (0x9E5D5157)
    8       4     flags
    12      4     target_addr
    16      4     payload_size
    20      4     block_no
    24      4     num_blocks
    28      4     file_size, or family_id when FAMILY_ID_PRESENT is set
    32      476   data
    508     4     magic_end (0x0AB16F30)

All integers are little-endian. Blocks whose magics do not match are not
UF2 blocks and are skipped by the reader.
"""

from __future__ import annotations

import enum
import logging
import struct
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator, List, Optional

logger = logging.getLogger(__name__)


BLOCK_SIZE = 512
DATA_SIZE = 476

MAGIC_START0 = 0x0A324655
MAGIC_START1 = 0x9E5D5157
MAGIC_END = 0x0AB16F30

FAMILY_ID_PRESENT = 0x00002000

_HEADER = struct.Struct("<8I")
_FOOTER = struct.Struct("<I")
DATA_OFFSET = _HEADER.size
END_MAGIC_OFFSET = DATA_OFFSET + DATA_SIZE


class UF2Error(Exception):
    """Base exception for UF2 decoding."""


class MalformedStreamError(UF2Error):
    """
    Raised when a stream ends in the middle of a block.

    Attributes:
        offset: Stream offset where the partial block starts
        length: Number of trailing bytes that were read
    """

    def __init__(self, offset: int, length: int):
        self.offset = offset
        self.length = length
        super().__init__(
            f"Truncated UF2 block at offset 0x{offset:X}: "
            f"got {length} of {BLOCK_SIZE} bytes"
        )


class BlockFlags(enum.IntFlag):
    """Known bits of the UF2 flags word."""

    NOT_MAIN_FLASH = 0x00000001
    FILE_CONTAINER = 0x00001000
    FAMILY_ID_PRESENT = FAMILY_ID_PRESENT
    MD5_PRESENT = 0x00004000
    EXTENSION_TAGS_PRESENT = 0x00008000


@dataclass(frozen=True)
class Block:
    """One decoded 512-byte UF2 block."""

    start_magic_0: int
    start_magic_1: int
    flags: int
    target_addr: int
    payload_size: int
    block_no: int
    num_blocks: int
    file_size_or_family_id: int
    data: bytes
    end_magic: int

    @property
    def is_valid(self) -> bool:
        """True when all three framing magics match."""
        return (
            self.start_magic_0 == MAGIC_START0
            and self.start_magic_1 == MAGIC_START1
            and self.end_magic == MAGIC_END
        )

    @property
    def payload(self) -> bytes:
        """Meaningful part of the data area."""
        return self.data[: min(self.payload_size, DATA_SIZE)]

    def family_id(self) -> Optional[int]:
        """Return the family id, or None when the block does not carry one."""
        if self.flags & FAMILY_ID_PRESENT:
            return self.file_size_or_family_id
        return None

    def file_size(self) -> Optional[int]:
        """Return the informational file size, or None when the field is a family id."""
        if self.flags & FAMILY_ID_PRESENT:
            return None
        return self.file_size_or_family_id

    def flag_names(self) -> List[str]:
        """Names of the known flag bits set on this block."""
        return [flag.name for flag in BlockFlags if self.flags & flag]


def _parse_block(raw: bytes) -> Block:
    (
        start_magic_0,
        start_magic_1,
        flags,
        target_addr,
        payload_size,
        block_no,
        num_blocks,
        file_size_or_family_id,
    ) = _HEADER.unpack_from(raw, 0)
    (end_magic,) = _FOOTER.unpack_from(raw, END_MAGIC_OFFSET)
    return Block(
        start_magic_0=start_magic_0,
        start_magic_1=start_magic_1,
        flags=flags,
        target_addr=target_addr,
        payload_size=payload_size,
        block_no=block_no,
        num_blocks=num_blocks,
        file_size_or_family_id=file_size_or_family_id,
        data=bytes(raw[DATA_OFFSET:END_MAGIC_OFFSET]),
        end_magic=end_magic,
    )


def decode_block(raw: bytes) -> Optional[Block]:
    """
    Decode a single 512-byte buffer.

    Returns:
        The decoded Block, or None if the framing magics do not match.

    Raises:
        ValueError: If raw is not exactly BLOCK_SIZE bytes.
    """
    if len(raw) != BLOCK_SIZE:
        raise ValueError(f"Expected UF2 block size of {BLOCK_SIZE}, got: {len(raw)}")
    block = _parse_block(raw)
    if not block.is_valid:
        return None
    return block


class BlockReader:
    """
    Lazy, single-pass iterator over the valid blocks of a byte stream.

    Each step reads the next 512-byte window from the source. Windows with
    bad magics are skipped and counted in `skipped`. The stream must end on
    a block boundary; trailing bytes raise MalformedStreamError. Errors from
    the source propagate as-is.

    The reader does not close the source.
    """

    def __init__(self, source: BinaryIO):
        self._source = source
        self._done = False
        self.offset = 0
        self.skipped = 0

    def __iter__(self) -> "BlockReader":
        return self

    def __next__(self) -> Block:
        if self._done:
            raise StopIteration
        try:
            while True:
                raw = self._read_window()
                if not raw:
                    self._done = True
                    raise StopIteration
                start = self.offset
                self.offset += len(raw)
                if len(raw) != BLOCK_SIZE:
                    raise MalformedStreamError(start, len(raw))
                block = decode_block(raw)
                if block is not None:
                    return block
                self.skipped += 1
                logger.debug(f"Skipping non-UF2 block at offset 0x{start:X}")
        except (UF2Error, OSError):
            self._done = True
            raise

    def _read_window(self) -> bytes:
        buf = bytearray()
        while len(buf) < BLOCK_SIZE:
            chunk = self._source.read(BLOCK_SIZE - len(buf))
            if not chunk:
                break
            buf.extend(chunk)
        return bytes(buf)


def open_blocks(source: BinaryIO) -> BlockReader:
    """Return a lazy BlockReader over a binary stream."""
    return BlockReader(source)


@contextmanager
def read_blocks(path: str | Path) -> Iterator[BlockReader]:
    """
    Open a UF2 file and yield a BlockReader over it.

    The file is closed when the with-block exits, whether or not the
    reader was fully consumed.
    """
    with open(path, "rb") as f:
        yield BlockReader(f)
