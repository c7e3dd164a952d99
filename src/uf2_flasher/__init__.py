"""
UF2 Flasher - UF2 firmware image decoding and flashing utility

Lazy UF2 block decoding, firmware selection by family id, and
copy-to-bootloader-volume flashing.
"""

__version__ = "0.1.0"

from uf2_flasher.uf2 import (
    Block,
    BlockReader,
    MalformedStreamError,
    UF2Error,
    decode_block,
    open_blocks,
    read_blocks,
)
from uf2_flasher.firmware import most_recent_firmware

__all__ = [
    "Block",
    "BlockReader",
    "MalformedStreamError",
    "UF2Error",
    "decode_block",
    "open_blocks",
    "read_blocks",
    "most_recent_firmware",
    "__version__",
]
