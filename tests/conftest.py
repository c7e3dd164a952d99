import struct

import pytest

from uf2_flasher.uf2 import MAGIC_END, MAGIC_START0, MAGIC_START1


def _make_block(
    *,
    flags: int = 0,
    target_addr: int = 0x10000000,
    payload_size: int = 256,
    block_no: int = 0,
    num_blocks: int = 1,
    file_size_or_family_id: int = 0,
    data: bytes = b"",
    magics=(MAGIC_START0, MAGIC_START1, MAGIC_END),
) -> bytes:
    """Build a raw 512-byte UF2 block."""
    assert len(data) <= 476
    header = struct.pack(
        "<8I",
        magics[0],
        magics[1],
        flags,
        target_addr,
        payload_size,
        block_no,
        num_blocks,
        file_size_or_family_id,
    )
    raw = header + data.ljust(476, b"\x00") + struct.pack("<I", magics[2])
    assert len(raw) == 512
    return raw


@pytest.fixture
def make_block():
    """Factory fixture returning raw UF2 block bytes."""
    return _make_block


@pytest.fixture
def write_uf2(tmp_path):
    """Write a UF2 file made of blocks for the given family ids."""

    def _write(name, family_ids, directory=None):
        directory = directory or tmp_path
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        blocks = [
            _make_block(
                flags=0x00002000,
                block_no=i,
                num_blocks=len(family_ids),
                file_size_or_family_id=fid,
            )
            for i, fid in enumerate(family_ids)
        ]
        path.write_bytes(b"".join(blocks))
        return path

    return _write
