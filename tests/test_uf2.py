"""Tests for UF2 block stream decoding."""

import io
import struct

import pytest

from uf2_flasher.uf2 import (
    BLOCK_SIZE,
    DATA_OFFSET,
    END_MAGIC_OFFSET,
    FAMILY_ID_PRESENT,
    MAGIC_END,
    MAGIC_START0,
    MAGIC_START1,
    Block,
    BlockFlags,
    BlockReader,
    MalformedStreamError,
    UF2Error,
    decode_block,
    open_blocks,
    read_blocks,
)


class _TrickleReader(io.RawIOBase):
    """Raw stream that returns at most `step` bytes per read."""

    def __init__(self, data: bytes, step: int):
        self._buf = io.BytesIO(data)
        self._step = step

    def readable(self):
        return True

    def read(self, size=-1):
        return self._buf.read(min(size, self._step))


class _FailingReader(io.RawIOBase):
    """Stream that serves `data` and then raises OSError."""

    def __init__(self, data: bytes):
        self._buf = io.BytesIO(data)

    def readable(self):
        return True

    def read(self, size=-1):
        chunk = self._buf.read(size)
        if not chunk:
            raise OSError("device unplugged")
        return chunk


class TestDecodeBlock:
    """Test single block decoding."""

    def test_fields_are_little_endian(self, make_block):
        """Every header field decodes from its little-endian byte range."""
        raw = make_block(
            flags=0x00002001,
            target_addr=0x10002000,
            payload_size=256,
            block_no=3,
            num_blocks=9,
            file_size_or_family_id=0xE48BFF56,
            data=bytes(range(256)),
        )
        block = decode_block(raw)

        assert block is not None
        assert block.start_magic_0 == struct.unpack("<I", raw[0:4])[0] == MAGIC_START0
        assert block.start_magic_1 == MAGIC_START1
        assert block.flags == 0x00002001
        assert block.target_addr == 0x10002000
        assert block.payload_size == 256
        assert block.block_no == 3
        assert block.num_blocks == 9
        assert block.file_size_or_family_id == 0xE48BFF56
        assert block.data == raw[32:508]
        assert block.end_magic == MAGIC_END
        assert raw[12:16] == b"\x00\x20\x00\x10"

    def test_payload_is_trimmed_to_payload_size(self, make_block):
        block = decode_block(make_block(payload_size=4, data=b"\x01\x02\x03\x04\x05"))
        assert block.payload == b"\x01\x02\x03\x04"
        assert len(block.data) == 476

    def test_payload_size_larger_than_data_area_is_clamped(self, make_block):
        block = decode_block(make_block(payload_size=1000))
        assert len(block.payload) == 476

    @pytest.mark.parametrize("index", [0, 1, 2])
    def test_bad_magic_returns_none(self, make_block, index):
        magics = [MAGIC_START0, MAGIC_START1, MAGIC_END]
        magics[index] ^= 0x1
        assert decode_block(make_block(magics=tuple(magics))) is None

    def test_wrong_size_raises_valueerror(self, make_block):
        with pytest.raises(ValueError):
            decode_block(make_block()[:-1])

    def test_block_is_immutable(self, make_block):
        block = decode_block(make_block())
        with pytest.raises(AttributeError):
            block.block_no = 5

    def test_roundtrip_constructed_block(self, make_block):
        """Encoding a block's fields and decoding again gives the same block."""
        original = Block(
            start_magic_0=MAGIC_START0,
            start_magic_1=MAGIC_START1,
            flags=FAMILY_ID_PRESENT,
            target_addr=0x00027000,
            payload_size=476,
            block_no=41,
            num_blocks=42,
            file_size_or_family_id=0x9808B007,
            data=bytes(i % 251 for i in range(476)),
            end_magic=MAGIC_END,
        )
        raw = make_block(
            flags=original.flags,
            target_addr=original.target_addr,
            payload_size=original.payload_size,
            block_no=original.block_no,
            num_blocks=original.num_blocks,
            file_size_or_family_id=original.file_size_or_family_id,
            data=original.data,
        )
        assert decode_block(raw) == original


class TestFamilyId:
    """Test the family id / file size interpretation of header word 7."""

    def test_family_id_present_when_flag_set(self, make_block):
        block = decode_block(make_block(flags=FAMILY_ID_PRESENT, file_size_or_family_id=0x9807B007))
        assert block.family_id() == 0x9807B007
        assert block.file_size() is None

    def test_family_id_absent_when_flag_clear(self, make_block):
        block = decode_block(make_block(flags=0, file_size_or_family_id=0x9807B007))
        assert block.family_id() is None
        assert block.file_size() == 0x9807B007

    def test_other_flags_do_not_imply_family_id(self, make_block):
        flags = BlockFlags.NOT_MAIN_FLASH | BlockFlags.FILE_CONTAINER | BlockFlags.MD5_PRESENT
        block = decode_block(make_block(flags=int(flags), file_size_or_family_id=1234))
        assert block.family_id() is None

    def test_family_id_with_other_flags(self, make_block):
        flags = BlockFlags.FAMILY_ID_PRESENT | BlockFlags.EXTENSION_TAGS_PRESENT
        block = decode_block(make_block(flags=int(flags), file_size_or_family_id=0))
        assert block.family_id() == 0

    def test_family_id_present_flag_value(self):
        assert BlockFlags.FAMILY_ID_PRESENT == 0x00002000

    def test_flag_names(self, make_block):
        block = decode_block(make_block(flags=0x00002001))
        assert block.flag_names() == ["NOT_MAIN_FLASH", "FAMILY_ID_PRESENT"]
        assert decode_block(make_block(flags=0)).flag_names() == []


def test_block_layout_fills_frame():
    assert DATA_OFFSET == 32
    assert END_MAGIC_OFFSET + 4 == BLOCK_SIZE


class TestBlockReader:
    """Test lazy block stream iteration."""

    def test_single_glove80_block(self, make_block):
        raw = make_block(
            flags=0x00002000,
            file_size_or_family_id=0x9807B007,
            block_no=0,
            num_blocks=1,
            payload_size=256,
        )
        blocks = list(open_blocks(io.BytesIO(raw)))
        assert len(blocks) == 1
        assert blocks[0].family_id() == 0x9807B007
        assert blocks[0].payload_size == 256

    def test_invalid_frame_then_valid_frame(self, make_block):
        """A zeroed frame is skipped and decoding continues with the next window."""
        reader = open_blocks(io.BytesIO(bytes(BLOCK_SIZE) + make_block(block_no=7)))
        blocks = list(reader)
        assert [b.block_no for b in blocks] == [7]
        assert reader.skipped == 1

    def test_empty_source_yields_nothing(self):
        reader = open_blocks(io.BytesIO(b""))
        assert list(reader) == []
        assert reader.skipped == 0

    def test_all_invalid_frames_yield_nothing(self):
        reader = open_blocks(io.BytesIO(b"\xFF" * (BLOCK_SIZE * 3)))
        assert list(reader) == []
        assert reader.skipped == 3

    def test_trailing_partial_block_raises(self, make_block):
        """600 bytes: the first block is yielded, the second pull raises."""
        reader = open_blocks(io.BytesIO(make_block() + b"\x00" * 88))
        first = next(reader)
        assert first.block_no == 0
        with pytest.raises(MalformedStreamError) as ei:
            next(reader)
        assert ei.value.offset == BLOCK_SIZE
        assert ei.value.length == 88
        assert isinstance(ei.value, UF2Error)

    def test_partial_block_after_skipped_frame_raises(self):
        reader = open_blocks(io.BytesIO(bytes(BLOCK_SIZE) + b"\x01" * 10))
        with pytest.raises(MalformedStreamError):
            list(reader)
        assert reader.skipped == 1

    def test_reader_is_exhausted_after_error(self):
        reader = open_blocks(io.BytesIO(b"\x00" * 100))
        with pytest.raises(MalformedStreamError):
            next(reader)
        assert list(reader) == []

    def test_short_reads_are_reassembled(self, make_block):
        data = make_block(block_no=0, num_blocks=2) + make_block(block_no=1, num_blocks=2)
        blocks = list(open_blocks(_TrickleReader(data, step=100)))
        assert [b.block_no for b in blocks] == [0, 1]

    def test_io_error_propagates(self, make_block):
        reader = open_blocks(_FailingReader(make_block()))
        assert next(reader).block_no == 0
        with pytest.raises(OSError, match="device unplugged"):
            next(reader)
        assert list(reader) == []

    def test_reader_is_lazy(self, make_block):
        """Only one window is read per pulled block."""
        source = io.BytesIO(make_block(block_no=0) + make_block(block_no=1))
        reader = open_blocks(source)
        next(reader)
        assert source.tell() == BLOCK_SIZE
        assert reader.offset == BLOCK_SIZE

    def test_reader_is_single_pass(self, make_block):
        reader = open_blocks(io.BytesIO(make_block()))
        assert iter(reader) is reader
        assert len(list(reader)) == 1
        assert list(reader) == []

    def test_misaligned_stream_skips_by_fixed_stride(self, make_block):
        """A stray prefix byte shifts every window; no valid block is found."""
        reader = BlockReader(io.BytesIO(b"\x00" + make_block() + b"\x00" * 511))
        assert list(reader) == []
        assert reader.skipped == 2


def test_read_blocks_closes_file(tmp_path, make_block):
    path = tmp_path / "fw.uf2"
    path.write_bytes(make_block(block_no=0, num_blocks=2) + make_block(block_no=1, num_blocks=2))

    with read_blocks(path) as blocks:
        first = next(blocks)
        source = blocks._source

    assert first.block_no == 0
    assert source.closed
