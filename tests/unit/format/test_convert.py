"""Unit tests for sample conversion."""

import numpy as np
import pytest

from riffwave.format.convert import (
    SCRATCH_BUFFER_BYTES,
    as_canonical,
    as_float32,
    decode_frames,
    encode_frames,
    frames_per_block,
)
from riffwave.format.riff import UnsupportedFormatError


class TestDecodeFrames:
    """Tests for decode_frames."""

    def test_8bit(self) -> None:
        left, _ = decode_frames(bytes([0, 128, 255]), 8, 1)
        assert left is not None
        assert left.tolist() == [-128 << 24, 0, 127 << 24]

    def test_16bit(self) -> None:
        raw = np.array([-32768, -1, 0, 1, 32767], dtype="<i2").tobytes()
        left, _ = decode_frames(raw, 16, 1)
        assert left is not None
        assert left.tolist() == [-32768 << 16, -1 << 16, 0, 1 << 16, 32767 << 16]

    def test_24bit(self) -> None:
        raw = bytes([0x00, 0x00, 0x80, 0xFF, 0xFF, 0xFF, 0x01, 0x00, 0x00, 0xFF, 0xFF, 0x7F])
        left, _ = decode_frames(raw, 24, 1)
        assert left is not None
        assert left.tolist() == [-(1 << 23) << 8, -1 << 8, 1 << 8, ((1 << 23) - 1) << 8]

    def test_32bit_passes_through(self) -> None:
        values = [-(2**31), -1, 0, 2**31 - 1]
        raw = np.array(values, dtype="<i4").tobytes()
        left, _ = decode_frames(raw, 32, 1)
        assert left is not None
        assert left.tolist() == values

    def test_stereo_deinterleaves(self) -> None:
        raw = np.array([1, -1, 2, -2, 3, -3], dtype="<i2").tobytes()
        left, right = decode_frames(raw, 16, 2)
        assert left is not None and right is not None
        assert (left >> 16).tolist() == [1, 2, 3]
        assert (right >> 16).tolist() == [-1, -2, -3]

    def test_right_only_keeps_stride(self) -> None:
        raw = bytes([0x01, 0x00, 0x00, 0x02, 0x00, 0x00] * 2)
        left, right = decode_frames(raw, 24, 2, want=(False, True))
        assert left is None
        assert right is not None
        assert (right >> 8).tolist() == [2, 2]

    def test_left_only(self) -> None:
        raw = bytes([130, 120, 140, 110])
        left, right = decode_frames(raw, 8, 2, want=(True, False))
        assert right is None
        assert left is not None
        assert (left >> 24).tolist() == [2, 12]

    def test_neither_channel(self) -> None:
        assert decode_frames(bytes(8), 16, 2, want=(False, False)) == [None, None]

    def test_mono_never_fills_second_channel(self) -> None:
        left, right = decode_frames(bytes(4), 16, 1, want=(True, True))
        assert left is not None
        assert right is None

    def test_partial_frame_is_ignored(self) -> None:
        left, _ = decode_frames(bytes(5), 16, 1)
        assert left is not None
        assert len(left) == 2

    def test_unsupported_bits(self) -> None:
        with pytest.raises(UnsupportedFormatError):
            decode_frames(bytes(4), 12, 1)


class TestEncodeFrames:
    """Tests for encode_frames."""

    def test_8bit(self) -> None:
        samples = np.array([-128 << 24, 0, 127 << 24, (1 << 24) - 1], dtype=np.int32)
        assert encode_frames([samples], 8) == bytes([0, 128, 255, 128])

    def test_16bit_little_endian(self) -> None:
        samples = np.array([0x1234 << 16, -1 << 16], dtype=np.int32)
        assert encode_frames([samples], 16) == bytes([0x34, 0x12, 0xFF, 0xFF])

    def test_24bit_little_endian(self) -> None:
        samples = np.array([0x123456 << 8, -1 << 8], dtype=np.int32)
        assert encode_frames([samples], 24) == bytes([0x56, 0x34, 0x12, 0xFF, 0xFF, 0xFF])

    def test_32bit(self) -> None:
        samples = np.array([0x01020304], dtype=np.int32)
        assert encode_frames([samples], 32) == bytes([4, 3, 2, 1])

    def test_interleaves_channels(self) -> None:
        left = np.array([1 << 16, 2 << 16], dtype=np.int32)
        right = np.array([-1 << 16, -2 << 16], dtype=np.int32)
        raw = encode_frames([left, right], 16)
        assert np.frombuffer(raw, dtype="<i2").tolist() == [1, -1, 2, -2]

    def test_mismatched_lengths(self) -> None:
        with pytest.raises(ValueError):
            encode_frames([np.zeros(2, dtype=np.int32), np.zeros(3, dtype=np.int32)], 16)

    def test_no_channels(self) -> None:
        with pytest.raises(ValueError):
            encode_frames([], 16)

    @pytest.mark.parametrize("bits", [8, 16, 24, 32])
    @pytest.mark.parametrize("channels", [1, 2])
    def test_decode_inverts_encode(self, bits: int, channels: int) -> None:
        rng = np.random.default_rng(bits * channels)
        data = [
            rng.integers(-(2**31), 2**31, size=100, dtype=np.int64).astype(np.int32)
            for _ in range(channels)
        ]
        decoded = decode_frames(encode_frames(data, bits), bits, channels)

        drop = 32 - bits
        for original, result in zip(data, decoded):
            assert result is not None
            np.testing.assert_array_equal(result, (original >> drop) << drop)


class TestHelpers:
    """Tests for conversion helpers."""

    def test_float32_roundtrip_is_bit_exact(self) -> None:
        values = np.array([0.0, -1.0, 0.5, 1e-30], dtype=np.float32)
        canonical = as_canonical(values)
        assert canonical.dtype == np.int32
        np.testing.assert_array_equal(as_float32(canonical), values)

    def test_as_canonical_casts_integers(self) -> None:
        assert as_canonical(np.array([1, 2], dtype=np.int64)).dtype == np.int32

    def test_scratch_buffer_holds_whole_samples(self) -> None:
        for width in (1, 2, 3, 4):
            assert SCRATCH_BUFFER_BYTES % width == 0

    def test_frames_per_block(self) -> None:
        assert frames_per_block(6) == SCRATCH_BUFFER_BYTES // 6
        assert frames_per_block(SCRATCH_BUFFER_BYTES * 2) == 1
