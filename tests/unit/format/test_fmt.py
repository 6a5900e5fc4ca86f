"""Unit tests for fmt chunk parsing."""

import struct

import pytest

from riffwave.format.fmt import build_fmt_chunk, parse_fmt_chunk


def fmt_body(format_tag: int, channels: int, rate: int, byte_rate: int, bits: int = 0) -> bytes:
    block_align = byte_rate // rate if rate else 0
    return struct.pack("<HHIIHH", format_tag, channels, rate, byte_rate, block_align, bits)


class TestParseFmtChunk:
    """Tests for parse_fmt_chunk."""

    @pytest.mark.parametrize(
        ("channels", "bits"),
        [(1, 8), (2, 8), (1, 16), (2, 16), (1, 24), (2, 24), (1, 32), (2, 32)],
    )
    def test_pcm_formats(self, channels: int, bits: int) -> None:
        fmt = parse_fmt_chunk(fmt_body(1, channels, 48000, 48000 * channels * bits // 8, bits))

        assert fmt.sample_rate == 48000.0
        assert fmt.num_channels == channels
        assert fmt.bits_per_sample == bits
        assert fmt.bytes_per_frame == channels * bits // 8
        assert not fmt.is_floating_point
        assert fmt.usable

    def test_float_format(self) -> None:
        fmt = parse_fmt_chunk(fmt_body(3, 2, 44100, 44100 * 8, 32))
        assert fmt.is_floating_point
        assert fmt.bits_per_sample == 32
        assert fmt.usable

    def test_bits_derived_from_byte_rate(self) -> None:
        # bitsPerSample field says 12, but the byte rate implies 16
        fmt = parse_fmt_chunk(fmt_body(1, 1, 8000, 16000, 12))
        assert fmt.bits_per_sample == 16

    def test_unsupported_format_code_is_unusable(self) -> None:
        fmt = parse_fmt_chunk(fmt_body(0xFFFE, 2, 44100, 44100 * 4, 16))
        assert fmt.bytes_per_frame == 0
        assert not fmt.usable

    def test_unsupported_bit_depth_is_unusable(self) -> None:
        fmt = parse_fmt_chunk(fmt_body(1, 1, 8000, 8000 * 5))
        assert fmt.bits_per_sample == 40
        assert not fmt.usable

    def test_more_than_two_channels_is_unusable(self) -> None:
        fmt = parse_fmt_chunk(fmt_body(1, 6, 48000, 48000 * 12, 16))
        assert not fmt.usable

    def test_zero_rate_and_channels_do_not_divide_by_zero(self) -> None:
        fmt = parse_fmt_chunk(bytes(16))
        assert fmt.bytes_per_frame == 0
        assert fmt.bits_per_sample == 0
        assert not fmt.usable

    def test_short_body_is_zero_padded(self) -> None:
        fmt = parse_fmt_chunk(struct.pack("<HH", 1, 2))
        assert fmt.num_channels == 2
        assert not fmt.usable


class TestBuildFmtChunk:
    """Tests for build_fmt_chunk."""

    def test_layout(self) -> None:
        body = build_fmt_chunk(44100, 2, 16)
        assert body == struct.pack("<HHIIHH", 1, 2, 44100, 176400, 4, 16)

    def test_float_flag(self) -> None:
        body = build_fmt_chunk(48000, 1, 32, floating_point=True)
        assert struct.unpack("<H", body[:2])[0] == 3

    def test_parses_back(self) -> None:
        fmt = parse_fmt_chunk(build_fmt_chunk(96000, 2, 24))
        assert (fmt.sample_rate, fmt.num_channels, fmt.bits_per_sample) == (96000.0, 2, 24)
