"""Format (``fmt ``) chunk encoding and decoding."""

import struct

from riffwave.format.riff import WAVE_FORMAT_IEEE_FLOAT, WAVE_FORMAT_PCM
from riffwave.types import StreamFormat

FMT_CHUNK_SIZE = 16


def parse_fmt_chunk(data: bytes) -> StreamFormat:
    """Decode a ``fmt `` chunk body.

    The frame size is derived from the byte rate rather than trusted from the
    block-align field, and the bit depth is derived from the frame size. A
    format code other than PCM or IEEE float yields ``bytes_per_frame == 0``,
    which marks the stream as unusable.

    Args:
        data: Chunk body; short bodies are treated as zero padded.

    Returns:
        The decoded StreamFormat.
    """
    if len(data) < FMT_CHUNK_SIZE:
        data = data + bytes(FMT_CHUNK_SIZE - len(data))

    format_tag, num_channels, sample_rate, byte_rate = struct.unpack("<HHII", data[:12])

    bytes_per_frame = byte_rate // sample_rate if sample_rate else 0
    bits_per_sample = 8 * bytes_per_frame // num_channels if num_channels else 0

    if format_tag not in (WAVE_FORMAT_PCM, WAVE_FORMAT_IEEE_FLOAT):
        bytes_per_frame = 0

    return StreamFormat(
        sample_rate=float(sample_rate),
        num_channels=num_channels,
        bits_per_sample=bits_per_sample,
        is_floating_point=format_tag == WAVE_FORMAT_IEEE_FLOAT,
        bytes_per_frame=bytes_per_frame,
        format_tag=format_tag,
    )


def build_fmt_chunk(
    sample_rate: float,
    num_channels: int,
    bits_per_sample: int,
    floating_point: bool = False,
) -> bytes:
    """Build the 16-byte ``fmt `` chunk body."""
    audio_format = WAVE_FORMAT_IEEE_FLOAT if floating_point else WAVE_FORMAT_PCM
    block_align = num_channels * bits_per_sample // 8
    byte_rate = block_align * int(sample_rate)

    return struct.pack(
        "<HHIIHH",
        audio_format,
        num_channels,
        int(sample_rate),
        byte_rate,
        block_align,
        bits_per_sample,
    )
