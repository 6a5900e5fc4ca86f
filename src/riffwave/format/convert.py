"""Sample conversion between encoded PCM bytes and canonical int32 arrays.

Every supported bit depth is scaled to and from a canonical 32-bit signed
range, so that a full-scale 8-bit sample and a full-scale 24-bit sample land
on the same canonical value:

    bits  decode                 encode
       8  (byte - 128) << 24     128 + (s >> 24)
      16  int16 << 16            s >> 16
      24  int24 << 8             s >> 8
      32  int32                  s

Encoded data is always little-endian, interleaved by channel.
"""

from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray

from riffwave.format.riff import UnsupportedFormatError
from riffwave.types import SUPPORTED_BIT_DEPTHS

# Read block size; a multiple of 3 and 4 so no sample straddles two blocks
SCRATCH_BUFFER_BYTES = 480 * 3 * 4

Int32Array = NDArray[np.int32]


def _check_bits(bits_per_sample: int) -> None:
    if bits_per_sample not in SUPPORTED_BIT_DEPTHS:
        raise UnsupportedFormatError(
            f"Unsupported bit depth: {bits_per_sample}. Use 8, 16, 24, or 32."
        )


def frames_per_block(bytes_per_frame: int) -> int:
    """Number of whole frames that fit in the scratch buffer."""
    return max(1, SCRATCH_BUFFER_BYTES // bytes_per_frame)


def _decode_samples(raw: bytes, bits_per_sample: int) -> Int32Array:
    """Decode a flat run of samples to canonical int32."""
    if bits_per_sample == 8:
        return (np.frombuffer(raw, dtype=np.uint8).astype(np.int32) - 128) << 24
    if bits_per_sample == 16:
        return np.frombuffer(raw, dtype="<i2").astype(np.int32) << 16
    if bits_per_sample == 24:
        # Place the three bytes in the top of a little-endian int32
        triplets = np.frombuffer(raw, dtype=np.uint8).reshape(-1, 3)
        widened = np.zeros((len(triplets), 4), dtype=np.uint8)
        widened[:, 1:] = triplets
        return widened.view("<i4").reshape(-1).astype(np.int32)
    return np.frombuffer(raw, dtype="<i4").astype(np.int32)


def decode_frames(
    raw: bytes,
    bits_per_sample: int,
    num_channels: int,
    want: Sequence[bool] = (True, True),
) -> list[Int32Array | None]:
    """Decode interleaved PCM bytes into per-channel canonical arrays.

    Args:
        raw: Encoded frames; trailing bytes that do not form a whole frame
            are ignored.
        bits_per_sample: 8, 16, 24 or 32.
        num_channels: Number of interleaved channels in ``raw``.
        want: Which channels to return. Channels beyond ``num_channels`` are
            never synthesised.

    Returns:
        One array per entry in ``want``; ``None`` for channels not requested
        or not present in the source.
    """
    _check_bits(bits_per_sample)
    bytes_per_frame = num_channels * bits_per_sample // 8
    num_frames = len(raw) // bytes_per_frame

    samples = _decode_samples(raw[: num_frames * bytes_per_frame], bits_per_sample)
    samples = samples.reshape(num_frames, num_channels)

    out: list[Int32Array | None] = []
    for channel, wanted in enumerate(want):
        if wanted and channel < num_channels:
            out.append(np.ascontiguousarray(samples[:, channel]))
        else:
            out.append(None)
    return out


def encode_frames(channels: Sequence[NDArray[np.generic]], bits_per_sample: int) -> bytes:
    """Encode per-channel canonical arrays into interleaved little-endian PCM.

    Args:
        channels: One array per output channel, all the same length. Float32
            arrays are taken bit-for-bit (see ``as_canonical``).
        bits_per_sample: 8, 16, 24 or 32.

    Returns:
        Encoded bytes.

    Raises:
        ValueError: If no channels are given or their lengths differ.
    """
    _check_bits(bits_per_sample)
    if not channels:
        raise ValueError("At least one channel is required")

    canonical = [as_canonical(c) for c in channels]
    num_frames = len(canonical[0])
    for i, c in enumerate(canonical):
        if len(c) != num_frames:
            raise ValueError(f"Channel {i} has {len(c)} samples, expected {num_frames}")

    frames = np.stack(canonical, axis=1)

    if bits_per_sample == 8:
        return (128 + (frames >> 24)).astype(np.uint8).tobytes()
    if bits_per_sample == 16:
        return (frames >> 16).astype("<i2").tobytes()
    if bits_per_sample == 24:
        # The top three bytes of a little-endian int32 are (s >> 8)'s low three
        as_bytes = frames.astype("<i4").view(np.uint8).reshape(num_frames, len(canonical), 4)
        return np.ascontiguousarray(as_bytes[:, :, 1:]).tobytes()
    return frames.astype("<i4").tobytes()


def as_canonical(samples: NDArray[np.generic]) -> Int32Array:
    """Coerce an array to canonical int32.

    Float32 data is reinterpreted bit-for-bit so that IEEE float streams pass
    through the 32-bit path unchanged; other dtypes are cast.
    """
    arr = np.asarray(samples)
    if arr.dtype == np.float32:
        return arr.view(np.int32)
    return arr.astype(np.int32, copy=False)


def as_float32(samples: Int32Array) -> NDArray[np.float32]:
    """Reinterpret canonical samples from an IEEE float stream as float32."""
    return np.asarray(samples, dtype=np.int32).view(np.float32)
