"""Broadcast-wave (``bext``) chunk codec.

Layout of the chunk body, all integers little-endian::

    offset  size  field
         0   256  description
       256    32  originator
       288    32  originator reference
       320    10  origination date
       330     8  origination time
       338     4  time reference, low word
       342     4  time reference, high word
       346     2  version
       348    64  UMID
       412   190  reserved
       602     *  coding history (NUL terminated)
"""

import struct
from collections.abc import Mapping

from riffwave.types import (
    BWAV_CODING_HISTORY,
    BWAV_DESCRIPTION,
    BWAV_ORIGINATION_DATE,
    BWAV_ORIGINATION_TIME,
    BWAV_ORIGINATOR,
    BWAV_ORIGINATOR_REF,
    BWAV_TIME_REFERENCE,
    MetadataValues,
    parse_int_value,
)

# (key, offset, width) in slot order; encoding depends on this order
TEXT_SLOTS: tuple[tuple[str, int, int], ...] = (
    (BWAV_DESCRIPTION, 0, 256),
    (BWAV_ORIGINATOR, 256, 32),
    (BWAV_ORIGINATOR_REF, 288, 32),
    (BWAV_ORIGINATION_DATE, 320, 10),
    (BWAV_ORIGINATION_TIME, 330, 8),
)
TIME_REFERENCE_OFFSET = 338
VERSION_OFFSET = 346
CODING_HISTORY_OFFSET = 602
BEXT_FIXED_SIZE = CODING_HISTORY_OFFSET


def _read_text(data: bytes, offset: int, width: int | None = None) -> str:
    raw = data[offset:] if width is None else data[offset : offset + width]
    return raw.split(b"\x00", 1)[0].decode("utf-8", errors="replace")


def _truncate_utf8(text: str, width: int) -> bytes:
    """Encode text as UTF-8, cut to at most ``width`` bytes on a character boundary."""
    encoded = text.encode("utf-8")
    if len(encoded) <= width:
        return encoded
    return encoded[:width].decode("utf-8", errors="ignore").encode("utf-8")


def decode_bext(data: bytes) -> MetadataValues:
    """Decode a ``bext`` chunk body into a metadata map.

    Args:
        data: Chunk body; bodies shorter than the fixed layout are zero padded.

    Returns:
        Map holding all seven broadcast keys.
    """
    if len(data) < BEXT_FIXED_SIZE:
        data = data + bytes(BEXT_FIXED_SIZE - len(data))

    values: MetadataValues = {}
    for key, offset, width in TEXT_SLOTS:
        values[key] = _read_text(data, offset, width)

    low, high = struct.unpack_from("<II", data, TIME_REFERENCE_OFFSET)
    values[BWAV_TIME_REFERENCE] = str((high << 32) | low)
    values[BWAV_CODING_HISTORY] = _read_text(data, CODING_HISTORY_OFFSET)
    return values


def encode_bext(values: Mapping[str, str]) -> bytes:
    """Encode a metadata map as a ``bext`` chunk body.

    Each text field is followed by a terminator byte that lands in the next
    slot; the next field's write overwrites it, so slots must be written in
    layout order into a zeroed buffer.

    Args:
        values: Metadata map; missing keys are treated as empty.

    Returns:
        The chunk body padded to a multiple of 4 bytes, or ``b""`` when every
        field is empty and the time reference is zero.
    """
    coding_history = values.get(BWAV_CODING_HISTORY, "").encode("utf-8")
    size_needed = BEXT_FIXED_SIZE + len(coding_history) + 1
    data = bytearray((size_needed + 3) & ~3)

    any_text = False
    for key, offset, width in TEXT_SLOTS:
        encoded = _truncate_utf8(values.get(key, ""), width)
        data[offset : offset + len(encoded) + 1] = encoded + b"\x00"
        any_text = any_text or bool(encoded)

    time_reference = parse_int_value(values.get(BWAV_TIME_REFERENCE)) & 0xFFFFFFFFFFFFFFFF
    struct.pack_into(
        "<II", data, TIME_REFERENCE_OFFSET, time_reference & 0xFFFFFFFF, time_reference >> 32
    )

    data[CODING_HISTORY_OFFSET : CODING_HISTORY_OFFSET + len(coding_history)] = coding_history

    if not any_text and not coding_history and time_reference == 0:
        return b""
    return bytes(data)
