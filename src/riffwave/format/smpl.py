"""Sampler (``smpl``) chunk codec.

The chunk holds nine 32-bit global fields followed by a table of 24-byte loop
records. The declared loop count is not trusted: records are only decoded
while they fit inside the chunk.
"""

import struct
from collections.abc import Mapping

from riffwave.types import (
    SMPL_GLOBAL_KEYS,
    SMPL_LOOP_FIELDS,
    MetadataValues,
    has_sampler_values,
    loop_key,
    parse_int_value,
)

SMPL_HEADER_SIZE = 36
SMPL_LOOP_SIZE = 24

_GLOBALS = struct.Struct("<9I")
_LOOP = struct.Struct("<6I")

_NUM_LOOPS_INDEX = SMPL_GLOBAL_KEYS.index("NumSampleLoops")


def decode_smpl(data: bytes) -> MetadataValues:
    """Decode a ``smpl`` chunk body into a metadata map.

    Args:
        data: Chunk body as read from the file.

    Returns:
        Map holding the nine global keys plus the per-loop keys of every
        record that fits in ``data``. ``NumSampleLoops`` keeps the declared
        count even when fewer records were present.
    """
    total_size = len(data)
    if total_size < SMPL_HEADER_SIZE:
        data = data + bytes(SMPL_HEADER_SIZE - total_size)

    header = _GLOBALS.unpack_from(data, 0)
    values: MetadataValues = {key: str(value) for key, value in zip(SMPL_GLOBAL_KEYS, header)}

    for i in range(header[_NUM_LOOPS_INDEX]):
        if SMPL_HEADER_SIZE + (i + 1) * SMPL_LOOP_SIZE > total_size:
            break

        record = _LOOP.unpack_from(data, SMPL_HEADER_SIZE + i * SMPL_LOOP_SIZE)
        for name, value in zip(SMPL_LOOP_FIELDS, record):
            values[loop_key(i, name)] = str(value)

    return values


def encode_smpl(values: Mapping[str, str]) -> bytes:
    """Encode a metadata map as a ``smpl`` chunk body.

    One record is written per consecutive ``Loop{i}Identifier`` key, and
    ``NumSampleLoops`` is rewritten to match. Loop fields missing from the
    map are written as zero.

    Returns:
        The chunk body, or ``b""`` if the map holds no sampler keys.
    """
    if not has_sampler_values(values):
        return b""

    num_loops = 0
    while loop_key(num_loops, "Identifier") in values:
        num_loops += 1

    header = [parse_int_value(values.get(key)) & 0xFFFFFFFF for key in SMPL_GLOBAL_KEYS]
    header[_NUM_LOOPS_INDEX] = num_loops

    data = bytearray(SMPL_HEADER_SIZE + num_loops * SMPL_LOOP_SIZE)
    _GLOBALS.pack_into(data, 0, *header)

    for i in range(num_loops):
        record = [
            parse_int_value(values.get(loop_key(i, name))) & 0xFFFFFFFF
            for name in SMPL_LOOP_FIELDS
        ]
        _LOOP.pack_into(data, SMPL_HEADER_SIZE + i * SMPL_LOOP_SIZE, *record)

    return bytes(data)
