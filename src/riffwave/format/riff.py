"""RIFF container utilities.

This module provides the FourCC constants, the error hierarchy shared by the
whole codec, and the chunk walker that every reader is built on.
"""

import logging
import os
import struct
from collections.abc import Callable, Mapping
from typing import BinaryIO

from riffwave.types import ChunkDescriptor

logger = logging.getLogger(__name__)

# FourCC identifiers
RIFF_ID = b"RIFF"
WAVE_ID = b"WAVE"
FMT_ID = b"fmt "
DATA_ID = b"data"
BEXT_ID = b"bext"
SMPL_ID = b"smpl"

# Audio format codes
WAVE_FORMAT_PCM = 1
WAVE_FORMAT_IEEE_FLOAT = 3

RIFF_HEADER_SIZE = 12
CHUNK_HEADER_SIZE = 8

ChunkHandler = Callable[[BinaryIO, ChunkDescriptor], None]


class RiffError(Exception):
    """Error reading or writing RIFF files."""


class MalformedContainerError(RiffError):
    """The outer RIFF tag or the WAVE form type is missing."""


class UnsupportedFormatError(RiffError):
    """The sample format cannot be decoded or encoded."""


class TruncatedChunkError(RiffError):
    """A chunk runs past the end of the stream."""


class RiffIOError(RiffError):
    """The underlying stream failed, or the writer refused further writes."""


class CapacityExceededError(RiffIOError):
    """The 32-bit RIFF length field cannot describe any more data."""


class NotSeekableError(RiffIOError):
    """The stream cannot seek back to rewrite a header or patch a chunk."""


def read_chunk_header(f: BinaryIO) -> tuple[bytes, int]:
    """Read a RIFF chunk header (FourCC + size).

    Args:
        f: File handle positioned at the start of a chunk.

    Returns:
        Tuple of (chunk_id, chunk_size).

    Raises:
        TruncatedChunkError: If the header cannot be read.
    """
    header = f.read(CHUNK_HEADER_SIZE)
    if len(header) < CHUNK_HEADER_SIZE:
        raise TruncatedChunkError("Unexpected end of file reading chunk header")

    chunk_id = header[:4]
    chunk_size = struct.unpack("<I", header[4:8])[0]
    return chunk_id, chunk_size


def pack_chunk_header(chunk_id: bytes, chunk_size: int) -> bytes:
    """Build an 8-byte chunk header."""
    return chunk_id + struct.pack("<I", chunk_size)


def read_chunk_body(f: BinaryIO, chunk: ChunkDescriptor) -> bytes:
    """Read a chunk's data, clipped to what the stream actually holds.

    The declared length is not trusted: a chunk claiming more bytes than
    remain in the stream yields only the bytes that are there.
    """
    stream_end = f.seek(0, os.SEEK_END)
    f.seek(chunk.data_offset)
    available = max(0, stream_end - chunk.data_offset)
    if chunk.data_length > available:
        logger.debug(
            "Chunk %r declares %d bytes but only %d remain",
            chunk.tag,
            chunk.data_length,
            available,
        )
    return f.read(min(chunk.data_length, available))


def read_riff_header(f: BinaryIO) -> int:
    """Validate the RIFF/WAVE header and return the container's end offset.

    Raises:
        MalformedContainerError: If the stream is not a RIFF/WAVE container.
    """
    start = f.tell()
    riff_header = f.read(RIFF_HEADER_SIZE)
    if len(riff_header) < RIFF_HEADER_SIZE:
        raise MalformedContainerError("File too small to be a valid WAV file")

    if riff_header[:4] != RIFF_ID:
        raise MalformedContainerError("Not a RIFF file")

    if riff_header[8:12] != WAVE_ID:
        raise MalformedContainerError(f"Not a WAVE file (form type {riff_header[8:12]!r})")

    riff_size = struct.unpack("<I", riff_header[4:8])[0]
    return start + CHUNK_HEADER_SIZE + riff_size


def walk_chunks(
    f: BinaryIO,
    handlers: Mapping[bytes, ChunkHandler] | None = None,
) -> list[ChunkDescriptor]:
    """Walk the sub-chunks of a RIFF/WAVE stream.

    Each chunk with a registered handler is passed to it with the stream
    positioned at the chunk's data. After every chunk the stream is moved to
    the chunk's padded end, whatever the handler consumed.

    The walk stops at the container's declared end, when the stream runs out,
    or at an unhandled chunk whose end does not advance past its data start.

    Args:
        f: Seekable stream positioned at the RIFF header.
        handlers: Map of FourCC to handler.

    Returns:
        Descriptors of every chunk visited, in file order.

    Raises:
        MalformedContainerError: If the stream is not a RIFF/WAVE container.
    """
    handlers = handlers or {}
    end = read_riff_header(f)
    chunks: list[ChunkDescriptor] = []

    while f.tell() < end:
        try:
            chunk_id, chunk_size = read_chunk_header(f)
        except TruncatedChunkError:
            logger.debug("Stream exhausted before declared RIFF end %d", end)
            break

        descriptor = ChunkDescriptor(chunk_id, f.tell(), chunk_size)
        chunks.append(descriptor)
        logger.debug(
            "Chunk %r at %d, size=%d", chunk_id, descriptor.data_offset, chunk_size
        )

        handler = handlers.get(chunk_id)
        if handler is not None:
            handler(f, descriptor)
        elif descriptor.padded_end <= descriptor.data_offset:
            break

        f.seek(descriptor.padded_end)

    return chunks
