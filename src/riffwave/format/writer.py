"""Streaming WAV file writer.

The total length fields of a RIFF file are not known until the last frame has
been written, so the writer emits a provisional header when it is opened and
seeks back to rewrite it when it is finalized. The output stream must
therefore be seekable.

Chunk layout::

    RIFF <size> WAVE
    fmt  <16>   format
    bext <n>    broadcast metadata (if any)
    smpl <n>    sampler metadata (if any)
    data <size> samples
"""

import io
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from types import TracebackType
from typing import BinaryIO

import numpy as np
from numpy.typing import NDArray

from riffwave.format.bext import encode_bext
from riffwave.format.convert import encode_frames
from riffwave.format.fmt import build_fmt_chunk
from riffwave.format.reader import WavReader
from riffwave.format.riff import (
    BEXT_ID,
    CHUNK_HEADER_SIZE,
    DATA_ID,
    FMT_ID,
    RIFF_ID,
    SMPL_ID,
    WAVE_ID,
    CapacityExceededError,
    NotSeekableError,
    RiffIOError,
    UnsupportedFormatError,
    pack_chunk_header,
)
from riffwave.format.smpl import encode_smpl
from riffwave.types import SUPPORTED_BIT_DEPTHS

logger = logging.getLogger(__name__)

# Data bytes at which the writer stops; the RIFF size field is 32-bit
WRITER_CAPACITY_LIMIT = 0xFFF00000

# Frames per block when copying from a reader
COPY_BLOCK_FRAMES = 65536


class WavWriter:
    """Writer that streams frames to a seekable output.

    Args:
        stream: Seekable binary output, positioned where the file should start.
        sample_rate: Sample rate in Hz.
        num_channels: 1 or 2.
        bits_per_sample: 8, 16, 24 or 32.
        metadata: Broadcast and/or sampler metadata to embed. The chunks are
            encoded once, here, and their size is fixed for the session.
        floating_point: Mark the data as IEEE float (32-bit only).

    Raises:
        UnsupportedFormatError: If the format cannot be written.
        NotSeekableError: If the stream cannot report its position.
    """

    def __init__(
        self,
        stream: BinaryIO,
        sample_rate: float,
        num_channels: int,
        bits_per_sample: int,
        metadata: Mapping[str, str] | None = None,
        *,
        floating_point: bool = False,
    ) -> None:
        if bits_per_sample not in SUPPORTED_BIT_DEPTHS:
            raise UnsupportedFormatError(
                f"Unsupported bit depth: {bits_per_sample}. Use 8, 16, 24, or 32."
            )
        if num_channels not in (1, 2):
            raise UnsupportedFormatError(f"Expected 1 or 2 channels, got {num_channels}")
        if floating_point and bits_per_sample != 32:
            raise UnsupportedFormatError("Floating point data must be 32-bit")
        if sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive, got {sample_rate}")

        self.stream = stream
        self.sample_rate = sample_rate
        self.num_channels = num_channels
        self.bits_per_sample = bits_per_sample
        self.floating_point = floating_point
        self.bytes_per_frame = num_channels * bits_per_sample // 8

        self.frames_written = 0
        self.bytes_written = 0
        self.failed = False
        self.closed = True

        self._fmt_chunk = build_fmt_chunk(sample_rate, num_channels, bits_per_sample, floating_point)
        self._metadata_chunks: list[tuple[bytes, bytes]] = []
        if metadata:
            for chunk_id, body in ((BEXT_ID, encode_bext(metadata)), (SMPL_ID, encode_smpl(metadata))):
                if body:
                    self._metadata_chunks.append((chunk_id, body))

        try:
            self.header_position = stream.tell()
        except (OSError, io.UnsupportedOperation) as e:
            raise NotSeekableError("Output stream cannot report its position") from e

        self._write_bytes(self._build_header())
        self.closed = False

    @property
    def header_size(self) -> int:
        """Bytes from the start of the file to the first sample."""
        size = 12 + CHUNK_HEADER_SIZE + len(self._fmt_chunk) + CHUNK_HEADER_SIZE
        for _, body in self._metadata_chunks:
            size += CHUNK_HEADER_SIZE + len(body) + (len(body) % 2)
        return size

    def _build_header(self) -> bytes:
        data_size = self.bytes_written
        riff_size = self.header_size - CHUNK_HEADER_SIZE + data_size + (data_size % 2)

        header = bytearray()
        header += pack_chunk_header(RIFF_ID, riff_size)
        header += WAVE_ID
        header += pack_chunk_header(FMT_ID, len(self._fmt_chunk))
        header += self._fmt_chunk
        for chunk_id, body in self._metadata_chunks:
            header += pack_chunk_header(chunk_id, len(body))
            header += body
            if len(body) % 2:
                header += b"\x00"
        header += pack_chunk_header(DATA_ID, data_size)
        return bytes(header)

    def _write_bytes(self, data: bytes) -> None:
        try:
            self.stream.write(data)
        except OSError as e:
            raise RiffIOError(f"Failed to write {len(data)} bytes: {e}") from e

    def _seek(self, position: int) -> None:
        try:
            if not self.stream.seekable():
                raise NotSeekableError("Output stream cannot seek back to rewrite the header")
            self.stream.seek(position)
        except (OSError, io.UnsupportedOperation) as e:
            raise NotSeekableError(f"Cannot seek output stream to {position}") from e

    def _write_header(self) -> None:
        """Rewrite the header in place and return to the end of the data."""
        data_end = self.header_position + self.header_size + self.bytes_written
        self._seek(data_end)
        if self.bytes_written % 2:
            self._write_bytes(b"\x00")

        self._seek(self.header_position)
        self._write_bytes(self._build_header())
        self._seek(data_end)
        logger.debug(
            "Wrote header: %d frames, %d data bytes", self.frames_written, self.bytes_written
        )

    def write(self, channels: Sequence[NDArray[np.generic]]) -> None:
        """Append frames.

        Args:
            channels: Exactly ``num_channels`` equal-length arrays of canonical
                int32 samples (or float32 for a floating point writer).

        Raises:
            ValueError: If the number or lengths of the arrays are wrong.
            CapacityExceededError: If the data would outgrow the RIFF size field.
            RiffIOError: If the stream fails, or an earlier write failed.
        """
        if self.failed:
            raise RiffIOError("Writer is disabled after an earlier failure")
        if self.closed:
            raise RiffIOError("Writer is closed")
        if len(channels) != self.num_channels:
            raise ValueError(f"Expected {self.num_channels} channel arrays, got {len(channels)}")

        data = encode_frames(channels, self.bits_per_sample)
        num_frames = len(data) // self.bytes_per_frame

        try:
            if self.bytes_written + len(data) >= WRITER_CAPACITY_LIMIT:
                raise CapacityExceededError(
                    f"Writing {len(data)} more bytes would exceed the "
                    f"{WRITER_CAPACITY_LIMIT:#x} byte limit"
                )
            self._write_bytes(data)
        except RiffIOError:
            self._fail()
            raise

        self.bytes_written += len(data)
        self.frames_written += num_frames

    def _fail(self) -> None:
        # Keep what was written playable before disabling the writer
        self.failed = True
        try:
            self._write_header()
        except RiffIOError as e:
            logger.warning("Could not finalize header after write failure: %s", e)

    def write_from_reader(
        self,
        reader: WavReader,
        start_frame: int = 0,
        num_frames: int = -1,
    ) -> int:
        """Copy frames from a reader.

        Args:
            reader: Source reader; its channel count must match.
            start_frame: First frame to copy.
            num_frames: Number of frames, or -1 for everything after start.

        Returns:
            Number of frames copied.
        """
        if reader.num_channels != self.num_channels:
            raise ValueError(
                f"Reader has {reader.num_channels} channels, writer has {self.num_channels}"
            )
        if num_frames < 0:
            num_frames = max(0, reader.frame_count - start_frame)

        copied = 0
        while copied < num_frames:
            count = min(COPY_BLOCK_FRAMES, num_frames - copied)
            left, right = reader.read_samples(start_frame + copied, count)
            self.write([c for c in (left, right) if c is not None])
            copied += count
        return copied

    def finalize(self) -> None:
        """Rewrite the header with the final sizes.

        Raises:
            NotSeekableError: If the stream cannot seek back to the header.
        """
        self._write_header()
        self.stream.flush()

    def close(self) -> None:
        """Finalize the header and close the stream."""
        if self.closed:
            return
        self.closed = True
        try:
            if not self.failed:
                self.finalize()
        finally:
            self.stream.close()

    def __enter__(self) -> "WavWriter":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __del__(self) -> None:
        if not getattr(self, "closed", True):
            self.close()


def open_wav_writer(
    path: Path | str,
    sample_rate: float,
    num_channels: int,
    bits_per_sample: int,
    metadata: Mapping[str, str] | None = None,
    *,
    floating_point: bool = False,
) -> WavWriter:
    """Create a WAV file and return a writer that owns it."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        f = open(path, "wb")
    except OSError as e:
        raise RiffIOError(f"Cannot create file: {path}") from e

    try:
        return WavWriter(
            f,
            sample_rate,
            num_channels,
            bits_per_sample,
            metadata,
            floating_point=floating_point,
        )
    except BaseException:
        f.close()
        raise
