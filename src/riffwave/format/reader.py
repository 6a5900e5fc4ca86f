"""WAV file reader.

This module provides random access to the samples of a RIFF/WAVE stream,
along with its format and any broadcast or sampler metadata it carries.
"""

import logging
from pathlib import Path
from types import TracebackType
from typing import BinaryIO

import numpy as np

from riffwave.format.bext import decode_bext
from riffwave.format.convert import Int32Array, decode_frames, frames_per_block
from riffwave.format.fmt import parse_fmt_chunk
from riffwave.format.riff import (
    BEXT_ID,
    DATA_ID,
    FMT_ID,
    SMPL_ID,
    RiffError,
    RiffIOError,
    UnsupportedFormatError,
    read_chunk_body,
    walk_chunks,
)
from riffwave.format.smpl import decode_smpl
from riffwave.types import ChunkDescriptor, DataRegion, MetadataValues, StreamFormat

logger = logging.getLogger(__name__)


class WavReader:
    """Reader over a seekable RIFF/WAVE stream.

    The container is parsed once, at construction. A stream without a
    ``fmt `` or ``data`` chunk, or whose format cannot be decoded, still
    yields a reader, but ``usable`` is False and reading samples raises
    UnsupportedFormatError.

    Raises:
        MalformedContainerError: If the stream is not a RIFF/WAVE container.
    """

    def __init__(self, stream: BinaryIO) -> None:
        self.stream = stream
        self.format: StreamFormat | None = None
        self.data_region: DataRegion | None = None
        self.metadata: MetadataValues = {}
        self.bext_chunk: ChunkDescriptor | None = None
        self._truncation_logged = False

        self.chunks = walk_chunks(
            stream,
            {
                FMT_ID: self._read_fmt,
                DATA_ID: self._read_data,
                BEXT_ID: self._read_bext,
                SMPL_ID: self._read_smpl,
            },
        )

    def _read_fmt(self, f: BinaryIO, chunk: ChunkDescriptor) -> None:
        self.format = parse_fmt_chunk(read_chunk_body(f, chunk))

    def _read_data(self, f: BinaryIO, chunk: ChunkDescriptor) -> None:
        self.data_region = DataRegion(chunk.data_offset, chunk.data_length)

    def _read_bext(self, f: BinaryIO, chunk: ChunkDescriptor) -> None:
        self.bext_chunk = chunk
        self.metadata.update(decode_bext(read_chunk_body(f, chunk)))

    def _read_smpl(self, f: BinaryIO, chunk: ChunkDescriptor) -> None:
        self.metadata.update(decode_smpl(read_chunk_body(f, chunk)))

    @property
    def usable(self) -> bool:
        """Whether samples can be read from this stream."""
        return self.format is not None and self.data_region is not None and self.format.usable

    @property
    def sample_rate(self) -> float:
        return self.format.sample_rate if self.format else 0.0

    @property
    def num_channels(self) -> int:
        return self.format.num_channels if self.format else 0

    @property
    def bits_per_sample(self) -> int:
        return self.format.bits_per_sample if self.format else 0

    @property
    def is_floating_point(self) -> bool:
        return self.format.is_floating_point if self.format else False

    @property
    def frame_count(self) -> int:
        """Number of whole frames declared by the data chunk."""
        if self.format is None or self.data_region is None or not self.format.usable:
            return 0
        return self.data_region.frame_count(self.format.bytes_per_frame)

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        return self.frame_count / self.sample_rate if self.usable else 0.0

    def read_samples(
        self,
        start_frame: int,
        num_frames: int,
        *,
        left: bool = True,
        right: bool = True,
    ) -> tuple[Int32Array | None, Int32Array | None]:
        """Read a range of frames as canonical int32 samples.

        Frames outside ``[0, frame_count)`` come back as zeros. The right
        channel of a mono stream is never filled in from the left.

        Args:
            start_frame: First frame to read; may be negative or past the end.
            num_frames: Number of frames to return.
            left: Whether to return channel 0.
            right: Whether to return channel 1.

        Returns:
            Tuple of (left, right), each an int32 array of ``num_frames``
            samples, or None if not requested or not present.

        Raises:
            UnsupportedFormatError: If the reader is not usable.
        """
        fmt = self.format
        region = self.data_region
        if fmt is None or region is None or not fmt.usable:
            raise UnsupportedFormatError("Stream has no decodable format or data chunk")

        num_frames = max(0, num_frames)
        want = (left, right and fmt.num_channels > 1)
        outputs = [np.zeros(num_frames, dtype=np.int32) if w else None for w in want]

        first = max(start_frame, 0)
        last = min(start_frame + num_frames, self.frame_count)
        if last <= first or not any(want):
            return outputs[0], outputs[1]

        bytes_per_frame = fmt.bytes_per_frame
        self.stream.seek(region.start_offset + first * bytes_per_frame)

        block = frames_per_block(bytes_per_frame)
        dest = first - start_frame
        remaining = last - first
        while remaining > 0:
            count = min(block, remaining)
            wanted_bytes = count * bytes_per_frame
            raw = self.stream.read(wanted_bytes)
            if len(raw) < wanted_bytes:
                self._log_truncation(len(raw), wanted_bytes)
                raw = raw + bytes(wanted_bytes - len(raw))

            decoded = decode_frames(raw, fmt.bits_per_sample, fmt.num_channels, want)
            for out, samples in zip(outputs, decoded):
                if out is not None and samples is not None:
                    out[dest : dest + count] = samples

            dest += count
            remaining -= count

        return outputs[0], outputs[1]

    def _log_truncation(self, got: int, wanted: int) -> None:
        if not self._truncation_logged:
            logger.warning(
                "Data chunk is truncated (read %d of %d bytes); zero-filling", got, wanted
            )
            self._truncation_logged = True

    def close(self) -> None:
        self.stream.close()

    def __enter__(self) -> "WavReader":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def create_reader_for(stream: BinaryIO) -> WavReader | None:
    """Create a reader, or return None if the stream cannot be decoded.

    Malformed containers are reported the same way as unusable formats.
    """
    try:
        reader = WavReader(stream)
    except RiffError as e:
        logger.warning("Cannot read stream: %s", e)
        return None

    if not reader.usable:
        logger.warning("Stream has no decodable format or data chunk (format=%s)", reader.format)
        return None
    return reader


def open_wav(path: Path | str) -> WavReader:
    """Open a WAV file for reading.

    Args:
        path: Path to the WAV file.

    Returns:
        A reader that owns the open file.

    Raises:
        RiffIOError: If the file cannot be opened.
        MalformedContainerError: If the file is not a RIFF/WAVE container.
    """
    path = Path(path)
    try:
        f = open(path, "rb")
    except FileNotFoundError as e:
        raise RiffIOError(f"File not found: {path}") from e
    except OSError as e:
        raise RiffIOError(f"Cannot open file: {path}") from e

    try:
        return WavReader(f)
    except BaseException:
        f.close()
        raise
