"""riffwave - RIFF/WAVE audio codec.

This package reads and writes WAV files with 8, 16, 24 or 32-bit mono or
stereo samples, and round-trips broadcast-wave (``bext``) and sampler
(``smpl``) metadata.

Samples are exchanged as per-channel ``numpy.int32`` arrays scaled to the
full 32-bit range, whatever the bit depth on disk.

Example Usage
-------------
>>> from datetime import datetime
>>> from riffwave import create_bwav_metadata, open_wav, replace_metadata_in_file
>>>
>>> with open_wav("take1.wav") as reader:
...     print(reader.sample_rate, reader.frame_count)
...     print(reader.metadata.get("bwav description"))
>>>
>>> replace_metadata_in_file(
...     "take1.wav",
...     create_bwav_metadata("Take 1", "Studio A", "REF001", datetime.now(), 0, ""),
... )
"""

# Re-export format module for convenience
from riffwave.format import (
    CapacityExceededError,
    MalformedContainerError,
    NotSeekableError,
    RiffError,
    RiffIOError,
    TruncatedChunkError,
    UnsupportedFormatError,
    WavReader,
    WavWriter,
    create_reader_for,
    open_wav,
    open_wav_writer,
    replace_metadata_in_file,
)
from riffwave.types import (
    BroadcastMetadata,
    ChunkDescriptor,
    DataRegion,
    SampleLoop,
    SampleLoopTable,
    StreamFormat,
    create_bwav_metadata,
)

__all__ = [
    # Types
    "StreamFormat",
    "ChunkDescriptor",
    "DataRegion",
    "BroadcastMetadata",
    "SampleLoop",
    "SampleLoopTable",
    "create_bwav_metadata",
    # Reader
    "WavReader",
    "create_reader_for",
    "open_wav",
    # Writer
    "WavWriter",
    "open_wav_writer",
    "replace_metadata_in_file",
    # Errors
    "RiffError",
    "MalformedContainerError",
    "UnsupportedFormatError",
    "TruncatedChunkError",
    "RiffIOError",
    "CapacityExceededError",
    "NotSeekableError",
]
