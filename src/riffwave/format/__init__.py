"""RIFF/WAVE codec.

This module provides functionality for reading and writing WAV files,
including broadcast-wave and sampler metadata.

Format Overview
---------------
A WAV file is a RIFF container holding a sequence of tagged chunks:

    +----------------------------------------+
    | RIFF Header ("WAVE")                   |
    +----------------------------------------+
    | fmt  chunk (audio format)              |
    +----------------------------------------+
    | bext chunk (broadcast metadata)        |
    |   - Description, originator           |
    |   - Origination date/time              |
    |   - Time reference, coding history     |
    +----------------------------------------+
    | smpl chunk (sampler loop table)        |
    +----------------------------------------+
    | data chunk (interleaved samples)       |
    |   - 8/16/24/32-bit                     |
    |   - Mono or stereo                     |
    +----------------------------------------+

Unknown chunks are skipped when reading.

Example Usage
-------------
>>> import numpy as np
>>> from riffwave.format import open_wav, open_wav_writer
>>> silence = np.zeros(44100, dtype=np.int32)
>>> with open_wav_writer("out.wav", 44100, 2, 16) as writer:
...     writer.write([silence, silence])
>>> with open_wav("out.wav") as reader:
...     left, right = reader.read_samples(0, reader.frame_count)
"""

from riffwave.format.bext import decode_bext, encode_bext
from riffwave.format.convert import as_float32, decode_frames, encode_frames
from riffwave.format.fmt import build_fmt_chunk, parse_fmt_chunk
from riffwave.format.patch import replace_metadata_in_file
from riffwave.format.reader import WavReader, create_reader_for, open_wav
from riffwave.format.riff import (
    CapacityExceededError,
    MalformedContainerError,
    NotSeekableError,
    RiffError,
    RiffIOError,
    TruncatedChunkError,
    UnsupportedFormatError,
    walk_chunks,
)
from riffwave.format.smpl import decode_smpl, encode_smpl
from riffwave.format.writer import WavWriter, open_wav_writer

__all__ = [
    # Errors
    "RiffError",
    "MalformedContainerError",
    "UnsupportedFormatError",
    "TruncatedChunkError",
    "RiffIOError",
    "CapacityExceededError",
    "NotSeekableError",
    # Container
    "walk_chunks",
    "parse_fmt_chunk",
    "build_fmt_chunk",
    # Metadata
    "decode_bext",
    "encode_bext",
    "decode_smpl",
    "encode_smpl",
    "replace_metadata_in_file",
    # Samples
    "decode_frames",
    "encode_frames",
    "as_float32",
    # Reader
    "WavReader",
    "create_reader_for",
    "open_wav",
    # Writer
    "WavWriter",
    "open_wav_writer",
]
