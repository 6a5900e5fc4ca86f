"""Replace the metadata of an existing WAV file.

When the file already has a ``bext`` chunk large enough for the new block, the
block is overwritten in place and the file size does not change. Otherwise the
file is decoded and written out again, with the new metadata, to a temporary
sibling that then replaces the original.
"""

import logging
import os
import shutil
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Literal

from riffwave.format.bext import encode_bext
from riffwave.format.reader import open_wav
from riffwave.format.riff import NotSeekableError, RiffIOError, UnsupportedFormatError
from riffwave.format.writer import WavWriter
from riffwave.types import MetadataValues, has_sampler_values

logger = logging.getLogger(__name__)

ReplaceResult = Literal["in_place", "rewritten"]


def replace_metadata_in_file(path: Path | str, metadata: Mapping[str, str]) -> ReplaceResult:
    """Replace the broadcast metadata of a WAV file.

    Only the broadcast fields are written on the in-place path; sampler
    keys in ``metadata`` are ignored there and the file's existing ``smpl``
    chunk is left as it is. On the rewrite path, sampler keys in
    ``metadata`` replace the existing ones, and when there are none the
    existing ones are carried over. The rewritten file keeps the original's
    permission bits.

    Args:
        path: Path to an existing WAV file.
        metadata: New metadata map.

    Returns:
        ``"in_place"`` if the existing chunk was overwritten, ``"rewritten"``
        if the file was copied with the new metadata.

    Raises:
        MalformedContainerError: If the file is not a RIFF/WAVE container.
        UnsupportedFormatError: If a rewrite is needed but the samples
            cannot be decoded.
        RiffIOError: If reading or writing fails. The original file is left
            untouched.
    """
    path = Path(path)

    with open_wav(path) as reader:
        bext_chunk = reader.bext_chunk
        original_metadata = dict(reader.metadata)

    block = encode_bext(metadata)
    if bext_chunk is not None:
        # Only the bytes actually present count as reserved
        file_size = path.stat().st_size
        reserved = min(bext_chunk.data_length, max(0, file_size - bext_chunk.data_offset))
        if len(block) <= reserved:
            # An empty block clears the whole reserved region
            _overwrite_in_place(path, bext_chunk.data_offset, block or bytes(reserved))
            logger.debug("Replaced bext chunk in place in %s", path)
            return "in_place"

    new_metadata: MetadataValues = dict(metadata)
    if not has_sampler_values(new_metadata):
        new_metadata.update(
            (key, value) for key, value in original_metadata.items() if not key.startswith("bwav ")
        )

    _rewrite_with_metadata(path, new_metadata)
    logger.debug("Rewrote %s with new metadata", path)
    return "rewritten"


def _overwrite_in_place(path: Path, offset: int, block: bytes) -> None:
    try:
        with open(path, "r+b") as f:
            if not f.seekable():
                raise NotSeekableError(f"Cannot seek in {path}")
            old_size = f.seek(0, os.SEEK_END)
            f.seek(offset)
            f.write(block)
            f.seek(old_size)
    except OSError as e:
        raise RiffIOError(f"Cannot patch metadata in {path}: {e}") from e


def _rewrite_with_metadata(path: Path, metadata: MetadataValues) -> None:
    tmp = tempfile.NamedTemporaryFile(
        dir=path.parent, prefix=f".{path.stem}-", suffix=".tmp", delete=False
    )
    tmp_path = Path(tmp.name)
    try:
        with open_wav(path) as reader:
            if not reader.usable:
                raise UnsupportedFormatError(f"Cannot decode samples in {path}")

            with WavWriter(
                tmp,
                reader.sample_rate,
                reader.num_channels,
                reader.bits_per_sample,
                metadata,
                floating_point=reader.is_floating_point,
            ) as writer:
                writer.write_from_reader(reader)

        shutil.copymode(path, tmp_path)
        os.replace(tmp_path, path)
    except BaseException:
        tmp.close()
        tmp_path.unlink(missing_ok=True)
        raise
