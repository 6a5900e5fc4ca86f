"""Python types for RIFF/WAVE streams and their metadata.

These types provide a Pythonic interface over the values the codec produces
while parsing a file, with conversion to/from the string-keyed metadata map
that readers populate and writers consume.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, TypeAlias

BitDepth = Literal[8, 16, 24, 32]
SUPPORTED_BIT_DEPTHS: tuple[int, ...] = (8, 16, 24, 32)

MetadataValues: TypeAlias = dict[str, str]

# Broadcast metadata keys
BWAV_DESCRIPTION = "bwav description"
BWAV_ORIGINATOR = "bwav originator"
BWAV_ORIGINATOR_REF = "bwav originator ref"
BWAV_ORIGINATION_DATE = "bwav origination date"
BWAV_ORIGINATION_TIME = "bwav origination time"
BWAV_TIME_REFERENCE = "bwav time reference"
BWAV_CODING_HISTORY = "bwav coding history"

BWAV_KEYS: tuple[str, ...] = (
    BWAV_DESCRIPTION,
    BWAV_ORIGINATOR,
    BWAV_ORIGINATOR_REF,
    BWAV_ORIGINATION_DATE,
    BWAV_ORIGINATION_TIME,
    BWAV_TIME_REFERENCE,
    BWAV_CODING_HISTORY,
)

# Sampler metadata keys, in wire order
SMPL_GLOBAL_KEYS: tuple[str, ...] = (
    "Manufacturer",
    "Product",
    "SamplePeriod",
    "MidiUnityNote",
    "MidiPitchFraction",
    "SmpteFormat",
    "SmpteOffset",
    "NumSampleLoops",
    "SamplerData",
)
SMPL_LOOP_FIELDS: tuple[str, ...] = (
    "Identifier",
    "Type",
    "Start",
    "End",
    "Fraction",
    "PlayCount",
)


def loop_key(index: int, field_name: str) -> str:
    """Metadata key for one field of a sampler loop, e.g. ``Loop0Start``."""
    return f"Loop{index}{field_name}"


def parse_int_value(value: str | None) -> int:
    """Parse a decimal metadata value leniently, treating junk as zero."""
    if not value:
        return 0
    try:
        return int(value.strip())
    except ValueError:
        return 0


@dataclass(frozen=True)
class StreamFormat:
    """Audio format decoded from the ``fmt `` chunk."""

    sample_rate: float
    """Sample rate in Hz."""

    num_channels: int
    """Number of interleaved channels."""

    bits_per_sample: int
    """Bits per sample, derived from the byte rate."""

    is_floating_point: bool = False
    """True for IEEE float data (format code 3)."""

    bytes_per_frame: int = 0
    """Bytes per frame; 0 marks a stream whose samples cannot be decoded."""

    format_tag: int = 1
    """Raw format code from the chunk."""

    @property
    def usable(self) -> bool:
        """Whether samples in this format can be decoded."""
        return (
            self.bytes_per_frame > 0
            and self.bits_per_sample in SUPPORTED_BIT_DEPTHS
            and self.sample_rate > 0
            and self.num_channels in (1, 2)
        )

    @property
    def bytes_per_sample(self) -> int:
        return self.bits_per_sample // 8


@dataclass(frozen=True)
class ChunkDescriptor:
    """Location of a sub-chunk inside the container."""

    tag: bytes
    data_offset: int
    data_length: int

    @property
    def padded_end(self) -> int:
        """Offset of the next chunk header (RIFF word alignment)."""
        return self.data_offset + self.data_length + (self.data_length % 2)

    @property
    def name(self) -> str:
        return self.tag.decode("latin-1")


@dataclass(frozen=True)
class DataRegion:
    """Byte range of the sample data."""

    start_offset: int
    byte_length: int

    def frame_count(self, bytes_per_frame: int) -> int:
        if bytes_per_frame <= 0:
            return 0
        return self.byte_length // bytes_per_frame


@dataclass
class BroadcastMetadata:
    """Broadcast-wave (``bext``) fields."""

    description: str = ""
    """Free text, at most 256 bytes on disk."""

    originator: str = ""
    """Name of the originating organisation, at most 32 bytes."""

    originator_ref: str = ""
    """Unique reference assigned by the originator, at most 32 bytes."""

    origination_date: str = ""
    """``yyyy-mm-dd``."""

    origination_time: str = ""
    """``hh:mm:ss``."""

    time_reference: int = 0
    """Sample count since midnight of the first sample."""

    coding_history: str = ""
    """Variable length coding history text."""

    def to_values(self) -> MetadataValues:
        """Convert to the string-keyed metadata map."""
        return {
            BWAV_DESCRIPTION: self.description,
            BWAV_ORIGINATOR: self.originator,
            BWAV_ORIGINATOR_REF: self.originator_ref,
            BWAV_ORIGINATION_DATE: self.origination_date,
            BWAV_ORIGINATION_TIME: self.origination_time,
            BWAV_TIME_REFERENCE: str(self.time_reference),
            BWAV_CODING_HISTORY: self.coding_history,
        }

    @classmethod
    def from_values(cls, values: Mapping[str, str]) -> "BroadcastMetadata":
        """Create from a metadata map; missing keys become empty."""
        return cls(
            description=values.get(BWAV_DESCRIPTION, ""),
            originator=values.get(BWAV_ORIGINATOR, ""),
            originator_ref=values.get(BWAV_ORIGINATOR_REF, ""),
            origination_date=values.get(BWAV_ORIGINATION_DATE, ""),
            origination_time=values.get(BWAV_ORIGINATION_TIME, ""),
            time_reference=parse_int_value(values.get(BWAV_TIME_REFERENCE)),
            coding_history=values.get(BWAV_CODING_HISTORY, ""),
        )


@dataclass
class SampleLoop:
    """One record of the sampler loop table."""

    identifier: int = 0
    type: int = 0
    start: int = 0
    end: int = 0
    fraction: int = 0
    play_count: int = 0

    def as_tuple(self) -> tuple[int, int, int, int, int, int]:
        return (
            self.identifier,
            self.type,
            self.start,
            self.end,
            self.fraction,
            self.play_count,
        )


@dataclass
class SampleLoopTable:
    """Sampler (``smpl``) chunk contents."""

    manufacturer: int = 0
    product: int = 0
    sample_period: int = 0
    midi_unity_note: int = 60
    midi_pitch_fraction: int = 0
    smpte_format: int = 0
    smpte_offset: int = 0
    declared_loop_count: int | None = None
    """Loop count as stored on disk; ``None`` means ``len(loops)``."""

    sampler_data_size: int = 0
    loops: list[SampleLoop] = field(default_factory=list)

    def to_values(self) -> MetadataValues:
        """Convert to the string-keyed metadata map."""
        declared = len(self.loops) if self.declared_loop_count is None else self.declared_loop_count
        globals_ = (
            self.manufacturer,
            self.product,
            self.sample_period,
            self.midi_unity_note,
            self.midi_pitch_fraction,
            self.smpte_format,
            self.smpte_offset,
            declared,
            self.sampler_data_size,
        )
        values = {key: str(value) for key, value in zip(SMPL_GLOBAL_KEYS, globals_, strict=True)}
        for i, loop in enumerate(self.loops):
            for name, value in zip(SMPL_LOOP_FIELDS, loop.as_tuple(), strict=True):
                values[loop_key(i, name)] = str(value)
        return values

    @classmethod
    def from_values(cls, values: Mapping[str, str]) -> "SampleLoopTable":
        """Create from a metadata map.

        Only loops whose ``Loop{i}Identifier`` key is present are collected,
        so the result reflects the records that were actually decoded.
        """
        g = [parse_int_value(values.get(key)) for key in SMPL_GLOBAL_KEYS]
        loops = []
        i = 0
        while loop_key(i, "Identifier") in values:
            loops.append(
                SampleLoop(*(parse_int_value(values.get(loop_key(i, n))) for n in SMPL_LOOP_FIELDS))
            )
            i += 1
        return cls(
            manufacturer=g[0],
            product=g[1],
            sample_period=g[2],
            midi_unity_note=g[3],
            midi_pitch_fraction=g[4],
            smpte_format=g[5],
            smpte_offset=g[6],
            declared_loop_count=g[7],
            sampler_data_size=g[8],
            loops=loops,
        )


def has_sampler_values(values: Mapping[str, str]) -> bool:
    """Whether a metadata map carries any sampler keys."""
    return any(key in values for key in SMPL_GLOBAL_KEYS) or loop_key(0, "Identifier") in values


def create_bwav_metadata(
    description: str,
    originator: str,
    originator_ref: str,
    date: datetime,
    time_reference_samples: int,
    coding_history: str,
) -> MetadataValues:
    """Build a broadcast metadata map suitable for passing to a writer."""
    return BroadcastMetadata(
        description=description,
        originator=originator,
        originator_ref=originator_ref,
        origination_date=date.strftime("%Y-%m-%d"),
        origination_time=date.strftime("%H:%M:%S"),
        time_reference=time_reference_samples,
        coding_history=coding_history,
    ).to_values()
