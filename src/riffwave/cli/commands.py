import logging
import sys
from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from riffwave.cli.validators import (
    validate_bit_depth,
    validate_date_string,
    validate_non_negative_integer,
    validate_time_string,
)
from riffwave.format import (
    RiffError,
    open_wav,
    open_wav_writer,
    replace_metadata_in_file,
    walk_chunks,
)
from riffwave.types import BroadcastMetadata

app = App(name="riffwave", help="A utility for inspecting and editing WAV files")
console = Console()
err_console = Console(stderr=True)


def print_error(message: str) -> None:
    """Print an error message in red."""
    console.print(message, style="bold red")


def print_success(message: str) -> None:
    """Print a success message in green."""
    console.print(message, style="bold green")


def print_warning(message: str) -> None:
    """Print a warning message in yellow."""
    console.print(message, style="bold yellow")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


@app.meta.default
def launcher(
    *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
    log_level: str = "WARNING",
) -> int:
    """
    Parameters
    ----------
    log_level: str
        Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    configure_logging(log_level)
    return app(tokens)


@app.command
def info(
    file: Path,
    output_json: Annotated[bool, Parameter(name=["--json"])] = False,
) -> int:
    """
    Show the audio format and metadata of a WAV file.

    Parameters
    ----------
    file: Path
        The path to the .wav file to inspect
    output_json: bool
        Output results as JSON (default: False)
    """
    try:
        with open_wav(file) as reader:
            usable = reader.usable
            fmt = reader.format
            frame_count = reader.frame_count
            duration = reader.duration
            metadata = dict(reader.metadata)
    except RiffError as e:
        print_error(f"Error: {e}")
        return 1

    if output_json:
        console.print_json(
            data={
                "file": str(file),
                "usable": usable,
                "sample_rate": fmt.sample_rate if fmt else None,
                "channels": fmt.num_channels if fmt else None,
                "bits_per_sample": fmt.bits_per_sample if fmt else None,
                "floating_point": fmt.is_floating_point if fmt else None,
                "frames": frame_count,
                "metadata": metadata,
            }
        )
        return 0 if usable else 1

    if not usable or fmt is None:
        print_error(f"Error: {file} has no decodable format or data chunk")
        if fmt is not None:
            console.print(f"  Format code: {fmt.format_tag}")
        return 1

    console.print(f"[bold]File: {file}[/bold]")
    console.print(f"  Sample rate: {fmt.sample_rate:g} Hz")
    console.print(f"  Channels: {fmt.num_channels}")
    kind = "float" if fmt.is_floating_point else "PCM"
    console.print(f"  Bit depth: {fmt.bits_per_sample}-bit {kind}")
    console.print(f"  Frames: {frame_count:,}")
    console.print(f"  Duration: {duration:.3f}s")

    if metadata:
        console.print("")
        table = Table(show_header=True, header_style="bold")
        table.add_column("Key", justify="left")
        table.add_column("Value", justify="left")
        for key, value in metadata.items():
            table.add_row(key, value)
        console.print(table)

    return 0


@app.command
def chunks(
    file: Path,
    output_json: Annotated[bool, Parameter(name=["--json"])] = False,
) -> int:
    """
    List the chunks of a RIFF/WAVE file with their offsets and sizes.

    Parameters
    ----------
    file: Path
        The path to the .wav file to walk
    output_json: bool
        Output results as JSON (default: False)
    """
    try:
        with open(file, "rb") as f:
            descriptors = walk_chunks(f)
    except OSError as e:
        print_error(f"Error: Cannot open {file}: {e}")
        return 1
    except RiffError as e:
        print_error(f"Error: {e}")
        return 1

    if output_json:
        console.print_json(
            data=[
                {"id": c.name, "offset": c.data_offset, "size": c.data_length}
                for c in descriptors
            ]
        )
        return 0

    table = Table(show_header=True, header_style="bold")
    table.add_column("Chunk", justify="left")
    table.add_column("Offset", justify="right")
    table.add_column("Size", justify="right")
    for c in descriptors:
        table.add_row(repr(c.name), str(c.data_offset), str(c.data_length))
    console.print(table)
    return 0


@app.command(name="set-bext")
def set_bext(
    file: Path,
    description: str | None = None,
    originator: str | None = None,
    originator_ref: str | None = None,
    date: Annotated[str | None, Parameter(validator=validate_date_string)] = None,
    time: Annotated[str | None, Parameter(validator=validate_time_string)] = None,
    time_reference: Annotated[
        int | None, Parameter(validator=validate_non_negative_integer)
    ] = None,
    coding_history: str | None = None,
) -> int:
    """
    Set broadcast-wave metadata fields, keeping any fields not given.

    The bext chunk is overwritten in place when the new fields fit in it;
    otherwise the file is rewritten.

    Parameters
    ----------
    file: Path
        The .wav file to modify
    description: str | None
        Description (up to 256 bytes)
    originator: str | None
        Originator name (up to 32 bytes)
    originator_ref: str | None
        Originator reference (up to 32 bytes)
    date: str | None
        Origination date in the format 'yyyy-mm-dd'
    time: str | None
        Origination time in the format 'hh:mm:ss'
    time_reference: int | None
        Sample count since midnight of the first sample
    coding_history: str | None
        Coding history text
    """
    try:
        with open_wav(file) as reader:
            current = BroadcastMetadata.from_values(reader.metadata)
    except RiffError as e:
        print_error(f"Error: {e}")
        return 1

    if description is not None:
        current.description = description
    if originator is not None:
        current.originator = originator
    if originator_ref is not None:
        current.originator_ref = originator_ref
    if date is not None:
        current.origination_date = date
    if time is not None:
        current.origination_time = time
    if time_reference is not None:
        current.time_reference = time_reference
    if coding_history is not None:
        current.coding_history = coding_history

    try:
        result = replace_metadata_in_file(file, current.to_values())
    except RiffError as e:
        print_error(f"Error writing metadata: {e}")
        return 1

    if result == "in_place":
        print_success(f"Updated metadata in place: {file}")
    else:
        print_success(f"Rewrote {file} with new metadata")
    return 0


@app.command
def convert(
    source: Path,
    output: Path,
    bits: Annotated[int, Parameter(validator=validate_bit_depth)] = 16,
) -> int:
    """
    Re-encode a WAV file at another bit depth, keeping its metadata.

    Parameters
    ----------
    source: Path
        The source .wav file
    output: Path
        Output path for the converted file
    bits: int
        Target bit depth: 8, 16, 24 or 32 (default: 16)
    """
    try:
        with open_wav(source) as reader:
            if not reader.usable:
                print_error(f"Error: {source} has no decodable format or data chunk")
                return 1
            if reader.is_floating_point and bits != 32:
                print_error("Error: Floating point data can only be written as 32-bit")
                return 1

            with open_wav_writer(
                output,
                reader.sample_rate,
                reader.num_channels,
                bits,
                reader.metadata,
                floating_point=reader.is_floating_point,
            ) as writer:
                frames = writer.write_from_reader(reader)
    except RiffError as e:
        print_error(f"Error: {e}")
        return 1

    if frames == 0:
        print_warning(f"Warning: {source} contains no frames")
    print_success(f"Converted {source} -> {output}")
    console.print(f"  Frames: {frames:,}")
    console.print(f"  Bit depth: {bits}-bit")
    return 0


def main() -> None:
    sys.exit(app.meta())


if __name__ == "__main__":
    main()
