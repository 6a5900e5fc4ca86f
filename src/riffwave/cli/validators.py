from datetime import datetime

from riffwave.types import SUPPORTED_BIT_DEPTHS


def validate_bit_depth(type_: object, bits: int | None) -> None:
    """Validate that bits is a supported WAV bit depth."""
    if bits is None:
        return

    if bits not in SUPPORTED_BIT_DEPTHS:
        raise ValueError("Bit depth must be one of 8, 16, 24, 32")


def validate_date_string(type_: object, date: str | None) -> None:
    if not date:
        return

    try:
        datetime.strptime(date, "%Y-%m-%d")
    except ValueError as e:
        raise ValueError("Date must be in format 'yyyy-mm-dd'") from e


def validate_time_string(type_: object, time: str | None) -> None:
    if not time:
        return

    try:
        datetime.strptime(time, "%H:%M:%S")
    except ValueError as e:
        raise ValueError("Time must be in format 'hh:mm:ss'") from e


def validate_non_negative_integer(type_: object, value: int | None) -> None:
    if value is not None and value < 0:
        raise ValueError("Value must be >= 0")
