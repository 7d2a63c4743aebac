"""
Byte-order conversion for pcap integers and headers.

All functions here are pure: they take a value in one byte order and return
the same value in the other. Applying a swap twice gives back the input.
"""

import sys
from dataclasses import fields, replace
from typing import TYPE_CHECKING, Any, Callable, Dict, TypeVar

if TYPE_CHECKING:
    from .models import FileHeader, RecordHeader

HOST_BYTE_ORDER = sys.byteorder

T = TypeVar("T")


def swap8(value: int) -> int:
    """Single octets have no byte order."""
    return value & 0xFF


def swap16(value: int) -> int:
    value &= 0xFFFF
    return ((value & 0x00FF) << 8) | ((value & 0xFF00) >> 8)


def swap32(value: int) -> int:
    value &= 0xFFFFFFFF
    return (((value & 0x000000FF) << 24) |
            ((value & 0x0000FF00) << 8) |
            ((value & 0x00FF0000) >> 8) |
            ((value & 0xFF000000) >> 24))


def swap_int32(value: int) -> int:
    """Swap a signed 32-bit integer, keeping the result signed."""
    swapped = swap32(value & 0xFFFFFFFF)
    if swapped & 0x80000000:
        swapped -= 0x100000000
    return swapped


# struct format code -> swap function
SWAPPERS: Dict[str, Callable[[int], int]] = {
    'B': swap8,
    'H': swap16,
    'I': swap32,
    'i': swap_int32,
}


def swap_fields(value: T) -> T:
    """
    Swap every field of a header dataclass according to its declared width.

    Each field must carry a struct format code under the 'fmt' metadata key.

    Args:
        value: A FileHeader, RecordHeader or any dataclass laid out the same way

    Returns:
        A new instance of the same type with all fields byte-swapped
    """
    changes: Dict[str, Any] = {}
    for f in fields(value):
        swapper = SWAPPERS[f.metadata['fmt']]
        changes[f.name] = swapper(getattr(value, f.name))
    return replace(value, **changes)


def swap_file_header(header: "FileHeader") -> "FileHeader":
    return swap_fields(header)


def swap_record_header(header: "RecordHeader") -> "RecordHeader":
    return swap_fields(header)
