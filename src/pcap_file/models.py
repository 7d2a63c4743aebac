"""
Data models for the pcap file library.

This module contains the core data structures used throughout the library
for representing file headers, record headers, access modes and diff results.
"""

import struct
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Optional, Tuple

from .byte_order import swap_file_header
from .exceptions import FormatError, MisuseError

PCAP_MAGIC = 0xA1B2C3D4
PCAP_MAGIC_SWAPPED = 0xD4C3B2A1

VERSION_MAJOR = 2
VERSION_MINOR = 4

ZONE_DEFAULT = 0
SNAPLEN_DEFAULT = 65535

FILE_HEADER_SIZE = 24
RECORD_HEADER_SIZE = 16

# Common data link types from the pcap-linktype registry
LINKTYPE_NULL = 0
LINKTYPE_ETHERNET = 1
LINKTYPE_PPP = 9
LINKTYPE_RAW = 101
LINKTYPE_IEEE802_11 = 105
LINKTYPE_LINUX_SLL = 113


def _u16(**kwargs):
    return field(metadata={'fmt': 'H'}, **kwargs)


def _u32(**kwargs):
    return field(metadata={'fmt': 'I'}, **kwargs)


def _i32(**kwargs):
    return field(metadata={'fmt': 'i'}, **kwargs)


def _struct_for(cls) -> struct.Struct:
    # '=' is host byte order with standard sizes and no padding
    return struct.Struct('=' + ''.join(f.metadata['fmt'] for f in fields(cls)))


@dataclass(frozen=True)
class FileHeader:
    """
    The 24-byte header at the start of every pcap file.

    Instances always hold logical (host-order) values once they have been
    built or parsed. A byte-swapped copy only exists transiently while the
    header is being written in non-native order.
    """
    magic_number: int = _u32(default=PCAP_MAGIC)
    version_major: int = _u16(default=VERSION_MAJOR)
    version_minor: int = _u16(default=VERSION_MINOR)
    zone: int = _i32(default=ZONE_DEFAULT)
    sig_figs: int = _u32(default=0)
    snap_len: int = _u32(default=SNAPLEN_DEFAULT)
    data_link_type: int = _u32(default=LINKTYPE_NULL)

    @classmethod
    def build(
        cls,
        data_link_type: int,
        snap_len: int = SNAPLEN_DEFAULT,
        zone: int = ZONE_DEFAULT,
    ) -> "FileHeader":
        """Construct the header for a new microsecond-resolution file."""
        return cls(
            magic_number=PCAP_MAGIC,
            version_major=VERSION_MAJOR,
            version_minor=VERSION_MINOR,
            zone=zone,
            sig_figs=0,
            snap_len=snap_len,
            data_link_type=data_link_type,
        )

    def pack(self) -> bytes:
        """Encode the header in host byte order."""
        return _FILE_HEADER_STRUCT.pack(
            self.magic_number,
            self.version_major,
            self.version_minor,
            self.zone,
            self.sig_figs,
            self.snap_len,
            self.data_link_type,
        )

    @classmethod
    def unpack(cls, raw: bytes) -> "FileHeader":
        """Decode 24 bytes in host byte order, without any validation."""
        return cls(*_FILE_HEADER_STRUCT.unpack(raw[:FILE_HEADER_SIZE]))

    @classmethod
    def parse(cls, raw: bytes) -> Tuple["FileHeader", bool]:
        """
        Parse and validate a file header read from disk.

        Args:
            raw: The first bytes of the file

        Returns:
            The logical header and whether the file is byte-swapped
            relative to this host

        Raises:
            FormatError: If fewer than 24 bytes are given or the magic
                number is not recognized
        """
        if len(raw) < FILE_HEADER_SIZE:
            raise FormatError(
                f"File header truncated: got {len(raw)} of {FILE_HEADER_SIZE} bytes"
            )

        header = cls.unpack(raw)
        if header.magic_number == PCAP_MAGIC:
            return header, False
        if header.magic_number == PCAP_MAGIC_SWAPPED:
            return swap_file_header(header), True

        raise FormatError(f"Unrecognized magic number 0x{header.magic_number:08x}")

    @property
    def version(self) -> Tuple[int, int]:
        return (self.version_major, self.version_minor)


@dataclass(frozen=True)
class RecordHeader:
    """
    The 16-byte header written in front of every packet.

    ts_usec holds microseconds for the classic magic number.
    """
    ts_sec: int = _u32()
    ts_usec: int = _u32()
    incl_len: int = _u32()
    orig_len: int = _u32()

    @classmethod
    def for_packet(
        cls,
        ts_sec: int,
        ts_usec: int,
        total_len: int,
        snap_len: int = SNAPLEN_DEFAULT,
    ) -> "RecordHeader":
        """Build the header for a packet, truncating it to the snapshot length."""
        return cls(
            ts_sec=ts_sec,
            ts_usec=ts_usec,
            incl_len=min(total_len, snap_len),
            orig_len=total_len,
        )

    def pack(self) -> bytes:
        """Encode the header in host byte order."""
        return _RECORD_HEADER_STRUCT.pack(
            self.ts_sec, self.ts_usec, self.incl_len, self.orig_len
        )

    @classmethod
    def unpack(cls, raw: bytes) -> "RecordHeader":
        """Decode 16 bytes in host byte order."""
        return cls(*_RECORD_HEADER_STRUCT.unpack(raw[:RECORD_HEADER_SIZE]))

    @property
    def timestamp(self) -> float:
        return self.ts_sec + self.ts_usec / 1_000_000


_FILE_HEADER_STRUCT = _struct_for(FileHeader)
_RECORD_HEADER_STRUCT = _struct_for(RecordHeader)


@dataclass(frozen=True)
class PcapRecord:
    """
    One record read back from a file.

    data holds only the octets actually copied out, which can be fewer
    than header.incl_len when the read was capped by max_bytes.
    """
    header: RecordHeader
    data: bytes = b""

    @property
    def ts_sec(self) -> int:
        return self.header.ts_sec

    @property
    def ts_usec(self) -> int:
        return self.header.ts_usec

    @property
    def incl_len(self) -> int:
        return self.header.incl_len

    @property
    def orig_len(self) -> int:
        return self.header.orig_len

    @property
    def read_len(self) -> int:
        return len(self.data)

    @property
    def timestamp(self) -> float:
        return self.header.timestamp


class InitialPosition(Enum):
    """Where the stream is left once open() returns."""
    HEADER_END = "header_end"
    START = "start"
    END = "end"


@dataclass(frozen=True)
class ModePolicy:
    """What an access mode implies for the underlying file."""
    os_mode: str
    header_expected: bool
    readable: bool
    writable: bool
    position: InitialPosition

    @property
    def appending(self) -> bool:
        return self.position is InitialPosition.END


class AccessMode(Enum):
    """
    Ways a pcap file can be opened.

    Values are the fopen-style strings the modes replace, so existing
    strings can be turned into members with from_string().
    """
    READ_ONLY = "r"
    CREATE_WRITE = "w"
    APPEND = "a"
    READ_WRITE_UPDATE = "r+"
    READ_APPEND = "a+"
    CREATE_READ_WRITE = "w+"

    @property
    def policy(self) -> ModePolicy:
        return _MODE_POLICIES[self]

    @classmethod
    def from_string(cls, mode: str) -> "AccessMode":
        """Accept 'r', 'a+', 'rb', 'a+b' and friends."""
        try:
            return cls(mode.replace('b', ''))
        except ValueError:
            raise MisuseError(f"Unsupported access mode: {mode!r}") from None


# Append modes open with r+b rather than ab so the existing header can be
# read and validated; writes on them always seek to the end first.
_MODE_POLICIES = {
    AccessMode.READ_ONLY: ModePolicy('rb', True, True, False, InitialPosition.HEADER_END),
    AccessMode.CREATE_WRITE: ModePolicy('wb', False, False, True, InitialPosition.START),
    AccessMode.APPEND: ModePolicy('r+b', True, False, True, InitialPosition.END),
    AccessMode.READ_WRITE_UPDATE: ModePolicy('r+b', True, True, True, InitialPosition.HEADER_END),
    AccessMode.READ_APPEND: ModePolicy('r+b', True, True, True, InitialPosition.END),
    AccessMode.CREATE_READ_WRITE: ModePolicy('w+b', False, True, True, InitialPosition.START),
}


class DiffReason(Enum):
    """Why a diff finished the way it did."""
    IDENTICAL = "identical"
    OPEN_FAILED = "open_failed"
    HEADER_MISMATCH = "header_mismatch"
    RECORD_COUNT_MISMATCH = "record_count_mismatch"
    RECORD_MISMATCH = "record_mismatch"
    FORMAT_ERROR = "format_error"


@dataclass
class DiffResult:
    """
    Outcome of comparing two pcap files.

    ts_sec/ts_usec and record_index identify the first diverging record
    and are only set for record-level differences.
    """
    reason: DiffReason
    ts_sec: Optional[int] = None
    ts_usec: Optional[int] = None
    record_index: Optional[int] = None
    detail: str = ""

    @property
    def identical(self) -> bool:
        return self.reason is DiffReason.IDENTICAL

    @property
    def differ(self) -> bool:
        return not self.identical

    def get_summary(self) -> str:
        """Generate a one-line summary of the result."""
        if self.identical:
            return "Files are identical"

        summary = f"Files differ ({self.reason.value.replace('_', ' ')})"
        if self.record_index is not None:
            summary += f" at record {self.record_index}"
        if self.ts_sec is not None:
            summary += f", timestamp {self.ts_sec}.{self.ts_usec:06d}"
        if self.detail:
            summary += f": {self.detail}"
        return summary


# Color scheme for diff results on the console: (foreground, background)
DIFF_COLORS = {
    DiffReason.IDENTICAL: ("white", "green"),
    DiffReason.OPEN_FAILED: ("white", "red"),
    DiffReason.HEADER_MISMATCH: ("black", "yellow"),
    DiffReason.RECORD_COUNT_MISMATCH: ("black", "yellow"),
    DiffReason.RECORD_MISMATCH: ("black", "yellow"),
    DiffReason.FORMAT_ERROR: ("white", "red"),
}
