"""
Stream access to a single pcap file.

This module provides PcapFile, a stateful object bound to one file on disk.
Positions in the file are measured in records rather than bytes once the
file header has been read or written: opening for reading leaves the
stream on the first record, and every read or write moves it exactly one
record forward.
"""

import logging
import os
import struct
from typing import BinaryIO, Iterator, Optional, Union

from .byte_order import HOST_BYTE_ORDER, swap_file_header, swap_record_header
from .exceptions import EndOfFile, FormatError, MisuseError, OpenFailure
from .models import (
    FILE_HEADER_SIZE,
    RECORD_HEADER_SIZE,
    SNAPLEN_DEFAULT,
    ZONE_DEFAULT,
    AccessMode,
    FileHeader,
    InitialPosition,
    PcapRecord,
    RecordHeader,
)

logger = logging.getLogger(__name__)

PathType = Union[str, "os.PathLike[str]"]


class PcapFile:
    """
    A pcap file opened under one of the AccessMode policies.

    Header fields are always reported as logical (host-order) values, no
    matter which byte order the file uses on disk. A stream owns its file
    handle exclusively and is not safe to share between threads.

    Example:
        with PcapFile("out.pcap", AccessMode.CREATE_WRITE) as pcap:
            pcap.init(LINKTYPE_ETHERNET)
            pcap.write(0, 0, frame)
    """

    def __init__(self, path: Optional[PathType] = None,
                 mode: Union[AccessMode, str] = AccessMode.READ_ONLY):
        self._file: Optional[BinaryIO] = None
        self._filename: Optional[str] = None
        self._mode: Optional[AccessMode] = None
        self._header: Optional[FileHeader] = None
        self._have_file_header = False
        self._swap_mode = False

        if path is not None:
            self.open(path, mode)

    def __enter__(self) -> "PcapFile":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __del__(self):
        self.close()

    def __iter__(self) -> Iterator[PcapRecord]:
        return self.records()

    def __repr__(self) -> str:
        if self._file is None:
            return "<PcapFile closed>"
        return f"<PcapFile {self._filename!r} mode={self._mode.value!r}>"

    def open(self, path: PathType, mode: Union[AccessMode, str] = AccessMode.READ_ONLY) -> None:
        """
        Open or create the underlying file.

        Modes that expect a header read and validate it before returning;
        create modes leave the file empty and the caller must call init()
        before writing records.

        Args:
            path: File to open
            mode: An AccessMode, or one of the strings 'r', 'w', 'a', 'r+',
                'w+', 'a+' (a trailing 'b' is accepted and ignored)

        Raises:
            MisuseError: If the stream is already open or the mode is unknown
            OpenFailure: If the OS refuses to open the file
            FormatError: If an expected header is missing or invalid
        """
        if self._file is not None:
            raise MisuseError(f"Stream is already open on {self._filename}")

        if isinstance(mode, str):
            mode = AccessMode.from_string(mode)
        policy = mode.policy
        filename = os.fspath(path)

        try:
            handle = open(filename, policy.os_mode)
        except OSError as e:
            logger.debug(f"Failed to open {filename} ({mode.name}): {e}")
            raise OpenFailure.from_os_error(e, filename) from e

        header = None
        swap_mode = False
        try:
            if policy.header_expected:
                header, swap_mode = FileHeader.parse(handle.read(FILE_HEADER_SIZE))
            if policy.position is InitialPosition.END:
                handle.seek(0, os.SEEK_END)
        except Exception:
            handle.close()
            raise

        self._file = handle
        self._filename = filename
        self._mode = mode
        self._header = header
        self._have_file_header = header is not None
        self._swap_mode = swap_mode

        logger.debug(f"Opened {filename} ({mode.name}), swap mode {swap_mode} "
                     f"on a {HOST_BYTE_ORDER}-endian host")

    def close(self) -> None:
        """Release the file handle. Safe to call more than once."""
        if self._file is None:
            return

        handle = self._file
        self._file = None
        handle.close()
        logger.debug(f"Closed {self._filename}")

    def init(
        self,
        data_link_type: int,
        snap_len: int = SNAPLEN_DEFAULT,
        zone: int = ZONE_DEFAULT,
        force_swap: bool = False,
    ) -> FileHeader:
        """
        Write a fresh file header, discarding anything already in the file.

        Args:
            data_link_type: Link type of the packets to be stored
            snap_len: Maximum octets kept per packet; longer packets are truncated
            zone: Time zone correction in seconds
            force_swap: Write the file in the byte order opposite to this host's

        Returns:
            The logical header that was written

        Raises:
            MisuseError: If the stream is not writable, already has a header,
                or a header field does not fit its on-disk width
        """
        handle = self._require_open()
        if not self._mode.policy.writable:
            raise MisuseError(f"Cannot initialize {self._filename}: opened read-only")
        if self._have_file_header:
            raise MisuseError(f"Cannot initialize {self._filename}: header already present")

        header = FileHeader.build(data_link_type, snap_len=snap_len, zone=zone)
        raw = self._pack(header, swap_file_header if force_swap else None)

        try:
            handle.seek(0)
            handle.write(raw)
            handle.truncate()
        except OSError:
            self.close()
            raise

        self._header = header
        self._have_file_header = True
        self._swap_mode = force_swap

        logger.debug(f"Initialized {self._filename}: link type {data_link_type}, "
                     f"snap length {snap_len}, swap mode {force_swap}")
        return header

    def write(self, ts_sec: int, ts_usec: int, data: bytes,
              total_len: Optional[int] = None) -> RecordHeader:
        """
        Append one packet record.

        Packets longer than the snapshot length are silently truncated to it;
        the record still carries the full original length.

        Args:
            ts_sec: Timestamp, seconds
            ts_usec: Timestamp, microseconds
            data: Packet octets
            total_len: Original length of the packet (defaults to len(data))

        Returns:
            The logical record header that was written

        Raises:
            MisuseError: If the stream cannot be written, has no header yet,
                data is shorter than the octets to be stored, or a header
                field does not fit its on-disk width
        """
        handle = self._require_open()
        if not self._mode.policy.writable:
            raise MisuseError(f"Cannot write to {self._filename}: opened read-only")
        header = self._require_header()

        if total_len is None:
            total_len = len(data)

        record = RecordHeader.for_packet(ts_sec, ts_usec, total_len, header.snap_len)
        if len(data) < record.incl_len:
            raise MisuseError(
                f"Packet data has {len(data)} octets but {record.incl_len} are to be stored"
            )

        raw = self._pack(record, swap_record_header if self._swap_mode else None)
        if self._mode.policy.appending:
            handle.seek(0, os.SEEK_END)
        handle.write(raw)
        handle.write(bytes(data[:record.incl_len]))
        return record

    def read(self, max_bytes: Optional[int] = None) -> PcapRecord:
        """
        Read the next packet record.

        At most max_bytes octets of the packet are returned; any remainder is
        skipped so the stream stays on the next record boundary.

        Args:
            max_bytes: Upper bound on the octets copied out (None for all)

        Returns:
            The record header and the octets copied out

        Raises:
            EndOfFile: If there are no more records
            FormatError: If the file ends inside a record
            MisuseError: If the stream cannot be read or has no header yet
        """
        handle = self._require_open()
        if not self._mode.policy.readable:
            raise MisuseError(f"Cannot read from {self._filename}: opened write-only")
        self._require_header()

        raw = handle.read(RECORD_HEADER_SIZE)
        if not raw:
            raise EndOfFile(f"No more records in {self._filename}")
        if len(raw) < RECORD_HEADER_SIZE:
            raise FormatError(
                f"Record header truncated in {self._filename}: "
                f"got {len(raw)} of {RECORD_HEADER_SIZE} bytes"
            )

        record = RecordHeader.unpack(raw)
        if self._swap_mode:
            record = swap_record_header(record)

        available = self._bytes_left(handle)
        if available < record.incl_len:
            raise FormatError(
                f"Record truncated in {self._filename}: "
                f"expected {record.incl_len} octets, file ended after {available}"
            )

        to_copy = record.incl_len
        if max_bytes is not None:
            to_copy = min(to_copy, max(max_bytes, 0))

        data = handle.read(to_copy)
        remaining = record.incl_len - to_copy
        if remaining:
            handle.seek(remaining, os.SEEK_CUR)

        return PcapRecord(header=record, data=data)

    def records(self, max_bytes: Optional[int] = None) -> Iterator[PcapRecord]:
        """Yield records until the end of the file."""
        while True:
            try:
                yield self.read(max_bytes)
            except EndOfFile:
                return

    def _bytes_left(self, handle: BinaryIO) -> int:
        position = handle.tell()
        end = handle.seek(0, os.SEEK_END)
        handle.seek(position)
        return end - position

    def _pack(self, value, swapper):
        # the swap functions mask their input, so range-check the logical value
        try:
            raw = value.pack()
        except struct.error as e:
            raise MisuseError(f"{type(value).__name__} field out of range: {e}") from e
        if swapper is not None:
            raw = swapper(value).pack()
        return raw

    def _require_open(self) -> BinaryIO:
        if self._file is None:
            raise MisuseError("Stream is not open")
        return self._file

    def _require_header(self) -> FileHeader:
        if not self._have_file_header:
            raise MisuseError(f"{self._filename or 'Stream'} has no file header; call init() first")
        return self._header

    @property
    def is_open(self) -> bool:
        return self._file is not None

    @property
    def filename(self) -> Optional[str]:
        return self._filename

    @property
    def mode(self) -> Optional[AccessMode]:
        return self._mode

    @property
    def swap_mode(self) -> bool:
        """True when the file's byte order differs from this host's."""
        return self._swap_mode

    @property
    def header(self) -> FileHeader:
        return self._require_header()

    @property
    def magic(self) -> int:
        return self._require_header().magic_number

    @property
    def version_major(self) -> int:
        return self._require_header().version_major

    @property
    def version_minor(self) -> int:
        return self._require_header().version_minor

    @property
    def time_zone_offset(self) -> int:
        return self._require_header().zone

    @property
    def sig_figs(self) -> int:
        return self._require_header().sig_figs

    @property
    def snap_len(self) -> int:
        return self._require_header().snap_len

    @property
    def data_link_type(self) -> int:
        return self._require_header().data_link_type
