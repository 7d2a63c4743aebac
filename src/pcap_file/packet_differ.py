"""
Record-by-record comparison of two pcap files.

Both files are read in lock-step, one record from each side at a time, so
captures of any size can be compared with memory bounded by a single
record per side.
"""

import logging
import time
from dataclasses import fields
from typing import Optional

from .exceptions import EndOfFile, FormatError, OpenFailure
from .models import SNAPLEN_DEFAULT, DiffReason, DiffResult, PcapRecord
from .pcap_stream import PathType, PcapFile

logger = logging.getLogger(__name__)


class PacketDiffer:
    """
    Engine for comparing two pcap files.

    Reports the first point of divergence: a header field, a surplus record
    on one side, or a record whose lengths or payload differ.
    """

    def __init__(self, snap_len: int = SNAPLEN_DEFAULT, compare_timestamps: bool = False):
        """
        Initialize the PacketDiffer.

        Args:
            snap_len: Maximum payload octets compared per record
            compare_timestamps: Also treat differing record timestamps as a difference
        """
        self.snap_len = snap_len
        self.compare_timestamps = compare_timestamps

    def compare_files(self, path1: PathType, path2: PathType) -> DiffResult:
        """
        Main diff algorithm for comparing two pcap files.

        Args:
            path1: First pcap file
            path2: Second pcap file

        Returns:
            DiffResult describing the first difference, or IDENTICAL
        """
        logger.info(f"Comparing {path1} vs {path2}")
        start_time = time.time()

        pcap1 = PcapFile()
        pcap2 = PcapFile()
        try:
            try:
                pcap1.open(path1)
                pcap2.open(path2)
            except (OpenFailure, FormatError) as e:
                logger.info(f"Cannot compare: {e}")
                return DiffResult(DiffReason.OPEN_FAILED, detail=str(e))

            result = self._compare_headers(pcap1, pcap2)
            if result is None:
                result = self._compare_records(pcap1, pcap2)
        finally:
            pcap1.close()
            pcap2.close()

        comparison_time = time.time() - start_time
        logger.info(f"Comparison completed in {comparison_time:.2f}s: {result.get_summary()}")
        return result

    def _compare_headers(self, pcap1: PcapFile, pcap2: PcapFile) -> Optional[DiffResult]:
        header1 = pcap1.header
        header2 = pcap2.header

        for f in fields(header1):
            value1 = getattr(header1, f.name)
            value2 = getattr(header2, f.name)
            if value1 != value2:
                logger.debug(f"Header field {f.name} differs: {value1} != {value2}")
                return DiffResult(
                    DiffReason.HEADER_MISMATCH,
                    detail=f"{f.name} {value1} != {value2}",
                )

        return None

    def _compare_records(self, pcap1: PcapFile, pcap2: PcapFile) -> DiffResult:
        index = 0
        while True:
            try:
                record1 = self._next_record(pcap1)
                record2 = self._next_record(pcap2)
            except FormatError as e:
                logger.debug(f"Corrupt record {index}: {e}")
                return DiffResult(DiffReason.FORMAT_ERROR, record_index=index, detail=str(e))

            if record1 is None and record2 is None:
                return DiffResult(DiffReason.IDENTICAL)

            if record1 is None or record2 is None:
                surplus = record1 if record1 is not None else record2
                side = "first" if record1 is not None else "second"
                return DiffResult(
                    DiffReason.RECORD_COUNT_MISMATCH,
                    ts_sec=surplus.ts_sec,
                    ts_usec=surplus.ts_usec,
                    record_index=index,
                    detail=f"{side} file has more records",
                )

            mismatch = self.compare_records(record1, record2)
            if mismatch:
                logger.debug(f"Record {index} differs: {mismatch}")
                return DiffResult(
                    DiffReason.RECORD_MISMATCH,
                    ts_sec=record1.ts_sec,
                    ts_usec=record1.ts_usec,
                    record_index=index,
                    detail=mismatch,
                )

            index += 1

    def _next_record(self, pcap: PcapFile) -> Optional[PcapRecord]:
        try:
            return pcap.read(max_bytes=self.snap_len)
        except EndOfFile:
            return None

    def compare_records(self, record1: PcapRecord, record2: PcapRecord) -> str:
        """
        Compare two records read with the same snapshot length.

        Args:
            record1: Record from the first file
            record2: Record from the second file

        Returns:
            A description of the first difference, or an empty string if
            the records match
        """
        if self.compare_timestamps and (
            record1.ts_sec != record2.ts_sec or record1.ts_usec != record2.ts_usec
        ):
            return (f"timestamp {record1.ts_sec}.{record1.ts_usec:06d} != "
                    f"{record2.ts_sec}.{record2.ts_usec:06d}")

        if record1.incl_len != record2.incl_len:
            return f"included length {record1.incl_len} != {record2.incl_len}"

        if record1.orig_len != record2.orig_len:
            return f"original length {record1.orig_len} != {record2.orig_len}"

        if record1.data != record2.data:
            offset = next(
                (i for i, (a, b) in enumerate(zip(record1.data, record2.data)) if a != b),
                min(record1.read_len, record2.read_len),
            )
            return f"payload differs at octet {offset}"

        return ""


def diff(path1: PathType, path2: PathType, snap_len: int = SNAPLEN_DEFAULT,
         compare_timestamps: bool = False) -> DiffResult:
    """Compare two pcap files record by record. See PacketDiffer."""
    return PacketDiffer(snap_len, compare_timestamps).compare_files(path1, path2)
