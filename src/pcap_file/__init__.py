"""
pcap-file - Read, write and compare classic pcap capture files.

Provides byte-exact encoding of the 24-byte file header and 16-byte record
headers in either byte order, a record-oriented file stream, and a
lock-step diff of two captures.
"""

__version__ = "0.1.0"
__author__ = "pcap-file Contributors"

from . import models
from .exceptions import EndOfFile, FormatError, MisuseError, OpenFailure, PcapError
from .models import (
    LINKTYPE_ETHERNET,
    LINKTYPE_NULL,
    LINKTYPE_PPP,
    LINKTYPE_RAW,
    LINKTYPE_IEEE802_11,
    LINKTYPE_LINUX_SLL,
    PCAP_MAGIC,
    PCAP_MAGIC_SWAPPED,
    SNAPLEN_DEFAULT,
    ZONE_DEFAULT,
    AccessMode,
    DiffReason,
    DiffResult,
    FileHeader,
    PcapRecord,
    RecordHeader,
)
from .packet_differ import PacketDiffer, diff
from .pcap_stream import PcapFile

__all__ = [
    "models",
    "PcapFile",
    "PacketDiffer",
    "diff",
    "AccessMode",
    "FileHeader",
    "RecordHeader",
    "PcapRecord",
    "DiffReason",
    "DiffResult",
    "PcapError",
    "OpenFailure",
    "FormatError",
    "EndOfFile",
    "MisuseError",
    "PCAP_MAGIC",
    "PCAP_MAGIC_SWAPPED",
    "SNAPLEN_DEFAULT",
    "ZONE_DEFAULT",
    "LINKTYPE_NULL",
    "LINKTYPE_ETHERNET",
    "LINKTYPE_PPP",
    "LINKTYPE_RAW",
    "LINKTYPE_IEEE802_11",
    "LINKTYPE_LINUX_SLL",
    "__version__",
]
