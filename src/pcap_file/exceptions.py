"""
Exception types raised by the pcap file library.

Every error is a subclass of PcapError so callers can catch the whole
family in one place, or pick out the condition they care about.
"""

from typing import Optional


class PcapError(Exception):
    """Base class for all pcap file errors."""


class OpenFailure(PcapError):
    """
    The underlying file handle could not be created or opened.

    The OS error number and message are copied from the originating
    OSError so callers can inspect them without unwrapping the cause.
    """

    def __init__(self, message: str, filename: Optional[str] = None,
                 errno: Optional[int] = None, strerror: Optional[str] = None):
        super().__init__(message)
        self.filename = filename
        self.errno = errno
        self.strerror = strerror

    @classmethod
    def from_os_error(cls, exc: OSError, filename: str) -> "OpenFailure":
        """Build an OpenFailure carrying the details of an OSError."""
        return cls(
            f"Cannot open {filename}: {exc.strerror or exc}",
            filename=filename,
            errno=exc.errno,
            strerror=exc.strerror,
        )


class FormatError(PcapError):
    """The file is not a recognized pcap file, or it is truncated."""


class EndOfFile(PcapError):
    """No further records remain. A normal termination signal."""


class MisuseError(PcapError):
    """An operation was attempted that the stream's mode or state forbids."""
