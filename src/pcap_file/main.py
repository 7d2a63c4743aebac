"""
Main CLI entry point for the pcap-file tool.

This module provides the command-line interface for inspecting and
comparing packet capture files.
"""

import itertools
import logging
import sys

import click
from rich.console import Console
from rich.table import Table
from rich.text import Text

from . import __version__
from .exceptions import PcapError
from .models import DIFF_COLORS, SNAPLEN_DEFAULT, AccessMode
from .packet_differ import PacketDiffer
from .pcap_stream import PcapFile

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

console = Console()


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def cli(verbose):
    """Read, inspect and compare classic pcap capture files."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


@cli.command()
@click.argument('pcap_file', type=click.Path(exists=True, dir_okay=False))
def info(pcap_file):
    """
    Show the file header of PCAP_FILE and count its records.
    """
    try:
        with PcapFile(pcap_file, AccessMode.READ_ONLY) as pcap:
            header = pcap.header
            swap_mode = pcap.swap_mode
            record_count = sum(1 for _ in pcap.records(max_bytes=0))
    except PcapError as e:
        raise click.ClickException(str(e))

    table = Table(title=pcap_file)
    table.add_column("Field")
    table.add_column("Value", justify="right")
    table.add_row("Magic", f"0x{header.magic_number:08x}")
    table.add_row("Version", f"{header.version_major}.{header.version_minor}")
    table.add_row("Time zone", str(header.zone))
    table.add_row("Sig figs", str(header.sig_figs))
    table.add_row("Snap length", str(header.snap_len))
    table.add_row("Link type", str(header.data_link_type))
    table.add_row("Byte-swapped", "yes" if swap_mode else "no")
    table.add_row("Records", str(record_count))
    console.print(table)


@cli.command()
@click.argument('pcap_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--max-bytes', '-m', type=click.IntRange(min=0), default=16,
              help='Payload octets to show per record')
@click.option('--count', '-c', type=click.IntRange(min=1), default=None,
              help='Stop after this many records')
def dump(pcap_file, max_bytes, count):
    """
    List the records in PCAP_FILE.

    Examples:
        pcap-file dump capture.pcap
        pcap-file dump -m 64 -c 10 capture.pcap
    """
    try:
        with PcapFile(pcap_file, AccessMode.READ_ONLY) as pcap:
            records = itertools.islice(pcap.records(max_bytes=max_bytes), count)
            for index, record in enumerate(records):
                click.echo(
                    f"{index:6d}  {record.ts_sec}.{record.ts_usec:06d}  "
                    f"incl={record.incl_len} orig={record.orig_len} "
                    f"read={record.read_len}  {record.data.hex()}"
                )
    except PcapError as e:
        raise click.ClickException(str(e))


@cli.command()
@click.argument('file1', type=click.Path(dir_okay=False))
@click.argument('file2', type=click.Path(dir_okay=False))
@click.option('--snap-len', '-s', type=click.IntRange(min=0), default=SNAPLEN_DEFAULT,
              help='Maximum payload octets compared per record')
@click.option('--compare-timestamps', is_flag=True,
              help='Treat differing record timestamps as a difference')
def diff(file1, file2, snap_len, compare_timestamps):
    """
    Compare two pcap files record by record.

    Exits with status 0 when the files are identical and 1 otherwise.

    Examples:
        pcap-file diff capture1.pcap capture2.pcap
        pcap-file diff -s 96 capture1.pcap capture2.pcap
    """
    differ = PacketDiffer(snap_len=snap_len, compare_timestamps=compare_timestamps)
    result = differ.compare_files(file1, file2)

    fg, bg = DIFF_COLORS[result.reason]
    label = " IDENTICAL " if result.identical else " DIFFER "
    line = Text(label, style=f"{fg} on {bg}")
    line.append(f" {result.get_summary()}")
    console.print(line, soft_wrap=True)

    sys.exit(0 if result.identical else 1)


def main():
    """Main entry point for the CLI."""
    return cli()


if __name__ == "__main__":
    main()
