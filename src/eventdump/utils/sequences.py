import gzip
import io
import threading
from pathlib import Path

from Bio import SeqIO

from typing import Iterator, Optional, Tuple, IO

GZIP_MAGIC = b'\x1f\x8b'
FORMATS = {'>': 'fasta', '@': 'fastq'}

SequenceRecord = Tuple[str, str]  # Read identifier and called base sequence


def open_reads(path: Path) -> IO[str]:
    """ Opens plain or gzip compressed reads file in text mode. """
    with path.open('rb') as f:
        compressed = f.read(2) == GZIP_MAGIC

    if compressed:
        return gzip.open(str(path), 'rt')
    return path.open('r')


def detect_format(handle: io.TextIOBase) -> Optional[str]:
    """ Function that detects sequence file format from the first character.

    :param handle: Opened text handle; position is restored after detection
    :return: 'fasta' or 'fastq', None if the file is empty
    """
    first = handle.read(1)
    handle.seek(0)

    if not first:
        return None
    if first not in FORMATS:
        raise ValueError(f'Unknown sequence file format starting with {first!r}.')

    return FORMATS[first]


def read_sequences(path: Path) -> Iterator[SequenceRecord]:
    """ Generator that lazily yields reads from FASTA or FASTQ file.

    :param path: Path to the plain or gzip compressed FASTA/FASTQ file
    :return: Read identifier and called base sequence for every record in the file
    """
    with open_reads(path) as handle:
        file_format = detect_format(handle)
        if file_format is None:
            return

        for record in SeqIO.parse(handle, file_format):
            yield record.id, str(record.seq)


class SynchronizedReads:
    """ Iterator that hands every read to exactly one of the workers sharing it. """
    def __init__(self, reads: Iterator[SequenceRecord]) -> None:
        self.reads = reads
        self.lock = threading.Lock()
        self.closed = False

    def __iter__(self) -> 'SynchronizedReads':
        return self

    def __next__(self) -> SequenceRecord:
        with self.lock:
            if self.closed:
                raise StopIteration
            return next(self.reads)

    def close(self) -> None:
        """ Stops handing out reads and closes the wrapped iterator, workers finish the read they are processing. """
        with self.lock:
            self.closed = True

            if hasattr(self.reads, 'close'):
                self.reads.close()
