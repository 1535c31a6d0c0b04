from __future__ import annotations

import sys
import time
from tqdm import tqdm
from pathlib import Path
import traceback
from concurrent.futures import as_completed

import argparse

from typing import List, Tuple

from eventdump import __version__
from eventdump.processor.event_map import invert_event_map
from eventdump.processor.records import build_records
from eventdump.processor.util import DEFAULT_KMER_SIZE
from eventdump.utils.config import DumpConfig
from eventdump.utils.models import SquiggleRead
from eventdump.utils.parallel_processing import get_executor
from eventdump.utils.read_db import ReadDB
from eventdump.utils.sequences import read_sequences, SynchronizedReads
from eventdump.utils.writer import TSVWriter

STRAND_INDEX = 0  # Only the template strand is reported


def process_read(read_id: str, sequence: str, read_db: ReadDB, config: DumpConfig) -> Tuple[Path, int]:
    """ This function dumps event alignment for the given read.

    Events of the template strand are loaded from the read's FAST5 file, base-to-event map is inverted and one record
    is written for every event.

    :param read_id: Read identifier
    :param sequence: Called base sequence of the read
    :param read_db: Read index used for finding the read's FAST5 file
    :param config: Dump options
    :return: Path to the written file and number of written records
    """
    squiggle_read = SquiggleRead.load(read_id, sequence, read_db.get_signal_path(read_id))

    strand = squiggle_read.strands[STRAND_INDEX]
    event_to_base_map = invert_event_map(strand.n_events, strand.base_to_event_map)
    records = build_records(strand.events, event_to_base_map, squiggle_read.sequence,
                            config.kmer_size, config.scale_events, STRAND_INDEX)

    out_path = TSVWriter.path_for_read(config.output_dir, read_id)
    with TSVWriter(out_path) as writer:
        n_records = writer.write_records(records)

    return out_path, n_records


def error_callback(read_id, exception):
    print(f'Error for read: {read_id}.', file=sys.stderr)
    print(str(exception), file=sys.stderr)
    print(traceback.format_exc(), file=sys.stderr)


def worker_process_reads(reads: SynchronizedReads, read_db: ReadDB, config: DumpConfig) -> int:
    """ Function that processes reads from the shared input until it is exhausted.

    :param reads: Reads shared between all workers
    :param read_db: Read index
    :param config: Dump options
    :return: Number of processed reads
    """
    n_reads = 0

    for read_id, sequence in reads:
        try:
            out_path, n_records = process_read(read_id, sequence, read_db, config)
        except Exception as e:
            reads.close()  # First failure stops handing out reads to every worker
            error_callback(read_id, e)
            raise

        if config.verbose > 0:
            tqdm.write(f'>> Read {read_id}: {n_records} events written to {out_path}')
        n_reads += 1

    return n_reads


def tqdm_with_time(msg, last_action_time):
    # Prints message with the difference between current time and last action time
    current_time = time.time()
    tqdm.write('>> ' + msg + f' {current_time - last_action_time}s')

    return current_time


def process_data(config: DumpConfig) -> int:
    start_time = time.time()
    last_action_time = start_time

    if config.verbose > 0:
        last_action_time = tqdm_with_time(f'Parameters: {config.info()}', last_action_time)

    read_db = ReadDB.load(config.reads)
    if config.verbose > 0:
        last_action_time = tqdm_with_time(f'Loaded read index with {len(read_db)} reads', last_action_time)

    sequences = read_sequences(config.reads)
    progress = tqdm(sequences, unit='read', disable=config.verbose < 2)
    reads = SynchronizedReads(iter(progress))

    total_reads = 0
    try:
        with get_executor(config.threads) as executor:
            futures = [executor.submit(worker_process_reads, reads, read_db, config) for _ in range(config.threads)]

            for future in as_completed(futures):
                total_reads += future.result()
    finally:
        reads.close()
        progress.close()
        sequences.close()

    if config.verbose > 0:
        tqdm.write(f'Event alignment dump finished. {total_reads} reads, total time: {time.time() - start_time}s')

    return total_reads


def positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f'{value} is not a positive integer')

    return number


def create_arguments(argv: List[str]=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog='eventdump', description='Write out the event-to-basecall alignment')

    # Input and output arguments
    parser.add_argument('-r', '--reads', type=Path, required=True,
                        help='Path to the FASTA/FASTQ file (optionally gzipped) containing basecalled reads')

    parser.add_argument('-o', '--output-dir', dest='output_dir', type=Path, default=Path('.'),
                        help='Path to the existing output folder, one TSV file is written per read (default: .)')

    # Other arguments
    parser.add_argument('-t', '--threads', type=positive_int, default=1,
                        help='Number of threads used for processing reads (default: 1)')

    parser.add_argument('-s', '--scale-events', dest='scale_events', action='store_true',
                        help='Flag to report event means scaled to the pore model (default: False)')

    parser.add_argument('-k', '--kmer-size', dest='kmer_size', type=positive_int, default=DEFAULT_KMER_SIZE,
                        help=f'Size of the reported k-mer (default: {DEFAULT_KMER_SIZE})')

    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='Display verbose output, repeat for progress bar')

    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    args = parser.parse_args(argv)

    if not args.reads.is_file():
        parser.error(f'reads file {args.reads} does not exist')
    if not args.output_dir.is_dir():
        parser.error(f'output directory {args.output_dir} does not exist')

    return args


def main(argv: List[str]=None) -> None:
    arguments = create_arguments(argv)
    config = DumpConfig.from_args(arguments)

    try:
        process_data(config)
    except Exception as e:
        print(f'{type(e).__name__}: {e}', file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
