import gzip
from pathlib import Path

import h5py
import numpy as np
import pytest

from eventdump.processor.util import Interval
from eventdump.utils.models import Event
from eventdump.utils.read_db import ReadDB

SAMPLING_RATE = 4000.0
START_TIME = 1000

EVENT_DTYPE = [('mean', np.float32), ('stdv', np.float32), ('start', np.uint64), ('length', np.uint64),
               ('model_state', 'S5'), ('move', np.int32)]
SECONDS_EVENT_DTYPE = [('mean', np.float64), ('stdv', np.float64), ('start', np.float64), ('length', np.float64),
                       ('model_state', 'S5'), ('move', np.int32)]

# Sequence ACGTACGTAC has six 5-mers; move of 2 at event 5 skips the 5-mer at position 3
READ_SEQUENCE = 'ACGTACGTAC'
READ_MOVES = [0, 0, 1, 1, 0, 2, 0, 1]
READ_MEANS = [85.25, 90.5, 101.0, 95.75, 80.0, 110.25, 99.5, 87.0]
READ_LENGTHS = [10, 5, 7, 3, 12, 4, 6, 8]


def make_event_table(means, lengths, moves, start=START_TIME, seconds=False):
    n_events = len(means)
    starts = start + np.concatenate(([0], np.cumsum(lengths)[:-1]))

    table = np.zeros(n_events, dtype=SECONDS_EVENT_DTYPE if seconds else EVENT_DTYPE)
    table['mean'] = means
    table['stdv'] = [1.5 + i for i in range(n_events)]
    table['move'] = moves
    table['model_state'] = b'ACGTA'

    if seconds:
        table['start'] = starts / SAMPLING_RATE
        table['length'] = np.asarray(lengths) / SAMPLING_RATE
    else:
        table['start'] = starts
        table['length'] = lengths

    return table


def write_fast5(path, read_id, event_table, n_samples, scalings=None, multi=False, basecall_group='Basecall_1D_000'):
    with h5py.File(str(path), 'w') as f:
        if multi:
            root = f.create_group(f'read_{read_id}')
            raw = root.create_group('Raw')
            channel = root.create_group('channel_id')
        else:
            root = f
            raw = f.create_group('Raw/Reads/Read_42')
            channel = f.create_group('UniqueGlobalKey/channel_id')

        raw.attrs['read_id'] = read_id.encode()
        raw.attrs['start_time'] = START_TIME
        raw.create_dataset('Signal', data=np.arange(n_samples, dtype=np.int16))
        channel.attrs['sampling_rate'] = SAMPLING_RATE

        basecall = root.create_group(f'Analyses/{basecall_group}')
        basecall.create_dataset('BaseCalled_template/Events', data=event_table)

        if scalings is not None:
            summary = basecall.create_group('Summary/basecall_1d_template')
            for name, value in scalings.items():
                summary.attrs[name] = value

    return path


def write_read_db(reads_path, signal_paths):
    path = ReadDB.index_path(reads_path)
    with path.open('w') as f:
        for read_id, signal_path in signal_paths.items():
            f.write(f'{read_id}\t{signal_path}\n')

    return path


@pytest.fixture
def event_table():
    return make_event_table(READ_MEANS, READ_LENGTHS, READ_MOVES)


@pytest.fixture
def fast5_file(tmp_path: Path, event_table):
    return write_fast5(tmp_path / 'read1.fast5', 'read1', event_table, sum(READ_LENGTHS),
                       scalings={'shift': 5.0, 'scale': 2.0, 'drift': 0.0, 'var': 1.2})


@pytest.fixture
def reads_file(tmp_path: Path, fast5_file: Path):
    """ FASTA file with two reads and read index pointing both of them to FAST5 files. """
    second = write_fast5(tmp_path / 'read2.fast5', 'read2', make_event_table([70.0, 75.0, 72.5], [4, 4, 4], [0, 1, 1]),
                         12)

    path = tmp_path / 'reads.fasta'
    path.write_text(f'>read1\n{READ_SEQUENCE}\n>read2\nTTGCAAC\n')
    write_read_db(path, {'read1': fast5_file.name, 'read2': second})

    return path


@pytest.fixture
def gzipped_fastq(tmp_path: Path):
    path = tmp_path / 'reads.fastq.gz'
    with gzip.open(str(path), 'wt') as f:
        f.write('@read1 extra description\nACGTACGTAC\n+\nIIIIIIIIII\n@read2\nTTGCAAC\n+\nIIIIIII\n')

    return path


@pytest.fixture
def events():
    """ Six events with contiguous signal intervals, scaled means are unscaled means divided by two. """
    means = [85.231, 90.0, 101.5, 95.0, 80.125, 110.0]
    lengths = [4, 6, 5, 3, 8, 2]

    result, start = [], 0
    for i, (mean, length) in enumerate(zip(means, lengths)):
        result.append(Event(i, mean, 1.0 + i / 4, mean / 2, Interval(start, start + length)))
        start += length

    return result
