from __future__ import annotations

import h5py
import numpy as np
import re

from dataclasses import dataclass
from pathlib import Path

from typing import Dict, List, Tuple, Any

from ..processor.event_map import build_base_to_event_map
from ..processor.util import Interval, BaseToEventMap

MULTI_READ_PREFIX = 'read_'
ANALYSES_GROUP = 'Analyses'
BASECALL_GROUP = re.compile(r'^Basecall_1D_(\d{3})$')
TEMPLATE_EVENTS_PATH = 'BaseCalled_template/Events'
TEMPLATE_SUMMARY_PATH = 'Summary/basecall_1d_template'

DEFAULT_MODEL_K = 5  # K-mer size of the basecaller model if events don't store model states
MAX_START_OFFSET = 2  # Events may start at most this many samples before the read


@dataclass(frozen=True)
class ScalingParameters:
    """ Data class that describes per-strand affine correction of event levels.

    Recalibrated level is computed as: (level - drift * time - shift) / scale, where time is measured in seconds from
    the first event.
    """
    shift: float = 0.0
    scale: float = 1.0
    drift: float = 0.0
    var: float = 1.0

    @staticmethod
    def from_attrs(attrs: Dict[str, Any]) -> ScalingParameters:
        """ Static function that extracts scaling parameters from the basecall summary attributes.

        :param attrs: Attributes of the basecall summary group
        :return: Scaling parameters, identity values are used for the missing attributes
        """
        defaults = ScalingParameters()
        values = {name: float(attrs.get(name, getattr(defaults, name))) for name in ('shift', 'scale', 'drift', 'var')}

        return ScalingParameters(**values)

    def scale_level(self, level: float, time: float) -> float:
        return (level - self.drift * time - self.shift) / self.scale


@dataclass(frozen=True)
class Event:
    """ Data class that describes one event of the strand.

    Event stores unscaled level mean and standard deviation, recalibrated level mean and the interval of raw signal
    points relative to the beginning of the read.
    """
    index: int
    mean: float
    stdv: float
    scaled_mean: float
    extent: Interval


@dataclass
class Strand:
    """ Data class that contains events of one strand and alignment between bases and events. """
    events: List[Event]
    base_to_event_map: BaseToEventMap

    @property
    def n_events(self) -> int:
        return len(self.events)


def model_kmer_size(event_table: np.ndarray) -> int:
    """ Returns k-mer size of the basecaller model from the first model state, default size if there is none. """
    if 'model_state' not in event_table.dtype.names or len(event_table) == 0:
        return DEFAULT_MODEL_K

    model_state = event_table['model_state'][0]
    if isinstance(model_state, bytes):
        model_state = model_state.decode()

    return len(model_state)


class Fast5Read:
    """ Class that describes one read stored in single or multi FAST5 file. """
    def __init__(self, fd: h5py.File, read_id: str) -> None:
        """ Constructs instance of Fast5Read class.

        Multi FAST5 files store every read in the group named read_<read_id>. Single FAST5 files store one read in the
        file root.

        :param fd: Opened h5py file
        :param read_id: Read identifier
        """
        self.fd = fd
        self.read_id = read_id

        multi_group = f'{MULTI_READ_PREFIX}{read_id}'
        if multi_group in fd:
            self.root = fd[multi_group]
            self.raw_group = self.root['Raw']
            self.channel_group = self.root['channel_id']
        else:
            if 'Raw/Reads' not in fd:
                raise KeyError(f'Read {read_id} not found in {fd.filename}.')

            self.root = fd
            read_group_name = list(fd['Raw/Reads'].keys())[0]
            self.raw_group = fd[f'Raw/Reads/{read_group_name}']
            self.channel_group = fd['UniqueGlobalKey/channel_id']

            stored_id = self.raw_group.attrs.get('read_id')
            if isinstance(stored_id, bytes):
                stored_id = stored_id.decode()
            if stored_id is not None and stored_id != read_id:
                raise KeyError(f'Read {read_id} not found in {fd.filename}.')

        self.sampling_rate = float(self.channel_group.attrs['sampling_rate'])
        self.start_time = int(self.raw_group.attrs['start_time'])

    def n_samples(self) -> int:
        """ Returns number of raw signal points for the read. """
        return int(self.raw_group['Signal'].shape[0])

    def get_basecall_path(self) -> str:
        """ Returns path of the latest 1D basecall analysis.

        :return: Path to the latest Basecall_1D group relative to the read root
        """
        if ANALYSES_GROUP not in self.root:
            raise KeyError(f'No basecall analysis found for read {self.read_id}.')

        groups = [name for name in self.root[ANALYSES_GROUP].keys() if BASECALL_GROUP.match(name)]
        if not groups:
            raise KeyError(f'No basecall analysis found for read {self.read_id}.')

        return f'{ANALYSES_GROUP}/{max(groups)}'

    def get_event_table(self, basecall_path: str) -> np.ndarray:
        return self.root[f'{basecall_path}/{TEMPLATE_EVENTS_PATH}'][()]

    def get_scalings(self, basecall_path: str) -> ScalingParameters:
        summary_path = f'{basecall_path}/{TEMPLATE_SUMMARY_PATH}'
        if summary_path not in self.root:
            return ScalingParameters()

        return ScalingParameters.from_attrs(dict(self.root[summary_path].attrs))

    def event_intervals(self, event_table: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """ Calculates raw signal intervals for the events.

        Event start and length are stored in seconds by older basecallers and in signal points by newer ones. Both are
        converted to signal points relative to the start of the read.

        :param event_table: Event table of the strand
        :return: Starts (inclusive) and ends (exclusive) of signal intervals for every event
        """
        start, length = event_table['start'], event_table['length']

        if np.issubdtype(start.dtype, np.floating):
            abs_start = np.round(start.astype(np.float64) * self.sampling_rate).astype(np.int64)
            abs_end = np.round((start + length).astype(np.float64) * self.sampling_rate).astype(np.int64)
        else:
            abs_start = start.astype(np.int64)
            abs_end = abs_start + length.astype(np.int64)

        starts, ends = abs_start - self.start_time, abs_end - self.start_time

        read_start_rel_to_raw = int(starts[0]) if len(starts) > 0 else 0
        if read_start_rel_to_raw < 0:
            if read_start_rel_to_raw < -MAX_START_OFFSET:
                raise ValueError(f'Events cannot start before read {self.read_id}.')

            starts, ends = starts - read_start_rel_to_raw, ends - read_start_rel_to_raw

        if len(ends) > 0 and ends[-1] > self.n_samples():
            raise ValueError(f'Events extend past the raw signal of read {self.read_id}.')

        return starts, ends


class SquiggleRead:
    """ Class that describes events and event-to-base alignment of one read. """
    def __init__(self, read_id: str, sequence: str, strands: List[Strand]) -> None:
        self.read_id = read_id
        self.sequence = sequence
        self.strands = strands

    @staticmethod
    def load(read_id: str, sequence: str, path: Path) -> SquiggleRead:
        """ Static function that loads template strand of the read from FAST5 file.

        :param read_id: Read identifier
        :param sequence: Called base sequence of the read
        :param path: Path to the FAST5 file containing the read
        :return: Loaded read
        """
        with h5py.File(str(path), 'r') as fd:
            read = Fast5Read(fd, read_id)

            basecall_path = read.get_basecall_path()
            event_table = read.get_event_table(basecall_path)
            scalings = read.get_scalings(basecall_path)

            strand = SquiggleRead.build_strand(read, event_table, scalings, sequence)
            return SquiggleRead(read_id, sequence, [strand])

    @staticmethod
    def build_strand(read: Fast5Read, event_table: np.ndarray, scalings: ScalingParameters, sequence: str) -> Strand:
        starts, ends = read.event_intervals(event_table)
        times = (starts - starts[0]) / read.sampling_rate if len(starts) > 0 else starts

        events = []
        for i, event_data in enumerate(event_table):
            mean = float(event_data['mean'])
            scaled_mean = scalings.scale_level(mean, float(times[i]))
            extent = Interval(int(starts[i]), int(ends[i]))

            events.append(Event(i, mean, float(event_data['stdv']), scaled_mean, extent))

        k = model_kmer_size(event_table)
        base_to_event_map = build_base_to_event_map(event_table['move'], len(sequence), k)

        return Strand(events, base_to_event_map)
