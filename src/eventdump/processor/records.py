from itertools import accumulate, islice
from typing import Iterator, NamedTuple, Optional, Sequence

from .util import UNKNOWN_BASE, DEFAULT_KMER_SIZE, EventToBaseMap
from ..utils.models import Event


class OutputRecord(NamedTuple):
    """ One row of the event alignment table. """
    event_index: int
    base_index: int
    strand_index: int
    event_mean: float
    event_stdv: float
    raw_start: int
    raw_length: int
    kmer: str


def _carry_forward(previous: int, current: Optional[int]) -> int:
    return previous if current is None else current


def carried_base_indices(event_to_base_map: EventToBaseMap) -> Iterator[int]:
    """ Returns base index for every event, unassigned events take the last assigned base index (initially 0). """
    return islice(accumulate(event_to_base_map, _carry_forward, initial=0), 1, None)


def build_records(
        events: Sequence[Event],
        event_to_base_map: EventToBaseMap,
        sequence: str,
        k: int=DEFAULT_KMER_SIZE,
        scale_events: bool=False,
        strand_index: int=0) -> Iterator[OutputRecord]:
    """ Generator that yields one output record for every event on the strand.

    Assigned events get the k-mer starting at their base (shorter if the read ends earlier). Unassigned events inherit
    the base index of the last assigned event and get k-mer made of unknown bases.

    :param events: Events of the strand, ordered by index
    :param event_to_base_map: Base index for every event, None for unassigned events
    :param sequence: Called base sequence of the read
    :param k: K-mer size
    :param scale_events: True if recalibrated event mean should be reported, otherwise unscaled mean
    :param strand_index: Index of the strand
    :return: Output record for every event, in increasing event index order
    """
    unknown_kmer = UNKNOWN_BASE * k

    for event, assigned, base_idx in zip(events, event_to_base_map, carried_base_indices(event_to_base_map)):
        kmer = unknown_kmer if assigned is None else sequence[base_idx:base_idx + k]
        event_mean = event.scaled_mean if scale_events else event.mean

        yield OutputRecord(event.index,
                           base_idx,
                           strand_index,
                           event_mean,
                           event.stdv,
                           event.extent.start,
                           event.extent.end - event.extent.start,
                           kmer)
