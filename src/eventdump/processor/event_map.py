import numpy as np

from typing import List, Optional, Sequence

from .util import IndexPair, BaseToEventMap, EventToBaseMap


def invert_event_map(n_events: int, base_to_event_map: BaseToEventMap) -> EventToBaseMap:
    """ Function that inverts base-to-event map.

    Every event index in the range assigned to the base is mapped to that base. Bases are visited in increasing order,
    so if ranges overlap the later base overwrites the earlier one. Events not covered by any range stay unassigned.

    :param n_events: Number of events on the strand
    :param base_to_event_map: Event range for every base position, None if no event is aligned to the base
    :return: Base index for every event, None for unassigned events
    """
    event_to_base_map = [None] * n_events

    for base_idx, index_pair in enumerate(base_to_event_map):
        if index_pair is None:
            continue

        for event_idx in range(index_pair.start, index_pair.stop + 1):
            event_to_base_map[event_idx] = base_idx

    return event_to_base_map


def build_base_to_event_map(moves: Sequence[int], sequence_length: int, k: int) -> List[Optional[IndexPair]]:
    """ Function that builds base-to-event map from the basecaller move column.

    Every move greater than zero closes event range for the current k-mer and starts the range for the k-mer that is
    `move` positions further. K-mers skipped by moves greater than one don't have any event. The map contains one entry
    per read position; positions that don't start a full k-mer are never assigned.

    :param moves: Move value for every event
    :param sequence_length: Length of the called base sequence
    :param k: K-mer size of the basecaller model
    :return: Event range for every base position, None if no event is aligned to the base
    """
    base_to_event_map = [None] * sequence_length
    n_events = len(moves)
    if n_events == 0:
        return base_to_event_map

    n_read_kmers = sequence_length - k + 1
    if n_read_kmers <= 0:
        raise ValueError(f'Sequence of length {sequence_length} is shorter than k-mer size {k}.')

    moves = np.asarray(moves, dtype=np.int64)
    if moves[0] != 0:
        raise ValueError('First event must not have a move.')

    kmer_idx, range_start = 0, 0
    for event_idx in np.nonzero(moves)[0]:
        base_to_event_map[kmer_idx] = IndexPair(range_start, int(event_idx) - 1)

        kmer_idx += int(moves[event_idx])
        range_start = int(event_idx)

        if kmer_idx >= n_read_kmers:
            raise ValueError(f'Event {event_idx} moves past the last k-mer of the read.')

    base_to_event_map[kmer_idx] = IndexPair(range_start, n_events - 1)  # Last range ends with the last event

    return base_to_event_map
