from collections import namedtuple

from typing import List, Optional, Sequence


Interval = namedtuple('Interval', ['start', 'end'])  # Start - inclusive, end - exclusive
IndexPair = namedtuple('IndexPair', ['start', 'stop'])  # Start and stop - both inclusive

BaseToEventMap = Sequence[Optional[IndexPair]]  # Event range for every base, None if no event is aligned
EventToBaseMap = List[Optional[int]]  # Base index for every event, None if event is unassigned

UNKNOWN_BASE = 'N'
DEFAULT_KMER_SIZE = 6
