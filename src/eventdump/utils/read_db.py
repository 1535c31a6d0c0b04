from pathlib import Path

from typing import Dict

READ_DB_SUFFIX = '.index.readdb'


class ReadDB:
    """ Class that maps read identifiers to FAST5 files containing their signal. """
    def __init__(self, signal_paths: Dict[str, Path]) -> None:
        self.signal_paths = signal_paths

    def __len__(self) -> int:
        return len(self.signal_paths)

    @staticmethod
    def index_path(reads_path: Path) -> Path:
        """ Returns path of the read index for the given reads file. """
        return reads_path.parent / (reads_path.name + READ_DB_SUFFIX)

    @staticmethod
    def load(reads_path: Path) -> 'ReadDB':
        """ Static function that loads the read index for the given reads file.

        Read index is a tab-separated file stored next to the reads file. Every line contains read identifier and the
        path to the FAST5 file. Relative paths are resolved against the directory of the index.

        :param reads_path: Path to the reads file
        :return: Loaded read index
        """
        path = ReadDB.index_path(reads_path)
        signal_paths = {}

        with path.open('r') as f:
            for line in f:
                line = line.rstrip('\n')
                if not line:
                    continue

                read_id, signal_path = line.split('\t')[:2]
                signal_path = Path(signal_path)
                if not signal_path.is_absolute():
                    signal_path = path.parent / signal_path

                signal_paths[read_id] = signal_path

        return ReadDB(signal_paths)

    def get_signal_path(self, read_id: str) -> Path:
        try:
            return self.signal_paths[read_id]
        except KeyError:
            raise KeyError(f'Read {read_id} not found in the read index.') from None
