import io
from pathlib import Path

from abc import ABC, abstractmethod
from typing import Iterable

from ..processor.records import OutputRecord

HEADER = ('event_index', 'base_index', 'strand_index', 'event_mean', 'event_stdv', 'raw_start', 'raw_length', 'kmer')
ROW_FORMAT = '{:d}\t{:d}\t{:d}\t{:.6f}\t{:.6f}\t{:.6f}\t{:.6f}\t{}\n'


class DataWriter(ABC):
    """ Abstract class for writing event alignment records. """
    def __init__(self) -> None:
        pass

    @abstractmethod
    def write_records(self, records: Iterable[OutputRecord]) -> int:
        """ Function that writes records of one read.

        This abstract method writes records for one read. All concrete implementations of data writer should override
        this method.

        :param records: Records of one read
        :return: Number of written records
        """
        pass


class TSVWriter(DataWriter):
    """ Implementation of DataWriter that stores records in tab-separated file. """

    def __init__(self, filename: Path) -> None:
        super().__init__()

        self.filename = filename

    @staticmethod
    def path_for_read(output_dir: Path, read_id: str) -> Path:
        return Path(output_dir, f'{read_id}.tsv')

    def __enter__(self):
        self.fd = io.open(self.filename, 'w', encoding='utf-8')
        self.fd.write('\t'.join(HEADER) + '\n')
        return self

    def __exit__(self, type, value, traceback):
        self.fd.flush()
        self.fd.close()

    @staticmethod
    def format_record(record: OutputRecord) -> str:
        return ROW_FORMAT.format(record.event_index,
                                 record.base_index,
                                 record.strand_index,
                                 record.event_mean,
                                 record.event_stdv,
                                 record.raw_start,
                                 record.raw_length,
                                 record.kmer)

    def write_records(self, records: Iterable[OutputRecord]) -> int:
        """ Function that writes one line for every record.

        Integer columns are written as is. Event level statistics and raw signal interval are written with six decimal
        places.

        :param records: Records of one read
        :return: Number of written records
        """
        n_records = 0

        for record in records:
            self.fd.write(TSVWriter.format_record(record))
            n_records += 1

        return n_records
