from pathlib import Path

from eventdump.processor.records import OutputRecord
from eventdump.utils.writer import TSVWriter, HEADER


def test_path_for_read(tmp_path: Path):
    assert TSVWriter.path_for_read(tmp_path, 'abc') == tmp_path / 'abc.tsv'


def test_format_record():
    record = OutputRecord(12, 3, 0, 85.231, 1.5, 1200, 7, 'ACGTAC')

    assert TSVWriter.format_record(record) == '12\t3\t0\t85.231000\t1.500000\t1200.000000\t7.000000\tACGTAC\n'


def test_write_header_and_rows(tmp_path: Path):
    path = tmp_path / 'read.tsv'
    records = [OutputRecord(0, 0, 0, 90.0, 1.0, 0, 5, 'NNNNNN'),
               OutputRecord(1, 2, 0, 91.125, 2.25, 5, 3, 'GT')]

    with TSVWriter(path) as writer:
        n_records = writer.write_records(iter(records))

    lines = path.read_text(encoding='utf-8').splitlines()
    assert n_records == 2
    assert lines[0] == '\t'.join(HEADER)
    assert lines[0] == 'event_index\tbase_index\tstrand_index\tevent_mean\tevent_stdv\traw_start\traw_length\tkmer'
    assert lines[1] == '0\t0\t0\t90.000000\t1.000000\t0.000000\t5.000000\tNNNNNN'
    assert lines[2] == '1\t2\t0\t91.125000\t2.250000\t5.000000\t3.000000\tGT'


def test_write_no_records(tmp_path: Path):
    path = tmp_path / 'empty.tsv'

    with TSVWriter(path) as writer:
        assert writer.write_records([]) == 0

    assert path.read_text() == '\t'.join(HEADER) + '\n'
