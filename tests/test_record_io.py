from __future__ import annotations

import random

import pytest

from composite_records import Date, FullName, Record
from record_io import (
    MalformedRecordError, parse_line, read_records, write_input_file, write_sorted_output,
)
from sort_bench_core import generate_records


def test_parse_line_uses_line_number_as_position():
    r = parse_line("2023-01-05\tIvanov Aleksei Petrovich\n", 7)
    assert r == Record(Date(5, 1, 2023), FullName("Ivanov", "Aleksei", "Petrovich"), 7)


@pytest.mark.parametrize("line", [
    "2023-01-05 Ivanov Aleksei Petrovich",
    "2023-01-05\tIvanov Aleksei",
    "2023-13\tIvanov Aleksei Petrovich",
    "yesterday\tIvanov Aleksei Petrovich",
])
def test_parse_line_rejects_malformed(line):
    with pytest.raises(MalformedRecordError) as exc:
        parse_line(line, 3)
    assert exc.value.line_number == 3


def test_read_skips_malformed_lines_but_keeps_line_numbers(tmp_path):
    path = tmp_path / "in.txt"
    path.write_text(
        "2023-01-01\tIvanov Aleksei Petrovich\n"
        "broken line\n"
        "\n"
        "2022-05-06\tPetrov Ivan Sergeevich\n",
        encoding="utf-8",
    )
    result = read_records(path)
    assert [r.position for r in result.records] == [1, 4]
    assert result.skipped == [2]
    assert result.lines_read == 4


def test_read_strict_fails_fast(tmp_path):
    path = tmp_path / "in.txt"
    path.write_text("2023-01-01\tIvanov Aleksei Petrovich\n2023-01-01\tIvanov\n", encoding="utf-8")
    with pytest.raises(MalformedRecordError) as exc:
        read_records(path, strict=True)
    assert exc.value.line_number == 2


def test_read_respects_limit_and_reports_progress(tmp_path):
    path = write_input_file(generate_records(50, random.Random(1)), tmp_path / "in.txt")
    progress = []
    result = read_records(path, limit=30, on_progress=progress.append, progress_every=10)
    assert len(result.records) == 30
    assert progress == [10, 20, 30]


def test_generated_file_round_trips_positions(tmp_path):
    records = generate_records(25, random.Random(2))
    path = write_input_file(records, tmp_path / "nested" / "in.txt")
    assert read_records(path).records == records


def test_write_sorted_output(tmp_path):
    records = [
        Record(Date(1, 1, 2023), FullName("Sidorov", "Mikhail", "Aleksandrovich"), 4),
        Record(Date(1, 1, 2023), FullName("Ivanov", "Aleksei", "Petrovich"), 1),
    ]
    path = write_sorted_output(records, tmp_path / "out" / "sorted.txt", 12.5)
    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines == [
        "2023-01-01\tSidorov Mikhail Aleksandrovich\t4",
        "2023-01-01\tIvanov Aleksei Petrovich\t1",
        "Sorting time: 12.500 ms",
    ]


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_records(tmp_path / "nope.txt")


def _write_with_cp1251_line(path):
    path.write_bytes(
        "2023-01-01\tIvanov Aleksei Petrovich\n".encode("utf-8")
        + "2023-01-02\tПетров Иван Сергеевич\n".encode("cp1251")
        + "2023-01-03\tSidorov Mikhail Aleksandrovich\n".encode("utf-8")
    )
    return path


def test_read_skips_line_that_is_not_utf8(tmp_path):
    path = _write_with_cp1251_line(tmp_path / "in.txt")
    result = read_records(path)
    assert [r.position for r in result.records] == [1, 3]
    assert result.skipped == [2]


def test_read_strict_rejects_line_that_is_not_utf8(tmp_path):
    path = _write_with_cp1251_line(tmp_path / "in.txt")
    with pytest.raises(MalformedRecordError) as exc:
        read_records(path, strict=True)
    assert exc.value.line_number == 2
    assert "UTF-8" in str(exc.value)


def test_read_accepts_utf8_cyrillic_names(tmp_path):
    path = tmp_path / "in.txt"
    path.write_bytes("2023-01-02\tПетров Иван Сергеевич\r\n".encode("utf-8"))
    records = read_records(path).records
    assert records == [Record(Date(2, 1, 2023), FullName("Петров", "Иван", "Сергеевич"), 1)]
