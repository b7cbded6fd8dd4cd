"""
Text input/output for composite-key records.

Input:  one record per line, ``YYYY-MM-DD<TAB>Last First Middle``
Output: one ``date<TAB>name<TAB>position`` line per record, then a
        ``Sorting time: <ms> ms`` summary line
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from composite_records import Date, FullName, Record


class MalformedRecordError(ValueError):
    def __init__(self, line_number: int, line: str, detail: str):
        super().__init__(f"line {line_number}: {detail}: {line!r}")
        self.line_number = line_number
        self.line = line


@dataclass
class ReadResult:
    records: List[Record] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)
    lines_read: int = 0


def parse_line(line, line_number: int) -> Record:
    """
    Parse one input line; `line_number` becomes the record position.

    `line` may be raw bytes, which are decoded as UTF-8 first.
    """
    if isinstance(line, bytes):
        try:
            line = line.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedRecordError(line_number, line, f"not valid UTF-8 ({e.reason})") from e
    parts = line.rstrip("\r\n").split("\t")
    if len(parts) < 2:
        raise MalformedRecordError(line_number, line, "expected date and name separated by a tab")
    try:
        date = Date.parse(parts[0])
        name = FullName.parse(parts[1])
    except ValueError as e:
        raise MalformedRecordError(line_number, line, str(e)) from e
    return Record(date, name, line_number)


def read_records(path, limit: int = 100_000, strict: bool = False,
                 on_progress: Optional[Callable[[int], None]] = None,
                 progress_every: int = 10_000) -> ReadResult:
    """
    Read up to `limit` records from `path`.

    Positions are file line numbers, so skipped lines still consume one.
    Malformed lines, including ones that are not valid UTF-8, are skipped
    and listed in `ReadResult.skipped` unless `strict` is set, in which
    case the first one raises.
    """
    result = ReadResult()
    with open(path, "rb") as f:
        for line_number, line in enumerate(f, start=1):
            if len(result.records) >= limit:
                break
            result.lines_read = line_number
            if not line.strip():
                continue
            try:
                result.records.append(parse_line(line, line_number))
            except MalformedRecordError:
                if strict:
                    raise
                result.skipped.append(line_number)
                continue
            if on_progress is not None and len(result.records) % progress_every == 0:
                on_progress(len(result.records))
    return result


def write_sorted_output(records: Iterable[Record], path, elapsed_ms: float) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        for r in records:
            f.write(f"{r}\n")
        f.write(f"Sorting time: {elapsed_ms:.3f} ms\n")
    return path


def write_input_file(records: Iterable[Record], path) -> Path:
    """Write records in the input format (positions are implied by line order)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        for r in records:
            f.write(f"{r.date}\t{r.name}\n")
    return path
