"""Incremental row reader for delimited address tables."""

from __future__ import annotations

import csv
from typing import Iterator, TextIO

from pdok_geoencoder.common.models import Row

SNIFF_DELIMITERS = ",;\t|"
SNIFF_SAMPLE_SIZE = 64 * 1024


def sniff_delimiter(sample: str, default: str = ",") -> str:
    """Pick the candidate delimiter that occurs most often in the header line."""
    header_line = sample.splitlines()[0] if sample else ""
    counts = {delimiter: header_line.count(delimiter) for delimiter in SNIFF_DELIMITERS}
    best = max(SNIFF_DELIMITERS, key=lambda delimiter: counts[delimiter])
    return best if counts[best] else default


def iter_rows(handle: TextIO, delimiter: str | None = None) -> Iterator[Row]:
    """Yield one ``Row`` per data line, numbered from 1."""
    if delimiter is None:
        sample = handle.read(SNIFF_SAMPLE_SIZE)
        handle.seek(0)
        delimiter = sniff_delimiter(sample)

    reader = csv.DictReader(handle, delimiter=delimiter, restval="")
    fieldnames = [name for name in (reader.fieldnames or []) if name is not None]
    for line_number, record in enumerate(reader, start=1):
        yield Row(line_number=line_number, data={name: record.get(name) or "" for name in fieldnames})
