"""Decode Athena result files into records.

Athena writes two line-oriented encodings to S3:

* DML (``SELECT`` and friends) produce a CSV file whose first line is the
  header and every field is double-quoted: ``"a","b","c"``.
* Other statements (``SHOW``, ``DESCRIBE``, DDL) produce a text file of
  tab-separated key/value lines.

Decoding is a pure streaming transform over lines; it never raises on a
malformed line. Records omit empty values, so a field that is empty in the
source row is absent from the record. DML rows whose width differs from the
header are paired up to the shorter of the two.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Iterable, Iterator, List, Union

Record = Dict[str, str]
Line = Union[bytes, str]

FIELD_SEPARATOR = '","'
FALLBACK_KEY = "row"


class DecodeMode(str, Enum):
    """How a result stream is turned into records."""

    RAW = "raw"
    DML = "dml"
    NON_DML = "non_dml"


def mode_for_statement_type(statement_type: str | None, format_json: bool = True) -> DecodeMode:
    """Pick the decode mode for an Athena ``StatementType`` (missing means DML)."""
    if not format_json:
        return DecodeMode.RAW
    if (statement_type or "DML").upper() == "DML":
        return DecodeMode.DML
    return DecodeMode.NON_DML


def decode_lines(lines: Iterable[Line], mode: DecodeMode) -> Iterator[Union[Record, str]]:
    """Decode an iterable of result lines according to ``mode``."""
    trimmed = (_to_text(line).strip() for line in lines)
    if mode == DecodeMode.RAW:
        return iter(trimmed)
    if mode == DecodeMode.DML:
        return _decode_dml(trimmed)
    return _decode_non_dml(trimmed)


def split_quoted_row(line: str) -> List[str]:
    """Split one quoted-comma row into its unquoted values."""
    if line.startswith('"'):
        line = line[1:]
    if line.endswith('"'):
        line = line[:-1]
    return [value.replace('""', '"') for value in line.split(FIELD_SEPARATOR)]


def _decode_dml(lines: Iterable[str]) -> Iterator[Record]:
    header: List[str] | None = None
    for line in lines:
        if not line:
            continue
        values = split_quoted_row(line)
        if header is None:
            header = values
            continue
        yield {name: value for name, value in zip(header, values) if value != ""}


def _decode_non_dml(lines: Iterable[str]) -> Iterator[Record]:
    for line in lines:
        if not line:
            continue
        if "\t" in line:
            key, value = line.split("\t", 1)
            yield {key.strip(): value.strip()}
        else:
            yield {FALLBACK_KEY: line}


def _to_text(line: Line) -> str:
    if isinstance(line, bytes):
        return line.decode("utf-8", errors="replace")
    return line
