"""Row source for Swedbank statement exports (semicolon-delimited CSV).

Header names depend on the export locale. Latvian and Estonian exports are
both accepted; each canonical field must resolve through one of its aliases
(see :func:`swedbank_ynab.models.header_aliases`).

Failure mode
------------
A file without a header row, a header lacking a required column, or a row
whose cell count differs from the header raises ``csv.Error``. The CLI
surfaces ``csv.Error`` as a parse failure.
"""

from __future__ import annotations

import csv
from collections.abc import Iterator
from os import PathLike
from typing import TextIO

from ..models import RawRecord, header_aliases

DELIMITER = ";"
DEFAULT_ENCODING = "utf-8-sig"


def _missing_fields(headers: list[str]) -> list[str]:
    present = set(headers)
    return sorted(
        name
        for name, aliases in header_aliases().items()
        if not any(a in present for a in aliases)
    )


def read_statement(file: TextIO) -> Iterator[RawRecord]:
    """Yield :class:`RawRecord` rows from an open statement file.

    Parameters
    ----------
    file:
        Text stream opened with ``newline=''``.
    """

    reader = csv.DictReader(file, delimiter=DELIMITER)
    headers = reader.fieldnames
    if not headers:
        raise csv.Error("statement appears to have no header row")
    missing = _missing_fields([h.strip() for h in headers])
    if missing:
        raise csv.Error("statement header mismatch. Missing columns: " + ", ".join(missing))

    for row in reader:
        # DictReader pads short rows with None values and collects surplus
        # cells under a None key.
        if None in row or None in row.values():
            raise csv.Error(f"line {reader.line_num}: expected {len(headers)} fields")
        cleaned = {k.strip(): v for k, v in row.items()}
        if all(not v.strip() for v in cleaned.values()):
            continue
        yield RawRecord.model_validate(cleaned)


def read_statement_path(
    path: str | PathLike[str], *, encoding: str = DEFAULT_ENCODING
) -> Iterator[RawRecord]:
    """Open ``path`` and yield its records; each call re-reads the file."""

    with open(path, encoding=encoding, newline="") as f:
        yield from read_statement(f)


__all__ = ["read_statement", "read_statement_path"]
