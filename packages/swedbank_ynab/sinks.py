"""Transaction sinks: where the normalized, merged transactions end up.

- :class:`CsvFileSink` writes a YNAB-importable CSV file
  (``Id,Date,Payee,Memo,Amount``).
- :class:`YnabSink` uploads through the YNAB API in batches of at most 50,
  one request at a time, in list order. The first failing batch aborts the
  run; batches already sent stay imported and are recognized as duplicates
  on the next run thanks to the stable import ids.
"""

from __future__ import annotations

import csv
import math
from collections.abc import Iterator, Sequence
from decimal import Decimal
from os import PathLike
from pathlib import Path
from typing import Protocol

from .logging_setup import get_logger
from .models import ImportResult, NormalizedTransaction
from .ynab_client import YnabClient

logger = get_logger("swedbank_ynab.sinks")

DEFAULT_BATCH_SIZE = 50
CSV_HEADER = ("Id", "Date", "Payee", "Memo", "Amount")


class TransactionSink(Protocol):
    def send(self, transactions: Sequence[NormalizedTransaction]) -> ImportResult: ...


def chunked(
    items: Sequence[NormalizedTransaction], size: int
) -> Iterator[Sequence[NormalizedTransaction]]:
    """Yield consecutive slices of at most ``size`` items."""

    if size <= 0:
        raise ValueError("batch size must be a positive integer")
    for i in range(math.ceil(len(items) / size)):
        yield items[i * size : (i + 1) * size]


def format_csv_amount(milliunits: int) -> str:
    """Milliunits → comma-decimal string with two places (``-12340`` → ``"-12,34"``)."""

    value = Decimal(milliunits) / 1000
    return f"{value:.2f}".replace(".", ",")


def format_csv_date(iso_date: str) -> str:
    """``YYYY-MM-DD`` → ``DD/MM/YYYY``."""

    return "/".join(reversed(iso_date.split("-")))


class CsvFileSink:
    """Write transactions to a local CSV file; every row counts as imported."""

    def __init__(self, path: str | PathLike[str]) -> None:
        self.path = Path(path)

    def send(self, transactions: Sequence[NormalizedTransaction]) -> ImportResult:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(CSV_HEADER)
            for tx in transactions:
                writer.writerow(
                    [
                        tx.import_id,
                        format_csv_date(tx.date),
                        tx.payee,
                        tx.memo or "",
                        format_csv_amount(tx.amount),
                    ]
                )
        logger.info("Wrote %d transactions to %s", len(transactions), self.path)
        return ImportResult(imported=tuple(tx.import_id for tx in transactions))


class YnabSink:
    """Upload transactions through :class:`YnabClient` in sequential batches."""

    def __init__(self, client: YnabClient, *, batch_size: int = DEFAULT_BATCH_SIZE) -> None:
        if batch_size <= 0 or batch_size > DEFAULT_BATCH_SIZE:
            raise ValueError(f"batch_size must be between 1 and {DEFAULT_BATCH_SIZE}")
        self.client = client
        self.batch_size = batch_size

    def send(self, transactions: Sequence[NormalizedTransaction]) -> ImportResult:
        result = ImportResult()
        for n, batch in enumerate(chunked(transactions, self.batch_size)):
            logger.info("Uploading batch %d (%d transactions)", n, len(batch))
            result = result.merge(self.client.post_transactions(batch))
        return result


__all__ = [
    "CSV_HEADER",
    "CsvFileSink",
    "DEFAULT_BATCH_SIZE",
    "TransactionSink",
    "YnabSink",
    "chunked",
    "format_csv_amount",
    "format_csv_date",
]
