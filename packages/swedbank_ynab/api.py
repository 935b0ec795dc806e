"""Orchestration: statement records in, sink results and reconciliation out.

:func:`import_statement` runs the whole pipeline for one statement:

1. classify and transform rows (:mod:`swedbank_ynab.transform`)
2. fold commission rows into their parents (:mod:`swedbank_ynab.rollup`)
3. hand the list to a :class:`~swedbank_ynab.sinks.TransactionSink`
4. optionally compare the statement's closing balance with the destination

A balance mismatch is logged and reported, never raised.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import TypeAlias

from .logging_setup import get_logger
from .models import ImportResult, NormalizedTransaction, RawRecord
from .rollup import merge_rollups
from .sinks import TransactionSink
from .transform import transform_records
from .vendors import DEFAULT_RULES, VendorRule

logger = get_logger("swedbank_ynab.api")

BalanceOracle: TypeAlias = Callable[[], int]


@dataclass(frozen=True, slots=True)
class ImportReport:
    """Outcome of one :func:`import_statement` run. Balances are milliunits."""

    result: ImportResult
    transactions: tuple[NormalizedTransaction, ...]
    skipped: int = 0
    closing_balance: int | None = None
    remote_balance: int | None = None

    @property
    def balance_difference(self) -> int | None:
        if self.closing_balance is None or self.remote_balance is None:
            return None
        return self.remote_balance - self.closing_balance

    @property
    def reconciled(self) -> bool | None:
        diff = self.balance_difference
        return None if diff is None else diff == 0


def prepare_transactions(
    records: Iterable[RawRecord],
    *,
    currency: str | None,
    rules: Sequence[VendorRule] = DEFAULT_RULES,
) -> tuple[list[NormalizedTransaction], int | None, int]:
    """Transform and merge; returns ``(transactions, closing_balance, skipped)``."""

    transformed = transform_records(records, currency=currency, rules=rules)
    merged = merge_rollups(transformed.transactions)
    folded = len(transformed.transactions) - len(merged)
    if folded:
        logger.info("Merged %d commission rows into their transactions", folded)
    return merged, transformed.closing_balance, transformed.skipped


def import_statement(
    records: Iterable[RawRecord],
    *,
    sink: TransactionSink,
    currency: str | None,
    balance_oracle: BalanceOracle | None = None,
    rules: Sequence[VendorRule] = DEFAULT_RULES,
) -> ImportReport:
    """Run the full import for ``records`` into ``sink``."""

    transactions, closing_balance, skipped = prepare_transactions(
        records, currency=currency, rules=rules
    )
    result = sink.send(transactions)
    logger.info(
        "Imported %d transactions, %d duplicates",
        len(result.imported),
        len(result.duplicate_import_ids),
    )

    remote_balance = balance_oracle() if balance_oracle is not None else None
    report = ImportReport(
        result=result,
        transactions=tuple(transactions),
        skipped=skipped,
        closing_balance=closing_balance,
        remote_balance=remote_balance,
    )
    if report.reconciled is False:
        logger.warning(
            "Balance mismatch: statement %d, destination %d (difference %+d milliunits)",
            closing_balance,
            remote_balance,
            report.balance_difference,
        )
    return report


__all__ = ["BalanceOracle", "ImportReport", "import_statement", "prepare_transactions"]
