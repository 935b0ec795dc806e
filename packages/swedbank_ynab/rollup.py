"""Fold commission rows into the transaction they were charged for.

Swedbank books a service fee as its own row next to the purchase or transfer
it belongs to. Usually the fee follows its parent, but some exports list it
first. The merge is a single forward pass:

- a fee is added to the preceding non-fee transaction;
- it is carried forward to the next non-fee transaction instead when there is
  no preceding one, or when the next row shares the fee's archive code and the
  preceding row does not.

Fees with no transaction at all cannot be merged; they are logged and kept as
standalone transactions.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

from .logging_setup import get_logger
from .models import NormalizedTransaction

logger = get_logger("swedbank_ynab.rollup")


def _belongs_to_next(
    fee: NormalizedTransaction,
    prev: NormalizedTransaction,
    nxt: NormalizedTransaction | None,
) -> bool:
    if nxt is None or nxt.needs_rollup or not fee.transaction_id:
        return False
    return nxt.transaction_id == fee.transaction_id and prev.transaction_id != fee.transaction_id


def merge_rollups(transactions: Sequence[NormalizedTransaction]) -> list[NormalizedTransaction]:
    """Return ``transactions`` with fee rows merged into their parents.

    Order of the remaining transactions is preserved and none of them has
    ``needs_rollup`` set.
    """

    merged: list[NormalizedTransaction] = []
    carried: list[NormalizedTransaction] = []

    for i, tx in enumerate(transactions):
        if not tx.needs_rollup:
            if carried:
                tx = tx.with_amount(sum(f.amount for f in carried))
                carried.clear()
            merged.append(tx)
            continue

        nxt = transactions[i + 1] if i + 1 < len(transactions) else None
        if merged and not carried and not _belongs_to_next(tx, merged[-1], nxt):
            merged[-1] = merged[-1].with_amount(tx.amount)
        else:
            carried.append(tx)

    if carried:
        # Only reachable when no transaction exists to absorb the fees.
        logger.error(
            "Found %d commission row(s) without a parent transaction; keeping them as-is",
            len(carried),
        )
        merged.extend(replace(f, needs_rollup=False) for f in carried)

    return merged


__all__ = ["merge_rollups"]
