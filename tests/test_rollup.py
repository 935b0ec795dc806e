import logging

import pytest

from swedbank_ynab.models import NormalizedTransaction
from swedbank_ynab.rollup import merge_rollups


def _tx(
    name: str, amount: int, *, fee: bool = False, ref: str | None = None
) -> NormalizedTransaction:
    return NormalizedTransaction(
        import_id=name,
        date="2020-02-05",
        payee=name,
        memo=None,
        amount=amount,
        needs_rollup=fee,
        transaction_id=ref,
    )


def test_fee_after_parent():
    assert merge_rollups([_tx("A", 100), _tx("B", -5, fee=True)]) == [_tx("A", 95)]


def test_fee_before_parent():
    assert merge_rollups([_tx("B", -5, fee=True), _tx("A", 100)]) == [_tx("A", 95)]


def test_fee_follows_next_row_with_same_archive_code():
    txs = [
        _tx("X", -300, ref="111"),
        _tx("F", -5, fee=True, ref="222"),
        _tx("A", -100, ref="222"),
    ]
    assert merge_rollups(txs) == [_tx("X", -300), _tx("A", -105)]


def test_fee_sharing_archive_code_with_previous_row_stays_backward():
    txs = [
        _tx("A", -100, ref="222"),
        _tx("F", -5, fee=True, ref="222"),
        _tx("Y", -300, ref="222"),
    ]
    assert merge_rollups(txs) == [_tx("A", -105), _tx("Y", -300)]


def test_consecutive_fees_roll_into_same_parent():
    txs = [_tx("A", -100), _tx("F1", -5, fee=True), _tx("F2", -1, fee=True), _tx("B", 50)]
    assert merge_rollups(txs) == [_tx("A", -106), _tx("B", 50)]


def test_leading_fees_carried_to_first_transaction():
    txs = [_tx("F1", -5, fee=True), _tx("F2", -1, fee=True), _tx("A", 100), _tx("B", 7)]
    assert merge_rollups(txs) == [_tx("A", 94), _tx("B", 7)]


def test_order_and_untouched_rows_preserved():
    txs = [_tx("A", 1), _tx("B", 2), _tx("C", 3)]
    assert merge_rollups(txs) == txs
    assert merge_rollups([]) == []


def test_orphan_fees_are_kept_and_logged(caplog: pytest.LogCaptureFixture):
    caplog.set_level(logging.ERROR, logger="swedbank_ynab")
    merged = merge_rollups([_tx("F", -5, fee=True)])
    assert merged == [_tx("F", -5)]
    assert not merged[0].needs_rollup
    assert "without a parent transaction" in caplog.text


def test_output_never_needs_rollup():
    txs = [_tx("F0", -1, fee=True), _tx("A", 10), _tx("F1", -2, fee=True)]
    merged = merge_rollups(txs)
    assert merged == [_tx("A", 7)]
    assert not any(t.needs_rollup for t in merged)
