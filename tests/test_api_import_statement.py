import io
import logging

import pytest

from swedbank_ynab.api import import_statement, prepare_transactions
from swedbank_ynab.ingest import read_statement
from swedbank_ynab.models import ImportResult, NormalizedTransaction
from swedbank_ynab.transform import import_id

from tests.helpers.statements import LV_CLOSING_BALANCE, LV_STATEMENT


class _ListSink:
    def __init__(self) -> None:
        self.sent: list[NormalizedTransaction] = []

    def send(self, transactions):
        self.sent.extend(transactions)
        return ImportResult(imported=tuple(t.import_id for t in transactions))


def _records():
    return list(read_statement(io.StringIO(LV_STATEMENT, newline="")))


def test_prepare_transactions_end_to_end():
    records = _records()
    txs, closing, skipped = prepare_transactions(records, currency="EUR")

    assert closing == LV_CLOSING_BALANCE
    # start balance, USD purchase, turnover
    assert skipped == 3
    assert [(t.date, t.payee, t.memo, t.amount) for t in txs] == [
        ("2020-02-02", "Rimi", None, -12340),
        ("2020-02-05", "Actual Payee", "Actual tx Memo99", -20350),
        ("2020-02-09", "Janis Berzins", "Par dzivokli", 250000),
        ("2020-02-08", "Amazon", "AMAZON.COM AMZN.COM/BILL", -23530),
    ]
    # The merged transaction keeps its own id, not the fee's.
    assert txs[1].import_id == import_id(records[2])
    assert not any(t.needs_rollup for t in txs)


def test_prepare_transactions_is_idempotent():
    first, _, _ = prepare_transactions(_records(), currency="EUR")
    second, _, _ = prepare_transactions(_records(), currency="EUR")
    assert [t.import_id for t in first] == [t.import_id for t in second]


def test_import_statement_reconciles_balance():
    sink = _ListSink()
    report = import_statement(
        _records(), sink=sink, currency="EUR", balance_oracle=lambda: LV_CLOSING_BALANCE
    )

    assert len(sink.sent) == 4
    assert report.result.imported == tuple(t.import_id for t in sink.sent)
    assert report.closing_balance == LV_CLOSING_BALANCE
    assert report.balance_difference == 0
    assert report.reconciled is True


def test_import_statement_balance_mismatch_is_only_a_warning(caplog: pytest.LogCaptureFixture):
    caplog.set_level(logging.WARNING, logger="swedbank_ynab")
    report = import_statement(
        _records(), sink=_ListSink(), currency="EUR", balance_oracle=lambda: 290000
    )

    assert report.reconciled is False
    assert report.balance_difference == -3780
    assert "Balance mismatch" in caplog.text


def test_import_statement_without_balance_oracle():
    report = import_statement(_records(), sink=_ListSink(), currency="EUR")
    assert report.remote_balance is None
    assert report.reconciled is None


def test_usd_statement_filter():
    sink = _ListSink()
    report = import_statement(_records(), sink=sink, currency="USD")
    assert [(t.payee, t.amount) for t in sink.sent] == [("Swedbank", -5000)]
    assert report.closing_balance is None
