import csv
from pathlib import Path

import pytest

from swedbank_ynab.models import ImportResult, NormalizedTransaction
from swedbank_ynab.sinks import (
    CsvFileSink,
    YnabSink,
    chunked,
    format_csv_amount,
    format_csv_date,
)
from swedbank_ynab.ynab_client import YnabApiError


def _tx(i: int, amount: int = -12340, memo: str | None = None) -> NormalizedTransaction:
    return NormalizedTransaction(
        import_id=f"id-{i}", date="2020-02-09", payee=f"Payee {i}", memo=memo, amount=amount
    )


class _FakeClient:
    def __init__(self, fail_on_call: int | None = None) -> None:
        self.batches: list[list[str]] = []
        self.fail_on_call = fail_on_call

    def post_transactions(self, batch):
        self.batches.append([t.import_id for t in batch])
        if self.fail_on_call == len(self.batches):
            raise YnabApiError("YNAB API error: 500", status=500)
        return ImportResult(imported=tuple(t.import_id for t in batch))


def test_csv_formatting_helpers():
    assert format_csv_amount(-12340) == "-12,34"
    assert format_csv_amount(250000) == "250,00"
    assert format_csv_date("2020-02-09") == "09/02/2020"


def test_csv_file_sink_writes_rows(tmp_path: Path):
    out = tmp_path / "nested" / "out.csv"
    txs = [_tx(0), _tx(1, amount=250000, memo="Par dzivokli")]

    result = CsvFileSink(out).send(txs)

    assert result == ImportResult(imported=("id-0", "id-1"))
    with out.open(encoding="utf-8", newline="") as f:
        rows = list(csv.reader(f))
    assert rows == [
        ["Id", "Date", "Payee", "Memo", "Amount"],
        ["id-0", "09/02/2020", "Payee 0", "", "-12,34"],
        ["id-1", "09/02/2020", "Payee 1", "Par dzivokli", "250,00"],
    ]


def test_chunked_batches():
    items = [_tx(i) for i in range(120)]
    assert [len(c) for c in chunked(items, 50)] == [50, 50, 20]
    assert list(chunked([], 50)) == []
    with pytest.raises(ValueError):
        list(chunked(items, 0))


def test_ynab_sink_posts_sequential_batches_of_fifty():
    client = _FakeClient()
    txs = [_tx(i) for i in range(120)]

    result = YnabSink(client).send(txs)

    assert [len(b) for b in client.batches] == [50, 50, 20]
    assert client.batches[0][0] == "id-0"
    assert client.batches[2][-1] == "id-119"
    assert result.imported == tuple(t.import_id for t in txs)


def test_ynab_sink_aborts_on_first_failure():
    client = _FakeClient(fail_on_call=2)
    with pytest.raises(YnabApiError):
        YnabSink(client).send([_tx(i) for i in range(120)])
    assert len(client.batches) == 2


@pytest.mark.parametrize("size", [0, 51])
def test_ynab_sink_rejects_invalid_batch_size(size: int):
    with pytest.raises(ValueError):
        YnabSink(_FakeClient(), batch_size=size)
