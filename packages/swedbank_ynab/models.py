"""Data models for ``swedbank_ynab``.

Three layers of records flow through the pipeline:

- :class:`RawRecord`: one row of the Swedbank statement export as strings.
  Header names differ between the Latvian and Estonian exports; both are
  declared as aliases on the fields so the row source can validate a
  ``csv.DictReader`` row directly.
- :class:`ParsedPayeeMemo`: transient result of payee/memo normalization.
- :class:`NormalizedTransaction`: the import-ready record. ``amount`` is in
  YNAB milliunits (minor currency units times ten).
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class RecordType(StrEnum):
    """Statement row type codes (``Ieraksta tips`` / ``Reatüüp``)."""

    START_BALANCE = "10"
    TRANSACTION = "20"
    TURNOVER = "82"
    END_BALANCE = "86"
    INTEREST = "900"


class EntryType(StrEnum):
    CREDIT = "K"
    DEBIT = "D"


def _aliases(name: str, *headers: str) -> AliasChoices:
    return AliasChoices(name, *headers)


class RawRecord(BaseModel):
    """A single statement row with canonical field names.

    Every field defaults to ``""`` so a short row is recovered downstream
    instead of failing validation; unknown columns are ignored.
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True, frozen=True)

    record_type: str = Field(
        "", validation_alias=_aliases("record_type", "Ieraksta tips", "Reatüüp")
    )
    date: str = Field("", validation_alias=_aliases("date", "Datums", "Kuupäev"))
    payee: str = Field(
        "", validation_alias=_aliases("payee", "Saņēmējs/Maksātājs", "Saaja/Maksja")
    )
    memo: str = Field(
        "", validation_alias=_aliases("memo", "Informācija saņēmējam", "Selgitus")
    )
    amount: str = Field("", validation_alias=_aliases("amount", "Summa"))
    currency: str = Field("", validation_alias=_aliases("currency", "Valūta", "Valuuta"))
    debit_or_credit: str = Field(
        "", validation_alias=_aliases("debit_or_credit", "Debets/Kredīts", "Deebet/Kreedit")
    )
    transaction_id: str = Field(
        "", validation_alias=_aliases("transaction_id", "Arhīva kods", "Arhiveerimistunnus")
    )
    payment_type: str = Field(
        "", validation_alias=_aliases("payment_type", "Maksājuma veids", "Tehingu tüüp")
    )

    @property
    def entry_type(self) -> EntryType | None:
        try:
            return EntryType(self.debit_or_credit.upper())
        except ValueError:
            return None


def header_aliases() -> dict[str, tuple[str, ...]]:
    """Return ``{field: (accepted header names, ...)}`` for header validation."""

    out: dict[str, tuple[str, ...]] = {}
    for name, info in RawRecord.model_fields.items():
        alias = info.validation_alias
        if isinstance(alias, AliasChoices):
            out[name] = tuple(str(c) for c in alias.choices)
        else:
            out[name] = (name,)
    return out


@dataclass(frozen=True, slots=True)
class ParsedPayeeMemo:
    """Normalized payee/memo pair plus the date embedded in a card descriptor.

    ``memo`` is ``None`` when the cleaned memo is empty or only repeats the
    payee.
    """

    date: str | None
    payee: str
    memo: str | None


@dataclass(frozen=True, slots=True)
class NormalizedTransaction:
    """An import-ready transaction.

    ``transaction_id`` is the raw archive code; it only serves to pair a
    commission row with its parent during rollup and is never sent to a sink.
    """

    import_id: str
    date: str
    payee: str
    memo: str | None
    amount: int
    needs_rollup: bool = False
    transaction_id: str | None = field(default=None, compare=False)

    def with_amount(self, delta: int) -> NormalizedTransaction:
        return replace(self, amount=self.amount + delta)

    def to_ynab(self, account_id: str) -> dict[str, Any]:
        """Serialize to the YNAB ``SaveTransaction`` shape."""

        return {
            "import_id": self.import_id,
            "date": self.date,
            "payee_name": self.payee,
            "memo": self.memo,
            "cleared": "cleared",
            "amount": self.amount,
            "account_id": account_id,
        }


@dataclass(frozen=True, slots=True)
class ImportResult:
    """What a sink accepted: imported ids and ids rejected as duplicates."""

    imported: tuple[str, ...] = ()
    duplicate_import_ids: tuple[str, ...] = ()

    def merge(self, other: ImportResult) -> ImportResult:
        return ImportResult(
            imported=self.imported + other.imported,
            duplicate_import_ids=self.duplicate_import_ids + other.duplicate_import_ids,
        )


@dataclass(slots=True)
class TransformResult:
    """Output of the classifier/transformer pass over a statement."""

    transactions: list[NormalizedTransaction] = field(default_factory=list)
    # Milliunits, from the last end-balance row in the target currency.
    closing_balance: int | None = None
    skipped: int = 0


__all__ = [
    "EntryType",
    "ImportResult",
    "NormalizedTransaction",
    "ParsedPayeeMemo",
    "RawRecord",
    "RecordType",
    "TransformResult",
    "header_aliases",
]
