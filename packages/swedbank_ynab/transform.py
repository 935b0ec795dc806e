"""Row classification and transformation into :class:`NormalizedTransaction`.

Only rows with record type ``20`` become transactions. Rows of type ``86``
(end balance) feed the closing balance used for reconciliation; every other
row type is skipped. Rows in a currency other than the target currency are
skipped as well.

Import ids
----------
The import id is the MD5 hex digest of the raw date, payee, memo, amount and
archive code, each followed by ``|``. A commission row (and a loan repayment
without a payee) can share all of those fields with its sibling row, so its
id gets a ``:<payment type>`` suffix.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable, Sequence
from datetime import datetime
from decimal import Decimal, InvalidOperation

from .logging_setup import get_logger
from .models import (
    EntryType,
    NormalizedTransaction,
    RawRecord,
    RecordType,
    TransformResult,
)
from .vendors import DEFAULT_RULES, VendorRule, parse_payee_memo

logger = get_logger("swedbank_ynab.transform")

COMMISSION_PAYMENT_TYPE = "KOM"
LOAN_REPAYMENT_PAYMENT_TYPE = "AZA"
SERVICE_FEE_SUFFIX = "apkalpošanas komisija"

_ID_FIELDS = ("date", "payee", "memo", "amount", "transaction_id")


def classify(record: RawRecord) -> RecordType | None:
    try:
        return RecordType(record.record_type)
    except ValueError:
        return None


def is_commission(payment_type: str) -> bool:
    return payment_type == COMMISSION_PAYMENT_TYPE


def is_loan_repayment(payment_type: str) -> bool:
    return payment_type == LOAN_REPAYMENT_PAYMENT_TYPE


def needs_rollup(memo: str, payment_type: str) -> bool:
    """Whether a row is a service fee to be folded into its parent transaction."""

    return is_commission(payment_type) and memo.casefold().endswith(SERVICE_FEE_SUFFIX)


def needs_disambiguation(record: RawRecord) -> bool:
    """Whether the import id needs a suffix to avoid colliding with a sibling row.

    Loan repayments without a payee are disambiguated but never rolled up.
    """

    if needs_rollup(record.memo, record.payment_type):
        return True
    return is_loan_repayment(record.payment_type) and not record.payee


def import_id(record: RawRecord) -> str:
    payload = "".join(f"{getattr(record, name)}|" for name in _ID_FIELDS)
    digest = hashlib.md5(payload.encode("utf-8"), usedforsecurity=False).hexdigest()
    if needs_disambiguation(record):
        return f"{digest}:{record.payment_type}"
    return digest


def parse_amount(raw: str, entry_type: EntryType | None) -> int:
    """Parse a comma-decimal amount into signed YNAB milliunits.

    ``"12,34"`` debit → ``-12340``. Unparseable input, or more than three
    significant fractional digits, yields ``0``.
    """

    s = raw.replace(" ", "").replace("\u00a0", "")
    if "," in s:
        # Comma is the decimal separator; dots can only be grouping.
        s = s.replace(".", "").replace(",", ".")
    try:
        value = Decimal(s)
    except InvalidOperation:
        logger.warning("Unparseable amount %r, using 0", raw)
        return 0
    if not value.is_finite():
        logger.warning("Unparseable amount %r, using 0", raw)
        return 0

    scaled = value * 1000
    if scaled != scaled.to_integral_value():
        logger.warning("Amount %r is finer than a milliunit, using 0", raw)
        return 0
    milli = int(scaled)
    if entry_type is EntryType.DEBIT:
        return -abs(milli)
    if entry_type is EntryType.CREDIT:
        return abs(milli)
    return milli


def to_iso_date(raw: str | None) -> str | None:
    """``DD.MM.YYYY`` → ``YYYY-MM-DD``; ``None`` when not a valid date."""

    if not raw:
        return None
    try:
        return datetime.strptime(raw.strip(), "%d.%m.%Y").strftime("%Y-%m-%d")
    except ValueError:
        return None


def transaction_date(record: RawRecord, embedded: str | None = None) -> str | None:
    """Prefer the card-purchase date embedded in the memo over the posting date."""

    return to_iso_date(embedded) or to_iso_date(record.date)


def transform_record(
    record: RawRecord, rules: Sequence[VendorRule] = DEFAULT_RULES
) -> NormalizedTransaction | None:
    """Build a transaction from a type ``20`` row, or ``None`` without a valid date."""

    parsed = parse_payee_memo(record.payee, record.memo, rules)
    date = transaction_date(record, parsed.date)
    if date is None:
        logger.warning(
            "Dropping row %s: invalid date %r", record.transaction_id or "?", record.date
        )
        return None

    return NormalizedTransaction(
        import_id=import_id(record),
        date=date,
        payee=parsed.payee,
        memo=parsed.memo,
        amount=parse_amount(record.amount, record.entry_type),
        needs_rollup=needs_rollup(record.memo, record.payment_type),
        transaction_id=record.transaction_id or None,
    )


def transform_records(
    records: Iterable[RawRecord],
    *,
    currency: str | None,
    rules: Sequence[VendorRule] = DEFAULT_RULES,
) -> TransformResult:
    """Classify and transform ``records`` in order.

    ``currency`` filters rows by ISO code (case-insensitive); ``None`` keeps
    every currency.
    """

    target = currency.strip().upper() if currency else None
    result = TransformResult()

    for record in records:
        kind = classify(record)
        if target is not None and record.currency.upper() != target:
            result.skipped += 1
            continue
        if kind is RecordType.END_BALANCE:
            result.closing_balance = parse_amount(record.amount, record.entry_type)
            continue
        if kind is not RecordType.TRANSACTION:
            result.skipped += 1
            continue

        tx = transform_record(record, rules)
        if tx is None:
            result.skipped += 1
            continue
        result.transactions.append(tx)

    logger.info(
        "Transformed %d transactions (%d rows skipped)",
        len(result.transactions),
        result.skipped,
    )
    return result


__all__ = [
    "classify",
    "import_id",
    "is_commission",
    "is_loan_repayment",
    "needs_disambiguation",
    "needs_rollup",
    "parse_amount",
    "to_iso_date",
    "transaction_date",
    "transform_record",
    "transform_records",
]
