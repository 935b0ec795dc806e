"""Low-level string helpers shared by the payee/memo parsers.

Card purchases carry a positional descriptor in the memo, e.g.::

    PIRKUMS 424242******4242 07.07.2019 1.00 EUR (975255) RIMI

The number of descriptor words before the merchant name depends on the
purchase currency:

- domestic: 6 words (marker, card, date, amount, currency, reference)
- foreign currency: 13 words (adds ``VALŪTAS KURSS <rate>,``
  ``KONVERTĀCIJAS KOMISIJA <fee> <currency>``)
- ECB rate format: 11 words (adds ``ECB KURSS <rate> UZCENOJUMS <pct>``)
"""

from __future__ import annotations

CARD_PURCHASE_MARKER = "PIRKUMS "
RATE_MARKER = "VALŪTAS KURSS"
CONVERSION_FEE_MARKER = "KONVERTĀCIJAS KOMISIJA"
ECB_RATE_MARKER = "ECB KURSS"

DOMESTIC_PREFIX_WORDS = 6
FOREIGN_PREFIX_WORDS = 13
ECB_PREFIX_WORDS = 11


def drop_words(text: str, splitter: str, n: int) -> str:
    """Drop the first ``n`` non-empty tokens of ``text`` split on ``splitter``.

    Empty tokens are discarded everywhere, so the result never starts, ends,
    or contains a doubled ``splitter``.
    """

    tokens = [t for t in text.split(splitter) if t]
    return splitter.join(tokens[n:])


def is_card_purchase_memo(memo: str) -> bool:
    return memo.startswith(CARD_PURCHASE_MARKER)


def is_foreign_currency_tx(memo: str) -> bool:
    return (RATE_MARKER in memo and CONVERSION_FEE_MARKER in memo) or ECB_RATE_MARKER in memo


def card_prefix_words(memo: str) -> int:
    """Number of descriptor words preceding the merchant name."""

    if ECB_RATE_MARKER in memo:
        return ECB_PREFIX_WORDS
    if is_foreign_currency_tx(memo):
        return FOREIGN_PREFIX_WORDS
    return DOMESTIC_PREFIX_WORDS


def strip_card_prefix(memo: str) -> str:
    if not is_card_purchase_memo(memo):
        return memo
    return drop_words(memo, " ", card_prefix_words(memo))


def card_purchase_date(memo: str) -> str | None:
    """Return the embedded ``DD.MM.YYYY`` date of a card descriptor, if any."""

    if not is_card_purchase_memo(memo):
        return None
    tokens = [t for t in memo.split(" ") if t]
    return tokens[2] if len(tokens) > 2 else None


def sanitize(text: str) -> str:
    """Remove single quotes and collapse runs of spaces."""

    s = text.replace("'", "")
    while "  " in s:
        s = s.replace("  ", " ")
    return s.strip()


def strip_quotes(text: str) -> str:
    return text.strip().strip("\"'").strip()


__all__ = [
    "card_prefix_words",
    "card_purchase_date",
    "drop_words",
    "is_card_purchase_memo",
    "is_foreign_currency_tx",
    "sanitize",
    "strip_card_prefix",
    "strip_quotes",
]
