"""Vendor-specific payee/memo parsing.

Payment processors and card aggregators hide the real counterparty inside the
payee or memo text. Each :class:`VendorRule` pairs a predicate with a parse
function mapping ``(payee, memo)`` to ``(payee, memo | None)``. Rules are
evaluated in order and the first match wins, so the allow-list and the
processor rules take precedence over the generic ``vendor*detail`` split.

Rule order
----------
1. empty payee → bank sentinel
2. MakeCommerce/Maksekeskus: ``"<gw>, <store>, <payee>, <memo>, (<ref>)"``
3. PayPal: ``"<ref> <payee>"`` (refund memo passes through)
4. Montonio: ``"<memo> müüja: <payee>"``
5. SumUp: text after the last ``*``
6. known vendor allow-list
7. marketplace codes → display name
8. card aggregators (``SQ *``, ``IZ *``, ...)
9. generic ``vendor*detail``
10. default (payee unchanged)

The vendor tables live in an immutable :class:`VendorConfig`; callers build a
rule table once with :func:`build_rules` and pass it down.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, replace
from typing import TypeAlias

from .models import ParsedPayeeMemo
from .text import card_purchase_date, sanitize, strip_card_prefix, strip_quotes

MatchFn: TypeAlias = Callable[[str, str], bool]
ParseFn: TypeAlias = Callable[[str, str], tuple[str, str | None]]

EXTRA_VENDORS_ENV = "SWEDBANK_YNAB_EXTRA_VENDORS"

BANK_PAYEE = "Swedbank"

MAKECOMMERCE = "MakeCommerce"
MAKECOMMERCE_PREFIXES: tuple[str, ...] = ("MakeCommerce", "Maksekeskus")
PAYPAL = "PayPal"
PAYPAL_REFUND_MEMO = "Refund"
MONTONIO = "Montonio"
MONTONIO_SELLER_PHRASE = "müüja: "
SUMUP = "SumUp"

DEFAULT_KNOWN_VENDORS: tuple[str, ...] = (
    "Airbnb",
    "Bolt",
    "Circle K",
    "Google",
    "Lidl",
    "Maxima",
    "Neste",
    "Netflix",
    "Rimi",
    "Spotify",
    "Uber",
    "Wolt",
)

DEFAULT_MARKETPLACES: tuple[tuple[str, str], ...] = (
    ("STEAMGAMES.COM", "Steam"),
    ("AMZN MKTP", "Amazon Marketplace"),
    ("APPLE.COM/BILL", "Apple"),
)

DEFAULT_CARD_AGGREGATORS: tuple[str, ...] = ("SQ", "SP", "IZ", "ZTL")


@dataclass(frozen=True, slots=True)
class VendorConfig:
    """Static vendor tables used to build the rule set."""

    known_vendors: tuple[str, ...] = DEFAULT_KNOWN_VENDORS
    marketplaces: tuple[tuple[str, str], ...] = DEFAULT_MARKETPLACES
    card_aggregators: tuple[str, ...] = DEFAULT_CARD_AGGREGATORS
    bank_payee: str = BANK_PAYEE


@dataclass(frozen=True, slots=True)
class VendorRule:
    """One dispatch strategy.

    ``derives_memo`` marks rules whose memo is carved out of the raw memo;
    the payee-duplicate check is skipped for them.
    """

    name: str
    matches: MatchFn
    parse: ParseFn
    derives_memo: bool = False


def load_vendor_config(extra_vendors: Iterable[str] | None = None) -> VendorConfig:
    """Default config plus vendors from ``extra_vendors`` or the environment.

    ``SWEDBANK_YNAB_EXTRA_VENDORS`` is a comma-separated list of payee
    prefixes appended to the allow-list.
    """

    if extra_vendors is None:
        raw = os.getenv(EXTRA_VENDORS_ENV, "")
        extra_vendors = raw.split(",")
    extra = tuple(v.strip() for v in extra_vendors if v and v.strip())
    base = VendorConfig()
    if not extra:
        return base
    known = base.known_vendors + tuple(v for v in extra if v not in base.known_vendors)
    return replace(base, known_vendors=known)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _starts_with_word(text: str, prefix: str) -> bool:
    """Case-insensitive prefix match ending on a word boundary."""

    t = text.casefold()
    p = prefix.casefold()
    if not t.startswith(p):
        return False
    return len(t) == len(p) or not t[len(p)].isalnum()


def _starts_with_any(prefixes: Sequence[str]) -> MatchFn:
    def matches(payee: str, memo: str) -> bool:
        return any(payee.startswith(p) for p in prefixes)

    return matches


def _none_if_empty(text: str | None) -> str | None:
    if text is None:
        return None
    s = text.strip()
    return s or None


def _drop_duplicate(memo: str | None, *payees: str) -> str | None:
    if memo is None:
        return None
    for p in payees:
        if p and memo.startswith(p):
            return None
    return memo


# ---------------------------------------------------------------------------
# Parse functions
# ---------------------------------------------------------------------------


def _parse_makecommerce(payee: str, memo: str) -> tuple[str, str | None]:
    fields = [f.strip() for f in memo.split(",")]
    if len(fields) < 3 or not fields[2]:
        return MAKECOMMERCE, _none_if_empty(memo)
    tx_memo = fields[3] if len(fields) > 3 else None
    return fields[2], _none_if_empty(tx_memo)


def _parse_paypal(payee: str, memo: str) -> tuple[str, str | None]:
    if memo == PAYPAL_REFUND_MEMO:
        return PAYPAL, memo
    ref, sep, rest = memo.partition(" ")
    if not sep or not rest.strip():
        return PAYPAL, _none_if_empty(memo)
    return rest.strip(), _none_if_empty(ref)


def _parse_montonio(payee: str, memo: str) -> tuple[str, str | None]:
    before, sep, after = memo.partition(MONTONIO_SELLER_PHRASE)
    if not sep or not after.strip():
        return MONTONIO, _none_if_empty(memo)
    return after.strip(), _none_if_empty(before)


def _parse_sumup(payee: str, memo: str) -> tuple[str, str | None]:
    source = payee if "*" in payee else memo
    if "*" not in source:
        return payee, memo
    detail = strip_quotes(source.rsplit("*", 1)[1])
    return detail or SUMUP, memo


def _card_aggregator_detail(payee: str, markers: Sequence[str]) -> str | None:
    head, sep, tail = payee.partition("*")
    if not sep or head.strip().upper() not in markers:
        return None
    return strip_quotes(tail)


def _parse_generic_star(payee: str, memo: str) -> tuple[str, str | None]:
    head, _, tail = payee.partition("*")
    detail = strip_quotes(tail)
    return detail or head.strip(), memo


def _parse_default(payee: str, memo: str) -> tuple[str, str | None]:
    return payee, memo


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------


def build_rules(config: VendorConfig | None = None) -> tuple[VendorRule, ...]:
    """Build the ordered rule table for ``config``."""

    cfg = config or VendorConfig()

    def parse_empty(payee: str, memo: str) -> tuple[str, str | None]:
        return cfg.bank_payee, memo

    def match_known(payee: str, memo: str) -> bool:
        return any(_starts_with_word(payee, v) for v in cfg.known_vendors)

    def parse_known(payee: str, memo: str) -> tuple[str, str | None]:
        vendor = next(v for v in cfg.known_vendors if _starts_with_word(payee, v))
        return vendor, memo

    def match_marketplace(payee: str, memo: str) -> bool:
        return any(payee.casefold().startswith(code.casefold()) for code, _ in cfg.marketplaces)

    def parse_marketplace(payee: str, memo: str) -> tuple[str, str | None]:
        name = next(
            n for code, n in cfg.marketplaces if payee.casefold().startswith(code.casefold())
        )
        return name, memo

    def match_card_aggregator(payee: str, memo: str) -> bool:
        return _card_aggregator_detail(payee, cfg.card_aggregators) is not None

    def parse_card_aggregator(payee: str, memo: str) -> tuple[str, str | None]:
        detail = _card_aggregator_detail(payee, cfg.card_aggregators)
        return detail or payee, memo

    return (
        VendorRule("empty-payee", lambda p, m: not p, parse_empty),
        VendorRule(
            "makecommerce",
            _starts_with_any(MAKECOMMERCE_PREFIXES),
            _parse_makecommerce,
            derives_memo=True,
        ),
        VendorRule("paypal", _starts_with_any((PAYPAL,)), _parse_paypal, derives_memo=True),
        VendorRule("montonio", _starts_with_any((MONTONIO,)), _parse_montonio, derives_memo=True),
        VendorRule("sumup", _starts_with_any((SUMUP,)), _parse_sumup),
        VendorRule("known-vendor", match_known, parse_known),
        VendorRule("marketplace", match_marketplace, parse_marketplace),
        VendorRule("card-aggregator", match_card_aggregator, parse_card_aggregator),
        VendorRule("generic-star", lambda p, m: "*" in p, _parse_generic_star),
        VendorRule("default", lambda p, m: True, _parse_default),
    )


DEFAULT_RULES: tuple[VendorRule, ...] = build_rules()


def parse_vendor(
    payee: str, memo: str, rules: Sequence[VendorRule] = DEFAULT_RULES
) -> tuple[str, str | None]:
    """Apply the first matching rule and drop a memo that repeats the payee."""

    for rule in rules:
        if not rule.matches(payee, memo):
            continue
        new_payee, new_memo = rule.parse(payee, memo)
        if not rule.derives_memo:
            new_memo = _drop_duplicate(new_memo, payee, new_payee)
        return new_payee, _none_if_empty(new_memo)
    return payee, _none_if_empty(_drop_duplicate(memo, payee))


def parse_payee_memo(
    payee: str, memo: str, rules: Sequence[VendorRule] = DEFAULT_RULES
) -> ParsedPayeeMemo:
    """Normalize a raw ``(payee, memo)`` pair.

    Card-purchase descriptors give up their embedded date and lose the
    positional prefix before vendor dispatch.
    """

    embedded_date = card_purchase_date(memo)
    clean_memo = sanitize(strip_card_prefix(memo))
    new_payee, new_memo = parse_vendor(sanitize(payee), clean_memo, rules)
    return ParsedPayeeMemo(date=embedded_date, payee=new_payee, memo=new_memo)


def fmt_payee(payee: str, memo: str, rules: Sequence[VendorRule] = DEFAULT_RULES) -> str:
    return parse_payee_memo(payee, memo, rules).payee


def fmt_memo(payee: str, memo: str, rules: Sequence[VendorRule] = DEFAULT_RULES) -> str | None:
    return parse_payee_memo(payee, memo, rules).memo


__all__ = [
    "DEFAULT_RULES",
    "VendorConfig",
    "VendorRule",
    "build_rules",
    "fmt_memo",
    "fmt_payee",
    "load_vendor_config",
    "parse_payee_memo",
    "parse_vendor",
]
