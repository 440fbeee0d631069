"""
Split parser — turns mention tokens into per-user amounts.

Supported tokens:
    @john          equal share of whatever is left at the end
    @john=50       fixed amount, or a share (see below)
    @john=50%      percentage of the original total
    paid:@john     john paid instead of the sender

A bare number is ambiguous. If every bare number is an integer
and together they stay below the total, they are shares
(@a=2 @b=1 splits the remainder 2:1). Otherwise each is a
fixed amount. ParsedSplits.kinds reports which reading was
used so the caller can show it back to the user.

Allocation always runs in the same order, whatever the token
order: fixed amounts, then percentages, then shares, then the
equal split. The returned amounts add up to the total exactly.
"""

import enum
import math
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from fractions import Fraction
from typing import Iterable, Sequence

from group_ledger.engine.errors import (
    FixedAmountOverflow,
    InvalidMagnitude,
    InvalidToken,
    NoParticipants,
    PercentageOverflow,
    UnallocatedRemainder,
)
from group_ledger.engine.money import Money, sum_money
from group_ledger.engine.types import UserId


PAYER_PREFIX = "paid:"

_MENTION = re.compile(r"^@(?P<user>[\w.]+)(?:=(?P<value>.*))?$")

# Integer digits allowed in a token value
MAX_VALUE_DIGITS = 15


class SplitKind(str, enum.Enum):
    """How a participant's amount was derived."""
    EQUAL = "EQUAL"
    FIXED = "FIXED"
    PERCENTAGE = "PERCENTAGE"
    SHARE = "SHARE"


@dataclass(frozen=True)
class ParsedSplits:
    per_user: dict[UserId, Money]
    payer_override: UserId | None = None
    kinds: dict[UserId, SplitKind] = field(default_factory=dict)

    @property
    def has_custom_splits(self) -> bool:
        return any(kind != SplitKind.EQUAL for kind in self.kinds.values())

    @property
    def participants(self) -> list[UserId]:
        return list(self.per_user)


@dataclass
class _Entry:
    user: UserId
    kind: SplitKind | None
    value: Decimal | None = None


def _parse_number(token: str, raw: str) -> Decimal:
    try:
        value = Decimal(raw)
    except InvalidOperation:
        raise InvalidToken(token, f"'{raw}' is not a number") from None
    if not value.is_finite():
        raise InvalidToken(token, f"'{raw}' is not a number")
    if value <= 0:
        raise InvalidToken(token, "value must be positive")
    if value.adjusted() >= MAX_VALUE_DIGITS:
        raise InvalidToken(token, "value is too large")
    return value


def _parse_payer(token: str) -> UserId:
    match = _MENTION.match(token[len(PAYER_PREFIX):])
    if not match or match.group("value") is not None:
        raise InvalidToken(token, "expected paid:@username")
    return match.group("user")


def _parse_mention(token: str) -> _Entry:
    match = _MENTION.match(token)
    if not match:
        raise InvalidToken(token, "expected @username, @username=N or @username=N%")

    user, raw = match.group("user"), match.group("value")
    if raw is None:
        return _Entry(user=user, kind=SplitKind.EQUAL)

    raw = raw.strip()
    if raw.endswith("%"):
        percentage = _parse_number(token, raw[:-1])
        if percentage > 100:
            raise InvalidToken(token, "percentage must be at most 100")
        return _Entry(user=user, kind=SplitKind.PERCENTAGE, value=percentage)

    # Shares or fixed amount, decided once all tokens are seen
    return _Entry(user=user, kind=None, value=_parse_number(token, raw))


def _tokenize(tokens: Iterable[str]) -> tuple[list[_Entry], UserId | None]:
    entries: list[_Entry] = []
    seen: set[UserId] = set()
    payer: UserId | None = None

    for token in tokens:
        token = token.strip()
        if not token:
            continue

        if token.startswith(PAYER_PREFIX):
            if payer is not None:
                raise InvalidToken(token, "payer given more than once")
            payer = _parse_payer(token)
            continue

        entry = _parse_mention(token)
        if entry.user in seen:
            raise InvalidToken(token, f"@{entry.user} is mentioned twice")
        seen.add(entry.user)
        entries.append(entry)

    return entries, payer


def _resolve_bare_numbers(entries: list[_Entry], total: Money) -> None:
    """Decide whether bare numbers are shares or fixed amounts."""
    bare = [e for e in entries if e.kind is None]
    if not bare:
        return

    all_integers = all(e.value == e.value.to_integral_value() for e in bare)
    as_shares = all_integers and sum(e.value for e in bare) < total.to_decimal()

    for entry in bare:
        entry.kind = SplitKind.SHARE if as_shares else SplitKind.FIXED


def _fixed_amount(entry: _Entry, currency: str) -> Money:
    try:
        return Money.from_decimal(entry.value, currency)
    except InvalidMagnitude as e:
        raise InvalidToken(f"@{entry.user}={entry.value}", str(e)) from None


def _percentage_pool(total: Money, percentages: Sequence[Decimal]) -> Money:
    """Total claimed by percentages, floored to a whole minor unit."""
    claimed = Fraction(total.minor) * Fraction(sum(percentages)) / 100
    return Money(math.floor(claimed), total.currency)


def parse_splits(
    tokens: Iterable[str],
    total: Money,
    fallback: Sequence[UserId] | None = None,
) -> ParsedSplits:
    """
    Turn split tokens into an exact per-user breakdown of `total`.

    `fallback` is the population to split evenly when no one is
    mentioned (typically all active group members). Without it
    an empty mention list raises NoParticipants.

    Raises a SplitError subclass on invalid input.
    """
    if not total.is_positive():
        raise InvalidMagnitude(f"total must be positive, got {total.format_plain()}")

    entries, payer = _tokenize(tokens)

    if not entries:
        population = list(dict.fromkeys(fallback or ()))
        if not population:
            raise NoParticipants("No participants mentioned and no fallback given")
        amounts = total.split_evenly(len(population))
        return ParsedSplits(
            per_user=dict(zip(population, amounts)),
            payer_override=payer,
            kinds={user: SplitKind.EQUAL for user in population},
        )

    _resolve_bare_numbers(entries, total)
    currency = total.currency
    amounts: dict[UserId, Money] = {}

    def of_kind(kind: SplitKind) -> list[_Entry]:
        return [e for e in entries if e.kind == kind]

    # 1. Fixed amounts
    fixed = of_kind(SplitKind.FIXED)
    for entry in fixed:
        amounts[entry.user] = _fixed_amount(entry, currency)
    fixed_total = sum_money((amounts[e.user] for e in fixed), currency)
    if fixed_total > total:
        raise FixedAmountOverflow(
            f"Fixed amounts ({fixed_total.format_plain()}) exceed "
            f"the expense total ({total.format_plain()})"
        )
    remaining = total - fixed_total

    # 2. Percentages of the original total
    percent = of_kind(SplitKind.PERCENTAGE)
    if percent:
        rates = [e.value for e in percent]
        if sum(rates) > 100:
            raise PercentageOverflow(
                f"Percentages add up to {sum(rates)}%, more than 100%"
            )
        pool = _percentage_pool(total, rates)
        if pool > remaining:
            raise PercentageOverflow(
                f"Percentages claim {pool.format_plain()} but only "
                f"{remaining.format_plain()} is left after fixed amounts"
            )
        for entry, amount in zip(percent, pool.allocate(rates)):
            amounts[entry.user] = amount
        remaining = remaining - pool

    # 3. Shares of what is left
    shares = of_kind(SplitKind.SHARE)
    if shares:
        for entry, amount in zip(shares, remaining.allocate([e.value for e in shares])):
            amounts[entry.user] = amount
        remaining = Money.zero(currency)

    # 4. Equal split of whatever remains after that
    equal = of_kind(SplitKind.EQUAL)
    if equal:
        for entry, amount in zip(equal, remaining.split_evenly(len(equal))):
            amounts[entry.user] = amount
        remaining = Money.zero(currency)

    if not remaining.is_zero():
        raise UnallocatedRemainder(
            f"{remaining.format_plain()} of {total.format_plain()} is not "
            f"assigned to anyone; mention someone to split it with"
        )

    return ParsedSplits(
        per_user={e.user: amounts[e.user] for e in entries},
        payer_override=payer,
        kinds={e.user: e.kind for e in entries},
    )
