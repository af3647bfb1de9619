"""Reduce member balances to a short list of payments."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from decimal import ROUND_HALF_UP, Decimal

from tripline.domain.constants import CURRENCY_QUANTUM, SETTLEMENT_EPSILON
from tripline.domain.models import MemberBalance, Transfer

_QUANTUM = Decimal(CURRENCY_QUANTUM)
_EPSILON = Decimal(SETTLEMENT_EPSILON)


@dataclass(frozen=True)
class _Position:
    member_id: str
    remaining: Decimal


def to_cents(value: float | Decimal) -> Decimal:
    """Round to 2 decimal places, halves away from zero."""
    return Decimal(str(value)).quantize(_QUANTUM, rounding=ROUND_HALF_UP)


def settle(balances: Iterable[MemberBalance]) -> list[Transfer]:
    """Greedy settlement: largest debtor pays largest creditor until one side runs out.

    Positive balances are owed money, negative balances owe money. The
    inputs are not modified. The sum of balances is assumed, not checked,
    to be about zero.
    """
    positions = [_Position(item.id, to_cents(item.balance)) for item in balances]
    creditors = sorted(
        (p for p in positions if p.remaining > _EPSILON),
        key=lambda p: p.remaining,
        reverse=True,
    )
    debtors = sorted((p for p in positions if p.remaining < -_EPSILON), key=lambda p: p.remaining)

    transfers: list[Transfer] = []
    c_idx = d_idx = 0
    while c_idx < len(creditors) and d_idx < len(debtors):
        creditor, debtor = creditors[c_idx], debtors[d_idx]
        amount = to_cents(min(creditor.remaining, -debtor.remaining))
        if amount > _EPSILON:
            transfers.append(Transfer(from_member=debtor.member_id, to_member=creditor.member_id, amount=float(amount)))
        creditor = creditors[c_idx] = replace(creditor, remaining=creditor.remaining - amount)
        debtor = debtors[d_idx] = replace(debtor, remaining=debtor.remaining + amount)

        if creditor.remaining < _EPSILON:
            c_idx += 1
        if abs(debtor.remaining) < _EPSILON:
            d_idx += 1
    return transfers


__all__ = ["settle", "to_cents"]
