"""
Group balance aggregation and settlement suggestions.

Both functions are pure: they read their arguments and return new objects,
so they can be called from any request without coordination.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, NamedTuple

from settleup.core.utils import ZERO, qround, to_decimal


class PaidRow(NamedTuple):
    member_id: str
    amount: Decimal


class OwedRow(NamedTuple):
    member_id: str
    amount: Decimal


class PaidSettlementRow(NamedTuple):
    payer_member_id: str
    amount: Decimal


class ReceivedSettlementRow(NamedTuple):
    receiver_member_id: str
    amount: Decimal


@dataclass
class MemberBalance:
    member_id: str
    paid: Decimal = ZERO
    owed: Decimal = ZERO
    total: Decimal = ZERO


@dataclass(frozen=True)
class SettlementSuggestion:
    from_member_id: str
    to_member_id: str
    amount: Decimal


def compute_balances(
    paid_rows: Iterable,
    owed_rows: Iterable,
    paid_settlements: Iterable,
    received_settlements: Iterable,
) -> Dict[str, MemberBalance]:
    """
    Returns:
        {
            member_id: MemberBalance
        }

    total = (paid - owed)
            + settlements paid by the member
            - settlements received by the member

    Members that appear in no row are absent; callers treat that as zero.
    Settlement rows are not deduplicated here.
    """
    balances: Dict[str, MemberBalance] = {}

    def ensure(member_id) -> MemberBalance:
        if member_id not in balances:
            balances[member_id] = MemberBalance(member_id=member_id)
        return balances[member_id]

    for row in paid_rows:
        m = ensure(row.member_id)
        m.paid += to_decimal(row.amount)

    for row in owed_rows:
        m = ensure(row.member_id)
        m.owed += to_decimal(row.amount)

    # paying a settlement lowers what the payer still owes
    for row in paid_settlements:
        m = ensure(row.payer_member_id)
        m.total += to_decimal(row.amount)

    # receiving one lowers what the receiver is still owed
    for row in received_settlements:
        m = ensure(row.receiver_member_id)
        m.total -= to_decimal(row.amount)

    for m in balances.values():
        m.total += m.paid - m.owed
        m.paid = qround(m.paid)
        m.owed = qround(m.owed)
        m.total = qround(m.total)

    return balances


def _settlement_sort_key(entry: List):
    member_id, total = entry
    # creditors first, debtors last, member id within the same sign
    return (0 if total > 0 else 1, member_id)


def get_suggested_settlements(
    balances: Dict[str, MemberBalance],
) -> List[SettlementSuggestion]:
    """
    Greedy debt simplification over a stably sorted sequence.

    The front of the sequence holds creditors and the back holds debtors.
    Each step settles the back debtor against the front creditor and drops
    whichever side is fully paid off (the debtor on a tie). Sorting by member id inside each sign
    keeps the remaining suggestions unchanged after one of them is paid.
    """
    working = [
        [b.member_id, b.total]
        for b in balances.values()
        if qround(b.total) != ZERO
    ]
    working.sort(key=_settlement_sort_key)

    suggestions: List[SettlementSuggestion] = []

    while len(working) >= 2:
        first = working[0]
        last = working[-1]

        if first[1] <= 0 or last[1] >= 0:
            break

        amount = first[1] + last[1]

        if first[1] >= -last[1]:
            suggestions.append(
                SettlementSuggestion(
                    from_member_id=last[0],
                    to_member_id=first[0],
                    amount=qround(-last[1]),
                )
            )
            first[1] = amount
            working.pop()
            # exact match: the creditor is settled too
            if amount == 0:
                working.pop(0)
        else:
            suggestions.append(
                SettlementSuggestion(
                    from_member_id=last[0],
                    to_member_id=first[0],
                    amount=qround(first[1]),
                )
            )
            last[1] = amount
            working.pop(0)

    return [s for s in suggestions if s.amount > 0]
