from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from settleup.core.balances import (
    PaidSettlementRow,
    ReceivedSettlementRow,
    compute_balances,
    get_suggested_settlements,
)
from settleup.core.utils import ZERO, qround, to_decimal

NO_EXPENSES = "No expenses in this group"
NOTHING_BETWEEN_MEMBERS = "Already settled between these members"
ALREADY_SETTLED = "Already settled"


@dataclass
class Ledger:
    """
    Snapshot of one group's ledger, read fresh before every guard check.

    settlements rows expose payer_member_id, receiver_member_id and amount.
    """

    paid_rows: List = field(default_factory=list)
    owed_rows: List = field(default_factory=list)
    settlements: List = field(default_factory=list)
    expense_count: int = 0

    def balances(self):
        paid_settlements = [
            PaidSettlementRow(s.payer_member_id, s.amount) for s in self.settlements
        ]
        received_settlements = [
            ReceivedSettlementRow(s.receiver_member_id, s.amount)
            for s in self.settlements
        ]
        return compute_balances(
            self.paid_rows, self.owed_rows, paid_settlements, received_settlements
        )

    def suggestions(self):
        return get_suggested_settlements(self.balances())


@dataclass(frozen=True)
class MaxSettlement:
    max_amount: Decimal
    allowed: bool
    reason: Optional[str] = None


def max_settlement_allowed(
    ledger: Ledger, payer_member_id: str, receiver_member_id: str
) -> MaxSettlement:
    """
    Largest amount payer may still record towards receiver.

    Caps against the current suggestion for the exact (payer, receiver) pair
    minus what that payer has already recorded to that receiver, so a repeated
    "mark paid" cannot record a second settlement.
    """
    if ledger.expense_count == 0:
        return MaxSettlement(max_amount=ZERO, allowed=False, reason=NO_EXPENSES)

    suggestion = next(
        (
            s
            for s in ledger.suggestions()
            if s.from_member_id == payer_member_id
            and s.to_member_id == receiver_member_id
        ),
        None,
    )

    if suggestion is None or suggestion.amount <= 0:
        return MaxSettlement(
            max_amount=ZERO, allowed=False, reason=NOTHING_BETWEEN_MEMBERS
        )

    already_recorded = sum(
        (
            to_decimal(s.amount)
            for s in ledger.settlements
            if s.payer_member_id == payer_member_id
            and s.receiver_member_id == receiver_member_id
        ),
        ZERO,
    )

    remaining = qround(suggestion.amount - already_recorded)
    if remaining <= 0:
        return MaxSettlement(max_amount=ZERO, allowed=False, reason=ALREADY_SETTLED)

    return MaxSettlement(max_amount=remaining, allowed=True)


def clamp_settlement_amount(requested, guard: MaxSettlement) -> Decimal:
    if not guard.allowed:
        return ZERO
    return min(qround(requested), guard.max_amount)
