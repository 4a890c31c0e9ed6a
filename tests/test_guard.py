from collections import namedtuple
from decimal import Decimal

from settleup.core.balances import OwedRow, PaidRow
from settleup.core.guard import (
    ALREADY_SETTLED,
    NO_EXPENSES,
    NOTHING_BETWEEN_MEMBERS,
    Ledger,
    MaxSettlement,
    clamp_settlement_amount,
    max_settlement_allowed,
)

SettlementRow = namedtuple("SettlementRow", "payer_member_id receiver_member_id amount")


def ledger(paid, owed, settlements=()):
    return Ledger(
        paid_rows=list(paid),
        owed_rows=list(owed),
        settlements=list(settlements),
        expense_count=len(paid),
    )


def test_open_imbalance_is_allowed_up_to_suggestion():
    snapshot = ledger([PaidRow("A", 100)], [OwedRow("A", 50), OwedRow("B", 50)])

    result = max_settlement_allowed(snapshot, "B", "A")

    assert result == MaxSettlement(max_amount=Decimal("50.00"), allowed=True)


def test_prior_settlement_for_the_same_pair_blocks_repeat():
    # B owed 100, already recorded 50: suggestion is 50, minus the 50 on record
    snapshot = ledger(
        [PaidRow("A", 200)],
        [OwedRow("A", 100), OwedRow("B", 100)],
        [SettlementRow("B", "A", Decimal("50.00"))],
    )

    result = max_settlement_allowed(snapshot, "B", "A")

    assert result.allowed is False
    assert result.max_amount == 0
    assert result.reason == ALREADY_SETTLED


def test_fully_settled_pair_has_nothing_to_settle():
    snapshot = ledger(
        [PaidRow("A", 100)],
        [OwedRow("A", 50), OwedRow("B", 50)],
        [SettlementRow("B", "A", 50)],
    )

    result = max_settlement_allowed(snapshot, "B", "A")

    assert result.allowed is False
    assert result.reason == NOTHING_BETWEEN_MEMBERS


def test_reverse_direction_is_rejected():
    snapshot = ledger([PaidRow("A", 100)], [OwedRow("A", 50), OwedRow("B", 50)])

    result = max_settlement_allowed(snapshot, "A", "B")

    assert result.allowed is False
    assert result.reason == NOTHING_BETWEEN_MEMBERS


def test_group_without_expenses():
    result = max_settlement_allowed(ledger([], [], [SettlementRow("B", "A", 10)]), "B", "A")

    assert result == MaxSettlement(max_amount=Decimal("0"), allowed=False, reason=NO_EXPENSES)


def test_prior_settlements_to_other_members_do_not_count():
    snapshot = ledger(
        [PaidRow("A", 90), PaidRow("C", 90)],
        [OwedRow("A", 30), OwedRow("B", 30), OwedRow("C", 30),
         OwedRow("A", 30), OwedRow("B", 30), OwedRow("C", 30)],
        [SettlementRow("B", "C", 10)],
    )

    # A +30, C +20, B -50 after B's 10 to C: B pays A 30, then C 20
    result = max_settlement_allowed(snapshot, "B", "A")

    assert result.allowed is True
    assert result.max_amount == Decimal("30.00")


def test_clamp_caps_requested_amount():
    guard = MaxSettlement(max_amount=Decimal("50.00"), allowed=True)

    assert clamp_settlement_amount(Decimal("80"), guard) == Decimal("50.00")
    assert clamp_settlement_amount("20.004", guard) == Decimal("20.00")


def test_clamp_rejected_guard_is_zero():
    guard = MaxSettlement(max_amount=Decimal("0"), allowed=False, reason=ALREADY_SETTLED)

    assert clamp_settlement_amount(Decimal("10"), guard) == 0
