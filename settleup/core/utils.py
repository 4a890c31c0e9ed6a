from decimal import Decimal, ROUND_HALF_UP, getcontext

getcontext().prec = 28
CENTS = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def qround(d) -> Decimal:
    # + ZERO folds -0.00 into 0.00
    return to_decimal(d).quantize(CENTS, rounding=ROUND_HALF_UP) + ZERO
