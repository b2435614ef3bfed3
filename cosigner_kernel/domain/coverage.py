"""Coverage arithmetic: default threshold and claim payout."""

# Coverage is expressed in basis points of the closing obligation
BASIS_POINTS = 10_000


def is_past_arrears(now: int, due_time: int, required_arrears: int, is_paid: bool) -> bool:
    """
    True iff the loan is unpaid and ``now`` is strictly after
    ``due_time + required_arrears``.

    A paid loan never defaults, however late the payment arrived.
    """
    if is_paid:
        return False
    return now > due_time + required_arrears


def claim_amount(coverage: int, closing_obligation: int) -> int:
    """Payout owed on a claim, truncated toward zero."""
    return coverage * closing_obligation // BASIS_POINTS
