from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP
import hashlib

CENT = Decimal("0.01")


def to_cents(amount: Decimal) -> Decimal:
    """Round an exact amount to two places for display."""
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def round_shares(exact_shares: dict, seed: str | None = None, total: Decimal | None = None) -> dict:
    """
    Round exact (unrounded) shares to cents so they add up EXACTLY to the
    rounded total of the shares.

    Everyone first gets their share rounded down. The cents still missing
    from the total go to the shares that lost the most in rounding down.
    Ties are ordered by a hash of seed + id when a seed is given, so the
    spare penny does not always land on the same person, and by id otherwise.

    Args:
        exact_shares: Mapping of participant id to exact share (Decimal).
        seed: Optional string seed (e.g. session id) for tie-breaking.
        total: Optional cent amount the result must add up to, e.g. an already
            rounded figure the shares break down. Must lie between the sum of
            the shares rounded down and the sum rounded up.

    Returns:
        Dictionary mapping the same ids, in the same order, to cent amounts.
    """
    if not exact_shares:
        return {}

    if total is None:
        total = sum(exact_shares.values(), Decimal("0"))
    total_cents = int((total * 100).to_integral_value(rounding=ROUND_HALF_UP))

    base_cents = {}
    lost = {}
    for uid, amount in exact_shares.items():
        cents_exact = amount * 100
        cents = int(cents_exact.to_integral_value(rounding=ROUND_DOWN))
        base_cents[uid] = cents
        lost[uid] = cents_exact - cents

    extra_count = total_cents - sum(base_cents.values())

    if seed:
        def tie_key(uid):
            return hashlib.md5(f"{seed}:{uid}".encode()).hexdigest()
    else:
        tie_key = str

    ordered = sorted(exact_shares, key=lambda uid: (-lost[uid], tie_key(uid)))
    bumped = set(ordered[:extra_count])

    return {
        uid: (Decimal(base_cents[uid] + (1 if uid in bumped else 0)) / 100).quantize(CENT)
        for uid in exact_shares
    }
