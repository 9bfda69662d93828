"""
Ordinal lattices backing every clamp in the gate engine.

Each vocabulary is an ordered tuple, lowest (least reliance / most favorable
risk) first. Comparison is index lookup only. "unknown" is kept IN the risk
orders, pinned at the least favorable end, so it can never win a clamp.
"""

from typing import Optional, Sequence

RELIANCE_ORDER = ("very_low", "low", "medium", "high")
CAP_ORDER = ("input_only", "supporting", "weight_bearing", "decisive")
TIER_ORDER = ("exploratory", "explanatory", "operational", "high_stakes")

# Risk axes, most favorable first.
STAKES_ORDER = ("low", "medium", "high", "unknown")
REVERSIBILITY_ORDER = ("high", "medium", "low", "unknown")
DETECTABILITY_ORDER = ("easy", "moderate", "hard", "unknown")
TIME_PRESSURE_ORDER = ("low", "medium", "high", "unknown")


def rank(value: Optional[str], order: Sequence[str]) -> Optional[int]:
    """Position of value in order, or None when the value is not in it."""
    try:
        return order.index(value)
    except ValueError:
        return None


def min_by_order(a: Optional[str], b: Optional[str], order: Sequence[str]) -> Optional[str]:
    """
    Return whichever of a, b ranks lower in order.

    An unrecognized value never wins: if only one of the two is in the order,
    the recognized one is returned. If neither is, a is returned unchanged.
    Ties return a.
    """
    ra = rank(a, order)
    rb = rank(b, order)
    if ra is None and rb is None:
        return a
    if ra is None:
        return b
    if rb is None:
        return a
    return a if ra <= rb else b


def exceeds(a: str, b: str, order: Sequence[str]) -> bool:
    """True when a ranks strictly above b. Unrecognized values never exceed."""
    ra = rank(a, order)
    rb = rank(b, order)
    if ra is None or rb is None:
        return False
    return ra > rb


def at_least(value: str, threshold: str, order: Sequence[str]) -> bool:
    """True when value ranks at or above threshold (unrecognized -> False)."""
    rv = rank(value, order)
    rt = rank(threshold, order)
    if rv is None or rt is None:
        return False
    return rv >= rt


def at_most(value: str, threshold: str, order: Sequence[str]) -> bool:
    """True when value ranks at or below threshold (unrecognized -> False)."""
    rv = rank(value, order)
    rt = rank(threshold, order)
    if rv is None or rt is None:
        return False
    return rv <= rt
