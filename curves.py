"""
Stat Scaling Curves

Evaluates CalcCorrectGraph growth curves: 5 breakpoints with a shaping
exponent per segment. The curve output (0-100 scale) divided by 100 is
the stat's "saturation", the share of its scaling potential realised
at a given level.

Evaluations are pure, so results can be memoized by (curve id, level).
The cache is an explicit object handed to the engine; NullCurveCache
disables memoization without changing any result.
"""

from typing import Dict, Iterable, Optional, Tuple

import numpy as np

from models import CurveDefinition


# =============================================================================
# Curve evaluation
# =============================================================================

def _shape(ratio: float, exponent: float) -> float:
    """Shape progress through a segment with the segment's exponent."""
    if exponent > 0:
        return ratio ** exponent
    if exponent < 0:
        return 1 - (1 - ratio) ** abs(exponent)
    return 0.0


def calculate_curve_value(curve: CurveDefinition, stat_level: float) -> float:
    """
    Evaluate a curve at a stat level.

    Levels below the first breakpoint clamp to the first growth value and
    levels above the last breakpoint clamp to the last one.

    Args:
        curve: Curve definition
        stat_level: Attribute level (effective level for two-handed STR)

    Returns:
        Growth value on the curve's 0-100 scale
    """
    points = curve.stage_max_val
    grows = curve.stage_max_grow_val
    exponents = curve.adj_pt_max_grow_val

    if stat_level <= points[0]:
        return grows[0]
    if stat_level >= points[-1]:
        return grows[-1]

    segment = 0
    for i in range(len(points) - 1):
        if stat_level > points[i]:
            segment = i

    lo, hi = points[segment], points[segment + 1]
    grow_lo, grow_hi = grows[segment], grows[segment + 1]
    if hi <= lo:
        return grow_hi

    ratio = (stat_level - lo) / (hi - lo)
    return grow_lo + (grow_hi - grow_lo) * _shape(ratio, exponents[segment])


def evaluate(curve: Optional[CurveDefinition], stat_level: float) -> float:
    """Saturation fraction for a stat level. A missing curve means no scaling."""
    if curve is None:
        return 0.0
    return calculate_curve_value(curve, stat_level) / 100


# =============================================================================
# Memoization
# =============================================================================

class CurveCache:
    """Saturation cache keyed by (curve_id, stat_level)."""

    def __init__(self):
        self._values: Dict[Tuple[int, float], float] = {}

    def get(self, key: Tuple[int, float]) -> Optional[float]:
        return self._values.get(key)

    def set(self, key: Tuple[int, float], value: float) -> None:
        self._values[key] = value

    def clear(self) -> None:
        self._values.clear()

    def __len__(self) -> int:
        return len(self._values)


class NullCurveCache(CurveCache):
    """Cache that never stores anything."""

    def get(self, key: Tuple[int, float]) -> Optional[float]:
        return None

    def set(self, key: Tuple[int, float], value: float) -> None:
        pass


def get_stat_saturation(
    curves: Dict[int, CurveDefinition],
    curve_id: int,
    stat_level: float,
    cache: Optional[CurveCache] = None,
) -> float:
    """
    Look up a curve by id and evaluate it, going through the cache if given.

    Dangling curve ids evaluate to 0 rather than raising.
    """
    key = (curve_id, stat_level)
    if cache is not None:
        cached = cache.get(key)
        if cached is not None:
            return cached

    value = evaluate(curves.get(curve_id), stat_level)

    if cache is not None:
        cache.set(key, value)
    return value


# =============================================================================
# Series (charts)
# =============================================================================

def curve_series(curve: CurveDefinition, levels: Optional[Iterable[int]] = None) -> np.ndarray:
    """
    Saturation fractions of a curve across stat levels (1-99 by default).

    Returns:
        Array of shape (n_levels,)
    """
    if levels is None:
        levels = range(1, 100)
    return np.array([evaluate(curve, level) for level in levels], dtype=np.float64)


def marginal_gains(curve: CurveDefinition, levels: Optional[Iterable[int]] = None) -> np.ndarray:
    """Per-level saturation increase, useful to locate soft caps."""
    series = curve_series(curve, levels)
    return np.diff(series, prepend=series[0] if len(series) else 0.0)
