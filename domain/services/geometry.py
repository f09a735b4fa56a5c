from __future__ import annotations

from typing import Tuple

Vec = Tuple[float, float]

CROSSING_LOWER = 0.05
CROSSING_UPPER = 0.95


def intervals_overlap(
    a_start: float, a_end: float, b_start: float, b_end: float, margin: float = 0.0
) -> bool:
    return a_start < b_end + margin and a_end + margin > b_start


def overlap_amount(a_start: float, a_end: float, b_start: float, b_end: float) -> float:
    return min(a_end, b_end) - max(a_start, b_start)


def segments_intersect(
    p1: Vec,
    p2: Vec,
    p3: Vec,
    p4: Vec,
    lower: float = CROSSING_LOWER,
    upper: float = CROSSING_UPPER,
) -> bool:
    # Parameters near 0 or 1 mean the segments only touch close to an endpoint,
    # which shared bar anchors produce legitimately.
    x1, y1 = p1
    x2, y2 = p2
    x3, y3 = p3
    x4, y4 = p4

    denom = (y4 - y3) * (x2 - x1) - (x4 - x3) * (y2 - y1)
    if denom == 0:
        return False

    ua = ((x4 - x3) * (y1 - y3) - (y4 - y3) * (x1 - x3)) / denom
    ub = ((x2 - x1) * (y1 - y3) - (y2 - y1) * (x1 - x3)) / denom
    return lower < ua < upper and lower < ub < upper
