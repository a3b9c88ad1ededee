"""G.C (growing charge) rate table.

The contract rate per kg of sold bird weight is chosen by production cost per
kg. Each tier is an inclusive upper bound on the production cost; costs above
the last bound get the floor rate.
"""

import math
from bisect import bisect_left
from typing import List, Optional, Tuple

GC_RATE_TIERS: List[Tuple[float, float]] = [
    (69.99, 16.0),
    (70.5, 13.8),
    (71.0, 13.4),
    (71.5, 13.0),
    (72.0, 12.6),
    (72.5, 12.2),
    (73.0, 11.8),
    (73.5, 11.4),
    (74.0, 11.15),
    (74.5, 10.9),
    (75.0, 10.65),
    (75.5, 10.4),
    (76.0, 10.15),
    (76.5, 9.9),
    (77.0, 9.65),
    (77.5, 9.4),
    (78.0, 9.2),
    (78.5, 9.0),
    (79.0, 8.8),
    (79.5, 8.6),
    (80.0, 8.4),
    (80.5, 8.2),
    (81.0, 8.0),
    (81.5, 7.8),
    (82.0, 7.65),
    (82.5, 7.5),
    (83.0, 7.35),
    (83.5, 7.2),
    (84.0, 7.1),
    (84.5, 7.0),
    (85.0, 6.9),
    (86.0, 6.8),
    (87.0, 6.7),
    (88.0, 6.6),
]
GC_FLOOR_RATE = 6.5

_UPPER_BOUNDS = [bound for bound, _ in GC_RATE_TIERS]


def gc_per_kg(production_cost_per_kg: Optional[float]) -> Optional[float]:
    """Return the G.C rate for a production cost, or None if it is not a finite number."""
    if production_cost_per_kg is None:
        return None
    try:
        cost = float(production_cost_per_kg)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(cost):
        return None
    index = bisect_left(_UPPER_BOUNDS, cost)
    if index >= len(GC_RATE_TIERS):
        return GC_FLOOR_RATE
    return GC_RATE_TIERS[index][1]
