from typing import List, Tuple

from planner.models.entities import WorkloadLevel

# (upper bound, inclusive?, level) checked in order after the ratio == 0 case.
LEVEL_THRESHOLDS: List[Tuple[float, bool, WorkloadLevel]] = [
    (0.5, False, WorkloadLevel.LIGHT),
    (0.9, False, WorkloadLevel.GOOD),
    (1.0, True, WorkloadLevel.HIGH),
    (1.2, True, WorkloadLevel.OVERLOADED),
]


def classify_workload(allocated_hours: float, capacity: float) -> WorkloadLevel:
    """
    Bucket allocated hours against a member's daily capacity.

    | ratio            | level                 |
    |------------------|-----------------------|
    | == 0             | IDLE                  |
    | (0, 0.5)         | LIGHT                 |
    | [0.5, 0.9)       | GOOD                  |
    | [0.9, 1.0]       | HIGH                  |
    | (1.0, 1.2]       | OVERLOADED            |
    | > 1.2            | CRITICALLY_OVERLOADED |

    A non-positive capacity has no meaningful ratio and yields UNKNOWN.
    """
    if capacity is None or capacity <= 0:
        return WorkloadLevel.UNKNOWN

    ratio = allocated_hours / capacity
    if ratio <= 0:
        return WorkloadLevel.IDLE
    for bound, inclusive, level in LEVEL_THRESHOLDS:
        if ratio < bound or (inclusive and ratio == bound):
            return level
    return WorkloadLevel.CRITICALLY_OVERLOADED


def is_overloaded(allocated_hours: float, capacity: float) -> bool:
    """Strictly above capacity; exactly-at-capacity is HIGH, not overloaded."""
    return allocated_hours > capacity
