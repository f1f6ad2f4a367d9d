import pytest
from planner.engine.classification import classify_workload, is_overloaded
from planner.models.entities import WorkloadLevel

ORDER = [
    WorkloadLevel.IDLE,
    WorkloadLevel.LIGHT,
    WorkloadLevel.GOOD,
    WorkloadLevel.HIGH,
    WorkloadLevel.OVERLOADED,
    WorkloadLevel.CRITICALLY_OVERLOADED,
]


class TestClassifyWorkload:
    """Ratio thresholds for workload levels."""

    @pytest.mark.parametrize("allocated,level", [
        (8.0, WorkloadLevel.HIGH),
        (8.01, WorkloadLevel.OVERLOADED),
        (9.6, WorkloadLevel.OVERLOADED),
        (9.61, WorkloadLevel.CRITICALLY_OVERLOADED),
    ])
    def test_capacity_boundaries(self, allocated, level):
        assert classify_workload(allocated, 8) == level

    @pytest.mark.parametrize("allocated,level", [
        (0, WorkloadLevel.IDLE),
        (0.1, WorkloadLevel.LIGHT),
        (3.99, WorkloadLevel.LIGHT),
        (4.0, WorkloadLevel.GOOD),
        (7.19, WorkloadLevel.GOOD),
        (7.2, WorkloadLevel.HIGH),
        (20, WorkloadLevel.CRITICALLY_OVERLOADED),
    ])
    def test_ratio_bands(self, allocated, level):
        assert classify_workload(allocated, 8) == level

    @pytest.mark.parametrize("allocated", [0, 1, 8, 100])
    def test_zero_capacity_is_unknown(self, allocated):
        assert classify_workload(allocated, 0) == WorkloadLevel.UNKNOWN

    def test_negative_capacity_is_unknown(self):
        assert classify_workload(4, -8) == WorkloadLevel.UNKNOWN

    @pytest.mark.parametrize("capacity", [6, 7.5, 8, 10])
    def test_monotonic_in_allocated_hours(self, capacity):
        levels = [classify_workload(i * 0.05, capacity) for i in range(0, 400)]
        ranks = [ORDER.index(level) for level in levels]
        assert ranks == sorted(ranks)
        assert levels[0] == WorkloadLevel.IDLE
        assert levels[-1] == WorkloadLevel.CRITICALLY_OVERLOADED


class TestIsOverloaded:

    def test_exactly_at_capacity_is_not_overloaded(self):
        assert not is_overloaded(8.0, 8)
        assert classify_workload(8.0, 8) == WorkloadLevel.HIGH

    def test_above_capacity(self):
        assert is_overloaded(8.01, 8)
