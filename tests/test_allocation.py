from datetime import date, timedelta
from itertools import permutations

import pytest
from planner.engine.allocation import (
    allocation_for,
    daily_allocations,
    daily_hours_for_task,
    effective_end,
    member_share_on_day,
)
from planner.engine.business_days import count_business_days, each_day, is_business_day, weekday_code
from planner.engine.validation import SnapshotError
from planner.models.entities import Assignment, WorkloadLevel

WEEKDAYS = frozenset({1, 2, 3, 4, 5})
EVERY_DAY = frozenset(range(7))


class TestBusinessDays:
    """Unit tests for the business-day calendar helpers."""

    def test_weekday_codes_are_sunday_based(self, monday):
        assert weekday_code(monday) == 1
        assert weekday_code(monday - timedelta(days=1)) == 0
        assert weekday_code(monday + timedelta(days=5)) == 6

    def test_count_single_week(self, monday, friday):
        assert count_business_days(monday, friday) == 5
        assert count_business_days(monday, friday + timedelta(days=2)) == 5

    def test_count_spans_weekend(self, monday):
        # Mon 8 .. Wed 17 Jan
        assert count_business_days(monday, monday + timedelta(days=9)) == 8

    def test_count_matches_day_by_day_walk(self, monday):
        for offset in range(0, 7):
            start = monday + timedelta(days=offset)
            for length in range(0, 30):
                end = start + timedelta(days=length)
                expected = sum(1 for d in each_day(start, end) if is_business_day(d))
                assert count_business_days(start, end) == expected

    def test_inverted_range_has_no_days(self, monday, friday):
        assert count_business_days(friday, monday) == 0
        assert list(each_day(friday, monday)) == []


class TestDailyHoursForTask:
    """Spreading task hours over business days."""

    def test_even_spread_over_week(self, solo_task):
        assert daily_hours_for_task(solo_task) == pytest.approx(2.0)

    @pytest.mark.parametrize("hours,days", [(10, 1), (10, 9), (37.5, 14), (3, 40)])
    def test_business_days_sum_to_task_hours(self, make_task, monday, hours, days):
        task = make_task(hours=hours, start=monday, end=monday + timedelta(days=days))
        business = [d for d in each_day(task.start_date, task.end_date) if is_business_day(d)]
        assert sum(daily_hours_for_task(task) for _ in business) == pytest.approx(hours)

    def test_weekend_only_range_is_single_day_load(self, make_task, friday):
        saturday = friday + timedelta(days=1)
        task = make_task(hours=6, start=saturday, end=saturday + timedelta(days=1))
        assert daily_hours_for_task(task) == 6

    def test_inverted_range_collapses_to_start(self, make_task, monday, friday):
        task = make_task(hours=7, start=friday, end=monday)
        assert effective_end(task) == friday
        assert daily_hours_for_task(task) == 7


class TestMemberShareOnDay:
    """Per-assignee hours on a single day."""

    def test_full_effort_on_working_day(self, solo_task, monday):
        assert member_share_on_day(solo_task, solo_task.assignments[0], monday) == pytest.approx(2.0)

    def test_split_effort(self, shared_task, monday):
        alice, bob = shared_task.assignments
        assert member_share_on_day(shared_task, alice, monday) == pytest.approx(1.2)
        assert member_share_on_day(shared_task, bob, monday) == pytest.approx(0.8)

    def test_outside_range_contributes_nothing(self, solo_task, monday, friday):
        a = solo_task.assignments[0]
        assert member_share_on_day(solo_task, a, monday - timedelta(days=3)) == 0.0
        assert member_share_on_day(solo_task, a, friday + timedelta(days=3)) == 0.0

    def test_non_working_day_contributes_nothing(self, make_task, monday):
        task = make_task(hours=10, assignments=[Assignment("alice", frozenset({1, 3, 5}), 100)])
        tuesday = monday + timedelta(days=1)
        assert member_share_on_day(task, task.assignments[0], tuesday) == 0.0
        assert member_share_on_day(task, task.assignments[0], monday) == pytest.approx(2.0)

    def test_effort_is_not_normalized(self, make_task, monday):
        task = make_task(hours=10, assignments=[Assignment("alice", WEEKDAYS, 150)])
        assert member_share_on_day(task, task.assignments[0], monday) == pytest.approx(3.0)

    def test_negative_effort_contributes_nothing(self, make_task, monday):
        task = make_task(hours=10, assignments=[Assignment("alice", WEEKDAYS, -20)])
        assert member_share_on_day(task, task.assignments[0], monday) == 0.0

    def test_inverted_range_lands_on_start_day(self, make_task, monday, friday):
        task = make_task(hours=5, start=friday, end=monday, assignments=[Assignment("alice", WEEKDAYS, 100)])
        assert member_share_on_day(task, task.assignments[0], friday) == 5
        assert member_share_on_day(task, task.assignments[0], monday) == 0.0


class TestAllocationFor:
    """Summing shares across tasks."""

    def test_sums_across_tasks(self, solo_task, shared_task, monday):
        assert allocation_for("alice", monday, [solo_task, shared_task]) == pytest.approx(3.2)
        assert allocation_for("bob", monday, [solo_task, shared_task]) == pytest.approx(0.8)

    def test_combined_share_equals_task_rate(self, shared_task, monday):
        total = allocation_for("alice", monday, [shared_task]) + allocation_for("bob", monday, [shared_task])
        assert total == pytest.approx(daily_hours_for_task(shared_task))

    def test_order_independent(self, make_task, monday):
        tasks = [
            make_task("a", 12, [Assignment("alice", WEEKDAYS, 30), Assignment("bob", WEEKDAYS, 70)]),
            make_task("b", 7, [Assignment("bob", EVERY_DAY, 50), Assignment("alice", EVERY_DAY, 50)]),
            make_task("c", 3.3, [Assignment("alice", frozenset({1}), 100)]),
        ]
        expected = allocation_for("alice", monday, tasks)
        for ordering in permutations(tasks):
            assert allocation_for("alice", monday, list(ordering)) == pytest.approx(expected)
        reversed_assignments = [
            make_task(t.id, t.hours, list(reversed(t.assignments))) for t in tasks
        ]
        assert allocation_for("alice", monday, reversed_assignments) == pytest.approx(expected)

    def test_unassigned_task_contributes_nothing(self, make_task, monday):
        assert allocation_for("alice", monday, [make_task(hours=40)]) == 0.0

    def test_empty_tasks(self, monday):
        assert allocation_for("alice", monday, []) == 0.0

    def test_missing_tasks_collection_fails_fast(self, monday):
        with pytest.raises(SnapshotError):
            allocation_for("alice", monday, None)


class TestDailyAllocations:

    def test_one_record_per_member_per_day(self, members, solo_task, monday, friday):
        result = daily_allocations(members, [solo_task], monday, friday)
        assert len(result) == len(members) * 5
        alice = [a for a in result if a.member_id == "alice"]
        assert [a.day for a in alice] == list(each_day(monday, friday))
        assert all(a.hours == pytest.approx(2.0) for a in alice)
        assert all(a.level == WorkloadLevel.LIGHT for a in alice)

    def test_idle_members(self, members, solo_task, monday):
        result = daily_allocations(members, [solo_task], monday, monday)
        levels = {a.member_id: a.level for a in result}
        assert levels == {"alice": WorkloadLevel.LIGHT, "bob": WorkloadLevel.IDLE, "carol": WorkloadLevel.IDLE}

    def test_missing_members_collection_fails_fast(self, monday):
        with pytest.raises(SnapshotError):
            daily_allocations(None, [], monday, date(2024, 1, 9))
