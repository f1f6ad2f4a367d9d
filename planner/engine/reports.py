"""
Consumers of the allocation engine: overload alerts, heatmaps, the resource
allocation summary and the AI-analysis payload enrichment.

All of them are recomputed from the snapshot they are given on every call.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from planner.engine.allocation import allocation_for, daily_hours_for_task
from planner.engine.business_days import count_business_days, each_day, start_of_week, week_days
from planner.engine.classification import classify_workload, is_overloaded
from planner.engine.validation import require_collection
from planner.models.entities import Member, Task, WorkloadLevel

logger = logging.getLogger(__name__)

ALL_TEAMS = "All"


@dataclass
class Heatmap:
    """Dense grid: ``hours[i][j]`` is member ``member_ids[i]`` on ``days[j]``."""
    days: List[date]
    member_ids: List[str]
    hours: List[List[float]] = field(default_factory=list)
    levels: List[List[WorkloadLevel]] = field(default_factory=list)


@dataclass
class PeriodHeatmap:
    """One column per Monday-start week; cells hold average hours per business day."""
    week_starts: List[date]
    member_ids: List[str]
    average_hours: List[List[float]] = field(default_factory=list)
    levels: List[List[WorkloadLevel]] = field(default_factory=list)


@dataclass
class AllocationSummary:
    member_id: str
    name: str
    capacity: float
    allocated: float
    level: WorkloadLevel


def _log_dangling_assignees(members: List[Member], tasks: List[Task]) -> None:
    member_ids = {m.id for m in members}
    for task in tasks:
        for a in task.assignments:
            if a.assignee_id not in member_ids:
                logger.debug(f"Task {task.id} assigns unknown member {a.assignee_id}; hours not counted")


def overloaded_members(members: Iterable[Member], tasks: Iterable[Task], on_date: date) -> List[Member]:
    """
    Members whose allocation on ``on_date`` strictly exceeds their capacity.

    Backs the notification bell and portfolio health summaries. Never cached:
    the store changes under a live-update stream.
    """
    members = list(require_collection(members, "members"))
    tasks = list(require_collection(tasks, "tasks"))
    _log_dangling_assignees(members, tasks)

    result = []
    for member in members:
        hours = allocation_for(member.id, on_date, tasks)
        if is_overloaded(hours, member.capacity):
            logger.debug(f"Member {member.id} overloaded on {on_date}: {hours:.2f}h > {member.capacity}h")
            result.append(member)
    return result


def weekly_heatmap(members: Iterable[Member], tasks: Iterable[Task], week_start: date) -> Heatmap:
    """
    Hours per member per day for the Monday-start week containing ``week_start``.

    Empty member or task lists yield an empty or all-zero grid.
    """
    members = list(require_collection(members, "members"))
    tasks = list(require_collection(tasks, "tasks"))
    days = week_days(start_of_week(week_start))

    heatmap = Heatmap(days=days, member_ids=[m.id for m in members])
    for member in members:
        row = [allocation_for(member.id, day, tasks) for day in days]
        heatmap.hours.append(row)
        heatmap.levels.append([classify_workload(h, member.capacity) for h in row])
    return heatmap


def average_workload(member: Member, tasks: Iterable[Task], start: date, end: date) -> float:
    """
    Average allocated hours per business day over [start, end].

    Weekend allocations still count towards the total, but the divisor is the
    number of business days. Returns 0.0 when the interval holds none.
    """
    tasks = list(require_collection(tasks, "tasks"))
    business_days = count_business_days(start, end)
    if business_days == 0:
        return 0.0
    total = sum(allocation_for(member.id, day, tasks) for day in each_day(start, end))
    return total / business_days


def period_heatmap(members: Iterable[Member], tasks: Iterable[Task], start: date, weeks: int) -> PeriodHeatmap:
    """Weekly-average heatmap used for the month, quarter and year views."""
    members = list(require_collection(members, "members"))
    tasks = list(require_collection(tasks, "tasks"))
    first = start_of_week(start)
    week_starts = [first + timedelta(weeks=i) for i in range(max(weeks, 0))]

    heatmap = PeriodHeatmap(week_starts=week_starts, member_ids=[m.id for m in members])
    for member in members:
        row = [average_workload(member, tasks, ws, ws + timedelta(days=6)) for ws in week_starts]
        heatmap.average_hours.append(row)
        heatmap.levels.append([classify_workload(h, member.capacity) for h in row])
    return heatmap


def members_in_team(members: Iterable[Member], team: Optional[str]) -> List[Member]:
    members = list(require_collection(members, "members"))
    if team is None or team == ALL_TEAMS:
        return members
    return [m for m in members if team in m.teams]


def resource_allocation_summary(members: Iterable[Member], tasks: Iterable[Task], week_start: date) -> List[AllocationSummary]:
    """Average daily allocation this week versus capacity, one entry per member."""
    members = list(require_collection(members, "members"))
    tasks = list(require_collection(tasks, "tasks"))
    monday = start_of_week(week_start)
    sunday = monday + timedelta(days=6)

    summary = []
    for member in members:
        allocated = average_workload(member, tasks, monday, sunday)
        summary.append(AllocationSummary(
            member_id=member.id,
            name=member.name,
            capacity=member.capacity,
            allocated=allocated,
            level=classify_workload(allocated, member.capacity),
        ))
    return summary


def enrich_tasks_with_daily_hours(tasks: Iterable[Task]) -> List[Dict]:
    """
    Task records for the AI analysis payload, each with its ``daily_hours``.

    ``daily_hours`` is the whole task's rate, before the effort split.
    """
    tasks = require_collection(tasks, "tasks")
    return [
        {
            "id": t.id,
            "name": t.name,
            "project_id": t.project_id,
            "assignee_ids": [a.assignee_id for a in t.assignments],
            "start_date": t.start_date.isoformat(),
            "end_date": t.end_date.isoformat(),
            "hours": t.hours,
            "daily_hours": daily_hours_for_task(t),
        }
        for t in tasks
    ]
