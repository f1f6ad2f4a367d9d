"""
Allocation Engine

Spreads each task's estimated hours over the business days of its date range
and attributes that daily rate to assignees by effort percentage, on the
weekdays each assignee works on the task.

Model:
    daily_task_hours = task.hours / business_days(start, end)
    share(member, day) = daily_task_hours * effort / 100
        when start <= day <= end and weekday(day) in assignment.working_days

Every function here is pure: inputs are immutable snapshots and results are
fresh values, so concurrent callers need no locking. Malformed records never
raise; they contribute zero hours and are logged.
"""

import logging
from datetime import date
from typing import Iterable, List

from planner.engine.business_days import count_business_days, each_day, weekday_code
from planner.engine.classification import classify_workload
from planner.engine.validation import require_collection
from planner.models.entities import Assignment, DailyAllocation, Member, Task

logger = logging.getLogger(__name__)


def effective_end(task: Task) -> date:
    """
    Last day of the task's active range.

    An inverted range (end before start) collapses onto the start date so the
    task's hours land on a single nominal day instead of disappearing.
    """
    if task.end_date < task.start_date:
        return task.start_date
    return task.end_date


def daily_hours_for_task(task: Task) -> float:
    """
    Total task hours per business day.

    Args:
        task: Task whose ``hours`` are spread evenly over its business days

    Returns:
        ``hours / business_days`` where business days are Mon..Fri in the
        inclusive range; the whole ``hours`` value when the range holds no
        business day (weekend-only or degenerate ranges)

    Complexity: O(1)
    """
    duration = count_business_days(task.start_date, effective_end(task))
    if duration <= 0:
        logger.debug(f"Task {task.id} spans no business days; treating {task.hours}h as one day")
        return float(task.hours)
    return task.hours / duration


def member_share_on_day(task: Task, assignment: Assignment, day: date) -> float:
    """
    Hours one assignee spends on one task on one day.

    Effort is a percentage of the whole task's daily rate, so assignees split
    the estimate proportionally while each works only on their own weekdays.

    Returns:
        0.0 when ``day`` is outside the task range or not one of the
        assignment's working days; otherwise daily task hours * effort / 100
    """
    if not (task.start_date <= day <= effective_end(task)):
        return 0.0
    if weekday_code(day) not in assignment.working_days:
        return 0.0
    if assignment.effort < 0:
        logger.warning(f"Task {task.id}: negative effort {assignment.effort} for {assignment.assignee_id}, ignoring")
        return 0.0
    return daily_hours_for_task(task) * (assignment.effort / 100)


def allocation_for(member_id: str, day: date, tasks: Iterable[Task]) -> float:
    """
    Hours allocated to a member on a day across every task.

    The result is a plain sum, so it does not depend on the order of tasks or
    of assignments within a task.

    Complexity: O(t * a) where t = tasks, a = assignments per task
    """
    tasks = require_collection(tasks, "tasks")
    return sum(
        member_share_on_day(task, a, day)
        for task in tasks
        for a in task.assignments
        if a.assignee_id == member_id
    )


def daily_allocations(
    members: Iterable[Member],
    tasks: Iterable[Task],
    start: date,
    end: date,
) -> List[DailyAllocation]:
    """One classified DailyAllocation per member per day in [start, end]."""
    members = list(require_collection(members, "members"))
    tasks = list(require_collection(tasks, "tasks"))

    result: List[DailyAllocation] = []
    for member in members:
        for day in each_day(start, end):
            hours = allocation_for(member.id, day, tasks)
            result.append(DailyAllocation(
                member_id=member.id,
                day=day,
                hours=hours,
                level=classify_workload(hours, member.capacity),
            ))
    return result
