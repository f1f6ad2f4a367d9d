"""
Snapshot diagnostics.

The allocation engine never raises on malformed records; it degrades to
zero-hour contributions. This module reports those records so callers can
surface data-quality problems without interrupting a computation.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

from planner.engine.business_days import WEEKDAY_CODES
from planner.models.entities import Member, Snapshot, Task

logger = logging.getLogger(__name__)

EFFORT_TOLERANCE = 1e-6


class SnapshotError(ValueError):
    """A required collection was not supplied. Caller error, not a data-quality issue."""


class IssueType(str, Enum):
    DANGLING_ASSIGNEE = "dangling_assignee"
    DUPLICATE_ASSIGNEE = "duplicate_assignee"
    EFFORT_SUM = "effort_sum"
    EFFORT_RANGE = "effort_range"
    EMPTY_WORKING_DAYS = "empty_working_days"
    INVALID_WEEKDAY = "invalid_weekday"
    INVERTED_RANGE = "inverted_range"
    NON_POSITIVE_CAPACITY = "non_positive_capacity"


@dataclass(frozen=True)
class Issue:
    type: IssueType
    message: str
    task_id: Optional[str] = None
    member_id: Optional[str] = None


def require_collection(value, name: str):
    """Fail fast when a members/tasks collection is absent."""
    if value is None:
        raise SnapshotError(f"{name} collection is required")
    return value


def task_issues(task: Task, member_ids: Optional[set] = None) -> List[Issue]:
    issues: List[Issue] = []
    if task.end_date < task.start_date:
        issues.append(Issue(
            IssueType.INVERTED_RANGE,
            f"ends {task.end_date} before it starts {task.start_date}",
            task_id=task.id,
        ))

    seen = set()
    for a in task.assignments:
        if a.assignee_id in seen:
            issues.append(Issue(IssueType.DUPLICATE_ASSIGNEE, f"{a.assignee_id} assigned twice", task.id, a.assignee_id))
        seen.add(a.assignee_id)
        if member_ids is not None and a.assignee_id not in member_ids:
            issues.append(Issue(IssueType.DANGLING_ASSIGNEE, f"unknown assignee {a.assignee_id}", task.id, a.assignee_id))
        if not a.working_days:
            issues.append(Issue(IssueType.EMPTY_WORKING_DAYS, "no working days", task.id, a.assignee_id))
        elif not set(a.working_days) <= WEEKDAY_CODES:
            issues.append(Issue(IssueType.INVALID_WEEKDAY, f"weekday codes {sorted(a.working_days)}", task.id, a.assignee_id))
        if a.effort < 0 or a.effort > 100:
            issues.append(Issue(IssueType.EFFORT_RANGE, f"effort {a.effort} outside 0..100", task.id, a.assignee_id))

    if task.assignments:
        total = sum(a.effort for a in task.assignments)
        if abs(total - 100) > EFFORT_TOLERANCE:
            issues.append(Issue(IssueType.EFFORT_SUM, f"effort sums to {total:g}, expected 100", task_id=task.id))
    return issues


def member_issues(member: Member) -> List[Issue]:
    if member.capacity is None or member.capacity <= 0:
        return [Issue(IssueType.NON_POSITIVE_CAPACITY, f"capacity {member.capacity}", member_id=member.id)]
    return []


def validate(members: Iterable[Member], tasks: Iterable[Task]) -> List[Issue]:
    members = list(require_collection(members, "members"))
    tasks = list(require_collection(tasks, "tasks"))
    member_ids = {m.id for m in members}

    issues: List[Issue] = []
    for m in members:
        issues.extend(member_issues(m))
    for t in tasks:
        issues.extend(task_issues(t, member_ids))

    for issue in issues:
        logger.warning(f"Snapshot issue [{issue.type.value}] task={issue.task_id} member={issue.member_id}: {issue.message}")
    return issues


def validate_snapshot(snapshot: Snapshot) -> List[Issue]:
    return validate(snapshot.members, snapshot.tasks)
