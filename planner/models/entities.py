from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import FrozenSet, Optional, Tuple


class ProjectStatus(str, Enum):
    ON_TRACK = "On Track"
    AT_RISK = "At Risk"
    OFF_TRACK = "Off Track"


class WorkloadLevel(str, Enum):
    UNKNOWN = "unknown"  # capacity <= 0, ratio undefined
    IDLE = "idle"
    LIGHT = "light"
    GOOD = "good"
    HIGH = "high"
    OVERLOADED = "overloaded"
    CRITICALLY_OVERLOADED = "critically_overloaded"


@dataclass(frozen=True)
class Team:
    id: str
    name: str


@dataclass(frozen=True)
class Member:
    id: str
    capacity: float  # hours per working day
    name: str = ""
    teams: FrozenSet[str] = frozenset()  # team names, not ids


@dataclass(frozen=True)
class Project:
    id: str
    name: str = ""
    status: ProjectStatus = ProjectStatus.ON_TRACK


@dataclass(frozen=True)
class Assignment:
    assignee_id: str
    working_days: FrozenSet[int]  # 0=Sun, 1=Mon, ..., 6=Sat
    effort: float = 100.0  # percentage of the task's hours


@dataclass(frozen=True)
class Task:
    id: str
    project_id: str
    start_date: date
    end_date: date
    hours: float  # total for the task, split across assignees by effort
    assignments: Tuple[Assignment, ...] = ()
    name: str = ""
    dependencies: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Snapshot:
    members: Tuple[Member, ...] = ()
    tasks: Tuple[Task, ...] = ()
    projects: Tuple[Project, ...] = ()
    teams: Tuple[Team, ...] = ()

    def member(self, member_id: str) -> Optional[Member]:
        return next((m for m in self.members if m.id == member_id), None)


@dataclass(frozen=True)
class DailyAllocation:
    member_id: str
    day: date
    hours: float
    level: WorkloadLevel = WorkloadLevel.UNKNOWN
