from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from planner.models.entities import Assignment, Member, Project, ProjectStatus, Task, Team, WorkloadLevel


class AssignmentDTO(BaseModel):
    assignee_id: str
    working_days: List[int] = Field(..., min_length=1)
    effort: float = 100.0

    @field_validator("working_days")
    @classmethod
    def validate_working_days(cls, v: List[int]):
        """Weekday codes are 0=Sun .. 6=Sat."""
        for day in v:
            if day < 0 or day > 6:
                raise ValueError("working days must be weekday codes in [0, 6] (0=Sunday)")
        return v

    @field_validator("effort")
    @classmethod
    def validate_effort(cls, v: float):
        if v < 0 or v > 100:
            raise ValueError("effort must be a percentage in [0, 100]")
        return v

    def to_domain(self) -> Assignment:
        return Assignment(assignee_id=self.assignee_id, working_days=frozenset(self.working_days), effort=self.effort)

    @classmethod
    def from_domain(cls, a: Assignment) -> "AssignmentDTO":
        return cls(assignee_id=a.assignee_id, working_days=sorted(a.working_days), effort=a.effort)


class MemberDTO(BaseModel):
    id: str
    name: str = ""
    teams: List[str] = []
    capacity: float = Field(..., ge=0, description="Hours per working day")

    def to_domain(self) -> Member:
        return Member(id=self.id, name=self.name, teams=frozenset(self.teams), capacity=self.capacity)

    @classmethod
    def from_domain(cls, m: Member) -> "MemberDTO":
        return cls(id=m.id, name=m.name, teams=sorted(m.teams), capacity=m.capacity)


class ProjectDTO(BaseModel):
    id: str
    name: str = ""
    status: ProjectStatus = ProjectStatus.ON_TRACK

    def to_domain(self) -> Project:
        return Project(id=self.id, name=self.name, status=self.status)


class TeamDTO(BaseModel):
    id: str
    name: str

    def to_domain(self) -> Team:
        return Team(id=self.id, name=self.name)


class TeamRenameDTO(BaseModel):
    name: str


class TaskDTO(BaseModel):
    id: str
    name: str = ""
    project_id: str
    start_date: date
    end_date: date
    hours: float = Field(..., ge=0, description="Total estimated hours for the task")
    assignments: List[AssignmentDTO] = []
    dependencies: List[str] = []

    @field_validator("assignments")
    @classmethod
    def validate_unique_assignees(cls, v: List[AssignmentDTO]):
        ids = [a.assignee_id for a in v]
        if len(ids) != len(set(ids)):
            raise ValueError("each member may appear only once in a task's assignments")
        return v

    def to_domain(self) -> Task:
        return Task(
            id=self.id,
            name=self.name,
            project_id=self.project_id,
            start_date=self.start_date,
            end_date=self.end_date,
            hours=self.hours,
            assignments=tuple(a.to_domain() for a in self.assignments),
            dependencies=tuple(self.dependencies),
        )


class SnapshotRequest(BaseModel):
    members: List[MemberDTO]
    tasks: List[TaskDTO]

    def domain_members(self) -> List[Member]:
        return [m.to_domain() for m in self.members]

    def domain_tasks(self) -> List[Task]:
        return [t.to_domain() for t in self.tasks]


class AllocationsRequest(SnapshotRequest):
    start: date
    end: date

    @field_validator("end")
    @classmethod
    def validate_range(cls, v: date, info: ValidationInfo):
        start = info.data.get("start")
        if start is not None and v < start:
            raise ValueError("end must not be before start")
        if start is not None and (v - start).days > 366:
            raise ValueError("range is limited to one year")
        return v


class HeatmapRequest(SnapshotRequest):
    week_start: date
    team: Optional[str] = None


class OverloadedRequest(SnapshotRequest):
    on_date: date


class EnrichRequest(BaseModel):
    tasks: List[TaskDTO]


class DailyAllocationDTO(BaseModel):
    member_id: str
    day: date
    hours: float
    level: WorkloadLevel


class AllocationsResponse(BaseModel):
    allocations: List[DailyAllocationDTO]


class HeatmapResponse(BaseModel):
    week_start: date
    days: List[date]
    member_ids: List[str]
    hours: List[List[float]]
    levels: List[List[WorkloadLevel]]
    cached: bool = False


class OverloadedResponse(BaseModel):
    on_date: date
    members: List[MemberDTO]


class EnrichedTaskDTO(BaseModel):
    id: str
    name: str
    project_id: str
    assignee_ids: List[str]
    start_date: date
    end_date: date
    hours: float
    daily_hours: float


class EnrichResponse(BaseModel):
    tasks: List[EnrichedTaskDTO]


class IssueDTO(BaseModel):
    type: str
    message: str
    task_id: Optional[str] = None
    member_id: Optional[str] = None


class ValidateResponse(BaseModel):
    valid: bool
    issues: List[IssueDTO]


class AllocationSummaryDTO(BaseModel):
    member_id: str
    name: str
    capacity: float
    allocated: float
    level: WorkloadLevel


class SummaryResponse(BaseModel):
    week_start: date
    members: List[AllocationSummaryDTO]
