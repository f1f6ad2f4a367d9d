from contextlib import contextmanager
from datetime import date
from typing import Optional
import logging

from fastapi import APIRouter, HTTPException, Depends, Query, Request
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from planner.api.schemas import (
    AllocationSummaryDTO,
    AllocationsRequest,
    AllocationsResponse,
    DailyAllocationDTO,
    EnrichRequest,
    EnrichResponse,
    HeatmapRequest,
    HeatmapResponse,
    IssueDTO,
    MemberDTO,
    OverloadedRequest,
    OverloadedResponse,
    ProjectDTO,
    SnapshotRequest,
    SummaryResponse,
    TaskDTO,
    TeamDTO,
    TeamRenameDTO,
    ValidateResponse,
)
from planner.engine.allocation import daily_allocations
from planner.engine.business_days import start_of_week
from planner.engine.reports import (
    enrich_tasks_with_daily_hours,
    members_in_team,
    overloaded_members,
    period_heatmap,
    resource_allocation_summary,
    weekly_heatmap,
)
from planner.engine.validation import validate
from planner.storage.cache import HeatmapCache
from planner.storage.database import get_db
from planner.storage.repositories import MemberRepository, ProjectRepository, TaskRepository, TeamRepository
from planner.storage.store import (
    DuplicateIdError,
    DuplicateNameError,
    MemberInUseError,
    NotFoundError,
    WorkspaceError,
    WorkspaceStore,
)

router = APIRouter()
cache = HeatmapCache()
logger = logging.getLogger(__name__)


def get_store(request: Request) -> WorkspaceStore:
    return request.app.state.store


def _raise_for(exc: WorkspaceError):
    """Translate store errors to HTTP errors."""
    logger.warning(f"Workspace change refused: {exc}")
    if isinstance(exc, NotFoundError):
        raise HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, (DuplicateIdError, DuplicateNameError, MemberInUseError)):
        raise HTTPException(status_code=409, detail=str(exc))
    raise HTTPException(status_code=400, detail=str(exc))


# Stateless computations over a snapshot supplied in the request


@router.post("/workload/allocations", response_model=AllocationsResponse, summary="Daily allocations per member")
def allocations(req: AllocationsRequest):
    """
    Compute allocated hours and workload level for every member on every day
    of [start, end].

    Hours per day for a task are its total hours spread over the business days
    of its range, split between assignees by effort and placed only on each
    assignee's working days.
    """
    logger.info(f"Allocations request: {len(req.members)} members, {len(req.tasks)} tasks, {req.start}..{req.end}")
    result = daily_allocations(req.domain_members(), req.domain_tasks(), req.start, req.end)
    return {
        "allocations": [
            DailyAllocationDTO(member_id=a.member_id, day=a.day, hours=a.hours, level=a.level)
            for a in result
        ]
    }


@router.post("/workload/heatmap", response_model=HeatmapResponse, summary="Weekly workload heatmap")
def heatmap(req: HeatmapRequest):
    """
    Dense member x day grid for the Monday-start week containing `week_start`.

    Any day may be sent as `week_start`; it is moved back to that week's
    Monday, and the response's `week_start` is the Monday actually used.

    **Caching:** when enabled, grids are cached by a hash of the request; a
    changed snapshot produces a different key.
    """
    logger.info(f"Heatmap request: {len(req.members)} members, week of {req.week_start}, team={req.team}")

    snapshot_hash = HeatmapCache.hash_snapshot(req.model_dump(mode="json"))
    cached_result = cache.get(snapshot_hash)
    if cached_result:
        logger.info("Cache hit")
        return {**cached_result, "cached": True}

    members = members_in_team(req.domain_members(), req.team)
    grid = weekly_heatmap(members, req.domain_tasks(), req.week_start)
    data = {
        "week_start": grid.days[0].isoformat(),
        "days": [d.isoformat() for d in grid.days],
        "member_ids": grid.member_ids,
        "hours": grid.hours,
        "levels": [[level.value for level in row] for row in grid.levels],
    }
    cache.set(snapshot_hash, data)
    return {**data, "cached": False}


@router.post("/workload/overloaded", response_model=OverloadedResponse, summary="Overloaded members on a date")
def overloaded(req: OverloadedRequest):
    """Members whose allocation on `on_date` strictly exceeds their capacity."""
    result = overloaded_members(req.domain_members(), req.domain_tasks(), req.on_date)
    logger.info(f"Overloaded on {req.on_date}: {len(result)} of {len(req.members)} members")
    return {"on_date": req.on_date, "members": [MemberDTO.from_domain(m) for m in result]}


@router.post("/workload/enrich", response_model=EnrichResponse, summary="Attach daily hours to tasks")
def enrich(req: EnrichRequest):
    """Add `daily_hours` to each task for the AI analysis payload."""
    return {"tasks": enrich_tasks_with_daily_hours([t.to_domain() for t in req.tasks])}


@router.post("/workload/validate", response_model=ValidateResponse, summary="Snapshot diagnostics")
def validate_snapshot(req: SnapshotRequest):
    """
    Report data-quality issues the engine tolerates silently: unknown
    assignees, effort not summing to 100, inverted ranges, zero capacity.
    """
    issues = validate(req.domain_members(), req.domain_tasks())
    return {
        "valid": not issues,
        "issues": [
            IssueDTO(type=i.type.value, message=i.message, task_id=i.task_id, member_id=i.member_id)
            for i in issues
        ],
    }


# Workspace: persisted records mirrored in the in-memory store


@contextmanager
def workspace_write(store: WorkspaceStore, db: Session):
    """
    Apply store mutations and repository writes as one unit.

    The block runs inside a store transaction and the session is committed at
    the end. A store rule violation or a database error rolls both back, so
    the store never holds records the database refused.
    """
    try:
        with store.transaction():
            yield
            db.commit()
    except WorkspaceError as exc:
        db.rollback()
        _raise_for(exc)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Workspace write rolled back: {exc}")
        if isinstance(exc, IntegrityError):
            raise HTTPException(status_code=409, detail="Conflicts with a stored record")
        raise HTTPException(status_code=500, detail="Could not save workspace change")


def _check_path_id(path_id: str, body_id: str):
    if path_id != body_id:
        raise HTTPException(status_code=400, detail=f"Body id {body_id} does not match path id {path_id}")


def _save_changed_members(db: Session, before, after):
    """Persist members whose record differs between two snapshots."""
    previous = {m.id: m for m in before.members}
    repo = MemberRepository(db, autocommit=False)
    for member in after.members:
        if previous.get(member.id) != member:
            repo.save(member)


@router.post("/workspace/projects", response_model=ProjectDTO, status_code=201, summary="Create project")
def create_project(dto: ProjectDTO, db: Session = Depends(get_db), store: WorkspaceStore = Depends(get_store)):
    with workspace_write(store, db):
        store.add_project(dto.to_domain())
        ProjectRepository(db, autocommit=False).save(dto.to_domain())
    return dto


@router.put("/workspace/projects/{project_id}", response_model=ProjectDTO, summary="Update project")
def update_project(
    project_id: str, dto: ProjectDTO, db: Session = Depends(get_db), store: WorkspaceStore = Depends(get_store)
):
    """Change a project's name or status."""
    _check_path_id(project_id, dto.id)
    with workspace_write(store, db):
        store.update_project(dto.to_domain())
        ProjectRepository(db, autocommit=False).save(dto.to_domain())
    logger.info(f"Project {project_id} updated: status={dto.status.value}")
    return dto


@router.post("/workspace/teams", response_model=TeamDTO, status_code=201, summary="Create team")
def create_team(dto: TeamDTO, db: Session = Depends(get_db), store: WorkspaceStore = Depends(get_store)):
    """**409** when the id or the name is already taken."""
    with workspace_write(store, db):
        store.add_team(dto.to_domain())
        TeamRepository(db, autocommit=False).save(dto.to_domain())
    return dto


@router.put("/workspace/teams/{team_id}", response_model=TeamDTO, summary="Rename team")
def rename_team(
    team_id: str, dto: TeamRenameDTO, db: Session = Depends(get_db), store: WorkspaceStore = Depends(get_store)
):
    """
    Rename a team. Members refer to teams by name, so every member of the
    team is rewritten and saved with the new name.
    """
    with workspace_write(store, db):
        before = store.snapshot()
        team = store.rename_team(team_id, dto.name)
        TeamRepository(db, autocommit=False).save(team)
        _save_changed_members(db, before, store.snapshot())
    logger.info(f"Team {team_id} renamed to {dto.name!r}")
    return TeamDTO(id=team.id, name=team.name)


@router.delete("/workspace/teams/{team_id}", status_code=204, summary="Delete team")
def delete_team(team_id: str, db: Session = Depends(get_db), store: WorkspaceStore = Depends(get_store)):
    """Delete a team and drop it from its members' teams."""
    with workspace_write(store, db):
        before = store.snapshot()
        store.remove_team(team_id)
        TeamRepository(db, autocommit=False).delete(team_id)
        _save_changed_members(db, before, store.snapshot())


@router.post("/workspace/members", response_model=MemberDTO, status_code=201, summary="Create member")
def create_member(dto: MemberDTO, db: Session = Depends(get_db), store: WorkspaceStore = Depends(get_store)):
    if dto.capacity <= 0:
        raise HTTPException(status_code=400, detail="capacity must be positive")
    with workspace_write(store, db):
        store.add_member(dto.to_domain())
        MemberRepository(db, autocommit=False).save(dto.to_domain())
    return dto


@router.put("/workspace/members/{member_id}", response_model=MemberDTO, summary="Update member")
def update_member(
    member_id: str, dto: MemberDTO, db: Session = Depends(get_db), store: WorkspaceStore = Depends(get_store)
):
    """Edit a member's name, teams or daily capacity."""
    _check_path_id(member_id, dto.id)
    if dto.capacity <= 0:
        raise HTTPException(status_code=400, detail="capacity must be positive")
    with workspace_write(store, db):
        store.update_member(dto.to_domain())
        MemberRepository(db, autocommit=False).save(dto.to_domain())
    logger.info(f"Member {member_id} updated: capacity={dto.capacity}")
    return dto


@router.delete("/workspace/members/{member_id}", status_code=204, summary="Delete member")
def delete_member(member_id: str, db: Session = Depends(get_db), store: WorkspaceStore = Depends(get_store)):
    """**409** while the member is assigned to any task."""
    with workspace_write(store, db):
        store.remove_member(member_id)
        MemberRepository(db, autocommit=False).delete(member_id)


def _check_task(dto: TaskDTO, store: WorkspaceStore):
    """
    Enforce what the engine only tolerates:

    - `end_date` not before `start_date`
    - assignment efforts summing to 100
    - assignees referencing existing members
    """
    if dto.end_date < dto.start_date:
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")
    if dto.assignments and abs(sum(a.effort for a in dto.assignments) - 100) > 1e-6:
        raise HTTPException(status_code=400, detail="assignment efforts must sum to 100")
    known = {m.id for m in store.snapshot().members}
    for a in dto.assignments:
        if a.assignee_id not in known:
            logger.warning(f"Task {dto.id} references unknown member {a.assignee_id}")
            raise HTTPException(status_code=400, detail=f"Task {dto.id} assigns unknown member {a.assignee_id}")


@router.post("/workspace/tasks", response_model=TaskDTO, status_code=201, summary="Create task")
def create_task(dto: TaskDTO, db: Session = Depends(get_db), store: WorkspaceStore = Depends(get_store)):
    _check_task(dto, store)
    with workspace_write(store, db):
        store.add_task(dto.to_domain())
        TaskRepository(db, autocommit=False).save(dto.to_domain())
    return dto


@router.put("/workspace/tasks/{task_id}", response_model=TaskDTO, summary="Update task")
def update_task(task_id: str, dto: TaskDTO, db: Session = Depends(get_db), store: WorkspaceStore = Depends(get_store)):
    """Reschedule, re-estimate or reassign a task. Same rules as creation."""
    _check_path_id(task_id, dto.id)
    _check_task(dto, store)
    with workspace_write(store, db):
        store.update_task(dto.to_domain())
        TaskRepository(db, autocommit=False).save(dto.to_domain())
    logger.info(f"Task {task_id} updated: {dto.start_date}..{dto.end_date}, {dto.hours}h")
    return dto


@router.delete("/workspace/tasks/{task_id}", status_code=204, summary="Delete task")
def delete_task(task_id: str, db: Session = Depends(get_db), store: WorkspaceStore = Depends(get_store)):
    """Delete a task; tasks that depended on it are saved without the dependency."""
    with workspace_write(store, db):
        dependents = [t.id for t in store.snapshot().tasks if task_id in t.dependencies]
        store.remove_task(task_id)
        repo = TaskRepository(db, autocommit=False)
        repo.delete(task_id)
        for dependent_id in dependents:
            repo.save(store.get_task(dependent_id))


@router.get("/workspace/overloaded", response_model=OverloadedResponse, summary="Overloaded members")
def workspace_overloaded(
    on: Optional[date] = Query(None, description="Date to check, defaults to today"),
    store: WorkspaceStore = Depends(get_store),
):
    """Notification-bell feed, computed fresh from the current workspace."""
    on_date = on or date.today()
    snapshot = store.snapshot()
    result = overloaded_members(snapshot.members, snapshot.tasks, on_date)
    return {"on_date": on_date, "members": [MemberDTO.from_domain(m) for m in result]}


@router.get("/workspace/heatmap", response_model=HeatmapResponse, summary="Workspace weekly heatmap")
def workspace_heatmap(
    week_start: Optional[date] = Query(None, description="Any day of the week, defaults to this week"),
    team: Optional[str] = Query(None, description="Team name filter; 'All' for everyone"),
    store: WorkspaceStore = Depends(get_store),
):
    """Grid for the Monday-start week containing `week_start`; the Monday used is returned."""
    snapshot = store.snapshot()
    members = members_in_team(snapshot.members, team)
    grid = weekly_heatmap(members, snapshot.tasks, week_start or date.today())
    return {
        "week_start": grid.days[0],
        "days": grid.days,
        "member_ids": grid.member_ids,
        "hours": grid.hours,
        "levels": grid.levels,
    }


@router.get("/workspace/period-heatmap", summary="Workspace weekly-average heatmap")
def workspace_period_heatmap(
    start: Optional[date] = Query(None, description="First week, defaults to this week"),
    weeks: int = Query(4, ge=1, le=53, description="Number of weeks (4 month, 13 quarter, 52 year)"),
    team: Optional[str] = Query(None),
    store: WorkspaceStore = Depends(get_store),
):
    """Average hours per business day for each Monday-start week."""
    snapshot = store.snapshot()
    members = members_in_team(snapshot.members, team)
    grid = period_heatmap(members, snapshot.tasks, start or date.today(), weeks)
    return {
        "week_starts": grid.week_starts,
        "member_ids": grid.member_ids,
        "average_hours": grid.average_hours,
        "levels": grid.levels,
    }


@router.get("/workspace/summary", response_model=SummaryResponse, summary="Resource allocation summary")
def workspace_summary(
    week_start: Optional[date] = Query(None),
    store: WorkspaceStore = Depends(get_store),
):
    """Average allocated hours per day this week versus capacity."""
    monday = start_of_week(week_start or date.today())
    snapshot = store.snapshot()
    summary = resource_allocation_summary(snapshot.members, snapshot.tasks, monday)
    return {
        "week_start": monday,
        "members": [
            AllocationSummaryDTO(
                member_id=s.member_id, name=s.name, capacity=s.capacity, allocated=s.allocated, level=s.level
            )
            for s in summary
        ],
    }
