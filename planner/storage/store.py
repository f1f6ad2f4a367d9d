import logging
import threading
from contextlib import contextmanager
from dataclasses import replace
from typing import Callable, Dict, Iterable, List, Optional

from planner.models.entities import Member, Project, Snapshot, Task, Team

logger = logging.getLogger(__name__)

Listener = Callable[[Snapshot], None]


class WorkspaceError(Exception):
    pass


class NotFoundError(WorkspaceError):
    pass


class DuplicateIdError(WorkspaceError):
    pass


class DuplicateNameError(WorkspaceError):
    pass


class UnknownProjectError(WorkspaceError):
    pass


class MemberInUseError(WorkspaceError):
    def __init__(self, member_id: str, task_ids: List[str]):
        super().__init__(f"Member {member_id} is assigned to tasks {', '.join(task_ids)}")
        self.member_id = member_id
        self.task_ids = task_ids


class WorkspaceStore:
    """
    In-memory owner of projects, teams, members and tasks.

    Readers take an immutable ``Snapshot``; writers go through the mutation
    methods, each of which notifies subscribers once with the new snapshot.
    Listeners run after the lock is released and may read the store.

    Mutations made inside ``transaction()`` are published together when the
    block exits, or discarded if it raises.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._projects: Dict[str, Project] = {}
        self._teams: Dict[str, Team] = {}
        self._members: Dict[str, Member] = {}
        self._tasks: Dict[str, Task] = {}
        self._listeners: List[Listener] = []
        self._depth = 0
        self._dirty = False

    def snapshot(self) -> Snapshot:
        with self._lock:
            return Snapshot(
                members=tuple(self._members.values()),
                tasks=tuple(self._tasks.values()),
                projects=tuple(self._projects.values()),
                teams=tuple(self._teams.values()),
            )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; the returned callable unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _emit_change(self) -> None:
        with self._lock:
            if self._depth:
                self._dirty = True
                return
            snapshot = self.snapshot()
            listeners = list(self._listeners)
        for listener in listeners:
            listener(snapshot)

    @contextmanager
    def transaction(self):
        """
        Hold the store for a group of mutations.

        If the block raises, every mutation made inside it is undone and
        nobody is notified. Otherwise subscribers get a single notification
        once the block exits. Other writers wait for the block to finish.
        """
        with self._lock:
            saved = (dict(self._projects), dict(self._teams), dict(self._members), dict(self._tasks))
            self._depth += 1
            try:
                yield self
            except BaseException:
                self._projects, self._teams, self._members, self._tasks = saved
                if self._depth == 1:
                    self._dirty = False
                raise
            finally:
                self._depth -= 1
            publish = self._dirty and not self._depth
            if publish:
                self._dirty = False
        if publish:
            self._emit_change()

    def load(
        self,
        projects: Iterable[Project] = (),
        teams: Iterable[Team] = (),
        members: Iterable[Member] = (),
        tasks: Iterable[Task] = (),
    ) -> None:
        """Replace the whole workspace, e.g. when hydrating from the database."""
        with self._lock:
            self._projects = {p.id: p for p in projects}
            self._teams = {t.id: t for t in teams}
            self._members = {m.id: m for m in members}
            self._tasks = {t.id: t for t in tasks}
        logger.info(
            f"Workspace loaded: {len(self._projects)} projects, {len(self._members)} members, {len(self._tasks)} tasks"
        )
        self._emit_change()

    # Projects

    def add_project(self, project: Project) -> Project:
        with self._lock:
            if project.id in self._projects:
                raise DuplicateIdError(f"Project {project.id} already exists")
            self._projects[project.id] = project
        self._emit_change()
        return project

    def update_project(self, project: Project) -> Project:
        with self._lock:
            if project.id not in self._projects:
                raise NotFoundError(f"Project {project.id} not found")
            self._projects[project.id] = project
        self._emit_change()
        return project

    # Teams

    def add_team(self, team: Team) -> Team:
        with self._lock:
            if team.id in self._teams:
                raise DuplicateIdError(f"Team {team.id} already exists")
            self._check_team_name(team.name, team.id)
            self._teams[team.id] = team
        self._emit_change()
        return team

    def rename_team(self, team_id: str, new_name: str) -> Team:
        """Rename a team and rewrite the name in every member's memberships."""
        with self._lock:
            team = self._teams.get(team_id)
            if team is None:
                raise NotFoundError(f"Team {team_id} not found")
            self._check_team_name(new_name, team_id)
            old_name = team.name
            renamed = replace(team, name=new_name)
            self._teams[team_id] = renamed
            for member in list(self._members.values()):
                if old_name in member.teams:
                    teams = (member.teams - {old_name}) | {new_name}
                    self._members[member.id] = replace(member, teams=frozenset(teams))
        self._emit_change()
        return renamed

    def remove_team(self, team_id: str) -> None:
        with self._lock:
            team = self._teams.pop(team_id, None)
            if team is None:
                raise NotFoundError(f"Team {team_id} not found")
            for member in list(self._members.values()):
                if team.name in member.teams:
                    self._members[member.id] = replace(member, teams=member.teams - {team.name})
        self._emit_change()

    def _check_team_name(self, name: str, team_id: str) -> None:
        # Members refer to teams by name, so names are keys too.
        for other in self._teams.values():
            if other.name == name and other.id != team_id:
                raise DuplicateNameError(f"Team name {name!r} is already used by team {other.id}")

    # Members

    def add_member(self, member: Member) -> Member:
        with self._lock:
            if member.id in self._members:
                raise DuplicateIdError(f"Member {member.id} already exists")
            self._members[member.id] = member
        self._emit_change()
        return member

    def update_member(self, member: Member) -> Member:
        with self._lock:
            if member.id not in self._members:
                raise NotFoundError(f"Member {member.id} not found")
            self._members[member.id] = member
        self._emit_change()
        return member

    def tasks_assigned_to(self, member_id: str) -> List[str]:
        with self._lock:
            return [
                t.id for t in self._tasks.values()
                if any(a.assignee_id == member_id for a in t.assignments)
            ]

    def remove_member(self, member_id: str) -> None:
        with self._lock:
            if member_id not in self._members:
                raise NotFoundError(f"Member {member_id} not found")
            task_ids = self.tasks_assigned_to(member_id)
            if task_ids:
                raise MemberInUseError(member_id, task_ids)
            del self._members[member_id]
        self._emit_change()

    # Tasks

    def add_task(self, task: Task) -> Task:
        with self._lock:
            if task.id in self._tasks:
                raise DuplicateIdError(f"Task {task.id} already exists")
            if task.project_id not in self._projects:
                raise UnknownProjectError(f"Task {task.id} references unknown project {task.project_id}")
            self._tasks[task.id] = task
        self._emit_change()
        return task

    def update_task(self, task: Task) -> Task:
        with self._lock:
            if task.id not in self._tasks:
                raise NotFoundError(f"Task {task.id} not found")
            if task.project_id not in self._projects:
                raise UnknownProjectError(f"Task {task.id} references unknown project {task.project_id}")
            self._tasks[task.id] = task
        self._emit_change()
        return task

    def remove_task(self, task_id: str) -> None:
        """Remove a task and drop it from other tasks' dependencies."""
        with self._lock:
            if self._tasks.pop(task_id, None) is None:
                raise NotFoundError(f"Task {task_id} not found")
            for other in list(self._tasks.values()):
                if task_id in other.dependencies:
                    deps = tuple(d for d in other.dependencies if d != task_id)
                    self._tasks[other.id] = replace(other, dependencies=deps)
        self._emit_change()

    def get_task(self, task_id: str) -> Optional[Task]:
        with self._lock:
            return self._tasks.get(task_id)
