from typing import List, Optional

from sqlalchemy.orm import Session

from planner.models.entities import Assignment, Member, Project, ProjectStatus, Task, Team
from planner.storage.database import MemberModel, ProjectModel, TaskModel, TeamModel


class _Repository:
    """
    Base for the repositories below.

    With ``autocommit=False`` writes are only flushed, leaving the commit (or
    rollback) to the caller so several saves land in one transaction.
    """

    def __init__(self, db: Session, autocommit: bool = True):
        self.db = db
        self.autocommit = autocommit

    def _finish(self) -> None:
        if self.autocommit:
            self.db.commit()
        else:
            self.db.flush()


class TeamRepository(_Repository):
    def list_all(self) -> List[Team]:
        return [Team(id=m.id, name=m.name) for m in self.db.query(TeamModel).all()]

    def save(self, team: Team) -> None:
        existing = self.db.query(TeamModel).filter(TeamModel.id == team.id).first()
        if existing:
            existing.name = team.name
        else:
            self.db.add(TeamModel(id=team.id, name=team.name))
        self._finish()

    def delete(self, team_id: str) -> None:
        self.db.query(TeamModel).filter(TeamModel.id == team_id).delete()
        self._finish()


class MemberRepository(_Repository):
    def get_by_id(self, member_id: str) -> Optional[Member]:
        model = self.db.query(MemberModel).filter(MemberModel.id == member_id).first()
        if not model:
            return None
        return self._model_to_member(model)

    def list_all(self) -> List[Member]:
        models = self.db.query(MemberModel).all()
        return [self._model_to_member(m) for m in models]

    def save(self, member: Member) -> None:
        existing = self.db.query(MemberModel).filter(MemberModel.id == member.id).first()
        teams = sorted(member.teams)
        if existing:
            existing.name = member.name
            existing.capacity = member.capacity
            existing.teams = teams
        else:
            self.db.add(MemberModel(id=member.id, name=member.name, capacity=member.capacity, teams=teams))
        self._finish()

    def delete(self, member_id: str) -> None:
        self.db.query(MemberModel).filter(MemberModel.id == member_id).delete()
        self._finish()

    @staticmethod
    def _model_to_member(model: MemberModel) -> Member:
        return Member(
            id=model.id,
            name=model.name,
            capacity=model.capacity,
            teams=frozenset(model.teams or []),
        )


class ProjectRepository(_Repository):
    def list_all(self) -> List[Project]:
        return [
            Project(id=m.id, name=m.name, status=ProjectStatus(m.status))
            for m in self.db.query(ProjectModel).all()
        ]

    def save(self, project: Project) -> None:
        existing = self.db.query(ProjectModel).filter(ProjectModel.id == project.id).first()
        if existing:
            existing.name = project.name
            existing.status = project.status.value
        else:
            self.db.add(ProjectModel(id=project.id, name=project.name, status=project.status.value))
        self._finish()


class TaskRepository(_Repository):
    def get_by_id(self, task_id: str) -> Optional[Task]:
        model = self.db.query(TaskModel).filter(TaskModel.id == task_id).first()
        if not model:
            return None
        return self._model_to_task(model)

    def list_all(self) -> List[Task]:
        models = self.db.query(TaskModel).all()
        return [self._model_to_task(m) for m in models]

    def save(self, task: Task) -> None:
        assignments = [
            {"assignee_id": a.assignee_id, "working_days": sorted(a.working_days), "effort": a.effort}
            for a in task.assignments
        ]
        existing = self.db.query(TaskModel).filter(TaskModel.id == task.id).first()
        if existing:
            existing.name = task.name
            existing.project_id = task.project_id
            existing.start_date = task.start_date
            existing.end_date = task.end_date
            existing.hours = task.hours
            existing.assignments = assignments
            existing.dependencies = list(task.dependencies)
        else:
            model = TaskModel(
                id=task.id,
                name=task.name,
                project_id=task.project_id,
                start_date=task.start_date,
                end_date=task.end_date,
                hours=task.hours,
                assignments=assignments,
                dependencies=list(task.dependencies),
            )
            self.db.add(model)
        self._finish()

    def delete(self, task_id: str) -> None:
        self.db.query(TaskModel).filter(TaskModel.id == task_id).delete()
        self._finish()

    @staticmethod
    def _model_to_task(model: TaskModel) -> Task:
        return Task(
            id=model.id,
            name=model.name,
            project_id=model.project_id,
            start_date=model.start_date,
            end_date=model.end_date,
            hours=model.hours,
            assignments=tuple(
                Assignment(
                    assignee_id=a["assignee_id"],
                    working_days=frozenset(a["working_days"]),
                    effort=a["effort"],
                )
                for a in model.assignments or []
            ),
            dependencies=tuple(model.dependencies or []),
        )


def load_workspace(db: Session, store) -> None:
    """Hydrate a WorkspaceStore from the database."""
    store.load(
        projects=ProjectRepository(db).list_all(),
        teams=TeamRepository(db).list_all(),
        members=MemberRepository(db).list_all(),
        tasks=TaskRepository(db).list_all(),
    )
