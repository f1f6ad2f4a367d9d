import pytest
from dataclasses import replace
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from planner.models.entities import Assignment, ProjectStatus
from planner.storage.database import Base
from planner.storage.repositories import (
    MemberRepository,
    ProjectRepository,
    TaskRepository,
    TeamRepository,
    load_workspace,
)
from planner.storage.store import WorkspaceStore


@pytest.fixture
def db():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


class TestRepositories:
    """SQLAlchemy persistence of workspace records."""

    def test_task_assignments_survive_storage(self, db, shared_task):
        repo = TaskRepository(db)
        repo.save(replace(shared_task, dependencies=("task-0",)))
        loaded = repo.get_by_id("shared")
        assert loaded.assignments == shared_task.assignments
        assert loaded.start_date == shared_task.start_date
        assert loaded.dependencies == ("task-0",)

    def test_save_updates_existing(self, db, members):
        repo = MemberRepository(db)
        repo.save(members[0])
        repo.save(replace(members[0], capacity=6, teams=frozenset({"A", "B"})))
        [loaded] = repo.list_all()
        assert loaded.capacity == 6
        assert loaded.teams == frozenset({"A", "B"})

    def test_delete(self, db, solo_task):
        repo = TaskRepository(db)
        repo.save(solo_task)
        repo.delete(solo_task.id)
        assert repo.get_by_id(solo_task.id) is None

    def test_load_workspace_hydrates_store(self, db, members, project, team, solo_task):
        ProjectRepository(db).save(replace(project, status=ProjectStatus.AT_RISK))
        TeamRepository(db).save(team)
        for m in members:
            MemberRepository(db).save(m)
        TaskRepository(db).save(solo_task)

        store = WorkspaceStore()
        load_workspace(db, store)
        snapshot = store.snapshot()
        assert snapshot.projects[0].status == ProjectStatus.AT_RISK
        assert [t.name for t in snapshot.teams] == ["System Planning"]
        assert {m.id for m in snapshot.members} == {"alice", "bob", "carol"}
        assert snapshot.tasks[0].assignments[0] == Assignment("alice", frozenset({1, 2, 3, 4, 5}), 100)

    def test_deferred_commit_can_be_rolled_back(self, db, members, team):
        TeamRepository(db, autocommit=False).save(team)
        MemberRepository(db, autocommit=False).save(members[0])
        assert MemberRepository(db).get_by_id("alice") is not None
        db.rollback()
        assert TeamRepository(db).list_all() == []
        assert MemberRepository(db).get_by_id("alice") is None
