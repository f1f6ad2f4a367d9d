from datetime import date

import pytest
from planner.models.entities import Assignment, Member, Project, Task, Team

WEEKDAYS = frozenset({1, 2, 3, 4, 5})


@pytest.fixture
def monday():
    """Monday 8 Jan 2024; the working week runs to Friday the 12th."""
    return date(2024, 1, 8)


@pytest.fixture
def friday():
    return date(2024, 1, 12)


@pytest.fixture
def members():
    """Three members across two teams."""
    return [
        Member(id="alice", name="Alice Johnson", capacity=8, teams=frozenset({"System Planning"})),
        Member(id="bob", name="Bob Williams", capacity=8, teams=frozenset({"Protection & Control"})),
        Member(id="carol", name="Carol Brown", capacity=6, teams=frozenset({"System Planning"})),
    ]


@pytest.fixture
def project():
    return Project(id="proj-1", name="Project Phoenix")


@pytest.fixture
def team():
    return Team(id="team-1", name="System Planning")


@pytest.fixture
def make_task(monday, friday):
    """Factory for tasks in proj-1, defaulting to the Mon..Fri week."""
    def _make(task_id="task-1", hours=10.0, assignments=(), start=None, end=None, dependencies=()):
        return Task(
            id=task_id,
            project_id="proj-1",
            start_date=start or monday,
            end_date=end or friday,
            hours=hours,
            assignments=tuple(assignments),
            dependencies=tuple(dependencies),
        )
    return _make


@pytest.fixture
def solo_task(make_task):
    """10h over five business days, all of it Alice's."""
    return make_task("solo", 10, [Assignment("alice", WEEKDAYS, 100)])


@pytest.fixture
def shared_task(make_task):
    """10h over five business days split 60/40 between Alice and Bob."""
    return make_task("shared", 10, [
        Assignment("alice", WEEKDAYS, 60),
        Assignment("bob", WEEKDAYS, 40),
    ])
