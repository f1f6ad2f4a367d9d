"""
Example: driving the workload engine from a live workspace store

Builds a small workspace, subscribes an overload watcher the way the
notification bell does, and prints this week's heatmap.
"""

from datetime import date, timedelta

from planner.engine.alerts import OverloadWatcher
from planner.engine.business_days import start_of_week
from planner.engine.reports import weekly_heatmap
from planner.models.entities import Assignment, Member, Project, Task
from planner.storage.store import WorkspaceStore

WEEKDAYS = frozenset({1, 2, 3, 4, 5})

monday = start_of_week(date.today())
friday = monday + timedelta(days=4)

store = WorkspaceStore()
watcher = OverloadWatcher()
watcher.attach(store)

store.add_project(Project(id="proj-1", name="Project Phoenix"))
store.add_member(Member(id="user-1", name="Alice Johnson", capacity=8, teams=frozenset({"System Planning"})))
store.add_member(Member(id="user-2", name="Bob Williams", capacity=6, teams=frozenset({"Protection & Control"})))

# 40h over five days split 60/40: Alice 4.8h/day, Bob 3.2h/day
store.add_task(Task(
    id="task-1",
    name="Feasibility Study",
    project_id="proj-1",
    start_date=monday,
    end_date=friday,
    hours=40,
    assignments=(
        Assignment("user-1", WEEKDAYS, effort=60),
        Assignment("user-2", WEEKDAYS, effort=40),
    ),
))

# Bob also carries 20h of reviews on Mon/Wed/Fri only: +4h on those days
store.add_task(Task(
    id="task-2",
    name="Design Review",
    project_id="proj-1",
    start_date=monday,
    end_date=friday,
    hours=20,
    assignments=(Assignment("user-2", frozenset({1, 3, 5}), effort=100),),
))

snapshot = store.snapshot()
grid = weekly_heatmap(snapshot.members, snapshot.tasks, monday)
print("member  " + " ".join(d.strftime("%a") for d in grid.days))
for member_id, row, levels in zip(grid.member_ids, grid.hours, grid.levels):
    print(f"{member_id:7} " + " ".join(f"{h:3.1f}" for h in row))
    print(" " * 8 + " ".join(level.value[:3] for level in levels))

print("Overloaded today:", [m.name for m in watcher.overloaded])
