import logging
from datetime import date
from typing import Callable, List, Optional, Set

from planner.engine.reports import overloaded_members
from planner.models.entities import Member, Snapshot

logger = logging.getLogger(__name__)


class OverloadWatcher:
    """
    Notification-bell feed: recomputes today's overloaded members on every
    workspace change and logs members who newly crossed their capacity.
    """

    def __init__(self, today: Callable[[], date] = date.today):
        self.today = today
        self.overloaded: List[Member] = []
        self.newly_overloaded: List[Member] = []
        self._unsubscribe: Optional[Callable[[], None]] = None

    def attach(self, store) -> None:
        self.detach()
        self._unsubscribe = store.subscribe(self.on_change)
        self.on_change(store.snapshot())

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def on_change(self, snapshot: Snapshot) -> None:
        previous: Set[str] = {m.id for m in self.overloaded}
        current = overloaded_members(snapshot.members, snapshot.tasks, self.today())
        self.newly_overloaded = [m for m in current if m.id not in previous]
        self.overloaded = current
        for member in self.newly_overloaded:
            logger.warning(f"Member {member.id} ({member.name or 'unnamed'}) is overloaded, capacity {member.capacity}h/day")
