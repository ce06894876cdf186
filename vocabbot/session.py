from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import tzinfo
from typing import Callable, Dict, List, Optional

from vocabbot.config import learner_tz
from vocabbot.daily import now_ms
from vocabbot.db import SqliteStore
from vocabbot.models import Rating
from vocabbot.orchestrator import GradingResult, Learner, Store


@dataclass
class SessionData:
    learner: Learner
    queue: List[str] = field(default_factory=list)
    # Cards rated "again" this round, shown again once their relearn delay passes
    relearn: List[str] = field(default_factory=list)
    current: Optional[str] = None
    shown: int = 0
    xp_gained: int = 0
    mastered: List[str] = field(default_factory=list)

    def reset_round(self, queue: List[str]) -> None:
        self.queue = list(queue)
        self.relearn = []
        self.current = None
        self.shown = 0
        self.xp_gained = 0
        self.mastered = []

    def next_item(self, now: int) -> Optional[str]:
        """Pick the next card and mark it current.

        A relearning card whose delay has passed comes before the rest of the queue.
        """
        due_at = {s.item_id: s.due_at for s in self.learner.review_states}
        ready = [i for i in self.relearn if i in due_at and due_at[i] <= now]
        if ready:
            item_id: Optional[str] = min(ready, key=lambda i: due_at[i])
            self.relearn.remove(item_id)
        elif self.queue:
            item_id = self.queue.pop(0)
        else:
            item_id = None
        self.current = item_id
        return item_id

    def take_current(self, item_id: str) -> bool:
        """Claim the shown card for grading; stale or repeated ratings get False."""
        if self.current is None or self.current != item_id:
            return False
        self.current = None
        return True

    def record(self, item_id: str, rating: Rating, result: GradingResult) -> None:
        self.shown += 1
        self.xp_gained += result.xp_gained
        if rating == "again" and item_id not in self.relearn:
            self.relearn.append(item_id)
        if result.mastered:
            item = self.learner.item(item_id)
            self.mastered.append(item.text if item else item_id)


class SessionStore:
    """Per-user sessions; the learner is loaded from its store on first access."""

    def __init__(
        self,
        store_factory: Callable[[int], Store] = SqliteStore,
        tz: Optional[tzinfo] = None,
    ) -> None:
        self._data: Dict[int, SessionData] = {}
        self._lock = asyncio.Lock()
        self._store_factory = store_factory
        self._tz = tz

    async def get(self, user_id: int) -> SessionData:
        async with self._lock:
            s = self._data.get(user_id)
            if s is None:
                learner = await Learner.load(self._store_factory(user_id), now_ms(), self._tz or learner_tz())
                s = self._data[user_id] = SessionData(learner=learner)
            return s

    async def clear(self, user_id: int) -> None:
        """Drop the session after its pending writes land; `get` waits on the lock meanwhile."""
        async with self._lock:
            s = self._data.get(user_id)
            if s is None:
                return
            await s.learner.flush()
            del self._data[user_id]


store = SessionStore()
