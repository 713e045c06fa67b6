"""
Task Registry
-------------

Every background coroutine of the animation runtime (render loop, frame
fetches, deferred event publication) is started through
``create_tracked_task`` so it can be listed while running, reported when it
fails and cancelled in one place on shutdown.
"""

from __future__ import annotations

import asyncio
import time
from collections import Counter
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Dict, List, Optional

from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.TASK)


class TaskCategory(Enum):
    RENDER = auto()      # render loop
    LOAD = auto()        # frame fetches and simulated loads
    EVENTBUS = auto()    # event publication from sync callbacks
    ANIMATION = auto()
    GENERAL = auto()


@dataclass(frozen=True)
class TaskInfo:
    id: int
    category: TaskCategory
    description: str
    created_monotonic: float


@dataclass
class TaskRecord:
    task: asyncio.Task
    info: TaskInfo
    cancelled: bool = False
    finished_with_error: Optional[BaseException] = None
    finished_return: Optional[Any] = None
    finished_monotonic: Optional[float] = None

    @property
    def duration(self) -> Optional[float]:
        """Seconds from registration to completion, None while running."""
        if self.finished_monotonic is None:
            return None
        return self.finished_monotonic - self.info.created_monotonic


class TaskRegistry:
    """
    Process-wide registry, reached through ``TaskRegistry.instance()``.

    Only finished records are pruned, and only once more than
    ``history_limit`` records are held. Running tasks are always kept.
    """

    _instance: Optional["TaskRegistry"] = None

    def __init__(self, history_limit: int = 500) -> None:
        self._records: Dict[asyncio.Task, TaskRecord] = {}
        self._next_id = 1
        self._history_limit = history_limit

    @classmethod
    def instance(cls) -> "TaskRegistry":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def register(self, task: asyncio.Task, category: TaskCategory, description: str) -> int:
        info = TaskInfo(
            id=self._next_id,
            category=category,
            description=description,
            created_monotonic=time.monotonic(),
        )
        self._next_id += 1
        self._records[task] = TaskRecord(task=task, info=info)
        self._prune()

        log.debug(f"[Task {info.id}] {category.name}: {description}")
        task.add_done_callback(self._on_task_done)
        return info.id

    def _on_task_done(self, task: asyncio.Task) -> None:
        record = self._records.get(task)
        if record is None:
            return
        record.finished_monotonic = time.monotonic()

        if task.cancelled():
            record.cancelled = True
            return

        error = task.exception()
        if error is not None:
            record.finished_with_error = error
            log.error(
                f"[Task {record.info.id}] failed: {error}",
                description=record.info.description,
                error_type=type(error).__name__,
            )
        else:
            record.finished_return = task.result()

    def _prune(self) -> None:
        excess = len(self._records) - self._history_limit
        if excess <= 0:
            return
        done = [task for task in self._records if task.done()]
        for task in done[:excess]:
            del self._records[task]

    def list_all(self) -> List[TaskRecord]:
        return list(self._records.values())

    def active(self, category: Optional[TaskCategory] = None) -> List[TaskRecord]:
        return [
            r for r in self._records.values()
            if not r.task.done() and (category is None or r.info.category is category)
        ]

    def failed(self) -> List[TaskRecord]:
        return [r for r in self._records.values() if r.finished_with_error is not None]

    def summary(self) -> str:
        cancelled = sum(1 for r in self._records.values() if r.cancelled)
        running = Counter(r.info.category.name for r in self.active())
        per_category = ", ".join(f"{name}={count}" for name, count in sorted(running.items()))
        text = (
            f"Tasks: total={len(self._records)}, running={sum(running.values())}, "
            f"failed={len(self.failed())}, cancelled={cancelled}"
        )
        return f"{text} ({per_category})" if per_category else text

    async def cancel_all(self) -> int:
        """Cancel every running task except the caller and wait for them."""
        current = asyncio.current_task()
        tasks = [r.task for r in self.active() if r.task is not current]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        log.debug(f"Cancelled {len(tasks)} tasks")
        return len(tasks)


def create_tracked_task(
    coro,
    *,
    category: TaskCategory,
    description: str,
    loop: Optional[asyncio.AbstractEventLoop] = None
) -> asyncio.Task:
    """Create a task on the running (or given) loop and register it."""
    loop = loop or asyncio.get_running_loop()
    task = loop.create_task(coro)
    TaskRegistry.instance().register(task, category, description)
    return task
