"""Thread-backed cooperative tasks with wake counters, sleeps and locks."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable

TASK_MAX = 8
LOCK_WAITERS_MAX = 4
MAX_SLEEP_CHUNK = 127
TICK_SECONDS = 0.001


def _s8(value: int) -> int:
    """Wrap ``value`` to a signed 8-bit integer."""
    return ((value + 0x80) & 0xFF) - 0x80


def _s32(value: int) -> int:
    """Wrap ``value`` to a signed 32-bit integer."""
    return ((value + 0x80000000) & 0xFFFFFFFF) - 0x80000000


@dataclass(eq=False)
class Task:
    """One schedulable task, run on its own thread."""

    task_id: int
    priority: int
    thread: threading.Thread | None = None
    ticks_create_wakes: bool = False
    wakes: int = 0
    thresh: int = 0
    cond: threading.Condition = field(default_factory=threading.Condition)

    def _is_woke(self) -> bool:
        return _s8(self.thresh - self.wakes) <= 0

    def _increment_wakes(self) -> bool:
        # Caller holds self.cond.
        self.wakes = _s8(self.wakes + 1)
        if _s8(self.thresh - self.wakes) == -128:
            # A task that keeps receiving wakes without waiting would
            # otherwise wrap around from "woken" to "asleep".
            self.thresh = _s8(self.thresh + 1)
        self.cond.notify_all()
        return self._is_woke()


class Scheduler:
    """Table of up to ``task_max`` tasks and a millisecond tick counter."""

    def __init__(self, task_max: int = TASK_MAX) -> None:
        if task_max < 1:
            raise ValueError("task table must hold at least one task")
        self.task_max = task_max
        self._tasks: list[Task | None] = [None] * (task_max + 1)
        self._table_lock = threading.Lock()
        self.systick = 0

    @property
    def tasks(self) -> list[Task]:
        """Tasks created so far, in id order."""
        return [task for task in self._tasks if task is not None]

    def create_task(self, priority: int, func: Callable[[Any], Any],
                    arg: Any = None) -> Task:
        """Start ``func(arg)`` as a new task in the first free slot."""
        if not 0 <= priority <= 0xFF:
            raise ValueError("priority must be in 0..255")
        with self._table_lock:
            for task_id in range(1, self.task_max + 1):
                if self._tasks[task_id] is None:
                    break
            else:
                raise RuntimeError("task table is full")
            task = Task(task_id=task_id, priority=priority)
            task.thread = threading.Thread(
                target=func, args=(arg,), name=f"task-{task_id}", daemon=True
            )
            self._tasks[task_id] = task
        task.thread.start()
        return task

    def task_id(self) -> int:
        """Id of the calling task, or 0 when called from outside any task."""
        current = threading.current_thread()
        for task in self.tasks:
            if task.thread is current:
                return task.task_id
        return 0

    def _current_task(self) -> Task:
        task_id = self.task_id()
        if task_id == 0:
            raise RuntimeError("not called from a task")
        task = self._tasks[task_id]
        assert task is not None
        return task

    def wake(self, task_id: int) -> bool:
        """Give one wake to a task; return whether it is now runnable."""
        if not 1 <= task_id <= self.task_max:
            raise ValueError(f"task id {task_id} out of range")
        task = self._tasks[task_id]
        if task is None:
            raise ValueError(f"no task with id {task_id}")
        with task.cond:
            return task._increment_wakes()

    def resched(self) -> None:
        """Ask for a scheduling decision.

        Each task runs on its own thread, so woken tasks already resume on
        their own and there is nothing further to do.
        """

    def wake_count(self) -> int:
        """Current wake counter of the calling task."""
        task = self._current_task()
        with task.cond:
            return task.wakes

    def wait(self, threshold: int) -> None:
        """Block the calling task until its wake counter reaches ``threshold``."""
        task = self._current_task()
        with task.cond:
            task.thresh = _s8(threshold)
            while not task._is_woke():
                task.cond.wait()

    def yield_task(self) -> None:
        """Give up the processor without waiting for a wake."""
        self.wait(self.wake_count())

    def tick(self) -> None:
        """Advance the tick counter and wake every sleeping task once."""
        self.systick = (self.systick + 1) & 0xFFFFFFFF
        for task in self.tasks:
            with task.cond:
                if task.ticks_create_wakes:
                    task._increment_wakes()

    def run(self, ticks: int | None = None) -> None:
        """Tick once a millisecond, ``ticks`` times or forever when None."""
        count = 0
        while ticks is None or count < ticks:
            time.sleep(TICK_SECONDS)
            self.tick()
            count += 1

    def sleep(self, ticks: int) -> None:
        """Block the calling task for ``ticks`` ticks."""
        self.sleep_until((self.systick + ticks) & 0xFFFFFFFF)

    def sleep_until(self, completion: int) -> None:
        """Block the calling task until the tick counter reaches ``completion``."""
        while True:
            remain = _s32(completion - self.systick)
            if remain <= 0:
                break
            remain = min(remain, MAX_SLEEP_CHUNK)
            task = self._current_task()
            task.ticks_create_wakes = True
            self.wait(self.wake_count() + remain)
            task.ticks_create_wakes = False


class Lock:
    """Mutual exclusion between tasks."""

    def __init__(self) -> None:
        self._mutex = threading.Lock()

    def lock(self) -> None:
        """Block until the lock is held."""
        self._mutex.acquire()

    def try_lock(self) -> bool:
        """Take the lock if free; return whether it was taken."""
        return self._mutex.acquire(blocking=False)

    def unlock(self) -> None:
        """Release the lock."""
        self._mutex.release()

    def __enter__(self) -> Lock:
        self.lock()
        return self

    def __exit__(self, *args: object) -> None:
        self.unlock()