"""Pooled evaluation of many template expressions in parallel."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence

from leapsql.context import evaluate


def _discard(thread: "Thread", message: str) -> None:
    """Template evaluation does not print."""


@dataclass
class Thread:
    """Per-evaluation state; the name is used in error reports."""

    name: str = ""
    print: Callable[["Thread", str], None] = field(default=_discard, repr=False)


class ThreadPool:
    """A bounded pool of reusable evaluation threads."""

    def __init__(self, max_size: int = 10) -> None:
        self.max_size = max_size if max_size > 0 else 10
        self._threads: list[Thread] = []
        self._lock = threading.Lock()

    def get(self, name: str) -> Thread:
        """Take a thread from the pool, or create one, and name it."""
        with self._lock:
            if self._threads:
                thread = self._threads.pop()
                thread.name = name
                return thread
        return Thread(name=name)

    def put(self, thread: Thread) -> None:
        """Return a thread; it is dropped when the pool is full."""
        with self._lock:
            if len(self._threads) < self.max_size:
                thread.name = ""
                self._threads.append(thread)

    def __len__(self) -> int:
        with self._lock:
            return len(self._threads)


@dataclass
class EvalTask:
    """One expression to evaluate, named for error reporting."""

    name: str
    expr: str


@dataclass
class EvalResult:
    """The value of a task, or the error it raised."""

    name: str
    value: Any = None
    error: Exception | None = None


class ParallelExecutor:
    """Evaluates tasks concurrently against shared globals."""

    def __init__(self, max_concurrency: int, globals: Mapping[str, Any]) -> None:
        self.pool = ThreadPool(max_concurrency)
        self.globals = globals

    def _run(self, task: EvalTask) -> EvalResult:
        thread = self.pool.get(task.name)
        try:
            value = evaluate(task.expr, self.globals, thread.name)
            return EvalResult(task.name, value)
        except Exception as exc:
            return EvalResult(task.name, None, exc)
        finally:
            self.pool.put(thread)

    def execute(self, tasks: Sequence[EvalTask]) -> list[EvalResult]:
        """Run all tasks and return their results in task order."""
        if not tasks:
            return []
        with ThreadPoolExecutor(max_workers=len(tasks)) as executor:
            return list(executor.map(self._run, tasks))