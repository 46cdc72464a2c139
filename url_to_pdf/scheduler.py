"""
Bounded-concurrency worker pool that renders tasks against one shared session.

MIT License - Copyright (c) 2025 URL to PDF Converter
"""

import asyncio
import threading
from typing import Callable, List, Optional, Sequence

from tqdm import tqdm

from .console import Console
from .tasks import RenderTask, TaskFailure

DEFAULT_CONCURRENCY = 4
DEFAULT_TIMEOUT = 120.0


def describe_error(exc: BaseException) -> str:
    """Readable one-line description of a failure."""
    message = str(exc).strip()
    if not message:
        return type(exc).__name__
    return message.splitlines()[0]


class TaskQueue:
    """Ordered tasks with a single shared cursor; every task is claimed once."""

    def __init__(self, tasks: Sequence[RenderTask]):
        self._tasks = tuple(tasks)
        self._cursor = 0
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._tasks)

    def claim(self) -> Optional[RenderTask]:
        """Return the next unclaimed task, or None once the queue is exhausted."""
        with self._lock:
            if self._cursor >= len(self._tasks):
                return None
            task = self._tasks[self._cursor]
            self._cursor += 1
            return task


class WorkerPool:
    """Processes a task list with a fixed number of concurrent workers.

    ``session_factory`` returns an async context manager whose value offers
    ``open_context()``; each context offers ``render(url, destination, timeout)``
    and ``close()``. The session is only created when there is work to do.
    """

    def __init__(self, session_factory: Callable, concurrency: int = DEFAULT_CONCURRENCY,
                 timeout: float = DEFAULT_TIMEOUT, console: Optional[Console] = None,
                 show_progress: bool = True):
        if concurrency < 1:
            raise ValueError(f"Concurrency must be at least 1, got {concurrency}")
        self.session_factory = session_factory
        self.concurrency = concurrency
        self.timeout = timeout
        self.console = console or Console()
        self.show_progress = show_progress
        self.failures: List[TaskFailure] = []
        self.succeeded = 0

    async def run(self, tasks: Sequence[RenderTask]) -> List[TaskFailure]:
        """Render every task once and return the failures.

        Errors starting the session propagate; task errors never do. An error
        while closing the session after all workers are done is only logged,
        so the collected failures still reach the caller.
        """
        queue = TaskQueue(tasks)
        if not len(queue):
            return self.failures

        workers_done = False
        with tqdm(total=len(queue), desc="Converting pages", unit="page",
                  disable=not self.show_progress) as pbar:
            try:
                async with self.session_factory() as session:
                    await asyncio.gather(*(
                        self._worker(worker_id, session, queue, pbar)
                        for worker_id in range(self.concurrency)
                    ))
                    workers_done = True
            except Exception as e:
                if not workers_done:
                    raise
                self.console.warning(f"Could not close the browser cleanly: {describe_error(e)}")
        return self.failures

    async def _worker(self, worker_id: int, session, queue: TaskQueue, pbar) -> None:
        while True:
            task = queue.claim()
            if task is None:
                self.console.debug(f"Worker {worker_id} finished")
                return
            await self._process(session, task)
            pbar.update(1)

    async def _process(self, session, task: RenderTask) -> None:
        context = None
        try:
            self.console.info(f"Processing: {task.url}")
            context = await session.open_context()
            await context.render(task.url, task.file_path, self.timeout)
            self.succeeded += 1
            self.console.success(f"Success: {task.file_path}")
        except Exception as e:
            error = describe_error(e)
            self.console.error(f"Failed: {task.url} - {error}")
            self.failures.append(TaskFailure.from_task(task, error))
        finally:
            if context is not None:
                try:
                    await context.close()
                except Exception as e:
                    self.console.warning(f"Could not close page for {task.url}: {describe_error(e)}")
