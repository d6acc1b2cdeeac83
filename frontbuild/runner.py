"""Runner: starts graph nodes on a pool of worker threads."""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from .graph import TaskRegistry
from .task import RunResult, Task, TaskStatus

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 8


class Runner:
    """Run leaf tasks on worker threads; composites chain on their futures.

    Long running tasks (the web server, the watch loop) hold a worker for
    as long as they run, so the pool needs a few more workers than the
    widest parallel group.

    Example:
        with Runner(registry) as runner:
            result = runner.run('prod')
            print(result.status)
    """

    def __init__(self, registry: Optional[TaskRegistry] = None,
                 max_workers: Optional[int] = None):
        self.registry = registry if registry is not None else TaskRegistry()
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or DEFAULT_WORKERS,
            thread_name_prefix='frontbuild',
        )

    def submit(self, task: Task) -> 'Future[RunResult]':
        """Run a leaf task on a worker thread."""
        return self._executor.submit(self._run_task, task)

    @staticmethod
    def _run_task(task: Task) -> RunResult:
        try:
            return task.run()
        except Exception as e:
            logger.exception("Task '%s' crashed", task.name)
            return RunResult(task.name, TaskStatus.FAILED, error=e)

    def start(self, node) -> 'Future[RunResult]':
        """Start a node (or a registered task name)."""
        if isinstance(node, str):
            node = self.registry.get(node)
        return node.start(self)

    def run(self, node) -> RunResult:
        """Start a node and wait for its result."""
        return self.start(node).result()

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()
