"""Watch dispatcher: maps file change events to the tasks that rebuild.

Each WatchBinding pairs watch patterns with a graph node. A change to a
path matching a binding's patterns starts that node. The dispatcher does
not serialize runs: a change arriving while a run of the same task is in
flight starts another run.

Example:
    dispatcher = WatchDispatcher(runner)
    dispatcher.bind(['/project/src/style/**/*.scss'], registry.get('styles:dev'))
    dispatcher.watch()          # blocks until stop() is called
"""

import functools
import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from livereload.watcher import Watcher

from .paths import matches
from .task import Node, RunResult, TaskStatus

logger = logging.getLogger(__name__)


class DispatchState(Enum):
    """IDLE when no dispatched run is pending, DISPATCHED otherwise."""
    IDLE = "idle"
    DISPATCHED = "dispatched"


@dataclass(frozen=True)
class WatchBinding:
    """Watch patterns and the node they trigger.

    Attributes:
        patterns: Absolute glob patterns
        node: Node started when a matching file changes
    """
    patterns: Tuple[str, ...]
    node: Node

    def matches(self, path) -> bool:
        return any(matches(path, pattern) for pattern in self.patterns)


class WatchDispatcher:
    """Start tasks for changed files and track in-flight runs."""

    def __init__(self, runner):
        self.runner = runner
        self._bindings: List[WatchBinding] = []
        self._in_flight = 0
        self._lock = threading.Lock()
        self._stop = threading.Event()

    def bind(self, patterns: Iterable[str], node: Node) -> WatchBinding:
        patterns = tuple(str(p) for p in patterns)
        if not patterns:
            raise ValueError(f"Watch binding for '{node.name}' has no patterns")
        binding = WatchBinding(patterns, node)
        self._bindings.append(binding)
        return binding

    @property
    def bindings(self) -> Tuple[WatchBinding, ...]:
        return tuple(self._bindings)

    @property
    def state(self) -> DispatchState:
        with self._lock:
            return DispatchState.DISPATCHED if self._in_flight else DispatchState.IDLE

    def find_bindings(self, path) -> List[WatchBinding]:
        return [b for b in self._bindings if b.matches(path)]

    def dispatch(self, path) -> List['Future[RunResult]']:
        """Start the node of every binding matching path.

        Returns:
            One future per started run; empty when nothing matched
        """
        bindings = self.find_bindings(path)
        if not bindings:
            logger.debug("No task watches %s", path)
            return []
        logger.info("%s changed", path)
        return [self._start(binding) for binding in bindings]

    def _start(self, binding: WatchBinding) -> 'Future[RunResult]':
        with self._lock:
            self._in_flight += 1
        done = Future()
        try:
            future = self.runner.start(binding.node)
        except Exception:
            with self._lock:
                self._in_flight -= 1
            raise
        future.add_done_callback(functools.partial(self._finished, binding, done))
        return done

    def _finished(self, binding: WatchBinding, done: Future, future: Future) -> None:
        error = future.exception()
        if error is not None:
            logger.error("'%s' crashed: %s", binding.node.name, error)
            result = RunResult(binding.node.name, TaskStatus.FAILED, error=error)
        else:
            result = future.result()
            if result.failed:
                logger.warning("'%s' failed; still watching", binding.node.name)
        with self._lock:
            self._in_flight -= 1
        done.set_result(result)

    def watch(self, interval: float = 1.0, watcher: Optional[Watcher] = None) -> None:
        """Poll for changes and dispatch them until stop() is called.

        Every binding's node is started at most once per poll, however
        many of its files changed.
        """
        watcher = watcher or Watcher()
        pending: List[WatchBinding] = []
        for binding in self._bindings:
            for pattern in binding.patterns:
                watcher.watch(pattern, functools.partial(self._on_change, pending, binding))

        logger.info("Watching %d pattern(s)", sum(len(b.patterns) for b in self._bindings))
        while not self._stop.is_set():
            watcher.examine()
            started = []
            for binding in pending:
                if binding not in started:
                    started.append(binding)
                    self._start(binding)
            pending.clear()
            self._stop.wait(interval)
        logger.info("Stopped watching")

    def _on_change(self, pending: List[WatchBinding], binding: WatchBinding, changed=None) -> None:
        for path in changed if isinstance(changed, list) else ():
            logger.info("%s changed", path)
        pending.append(binding)

    def stop(self) -> None:
        self._stop.set()
