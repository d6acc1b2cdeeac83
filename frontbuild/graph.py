"""Task composition: sequential and parallel groups, named references.

Composite nodes never block a worker thread. They start their children
through the runner and chain on the children's futures, so composites can
nest to any depth without starving the worker pool.

Example:
    registry = TaskRegistry()
    registry.register(clean_task)
    registry.register(styles_task)
    registry.register(sequential('clean', parallel('styles:prod'), name='prod'))
    registry.validate()
"""

import functools
import threading
from collections import OrderedDict
from concurrent.futures import Future
from typing import Dict, Iterator, List, Optional, Sequence, Union

from .exceptions import ConfigurationError
from .task import Node, RunResult, TaskStatus, check_name


NodeLike = Union[Node, str]


def _as_node(item: NodeLike) -> Node:
    if isinstance(item, Node):
        return item
    if isinstance(item, str):
        return TaskRef(item)
    raise ConfigurationError(f"Expected a task or task name, got {item!r}")


def _start_child(runner, node: Node) -> 'Future[RunResult]':
    """Start a child; an error while starting it fails that child only."""
    try:
        return runner.start(node)
    except Exception as e:
        future = Future()
        future.set_exception(e)
        return future


def _result_of(node: Node, future: 'Future[RunResult]') -> RunResult:
    """Turn a finished child future into a RunResult."""
    error = future.exception()
    if error is not None:
        return RunResult(node.name, TaskStatus.FAILED, error=error)
    return future.result()


class TaskRef(Node):
    """Reference to a registered node by name, resolved when started."""

    def __init__(self, name: str):
        check_name(name)
        self.name = name

    def start(self, runner):
        return runner.registry.get(self.name).start(runner)


class Sequential(Node):
    """Run nodes one after the other.

    Node i+1 starts only after node i succeeded. On the first failure the
    remaining nodes are reported as skipped and the composite fails.
    """

    def __init__(self, nodes: Sequence[NodeLike], name: Optional[str] = None, doc=None):
        self.nodes = tuple(_as_node(n) for n in nodes)
        self.name = name or 'series(%s)' % ', '.join(n.name for n in self.nodes)
        self.doc = doc

    def children(self):
        return self.nodes

    def start(self, runner):
        future = Future()
        results: List[RunResult] = []

        def start_next(index):
            if index == len(self.nodes):
                future.set_result(RunResult(self.name, TaskStatus.SUCCEEDED, children=results))
                return
            child = _start_child(runner, self.nodes[index])
            child.add_done_callback(functools.partial(finished, index))

        def finished(index, child_future):
            result = _result_of(self.nodes[index], child_future)
            results.append(result)
            if result.status != TaskStatus.SUCCEEDED:
                results.extend(RunResult(n.name, TaskStatus.SKIPPED)
                               for n in self.nodes[index + 1:])
                future.set_result(RunResult(
                    self.name, TaskStatus.FAILED, error=result.error, children=results))
                return
            start_next(index + 1)

        start_next(0)
        return future


class Parallel(Node):
    """Start all nodes together; done when every one of them is done.

    A failing node does not cancel its siblings: they run to completion
    and each result is kept in the composite's children. The composite
    fails if any node failed.
    """

    def __init__(self, nodes: Sequence[NodeLike], name: Optional[str] = None, doc=None):
        self.nodes = tuple(_as_node(n) for n in nodes)
        self.name = name or 'parallel(%s)' % ', '.join(n.name for n in self.nodes)
        self.doc = doc

    def children(self):
        return self.nodes

    def start(self, runner):
        future = Future()
        if not self.nodes:
            future.set_result(RunResult(self.name, TaskStatus.SUCCEEDED))
            return future

        results: List[Optional[RunResult]] = [None] * len(self.nodes)
        pending = [len(self.nodes)]
        lock = threading.Lock()

        def finished(index, child_future):
            result = _result_of(self.nodes[index], child_future)
            with lock:
                results[index] = result
                pending[0] -= 1
                if pending[0]:
                    return
            failures = [r for r in results if r.status == TaskStatus.FAILED]
            status = TaskStatus.FAILED if failures else TaskStatus.SUCCEEDED
            future.set_result(RunResult(
                self.name, status,
                error=failures[0].error if failures else None,
                children=list(results),
            ))

        for index, node in enumerate(self.nodes):
            _start_child(runner, node).add_done_callback(functools.partial(finished, index))
        return future


def sequential(*nodes: NodeLike, name: Optional[str] = None, doc=None) -> Sequential:
    """Compose nodes (or task names) to run one after the other."""
    return Sequential(nodes, name=name, doc=doc)


def parallel(*nodes: NodeLike, name: Optional[str] = None, doc=None) -> Parallel:
    """Compose nodes (or task names) to run at the same time."""
    return Parallel(nodes, name=name, doc=doc)


class TaskRegistry:
    """Named nodes of a project.

    Names are unique. validate() checks, once all nodes are registered,
    that every reference names a registered node and that no node
    (directly or through references) contains itself.
    """

    def __init__(self):
        self._nodes: Dict[str, Node] = OrderedDict()

    def register(self, node: Node) -> Node:
        if node.name in self._nodes:
            raise ConfigurationError(f"Task '{node.name}' is already registered")
        self._nodes[node.name] = node
        return node

    def get(self, name: str) -> Node:
        try:
            return self._nodes[name]
        except KeyError:
            raise ConfigurationError(
                f"Unknown task '{name}'. Available tasks: {', '.join(self._nodes)}"
            ) from None

    def __contains__(self, name: str) -> bool:
        return name in self._nodes

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def names(self) -> List[str]:
        return list(self._nodes)

    def validate(self) -> None:
        """Check references and reject cycles.

        Raises:
            ConfigurationError: on an unknown reference or a cycle
        """
        done = set()
        for node in self._nodes.values():
            self._visit(node, [], done)

    def _visit(self, node: Node, path: List[Node], done: set) -> None:
        if id(node) in done:
            return
        if any(n is node for n in path):
            names = [n.name for n in path[path.index(node):]] + [node.name]
            raise ConfigurationError(f"Task cycle: {' -> '.join(names)}")
        path.append(node)
        if isinstance(node, TaskRef):
            self._visit(self.get(node.name), path, done)
        for child in node.children():
            self._visit(child, path, done)
        path.pop()
        done.add(id(node))
