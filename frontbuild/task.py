"""Tasks are the units frontbuild runs.

A task is a node of the task graph. Leaf tasks do the actual work:

- TaskUnit: reads files, applies pipeline steps, writes the results
- ActionTask: calls a Python function (clean, cache:clear, servers)

Composite nodes live in graph.py. Every node is started through a Runner,
which returns a Future resolving to a RunResult.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence, TYPE_CHECKING

from .exceptions import ConfigurationError, FrontbuildError, TaskFailed, TransformError
from .pipeline import Notifier, Step, read_assets, run_steps, write_asset

if TYPE_CHECKING:
    from .runner import Runner

logger = logging.getLogger(__name__)


class Mode(Enum):
    """Error policy of a task: dev keeps going, prod aborts."""
    DEV = "dev"
    PROD = "prod"


class TaskStatus(Enum):
    """Outcome of running a node."""
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class RunResult:
    """Outcome of one run of a node.

    Attributes:
        name: Node name
        status: Overall outcome
        error: First error that made the node fail
        diagnostics: Non-fatal problems (dev-mode file failures)
        outputs: Files written
        children: Results of child nodes, for composites
    """
    name: str
    status: TaskStatus
    error: Optional[BaseException] = None
    diagnostics: List[str] = field(default_factory=list)
    outputs: List[Path] = field(default_factory=list)
    children: List['RunResult'] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status == TaskStatus.SUCCEEDED

    @property
    def failed(self) -> bool:
        return self.status == TaskStatus.FAILED

    def find(self, name: str) -> Optional['RunResult']:
        """Return the result of the named node in this tree."""
        if self.name == name:
            return self
        for child in self.children:
            found = child.find(name)
            if found is not None:
                return found
        return None

    def all_outputs(self) -> List[Path]:
        outputs = list(self.outputs)
        for child in self.children:
            outputs.extend(child.all_outputs())
        return outputs


class Node(ABC):
    """Base class for everything in the task graph.

    @ivar name: (str) unique name when registered
    @ivar doc: (str) one line description, shown by --list
    """

    name: str
    doc: Optional[str] = None

    @abstractmethod
    def start(self, runner: 'Runner') -> 'Future[RunResult]':
        """Start the node and return a future for its result."""
        pass

    def children(self) -> Sequence['Node']:
        """Nodes started by this one."""
        return ()

    def __repr__(self):
        return f"<{type(self).__name__}: {self.name}>"


def check_name(name):
    """task names are non-empty strings without whitespace"""
    if not isinstance(name, str) or not name or any(c.isspace() for c in name):
        raise ConfigurationError(f"Invalid task name: {name!r}")


class Task(Node):
    """A leaf node whose work runs on a runner worker thread."""

    def start(self, runner):
        return runner.submit(self)

    @abstractmethod
    def run(self) -> RunResult:
        """Do the work synchronously."""
        pass


class TaskUnit(Task):
    """Named build step: read files, transform them, write them out.

    @ivar name: (str) unique task name, e.g. 'styles:dev'
    @ivar mode: (Mode) dev tolerates per-file failures, prod aborts on the
                first one
    @ivar inputs: (tuple - str) absolute glob patterns to read
    @ivar steps: (tuple - Step) transforms, applied in this order
    @ivar output_dir: (Path) where results are written
    @ivar notifies_server: (bool) send written paths to `notifier`
    """

    def __init__(self, name, mode, inputs, steps, output_dir,
                 notifies_server=False, notifier=None, doc=None):
        check_name(name)
        if not isinstance(mode, Mode):
            raise ConfigurationError(f"Task '{name}': mode must be a Mode, got {mode!r}")
        if isinstance(inputs, str) or not inputs:
            raise ConfigurationError(f"Task '{name}': inputs must be a non-empty list of patterns")
        for step in steps:
            if not isinstance(step, Step):
                raise ConfigurationError(
                    f"Task '{name}': steps must be Step objects. Got {step!r}")
        if notifies_server and not isinstance(notifier, Notifier):
            raise ConfigurationError(f"Task '{name}': notifies_server needs a notifier")

        self.name = name
        self.mode = mode
        self.inputs = tuple(str(p) for p in inputs)
        self.steps = tuple(steps)
        self.output_dir = Path(output_dir)
        self.notifies_server = notifies_server
        self.notifier = notifier
        self.doc = doc

    def run(self) -> RunResult:
        """Process every input file.

        TransformError and OSError are handled here: in dev mode the file
        is skipped and reported, in prod mode the task stops and fails.
        """
        logger.info("Starting '%s'", self.name)
        try:
            assets = read_assets(self.inputs)
        except OSError as e:
            return self._failure(e, None, [])
        if not assets:
            logger.warning("'%s': no files match %s", self.name, ', '.join(self.inputs))

        outputs: List[Path] = []
        diagnostics: List[str] = []
        for asset in assets:
            try:
                for produced in run_steps(self.steps, asset):
                    outputs.append(write_asset(produced, self.output_dir).written)
            except (TransformError, OSError) as e:
                if self.mode == Mode.PROD:
                    return self._failure(e, asset.source, outputs)
                failure = TaskFailed(self.name, e, path=str(asset.source))
                logger.warning("%s", failure)
                diagnostics.append(str(failure))

        if self.notifies_server and outputs:
            self.notifier.notify(outputs)

        status = TaskStatus.FAILED if diagnostics else TaskStatus.SUCCEEDED
        logger.info("Finished '%s' (%d file(s) written)", self.name, len(outputs))
        return RunResult(self.name, status, diagnostics=diagnostics, outputs=outputs)

    def _failure(self, error, path, outputs):
        failure = TaskFailed(self.name, error, path=str(path) if path else None)
        logger.error("%s", failure)
        return RunResult(self.name, TaskStatus.FAILED, error=failure, outputs=outputs)


class ActionTask(Task):
    """Named task running a Python callable.

    The callable takes no arguments. FrontbuildError and OSError raised by
    it fail the task; its return value is ignored.
    """

    def __init__(self, name, action, doc=None):
        check_name(name)
        if not isinstance(action, Callable):
            raise ConfigurationError(f"Task '{name}': action must be callable, got {action!r}")
        self.name = name
        self.action = action
        self.doc = doc

    def run(self) -> RunResult:
        logger.info("Starting '%s'", self.name)
        try:
            self.action()
        except (FrontbuildError, OSError) as e:
            failure = TaskFailed(self.name, e)
            logger.error("%s", failure)
            return RunResult(self.name, TaskStatus.FAILED, error=failure)
        logger.info("Finished '%s'", self.name)
        return RunResult(self.name, TaskStatus.SUCCEEDED)
