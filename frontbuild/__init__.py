"""frontbuild: front-end asset build runner.

Named tasks compile stylesheets, bundle scripts, assemble HTML, compress
images and copy fonts. Tasks compose sequentially or in parallel, and a
watch loop reruns the dev tasks when their sources change while a
live-reload server refreshes the browser.

Usage:
    from frontbuild import Project, load_config
    project = Project(load_config('frontbuild.yaml'))
    try:
        result = project.run(['prod'])
    finally:
        project.close()

CLI:
    frontbuild prod
    python -m frontbuild --list
"""

from .exceptions import (
    FrontbuildError,
    ConfigurationError,
    TransformError,
    CacheError,
    TaskFailed,
)
from .paths import AssetKind, Role, PathSet, PathRegistry
from .config import BuildConfig, load_config
from .task import Mode, TaskStatus, RunResult, TaskUnit, ActionTask
from .graph import TaskRegistry, TaskRef, Sequential, Parallel, sequential, parallel
from .runner import Runner
from .watch import WatchDispatcher, WatchBinding, DispatchState
from .tasks import Project
from .cli import main

__all__ = [
    'FrontbuildError',
    'ConfigurationError',
    'TransformError',
    'CacheError',
    'TaskFailed',
    'AssetKind',
    'Role',
    'PathSet',
    'PathRegistry',
    'BuildConfig',
    'load_config',
    'Mode',
    'TaskStatus',
    'RunResult',
    'TaskUnit',
    'ActionTask',
    'TaskRegistry',
    'TaskRef',
    'Sequential',
    'Parallel',
    'sequential',
    'parallel',
    'Runner',
    'WatchDispatcher',
    'WatchBinding',
    'DispatchState',
    'Project',
    'main',
]
