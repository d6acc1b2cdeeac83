"""Command line entry point.

This module provides `frontbuild` / `python -m frontbuild`.
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Union

from .config import DEFAULT_CONFIG_FILE, load_config
from .exceptions import ConfigurationError
from .task import RunResult, TaskStatus
from .tasks import Project

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2
EXIT_INTERRUPTED = 130


def run_tasks(
    names: Sequence[str] = ('default',),
    config_path: Optional[Union[str, Path]] = None,
    base_path: Optional[Union[str, Path]] = None,
    max_workers: Optional[int] = None,
) -> RunResult:
    """Load the configuration and run tasks by name.

    Args:
        names: Tasks to run; several names run in parallel
        config_path: YAML file (default: frontbuild.yaml if present)
        base_path: Override base path from config
        max_workers: Size of the worker pool

    Returns:
        RunResult of the run

    Example:
        result = run_tasks(['prod'])
        if result.failed:
            print(result.error)
    """
    config = load_config(config_path, base_path=base_path)
    project = Project(config, max_workers=max_workers)
    try:
        return project.run(list(names))
    finally:
        project.close()


def _print_summary(result: RunResult, indent: int = 0) -> None:
    print(f"{'  ' * indent}{result.name}: {result.status.value}")
    for line in result.diagnostics:
        print(f"{'  ' * (indent + 1)}{line}")
    for child in result.children:
        _print_summary(child, indent + 1)


def _list_tasks(config_path, base_path) -> None:
    config = load_config(config_path, base_path=base_path)
    project = Project(config, max_workers=1)
    try:
        width = max(len(name) for name in project.registry.names)
        for node in project.registry:
            print(f"{node.name:<{width}}  {node.doc or ''}".rstrip())
    finally:
        project.close()


def main(args: Optional[List[str]] = None) -> int:
    """CLI entry point.

    Usage:
        frontbuild [options] [task ...]

    Args:
        args: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 success, 1 task failure, 2 configuration error)
    """
    import argparse

    parser = argparse.ArgumentParser(
        description='Build and serve front-end assets',
        prog='frontbuild',
    )
    parser.add_argument(
        'tasks',
        nargs='*',
        default=['default'],
        help='Tasks to run (default: default)',
    )
    parser.add_argument(
        '-c', '--config',
        default=None,
        help=f'Path to the YAML config file (default: {DEFAULT_CONFIG_FILE})',
    )
    parser.add_argument(
        '--base-path',
        type=str,
        default=None,
        help='Override base path for file patterns',
    )
    parser.add_argument(
        '--workers',
        type=int,
        default=None,
        help='Number of worker threads',
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Log debug information',
    )
    parser.add_argument(
        '--list',
        action='store_true',
        help='List tasks without running them',
    )

    parsed = parser.parse_args(args)
    logging.basicConfig(
        level=logging.DEBUG if parsed.verbose else logging.INFO,
        format='[%(asctime)s] %(levelname)s %(name)s: %(message)s',
        datefmt='%H:%M:%S',
    )

    try:
        if parsed.list:
            _list_tasks(parsed.config, parsed.base_path)
            return EXIT_OK

        result = run_tasks(
            parsed.tasks,
            config_path=parsed.config,
            base_path=parsed.base_path,
            max_workers=parsed.workers,
        )
        _print_summary(result)
        return EXIT_OK if result.status == TaskStatus.SUCCEEDED else EXIT_FAILED

    except (ConfigurationError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return EXIT_INTERRUPTED


if __name__ == '__main__':
    sys.exit(main())
