"""CLI entry point for frontbuild.

Usage:
    python -m frontbuild [options] [task ...]

Example:
    python -m frontbuild prod
    python -m frontbuild --config site.yaml styles:dev js:dev
    python -m frontbuild --list
"""

from .cli import main
import sys

if __name__ == '__main__':
    sys.exit(main())
