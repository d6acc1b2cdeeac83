"""Path registry: where each kind of asset is read from and written to.

Every asset kind has a PathSet listing the glob patterns for each role.
Patterns are relative to the registry base path and use this syntax:

- ``*`` matches any characters except ``/``
- ``?`` matches a single character except ``/``
- ``**`` as a whole path segment matches zero or more directories

Example:
    registry = PathRegistry(Path('.'), {
        AssetKind.STYLE: PathSet(source=('src/style/main.scss',),
                                 build=('build/css/',)),
    })
    registry.resolve(AssetKind.STYLE, Role.SOURCE)
"""

import functools
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Tuple, Union

from .exceptions import ConfigurationError


class AssetKind(Enum):
    """Logical kinds of assets handled by the build."""
    MARKUP = "markup"
    SCRIPT = "script"
    STYLE = "style"
    IMAGE = "image"
    FONT = "font"


class Role(Enum):
    """What a path pattern is used for."""
    SOURCE = "source"
    INTERMEDIATE = "intermediate"
    BUILD = "build"
    WATCH = "watch"


@dataclass(frozen=True)
class PathSet:
    """Patterns for one asset kind, one tuple per role.

    An empty tuple means the role is not configured for this kind.
    """
    source: Tuple[str, ...] = ()
    intermediate: Tuple[str, ...] = ()
    build: Tuple[str, ...] = ()
    watch: Tuple[str, ...] = ()

    def get(self, role: Role) -> Tuple[str, ...]:
        return getattr(self, role.value)


@dataclass(frozen=True)
class PathRegistry:
    """Immutable lookup of (kind, role) -> patterns.

    Attributes:
        base_path: Directory all relative patterns are resolved against
        paths: Mapping of AssetKind to PathSet
        build_root: Output root erased by the clean task
    """
    base_path: Path
    paths: Mapping[AssetKind, PathSet] = field(default_factory=dict)
    build_root: str = "build"

    def __post_init__(self):
        object.__setattr__(self, 'base_path', Path(self.base_path))
        object.__setattr__(self, 'paths', MappingProxyType(dict(self.paths)))

    def resolve(self, kind: AssetKind, role: Role) -> Tuple[str, ...]:
        """Return absolute patterns for (kind, role).

        Raises:
            ConfigurationError: if the kind or the role is not configured
        """
        pathset = self.paths.get(kind)
        if pathset is None:
            raise ConfigurationError(
                f"No paths configured for asset kind '{kind.value}'")
        patterns = pathset.get(role)
        if not patterns:
            raise ConfigurationError(
                f"Path '{kind.value}.{role.value}' is not configured")
        return tuple(self.absolute(p) for p in patterns)

    def resolve_one(self, kind: AssetKind, role: Role) -> str:
        """Return the single pattern for roles that name one location."""
        patterns = self.resolve(kind, role)
        if len(patterns) != 1:
            raise ConfigurationError(
                f"Path '{kind.value}.{role.value}' must be a single "
                f"location, got {len(patterns)}")
        return patterns[0]

    def absolute(self, pattern: Union[str, Path]) -> str:
        """Resolve a pattern against base_path, as a posix string."""
        return (self.base_path / pattern).as_posix()

    @property
    def build_dir(self) -> Path:
        return Path(self.absolute(self.build_root))


_MAGIC = re.compile(r'[*?]')


def has_magic(pattern: str) -> bool:
    """True if pattern contains glob wildcards."""
    return _MAGIC.search(pattern) is not None


def static_base(pattern: str) -> str:
    """Return the directory portion of pattern before any wildcard.

    Examples:
        "src/img/**/*.*" -> "src/img"
        "src/style/main.scss" -> "src/style"
        "*.html" -> ""
    """
    parts = pattern.split('/')
    base = []
    for part in parts[:-1]:
        if has_magic(part):
            break
        base.append(part)
    if base == [''] and pattern.startswith('/'):
        return '/'
    return '/'.join(base)


def _escape_segment(segment: str) -> str:
    """Escape one path segment for regex, translating * and ? wildcards."""
    out = []
    for star_part in segment.split('*'):
        out.append('[^/]'.join(re.escape(p) for p in star_part.split('?')))
    return '[^/]*'.join(out)


@functools.lru_cache(maxsize=256)
def compile_glob(pattern: str) -> 're.Pattern[str]':
    """Compile a glob pattern into an anchored regex."""
    parts = pattern.split('/')
    regex = []
    for i, part in enumerate(parts):
        last = i == len(parts) - 1
        if part == '**':
            regex.append('.*' if last else '(?:[^/]+/)*')
            continue
        regex.append(_escape_segment(part))
        if not last:
            regex.append('/')
    return re.compile('^' + ''.join(regex) + '$')


def matches(path: Union[str, Path], pattern: str) -> bool:
    """True if path matches the glob pattern."""
    return compile_glob(pattern).match(Path(path).as_posix()) is not None


def expand(patterns: Iterable[str]) -> List[Path]:
    """Return existing files matching any of patterns, sorted and unique."""
    found: Dict[str, Path] = {}
    for pattern in patterns:
        base = static_base(pattern)
        rest = pattern[len(base):].lstrip('/')
        root = Path(base) if base else Path('.')
        if not has_magic(rest):
            candidates = [root / rest]
        else:
            candidates = root.glob(rest)
        for path in candidates:
            if path.is_file():
                found[path.as_posix()] = path
    return [found[key] for key in sorted(found)]

