"""Reading, writing and renaming assets."""

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, runtime_checkable

from frontbuild.fileutil import atomic_write
from frontbuild.paths import expand, static_base
from .base import Asset, Step


@runtime_checkable
class Notifier(Protocol):
    """Anything that can be told which output files changed."""

    def notify(self, paths: List[Path]) -> None:
        ...


def read_assets(patterns: Iterable[str]) -> List[Asset]:
    """Read every file matching patterns.

    A file matched by more than one pattern is read once, with the base
    of the first pattern that matched it.

    Raises:
        OSError: if a matched file cannot be read
    """
    assets: Dict[str, Asset] = {}
    for pattern in patterns:
        base = Path(static_base(pattern) or '.')
        for path in expand([pattern]):
            key = path.as_posix()
            if key in assets:
                continue
            assets[key] = Asset(
                path=path,
                contents=path.read_bytes(),
                base=base,
                source=path,
            )
    return list(assets.values())


def write_asset(asset: Asset, dest: Path) -> Asset:
    """Write asset under dest, keeping its path relative to its base.

    Returns:
        The asset with `written` set to the output path
    """
    target = Path(dest) / asset.relative
    atomic_write(target, asset.contents)
    return asset.replace(written=target)


class Rename(Step):
    """Rename assets.

    Either replace the whole file name with `basename`, or wrap the stem
    with `prefix` and `suffix` (`main.js` + suffix `.min` -> `main.min.js`).
    """

    name = 'rename'

    def __init__(self, basename: Optional[str] = None, prefix: str = '', suffix: str = ''):
        self.basename = basename
        self.prefix = prefix
        self.suffix = suffix

    def apply(self, asset: Asset) -> Asset:
        path = asset.path
        if self.basename:
            return asset.replace(path=path.with_name(self.basename))
        stem = self.prefix + path.stem + self.suffix
        return asset.replace(path=path.with_name(stem + path.suffix))

    def params(self):
        return {'basename': self.basename, 'prefix': self.prefix, 'suffix': self.suffix}
