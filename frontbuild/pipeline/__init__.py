"""Pipeline steps: explicit, ordered transforms applied to each file.

A task unit reads its input files as Assets, passes every Asset through
its steps in declared order and writes the result. A step takes one Asset
and returns one Asset, or a list of Assets when it produces extra files
(e.g. a source map beside a script).

Example:
    from frontbuild.pipeline import run_steps
    from frontbuild.pipeline.styles import SassCompile, CssMinify

    steps = (SassCompile(), CssMinify())
    for asset in read_assets(['src/style/main.scss']):
        produced = run_steps(steps, asset)
"""

from .base import Asset, Step, run_steps
from .io import read_assets, write_asset, Rename, Notifier

__all__ = [
    'Asset',
    'Step',
    'run_steps',
    'read_assets',
    'write_asset',
    'Rename',
    'Notifier',
]
