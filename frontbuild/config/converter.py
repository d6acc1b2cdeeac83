"""Convert parsed configuration into an immutable BuildConfig.

Values missing from the file fall back to the defaults in settings.py.
Path roles are merged per kind: a file that only sets `style.build`
keeps the default style source, intermediate and watch patterns.
"""

import logging
from pathlib import Path
from typing import Dict, List, Union

from frontbuild.paths import AssetKind, PathRegistry, PathSet
from .parser import RawConfig, parse_config_file
from .settings import (
    AutoprefixerSettings,
    BuildConfig,
    DEFAULT_CONTEXT,
    DEFAULT_PATHS,
    ImageSettings,
    ServerSettings,
    StyleSettings,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = 'frontbuild.yaml'


def to_build_config(
    raw: RawConfig,
    base_path: Union[str, Path, None] = None,
) -> BuildConfig:
    """Build the BuildConfig for a parsed configuration.

    Args:
        raw: Parsed configuration
        base_path: Override base path (defaults to config.base_path or cwd)

    Returns:
        BuildConfig instance
    """
    if base_path is None:
        base_path = raw.config.get('base_path', '.')
    base_path = Path(base_path).resolve()

    registry = PathRegistry(
        base_path=base_path,
        paths=_merge_paths(raw.paths),
        build_root=raw.config.get('build_root', 'build'),
    )
    cache_dir = base_path / raw.config.get('cache_dir', '.frontbuild-cache')

    styles = dict(raw.styles)
    if 'uncss_urls' in styles:
        styles['uncss_urls'] = tuple(styles['uncss_urls'])
    autoprefixer = dict(raw.autoprefixer)
    if 'browsers' in autoprefixer:
        autoprefixer['browsers'] = tuple(autoprefixer['browsers'])

    context = {mode: dict(values) for mode, values in DEFAULT_CONTEXT.items()}
    for mode, values in raw.context.items():
        context[mode] = dict(values)

    return BuildConfig(
        paths=registry,
        cache_dir=cache_dir,
        server=ServerSettings(**raw.server),
        styles=StyleSettings(**styles),
        autoprefixer=AutoprefixerSettings(**autoprefixer),
        images=ImageSettings(**raw.images),
        context=context,
    )


def _merge_paths(paths: Dict[str, Dict[str, List[str]]]) -> Dict[AssetKind, PathSet]:
    """Overlay configured path roles on top of the defaults."""
    merged = {}
    for kind in AssetKind:
        roles = dict(DEFAULT_PATHS.get(kind, {}))
        roles.update(paths.get(kind.value, {}))
        merged[kind] = PathSet(**{role: tuple(patterns)
                                  for role, patterns in roles.items()})
    return merged


def load_config(
    path: Union[str, Path, None] = None,
    base_path: Union[str, Path, None] = None,
) -> BuildConfig:
    """Load the BuildConfig from a YAML file.

    When path is None the default file is used if present, otherwise the
    built-in defaults apply. An explicitly given path must exist.

    Args:
        path: Path to the YAML file
        base_path: Override base path from config. Relative base paths in
            the file are resolved against the file's directory.
    """
    if path is None:
        path = Path(DEFAULT_CONFIG_FILE)
        if not path.exists():
            logger.debug("No %s found, using built-in defaults", path)
            return to_build_config(RawConfig(), base_path or Path.cwd())

    path = Path(path)
    raw = parse_config_file(path)
    if base_path is None:
        base_path = path.parent / raw.config.get('base_path', '.')
    logger.debug("Loaded configuration from %s", path)
    return to_build_config(raw, base_path)
