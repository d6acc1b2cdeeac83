"""Immutable build settings and their defaults.

A BuildConfig is created once at startup (see converter.py) and passed
by reference to every task. Nothing in it changes after construction.
"""

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple

from frontbuild.paths import AssetKind, PathRegistry


AUTOPREFIXER_BROWSERS = (
    'Chrome >= 45',
    'Firefox ESR',
    'Edge >= 12',
    'Explorer >= 10',
    'iOS >= 9',
    'Safari >= 9',
    'Android >= 4.4',
    'Opera >= 30',
)

DEFAULT_PATHS = {
    AssetKind.MARKUP: {
        'source': ['src/template/*.html'],
        'intermediate': ['src/'],
        'build': ['build/'],
        'watch': ['src/template/*.html'],
    },
    AssetKind.SCRIPT: {
        'source': ['src/js/main.js'],
        'intermediate': ['src/rjs/'],
        'build': ['build/js/'],
        'watch': ['src/js/**/*.js'],
    },
    AssetKind.STYLE: {
        'source': ['src/style/main.scss'],
        'intermediate': ['src/css/'],
        'build': ['build/css/'],
        'watch': ['src/style/**/*.scss'],
    },
    AssetKind.IMAGE: {
        'source': ['src/img/**/*.*'],
        'build': ['build/img/'],
        'watch': ['src/img/**/*.*'],
    },
    AssetKind.FONT: {
        'source': ['src/fonts/**/*.*'],
        'build': ['build/fonts/'],
        'watch': ['src/fonts/**/*.*'],
    },
}

DEFAULT_CONTEXT = {
    'dev': {'NODE_ENV': 'development', 'DEBUG': True},
    'prod': {'NODE_ENV': 'production', 'DEBUG': False},
}


@dataclass(frozen=True)
class ServerSettings:
    """Live-reload web server settings."""
    base_dir: str = 'src'
    host: str = 'localhost'
    port: int = 3000
    open_browser: bool = False


@dataclass(frozen=True)
class StyleSettings:
    """Stylesheet compilation settings.

    uncss_command is formatted with {input} (temp file holding the CSS)
    and {urls} (space separated pages to crawl). Stripping is skipped
    when uncss_urls is empty.
    """
    output_style: str = 'expanded'
    uncss_urls: Tuple[str, ...] = ()
    uncss_command: Optional[str] = 'npx uncss --stylesheets file://{input} {urls}'


@dataclass(frozen=True)
class AutoprefixerSettings:
    """Vendor prefixing; the command reads CSS on stdin, writes stdout."""
    browsers: Tuple[str, ...] = AUTOPREFIXER_BROWSERS
    command: Optional[str] = 'npx postcss --use autoprefixer'


@dataclass(frozen=True)
class ImageSettings:
    """Image compression parameters. Part of every image cache key."""
    jpeg_quality: int = 85
    progressive: bool = True
    png_colors: int = 256
    gif_interlaced: bool = True
    svg_command: Optional[str] = 'npx svgo --input - --output -'


@dataclass(frozen=True)
class BuildConfig:
    """Everything a task needs to know, fixed at startup."""
    paths: PathRegistry
    cache_dir: Path
    server: ServerSettings = field(default_factory=ServerSettings)
    styles: StyleSettings = field(default_factory=StyleSettings)
    autoprefixer: AutoprefixerSettings = field(default_factory=AutoprefixerSettings)
    images: ImageSettings = field(default_factory=ImageSettings)
    context: Mapping[str, Mapping[str, Any]] = field(
        default_factory=lambda: DEFAULT_CONTEXT)

    def __post_init__(self):
        frozen = {mode: MappingProxyType(dict(values))
                  for mode, values in self.context.items()}
        object.__setattr__(self, 'context', MappingProxyType(frozen))

    @property
    def base_path(self) -> Path:
        return self.paths.base_path

    def context_for(self, mode: str) -> Mapping[str, Any]:
        """Preprocessing context for a mode ('dev' or 'prod')."""
        return self.context.get(mode, MappingProxyType({}))
