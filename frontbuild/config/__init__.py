"""YAML configuration for frontbuild.

Example frontbuild.yaml:
    config:
      base_path: .
      build_root: build

    paths:
      style:
        source: src/style/main.scss
        build: build/css/
        watch: src/style/**/*.scss

    context:
      dev:  {NODE_ENV: development, DEBUG: true}
      prod: {NODE_ENV: production, DEBUG: false}

Usage:
    from frontbuild.config import load_config
    config = load_config('frontbuild.yaml')
"""

from .parser import parse_config_file, parse_config_string, RawConfig, ConfigParseError
from .converter import load_config, to_build_config, DEFAULT_CONFIG_FILE
from .settings import (
    BuildConfig,
    ServerSettings,
    StyleSettings,
    AutoprefixerSettings,
    ImageSettings,
)

__all__ = [
    'parse_config_file',
    'parse_config_string',
    'RawConfig',
    'ConfigParseError',
    'load_config',
    'to_build_config',
    'DEFAULT_CONFIG_FILE',
    'BuildConfig',
    'ServerSettings',
    'StyleSettings',
    'AutoprefixerSettings',
    'ImageSettings',
]
