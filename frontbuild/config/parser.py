"""YAML parsing and validation for frontbuild configuration files.

This module handles parsing frontbuild.yaml files and validating their
structure. It only checks shape and types; conversion into the immutable
BuildConfig happens in converter.py.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, Union

import yaml

from frontbuild.exceptions import ConfigurationError
from frontbuild.paths import AssetKind, Role


class ConfigParseError(ConfigurationError):
    """Error parsing or validating a configuration file."""
    pass


@dataclass
class RawConfig:
    """Parsed configuration, one dict per top-level section."""
    config: Dict[str, Any] = field(default_factory=dict)
    paths: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    server: Dict[str, Any] = field(default_factory=dict)
    context: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    styles: Dict[str, Any] = field(default_factory=dict)
    autoprefixer: Dict[str, Any] = field(default_factory=dict)
    images: Dict[str, Any] = field(default_factory=dict)


# Allowed keys and their accepted types, per flat section.
_NULLABLE_STR = (str, type(None))
SECTION_KEYS = {
    'config': {
        'base_path': (str,),
        'build_root': (str,),
        'cache_dir': (str,),
    },
    'server': {
        'base_dir': (str,),
        'host': (str,),
        'port': (int,),
        'open_browser': (bool,),
    },
    'styles': {
        'output_style': (str,),
        'uncss_urls': (list,),
        'uncss_command': _NULLABLE_STR,
    },
    'autoprefixer': {
        'browsers': (list,),
        'command': _NULLABLE_STR,
    },
    'images': {
        'jpeg_quality': (int,),
        'progressive': (bool,),
        'png_colors': (int,),
        'gif_interlaced': (bool,),
        'svg_command': _NULLABLE_STR,
    },
}

OUTPUT_STYLES = {'nested', 'expanded', 'compact', 'compressed'}
MODES = {'dev', 'prod'}


def parse_config_file(path: Union[str, Path]) -> RawConfig:
    """Parse and validate a frontbuild.yaml file.

    Args:
        path: Path to the YAML file

    Returns:
        RawConfig with validated sections

    Raises:
        ConfigParseError: If the file is invalid
        FileNotFoundError: If the file doesn't exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, encoding='utf-8') as f:
        return parse_config_string(f.read())


def parse_config_string(content: str) -> RawConfig:
    """Parse configuration from a YAML string.

    Args:
        content: YAML content as string

    Returns:
        RawConfig with validated sections
    """
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigParseError(f"Invalid YAML syntax: {e}")

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise ConfigParseError("YAML root must be a mapping")

    return _validate_config_data(data)


def _validate_config_data(data: Dict[str, Any]) -> RawConfig:
    """Validate every section of the parsed YAML data.

    Raises:
        ConfigParseError: If validation fails
    """
    known = set(RawConfig.__dataclass_fields__)
    for section in data:
        if section not in known:
            raise ConfigParseError(
                f"Unknown section '{section}'. Valid sections: {sorted(known)}")

    raw = RawConfig()
    for section, keys in SECTION_KEYS.items():
        values = _section(data, section)
        _validate_keys(section, values, keys)
        setattr(raw, section, values)

    _validate_styles(raw.styles)
    _validate_images(raw.images)
    _validate_string_list('autoprefixer.browsers', raw.autoprefixer.get('browsers', []))

    raw.paths = _validate_paths(_section(data, 'paths'))
    raw.context = _validate_context(_section(data, 'context'))
    return raw


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    """Return a section as a dict, treating a missing/empty one as {}."""
    value = data.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigParseError(f"'{name}' must be a mapping")
    return value


def _validate_keys(section: str, values: Dict[str, Any], keys: Dict[str, tuple]) -> None:
    for key, value in values.items():
        if key not in keys:
            raise ConfigParseError(
                f"Unknown key '{section}.{key}'. Valid keys: {sorted(keys)}")
        valid = keys[key]
        # bool is a subclass of int, don't let `port: true` through
        if isinstance(value, bool) and bool not in valid:
            valid = ()
        if not isinstance(value, valid):
            names = ", ".join(t.__name__ for t in keys[key])
            raise ConfigParseError(
                f"'{section}.{key}' must be {{{names}}} got: {value!r}")


def _validate_string_list(name: str, value: Any) -> None:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigParseError(f"'{name}' must be a list of strings")


def _validate_styles(styles: Dict[str, Any]) -> None:
    style = styles.get('output_style')
    if style is not None and style not in OUTPUT_STYLES:
        raise ConfigParseError(
            f"'styles.output_style' has invalid value '{style}'. "
            f"Valid values: {sorted(OUTPUT_STYLES)}")
    _validate_string_list('styles.uncss_urls', styles.get('uncss_urls', []))


def _validate_images(images: Dict[str, Any]) -> None:
    quality = images.get('jpeg_quality')
    if quality is not None and not 1 <= quality <= 100:
        raise ConfigParseError("'images.jpeg_quality' must be between 1 and 100")
    colors = images.get('png_colors')
    if colors is not None and not 2 <= colors <= 256:
        raise ConfigParseError("'images.png_colors' must be between 2 and 256")


def _validate_paths(paths: Dict[str, Any]) -> Dict[str, Dict[str, list]]:
    """Validate the paths section, normalizing every role to a list.

    Each kind maps roles to a pattern string or a list of pattern strings.
    """
    valid_kinds = {k.value for k in AssetKind}
    valid_roles = {r.value for r in Role}
    result = {}
    for kind, roles in paths.items():
        if kind not in valid_kinds:
            raise ConfigParseError(
                f"Unknown asset kind 'paths.{kind}'. "
                f"Valid kinds: {sorted(valid_kinds)}")
        if not isinstance(roles, dict):
            raise ConfigParseError(f"'paths.{kind}' must be a mapping")
        result[kind] = {}
        for role, patterns in roles.items():
            if role not in valid_roles:
                raise ConfigParseError(
                    f"Unknown role 'paths.{kind}.{role}'. "
                    f"Valid roles: {sorted(valid_roles)}")
            if isinstance(patterns, str):
                patterns = [patterns]
            _validate_string_list(f'paths.{kind}.{role}', patterns)
            if any(not p for p in patterns):
                raise ConfigParseError(f"'paths.{kind}.{role}' has an empty pattern")
            result[kind][role] = patterns
    return result


def _validate_context(context: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """Validate per-mode preprocessing contexts (dev and prod)."""
    for mode, values in context.items():
        if mode not in MODES:
            raise ConfigParseError(
                f"Unknown mode 'context.{mode}'. Valid modes: {sorted(MODES)}")
        if not isinstance(values, dict):
            raise ConfigParseError(f"'context.{mode}' must be a mapping")
        for key, value in values.items():
            if not isinstance(value, (str, int, float, bool)):
                raise ConfigParseError(
                    f"'context.{mode}.{key}' must be a scalar, got: {value!r}")
    return context
