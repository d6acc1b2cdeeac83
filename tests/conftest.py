"""Shared fixtures: a throwaway project directory with the default layout."""

import pytest

from frontbuild.config import to_build_config, parse_config_string


class Workspace:
    """Project directory under tmp_path."""

    def __init__(self, root):
        self.root = root

    def write(self, relpath, content):
        path = self.root / relpath
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content)
        return path

    def read(self, relpath):
        return (self.root / relpath).read_text()

    def exists(self, relpath):
        return (self.root / relpath).exists()

    def config(self, yaml_text=""):
        """BuildConfig rooted here; external commands are off by default."""
        base = """
autoprefixer:
  command: null
images:
  svg_command: null
"""
        raw = parse_config_string(base)
        extra = parse_config_string(yaml_text)
        for section in ('config', 'paths', 'server', 'context', 'styles', 'autoprefixer', 'images'):
            getattr(raw, section).update(getattr(extra, section))
        return to_build_config(raw, base_path=self.root)


@pytest.fixture
def workspace(tmp_path):
    return Workspace(tmp_path.resolve())
