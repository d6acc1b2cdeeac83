"""File inclusion directives (rigger syntax).

A directive on its own line is replaced by the contents of the named
file, resolved relative to the file containing the directive:

    //= partials/header.js
    /*= partials/footer.js */
    <!--= template/partials/head.html -->

Included files are expanded recursively and keep the indentation of the
directive.
"""

import re
from pathlib import Path
from typing import Tuple

from frontbuild.exceptions import TransformError
from .base import Asset, Step

INCLUDE_RE = re.compile(
    r'^(?P<indent>[ \t]*)'
    r'(?://=[ \t]*(?P<line>\S+)'
    r'|/\*=[ \t]*(?P<block>\S+?)[ \t]*\*/'
    r'|<!--=[ \t]*(?P<html>\S+?)[ \t]*-->)'
    r'[ \t]*\r?$',
    re.MULTILINE,
)


class Include(Step):
    """Expand include directives."""

    name = 'include'

    def apply(self, asset: Asset) -> Asset:
        origin = Path(asset.source).resolve()
        return asset.with_text(self._expand(asset.text, origin, (origin,)))

    def _expand(self, text: str, origin: Path, stack: Tuple[Path, ...]) -> str:
        def replace(match):
            name = match.group('line') or match.group('block') or match.group('html')
            target = (origin.parent / name).resolve()
            if target in stack:
                chain = ' -> '.join(p.name for p in stack + (target,))
                raise TransformError(f"Include cycle: {chain}", path=str(stack[0]))
            try:
                content = target.read_text(encoding='utf-8')
            except OSError as e:
                raise TransformError(
                    f"Cannot include '{name}': {e.strerror or e}", path=str(origin))
            except UnicodeDecodeError as e:
                raise TransformError(
                    f"Cannot include '{name}': not valid UTF-8: {e.reason}", path=str(origin))
            content = self._expand(content, target, stack + (target,))
            indent = match.group('indent')
            return '\n'.join(indent + line if line else line
                             for line in content.splitlines())

        return INCLUDE_RE.sub(replace, text)
