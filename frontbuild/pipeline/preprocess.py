"""Conditional markup preprocessing.

Directives live in HTML comments and are evaluated against a context map
(e.g. {'NODE_ENV': 'production', 'DEBUG': False}):

    <!-- @if NODE_ENV='production' --> ... <!-- @else --> ... <!-- @endif -->
    <!-- @if DEBUG && NODE_ENV!='production' --> ... <!-- @endif -->
    <!-- @ifdef DEBUG --> ... <!-- @endif -->
    <!-- @ifndef DEBUG --> ... <!-- @endif -->
    <!-- @echo NODE_ENV -->
    <!-- @exclude --> ... <!-- @endexclude -->

Conditions support `VAR`, `!VAR`, `VAR == 'x'` (also `=`), `VAR != 'x'`,
joined with `&&` and `||` (`&&` binds tighter). Values compare as strings,
booleans as `true`/`false`. Unknown directives are left untouched.
"""

import re
from dataclasses import dataclass
from typing import Any, List, Mapping

from frontbuild.exceptions import TransformError
from .base import Asset, Step

DIRECTIVE_RE = re.compile(r'<!--\s*@(?P<name>\w+)(?:\s+(?P<arg>.*?))?\s*-->', re.DOTALL)
COMPARISON_RE = re.compile(
    r'^(?P<var>\w+)\s*(?P<op>==|!=|=)\s*(?P<quote>[\'"]?)(?P<value>.*?)(?P=quote)$')

OPENERS = {'if', 'ifdef', 'ifndef', 'exclude'}
KNOWN = OPENERS | {'else', 'endif', 'endexclude', 'echo'}


def _as_string(value: Any) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def _truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value not in ('', 'false', '0')
    return bool(value)


def evaluate(expression: str, context: Mapping[str, Any]) -> bool:
    """Evaluate a condition expression against context."""
    return any(
        all(_evaluate_term(term.strip(), context) for term in alternative.split('&&'))
        for alternative in expression.split('||')
    )


def _evaluate_term(term: str, context: Mapping[str, Any]) -> bool:
    if not term:
        raise ValueError("empty condition")
    if term.startswith('!') and not term.startswith('!='):
        return not _evaluate_term(term[1:].strip(), context)
    match = COMPARISON_RE.match(term)
    if match:
        actual = context.get(match.group('var'))
        equal = actual is not None and _as_string(actual) == match.group('value')
        return not equal if match.group('op') == '!=' else equal
    if re.fullmatch(r'\w+', term):
        return _truthy(context.get(term))
    raise ValueError(f"cannot evaluate condition '{term}'")


@dataclass
class _Frame:
    directive: str
    parent_active: bool
    taken: bool
    active: bool


class Preprocess(Step):
    """Evaluate preprocessing directives with a fixed context."""

    name = 'preprocess'

    def __init__(self, context: Mapping[str, Any]):
        self.context = dict(context)

    def apply(self, asset: Asset) -> Asset:
        try:
            return asset.with_text(self.render(asset.text))
        except ValueError as e:
            raise TransformError(str(e), path=str(asset.source))

    def render(self, text: str) -> str:
        """Return text with all directives evaluated.

        Raises:
            ValueError: on unbalanced directives or invalid conditions
        """
        out: List[str] = []
        stack: List[_Frame] = []
        active = True
        pos = 0

        for match in DIRECTIVE_RE.finditer(text):
            if active:
                out.append(text[pos:match.start()])
            pos = match.end()
            name = match.group('name')
            arg = (match.group('arg') or '').strip()

            if name not in KNOWN:
                if active:
                    out.append(match.group(0))
                continue

            if name in OPENERS:
                cond = self._condition(name, arg)
                frame = _Frame(name, active, cond, active and cond)
                stack.append(frame)
                active = frame.active
            elif name == 'else':
                if not stack or stack[-1].directive not in ('if', 'ifdef', 'ifndef'):
                    raise ValueError("@else without matching @if")
                frame = stack[-1]
                frame.active = frame.parent_active and not frame.taken
                frame.taken = True
                active = frame.active
            elif name in ('endif', 'endexclude'):
                expected = 'exclude' if name == 'endexclude' else None
                if not stack or (stack[-1].directive == 'exclude') != (expected == 'exclude'):
                    raise ValueError(f"@{name} without matching opening directive")
                active = stack.pop().parent_active
            elif name == 'echo' and active:
                value = self.context.get(arg)
                out.append('' if value is None else _as_string(value))

        if stack:
            raise ValueError(f"unterminated @{stack[-1].directive}")
        if active:
            out.append(text[pos:])
        return ''.join(out)

    def _condition(self, name: str, arg: str) -> bool:
        if name == 'exclude':
            return False
        if not arg:
            raise ValueError(f"@{name} needs a condition")
        if name == 'ifdef':
            return arg in self.context
        if name == 'ifndef':
            return arg not in self.context
        return evaluate(arg, self.context)

    def params(self):
        return {'context': self.context}
