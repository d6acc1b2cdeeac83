"""Shell command step with variable injection.

Used for the transforms that only exist as command line tools (PostCSS
autoprefixer, uncss, svgo). The asset is piped through the command:
contents go to stdin and stdout becomes the new contents. When the
template references {input}, the contents are written to a temp file
instead and its path is substituted.
"""

import os
import shlex
import subprocess
import tempfile
from pathlib import Path
from typing import Dict, Optional

from frontbuild.exceptions import ConfigurationError, TransformError
from .base import Asset, Step


class ShellStep(Step):
    """Pipe an asset through a shell command.

    Variables are injected in TWO ways:
    1. Format string substitution: {path}, {input} and any `variables`
    2. Environment variables: the `env` mapping

    Example:
        ShellStep("npx postcss --use autoprefixer",
                  env={'BROWSERSLIST': 'last 2 versions'})
    """

    name = 'shell'

    def __init__(self, template: str, env: Optional[Dict[str, str]] = None,
                 variables: Optional[Dict[str, str]] = None):
        self.template = template
        self.env = dict(env or {})
        self.variables = dict(variables or {})

    def _build_substitutions(self, asset: Asset, input_file: Optional[Path]) -> Dict[str, str]:
        """Build the (shell quoted) substitution dictionary."""
        subs = {key: shlex.quote(value) for key, value in self.variables.items()}
        subs['path'] = shlex.quote(str(asset.source))
        if input_file is not None:
            subs['input'] = shlex.quote(str(input_file))
        return subs

    def _format_command(self, subs: Dict[str, str]) -> str:
        try:
            return self.template.format(**subs)
        except KeyError as e:
            available = ', '.join(sorted(subs.keys()))
            raise ConfigurationError(
                f"Unknown variable {e} in command template {self.template!r}. "
                f"Available variables: {available}"
            )

    def _build_environment(self) -> Dict[str, str]:
        env = os.environ.copy()
        env.update(self.env)
        return env

    def apply(self, asset: Asset) -> Asset:
        """Run the command on the asset.

        Raises:
            TransformError: If the command exits with a non-zero status
        """
        with tempfile.TemporaryDirectory(prefix='frontbuild-') as tmp:
            input_file = None
            stdin = asset.contents
            if '{input}' in self.template:
                input_file = Path(tmp) / asset.path.name
                input_file.write_bytes(asset.contents)
                stdin = None

            cmd = self._format_command(self._build_substitutions(asset, input_file))
            result = subprocess.run(
                cmd,
                shell=True,
                env=self._build_environment(),
                input=stdin,
                capture_output=True,
                cwd=str(asset.source.parent),
            )

        if result.returncode != 0:
            stderr = result.stderr.decode('utf-8', 'replace').strip()
            raise TransformError(
                f"{self.name} command failed ({result.returncode}): {cmd}\n{stderr}",
                path=str(asset.source),
            )
        return asset.replace(contents=result.stdout)

    def params(self):
        return {'template': self.template, 'env': self.env, 'variables': self.variables}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.template!r})"
