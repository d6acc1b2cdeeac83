"""Tests for ShellStep with variable injection."""

import pytest
from pathlib import Path

from frontbuild.exceptions import ConfigurationError, TransformError
from frontbuild.pipeline import Asset
from frontbuild.pipeline.shell import ShellStep


def load(path):
    return Asset(path=path, contents=path.read_bytes(), base=path.parent, source=path)


class TestShellStepSubstitution:
    """Tests for variable substitution."""

    def test_path_substitution(self):
        """Test {path} is the quoted source path."""
        asset = Asset(path=Path('a b.svg'), contents=b'', base=Path('.'),
                      source=Path('/src/img/a b.svg'))
        subs = ShellStep('svgo {path}')._build_substitutions(asset, None)
        assert subs['path'] == "'/src/img/a b.svg'"
        assert 'input' not in subs

    def test_custom_variables_are_quoted(self):
        """Test extra variables are shell quoted."""
        step = ShellStep('tool {level}', variables={'level': '$(rm -rf /)'})
        asset = Asset(path=Path('x'), contents=b'', base=Path('.'), source=Path('x'))
        assert step._build_substitutions(asset, None)['level'] == "'$(rm -rf /)'"

    def test_unknown_variable(self):
        """Test unknown template variables are a configuration error."""
        step = ShellStep('tool {nope}')
        with pytest.raises(ConfigurationError, match="Unknown variable 'nope'"):
            step._format_command({'path': 'x'})

    def test_environment(self):
        """Test env entries are added to the process environment."""
        env = ShellStep('true', env={'BROWSERSLIST': 'last 2 versions'})._build_environment()
        assert env['BROWSERSLIST'] == 'last 2 versions'
        assert 'PATH' in env


class TestShellStepExecution:
    """Tests for running commands."""

    def test_stdin_to_stdout(self, workspace):
        """Test contents are piped through the command."""
        source = workspace.write('style/main.css', 'a{color:red}')
        result = ShellStep('tr a-z A-Z').apply(load(source))
        assert result.contents == b'A{COLOR:RED}'

    def test_input_file(self, workspace):
        """Test {input} receives a temp file holding the contents."""
        source = workspace.write('style/main.css', 'body{}')
        result = ShellStep('cat {input}').apply(load(source))
        assert result.contents == b'body{}'

    def test_runs_in_source_directory(self, workspace):
        """Test commands run next to the source file."""
        source = workspace.write('img/logo.svg', '<svg/>')
        result = ShellStep('pwd').apply(load(source))
        assert Path(result.text.strip()).resolve() == source.parent.resolve()

    def test_environment_is_visible(self, workspace):
        """Test env values reach the command."""
        source = workspace.write('style/main.css', '')
        step = ShellStep('printf "%s" "$BROWSERSLIST"', env={'BROWSERSLIST': 'ie 11'})
        assert step.apply(load(source)).contents == b'ie 11'

    def test_failure(self, workspace):
        """Test a non-zero exit raises TransformError with stderr."""
        source = workspace.write('style/main.css', '')
        with pytest.raises(TransformError, match="broken") as exc_info:
            ShellStep('echo broken >&2; exit 1').apply(load(source))
        assert exc_info.value.path == str(source)
