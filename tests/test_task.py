"""Tests for task units and action tasks."""

import pytest
from unittest.mock import MagicMock

from frontbuild.exceptions import ConfigurationError, TaskFailed, TransformError
from frontbuild.pipeline import Step
from frontbuild.pipeline.include import Include
from frontbuild.task import ActionTask, Mode, RunResult, TaskStatus, TaskUnit


class Upper(Step):
    name = 'upper'

    def apply(self, asset):
        return asset.with_text(asset.text.upper())


class FailOn(Step):
    """Raises TransformError for files whose name contains `marker`."""

    name = 'fail-on'

    def __init__(self, marker):
        self.marker = marker

    def apply(self, asset):
        if self.marker in asset.path.name:
            raise TransformError("bad input", path=str(asset.source))
        return asset


def pattern(workspace, rel):
    return f'{workspace.root.as_posix()}/{rel}'


class TestTaskUnitValidation:
    """Tests for TaskUnit construction."""

    def test_invalid_name(self, tmp_path):
        """Test names must be non-empty without whitespace."""
        with pytest.raises(ConfigurationError, match="Invalid task name"):
            TaskUnit('styles dev', Mode.DEV, ['x'], [], tmp_path)

    def test_mode_required(self, tmp_path):
        """Test mode must be a Mode."""
        with pytest.raises(ConfigurationError, match="mode"):
            TaskUnit('t', 'dev', ['x'], [], tmp_path)

    def test_inputs_required(self, tmp_path):
        """Test inputs must be a non-empty list."""
        with pytest.raises(ConfigurationError, match="inputs"):
            TaskUnit('t', Mode.DEV, [], [], tmp_path)
        with pytest.raises(ConfigurationError, match="inputs"):
            TaskUnit('t', Mode.DEV, 'src/*.js', [], tmp_path)

    def test_steps_must_be_steps(self, tmp_path):
        """Test plain callables are rejected as steps."""
        with pytest.raises(ConfigurationError, match="Step objects"):
            TaskUnit('t', Mode.DEV, ['x'], [str.upper], tmp_path)

    def test_notifier_required(self, tmp_path):
        """Test notifies_server needs a notifier."""
        with pytest.raises(ConfigurationError, match="notifier"):
            TaskUnit('t', Mode.DEV, ['x'], [], tmp_path, notifies_server=True)

    def test_steps_fixed(self, tmp_path):
        """Test the step list is frozen at construction."""
        steps = [Upper()]
        unit = TaskUnit('t', Mode.DEV, ['x'], steps, tmp_path)
        steps.append(Upper())
        assert len(unit.steps) == 1


class TestTaskUnitRun:
    """Tests for running a task unit."""

    def test_writes_outputs(self, workspace):
        """Test every input is transformed and written below the output dir."""
        workspace.write('src/js/a.js', 'a')
        workspace.write('src/js/lib/b.js', 'b')
        unit = TaskUnit('js', Mode.PROD, [pattern(workspace, 'src/js/**/*.js')],
                        [Upper()], workspace.root / 'build/js')
        result = unit.run()
        assert result.status == TaskStatus.SUCCEEDED
        assert workspace.read('build/js/a.js') == 'A'
        assert workspace.read('build/js/lib/b.js') == 'B'
        assert len(result.outputs) == 2

    def test_idempotent(self, workspace):
        """Test running twice gives byte-identical outputs."""
        workspace.write('src/js/a.js', 'a')
        unit = TaskUnit('js', Mode.PROD, [pattern(workspace, 'src/js/*.js')],
                        [Upper()], workspace.root / 'build')
        unit.run()
        first = (workspace.root / 'build/a.js').read_bytes()
        unit.run()
        assert (workspace.root / 'build/a.js').read_bytes() == first

    def test_no_inputs(self, workspace):
        """Test a pattern matching nothing succeeds with no outputs."""
        unit = TaskUnit('js', Mode.PROD, [pattern(workspace, 'src/js/*.js')],
                        [], workspace.root / 'build')
        result = unit.run()
        assert result.succeeded
        assert result.outputs == []

    def test_dev_continues_after_failure(self, workspace):
        """Test dev mode skips the bad file and processes the rest."""
        workspace.write('src/a.js', 'a')
        workspace.write('src/bad.js', 'b')
        workspace.write('src/c.js', 'c')
        unit = TaskUnit('js:dev', Mode.DEV, [pattern(workspace, 'src/*.js')],
                        [FailOn('bad'), Upper()], workspace.root / 'out')
        result = unit.run()
        assert result.status == TaskStatus.FAILED
        assert result.error is None
        assert len(result.diagnostics) == 1
        assert 'bad.js' in result.diagnostics[0]
        assert workspace.read('out/a.js') == 'A'
        assert workspace.read('out/c.js') == 'C'
        assert not workspace.exists('out/bad.js')

    def test_prod_stops_at_first_failure(self, workspace):
        """Test prod mode aborts with TaskFailed naming task and file."""
        workspace.write('src/a.js', 'a')
        workspace.write('src/bad.js', 'b')
        workspace.write('src/c.js', 'c')
        unit = TaskUnit('js:prod', Mode.PROD, [pattern(workspace, 'src/*.js')],
                        [FailOn('bad')], workspace.root / 'out')
        result = unit.run()
        assert result.status == TaskStatus.FAILED
        assert isinstance(result.error, TaskFailed)
        assert result.error.task == 'js:prod'
        assert 'bad.js' in str(result.error)
        assert workspace.exists('out/a.js')
        assert not workspace.exists('out/c.js')

    def test_dev_skips_file_that_is_not_utf8(self, workspace):
        """Test an undecodable file is reported and the others still build."""
        workspace.write('src/template/a_bad.html', b'<p>\xff\xfe caf\xe9</p>')
        workspace.write('src/template/b_good.html', '<p>ok</p>')
        notifier = MagicMock()
        unit = TaskUnit('html:dev', Mode.DEV, [pattern(workspace, 'src/template/*.html')],
                        [Include()], workspace.root / 'out',
                        notifies_server=True, notifier=notifier)
        result = unit.run()
        assert result.status == TaskStatus.FAILED
        assert result.error is None
        assert len(result.diagnostics) == 1
        assert 'a_bad.html' in result.diagnostics[0]
        assert workspace.read('out/b_good.html') == '<p>ok</p>'
        notifier.notify.assert_called_once_with([workspace.root / 'out/b_good.html'])

    def test_prod_fails_on_file_that_is_not_utf8(self, workspace):
        """Test an undecodable file fails prod with TaskFailed naming task and file."""
        workspace.write('src/template/a_bad.html', b'<p>\xff\xfe caf\xe9</p>')
        unit = TaskUnit('html:prod', Mode.PROD, [pattern(workspace, 'src/template/*.html')],
                        [Include()], workspace.root / 'out')
        result = unit.run()
        assert result.status == TaskStatus.FAILED
        assert isinstance(result.error, TaskFailed)
        assert "Task 'html:prod' failed" in str(result.error)
        assert 'a_bad.html' in str(result.error)
        assert isinstance(result.error.cause, TransformError)

    def test_notifies_once_with_all_outputs(self, workspace):
        """Test written files are sent to the notifier in one call."""
        workspace.write('src/a.css', 'a')
        workspace.write('src/b.css', 'b')
        notifier = MagicMock()
        unit = TaskUnit('styles:dev', Mode.DEV, [pattern(workspace, 'src/*.css')],
                        [], workspace.root / 'out', notifies_server=True, notifier=notifier)
        unit.run()
        notifier.notify.assert_called_once_with([
            workspace.root / 'out/a.css', workspace.root / 'out/b.css'])

    def test_no_notify_without_outputs(self, workspace):
        """Test nothing is sent when nothing was written."""
        notifier = MagicMock()
        unit = TaskUnit('styles:dev', Mode.DEV, [pattern(workspace, 'src/*.css')],
                        [], workspace.root / 'out', notifies_server=True, notifier=notifier)
        unit.run()
        notifier.notify.assert_not_called()


class TestActionTask:
    """Tests for ActionTask."""

    def test_success(self):
        """Test the action is called and the task succeeds."""
        action = MagicMock()
        result = ActionTask('act', action).run()
        action.assert_called_once_with()
        assert result.succeeded

    def test_os_error_fails(self):
        """Test an OSError from the action fails the task."""
        result = ActionTask('clean', MagicMock(side_effect=PermissionError("denied"))).run()
        assert result.failed
        assert isinstance(result.error, TaskFailed)
        assert "Task 'clean' failed: denied" == str(result.error)

    def test_action_must_be_callable(self):
        """Test non-callables are rejected."""
        with pytest.raises(ConfigurationError, match="callable"):
            ActionTask('act', 'rm -rf build')


class TestRunResult:
    """Tests for RunResult helpers."""

    def test_find_and_outputs(self, tmp_path):
        """Test lookup and output collection over a result tree."""
        leaf = RunResult('leaf', TaskStatus.SUCCEEDED, outputs=[tmp_path / 'a'])
        other = RunResult('other', TaskStatus.SKIPPED)
        root = RunResult('root', TaskStatus.SUCCEEDED, children=[leaf, other])
        assert root.find('other') is other
        assert root.find('missing') is None
        assert root.all_outputs() == [tmp_path / 'a']
