"""Tests for error messages."""

from frontbuild.exceptions import ConfigurationError, FrontbuildError, TaskFailed, TransformError


class TestMessages:
    """Tests for exception formatting."""

    def test_transform_error_names_file(self):
        """Test the failing file prefixes the message."""
        assert str(TransformError("bad", path='src/a.scss')) == 'src/a.scss: bad'
        assert str(TransformError("bad")) == 'bad'

    def test_task_failed_adds_path(self):
        """Test the file is added when the cause does not name it."""
        error = TaskFailed('img:prod', OSError("disk full"), path='src/img/a.png')
        assert str(error) == "Task 'img:prod' failed: src/img/a.png: disk full"

    def test_task_failed_no_duplicate_path(self):
        """Test the file is not repeated when the cause already names it."""
        cause = TransformError("bad", path='src/a.scss')
        error = TaskFailed('styles:prod', cause, path='src/a.scss')
        assert str(error) == "Task 'styles:prod' failed: src/a.scss: bad"
        assert error.cause is cause

    def test_hierarchy(self):
        """Test every error derives from FrontbuildError."""
        assert issubclass(ConfigurationError, FrontbuildError)
        assert issubclass(TaskFailed, FrontbuildError)
