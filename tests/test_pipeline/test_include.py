"""Tests for include directive expansion."""

import pytest

from frontbuild.exceptions import TransformError
from frontbuild.pipeline import Asset
from frontbuild.pipeline.include import Include


def load(path):
    return Asset(path=path, contents=path.read_bytes(), base=path.parent, source=path)


class TestInclude:
    """Tests for the Include step."""

    def test_line_comment_include(self, workspace):
        """Test //= directives are replaced by the file contents."""
        workspace.write('js/partials/util.js', 'function util() {}\n')
        main = workspace.write('js/main.js', '//= partials/util.js\nutil();\n')
        result = Include().apply(load(main))
        assert result.text == 'function util() {}\nutil();\n'

    def test_block_comment_include(self, workspace):
        """Test /*= */ directives are expanded."""
        workspace.write('js/a.js', 'var a = 1;')
        main = workspace.write('js/main.js', '/*= a.js */\n')
        assert Include().apply(load(main)).text == 'var a = 1;\n'

    def test_html_include_keeps_indentation(self, workspace):
        """Test HTML includes are indented like the directive."""
        workspace.write('template/partials/nav.html', '<nav>\n  <a>Home</a>\n</nav>\n')
        page = workspace.write(
            'template/index.html',
            '<body>\n    <!--= partials/nav.html -->\n</body>\n')
        assert Include().apply(load(page)).text == (
            '<body>\n    <nav>\n      <a>Home</a>\n    </nav>\n</body>\n')

    def test_nested_includes_resolve_relative(self, workspace):
        """Test included files resolve their own includes from their directory."""
        workspace.write('js/lib/inner.js', 'inner();')
        workspace.write('js/lib/outer.js', '//= inner.js\nouter();')
        main = workspace.write('js/main.js', '//= lib/outer.js\n')
        assert Include().apply(load(main)).text == 'inner();\nouter();\n'

    def test_inline_directive_is_not_expanded(self, workspace):
        """Test directives must be on their own line."""
        main = workspace.write('js/main.js', 'var x = 1; //= other.js\n')
        assert Include().apply(load(main)).text == 'var x = 1; //= other.js\n'

    def test_missing_file(self, workspace):
        """Test a missing include is a transform error naming the file."""
        main = workspace.write('js/main.js', '//= nowhere.js\n')
        with pytest.raises(TransformError, match="nowhere.js"):
            Include().apply(load(main))

    def test_cycle(self, workspace):
        """Test include cycles are detected."""
        workspace.write('js/a.js', '//= b.js\n')
        workspace.write('js/b.js', '//= a.js\n')
        main = workspace.root / 'js' / 'a.js'
        with pytest.raises(TransformError, match="Include cycle: a.js -> b.js -> a.js"):
            Include().apply(load(main))

    def test_self_include(self, workspace):
        """Test a file including itself is a cycle."""
        main = workspace.write('js/main.js', '//= main.js\n')
        with pytest.raises(TransformError, match="cycle"):
            Include().apply(load(main))

    def test_included_file_not_utf8(self, workspace):
        """Test an undecodable include is a transform error naming the file."""
        workspace.write('html/partials/bad.html', b'<p>\xff\xfe caf\xe9</p>')
        main = workspace.write('html/index.html', '<!--= partials/bad.html -->\n')
        with pytest.raises(TransformError, match="Cannot include 'partials/bad.html'"):
            Include().apply(load(main))

    def test_source_not_utf8(self, workspace):
        """Test an undecodable source file is a transform error."""
        main = workspace.write('html/index.html', b'<p>\xff\xfe</p>')
        with pytest.raises(TransformError, match="index.html: not valid UTF-8"):
            Include().apply(load(main))
