"""Tests for script steps."""

import json
import pytest
from pathlib import Path

pytest.importorskip("rjsmin")

from frontbuild.pipeline import Asset, Rename, run_steps
from frontbuild.pipeline.scripts import JsMinify, SourceMap

JS_DIR = Path('/project/src/js')


def js_asset(text, name='main.js'):
    path = JS_DIR / name
    return Asset(path=path, contents=text.encode('utf-8'), base=JS_DIR, source=path)


class TestJsMinify:
    """Tests for JavaScript minification."""

    def test_minify(self):
        """Test comments and whitespace are removed."""
        asset = js_asset('// setup\nvar answer = 42;\n\nfunction f ( a ) {\n  return a;\n}\n')
        text = JsMinify().apply(asset).text
        assert '//' not in text
        assert 'var answer=42;' in text
        assert 'function f(a){return a;}' in text

    def test_prod_pipeline_renames(self):
        """Test the minified bundle is named *.min.js."""
        [result] = run_steps([JsMinify(), Rename(suffix='.min')], js_asset('var a = 1;'))
        assert result.relative == Path('main.min.js')


class TestSourceMap:
    """Tests for dev source maps."""

    def test_produces_script_and_map(self):
        """Test a map file is emitted beside the script."""
        script, source_map = SourceMap().apply(js_asset('a();\nb();\n'))
        assert script.path.name == 'main.js'
        assert source_map.path.name == 'main.js.map'
        assert script.text.endswith('//# sourceMappingURL=main.js.map\n')

    def test_map_contents(self):
        """Test the map is an identity mapping embedding the source."""
        _, source_map = SourceMap().apply(js_asset('a();\nb();'))
        data = json.loads(source_map.text)
        assert data['version'] == 3
        assert data['file'] == 'main.js'
        assert data['sources'] == ['main.js']
        assert data['sourcesContent'] == ['a();\nb();']
        assert data['mappings'] == 'AAAA;AACA'

    def test_deterministic(self):
        """Test identical input gives byte-identical output."""
        first = SourceMap().apply(js_asset('x();\n'))
        second = SourceMap().apply(js_asset('x();\n'))
        assert [a.contents for a in first] == [a.contents for a in second]


class TestRename:
    """Tests for the Rename step."""

    def test_basename(self):
        """Test replacing the whole file name."""
        result = Rename('style.min.css').apply(js_asset('', name='main.css'))
        assert result.path == JS_DIR / 'style.min.css'

    def test_prefix_and_suffix(self):
        """Test wrapping the stem."""
        result = Rename(prefix='app.', suffix='.min').apply(js_asset(''))
        assert result.path.name == 'app.main.min.js'

    def test_keeps_subdirectory(self):
        """Test renaming keeps the path below the base."""
        result = Rename(suffix='.min').apply(js_asset('', name='vendor/lib.js'))
        assert result.relative == Path('vendor/lib.min.js')
