"""Script steps: minification and dev source maps."""

import json

import rjsmin

from .base import Asset, Step


class JsMinify(Step):
    """Minify JavaScript with rjsmin."""

    name = 'jsmin'

    def __init__(self, keep_special_comments: bool = False):
        self.keep_special_comments = keep_special_comments

    def apply(self, asset: Asset) -> Asset:
        js = rjsmin.jsmin(asset.text, keep_bang_comments=self.keep_special_comments)
        return asset.with_text(js)

    def params(self):
        return {'keep_special_comments': self.keep_special_comments}


class SourceMap(Step):
    """Write an identity source map file beside the script.

    Every generated line maps to the same line of the bundled source,
    whose text is embedded in `sourcesContent`. Returns the script (with
    a sourceMappingURL comment appended) and the `.map` file.
    """

    name = 'sourcemap'

    def apply(self, asset: Asset):
        text = asset.text
        line_count = max(text.count('\n') + 1, 1)
        # first line maps to 0:0, each following line one source line down
        mappings = ';'.join(['AAAA'] + ['AACA'] * (line_count - 1))
        map_name = asset.path.name + '.map'
        source_map = {
            'version': 3,
            'file': asset.path.name,
            'sources': [asset.source.name],
            'sourcesContent': [text],
            'names': [],
            'mappings': mappings,
        }

        if not text.endswith('\n'):
            text += '\n'
        script = asset.with_text(f"{text}//# sourceMappingURL={map_name}\n")
        map_asset = asset.replace(
            path=asset.path.with_name(map_name),
            contents=json.dumps(source_map, sort_keys=True).encode('utf-8'),
        )
        return [script, map_asset]
