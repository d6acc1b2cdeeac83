"""Stylesheet steps: SCSS compilation, prefixing, stripping, minification."""

import shlex
from typing import Iterable, Optional, Sequence

import rcssmin
import sass

from frontbuild.exceptions import TransformError
from .base import Asset, Step
from .shell import ShellStep


class SassCompile(Step):
    """Compile SCSS to CSS with libsass.

    The entry file is compiled from disk so that @import resolves relative
    to it; this step has to come first in a pipeline. With `source_map`
    an inline source map (sources embedded) is appended to the CSS.
    """

    name = 'sass'

    def __init__(self, output_style: str = 'expanded', source_map: bool = False,
                 include_paths: Sequence[str] = ()):
        self.output_style = output_style
        self.source_map = source_map
        self.include_paths = list(include_paths)

    def apply(self, asset: Asset) -> Asset:
        target = asset.path.with_suffix('.css')
        kwargs = dict(
            filename=str(asset.source),
            output_style=self.output_style,
            include_paths=self.include_paths,
        )
        try:
            if self.source_map:
                css, _ = sass.compile(
                    source_map_filename=str(target) + '.map',
                    source_map_embed=True,
                    source_map_contents=True,
                    **kwargs
                )
            else:
                css = sass.compile(**kwargs)
        except sass.CompileError as e:
            raise TransformError(str(e).strip(), path=str(asset.source))
        return asset.replace(path=target, contents=css.encode('utf-8'))

    def params(self):
        return {'output_style': self.output_style, 'source_map': self.source_map}


class Autoprefix(ShellStep):
    """Add vendor prefixes with PostCSS autoprefixer.

    The target browsers are passed through the BROWSERSLIST environment
    variable, which autoprefixer reads when no other config is present.
    """

    name = 'autoprefix'

    def __init__(self, browsers: Iterable[str], command: str):
        self.browsers = tuple(browsers)
        super().__init__(command, env={'BROWSERSLIST': ', '.join(self.browsers)})


class UnusedCss(ShellStep):
    """Strip selectors not used by the given pages (uncss)."""

    name = 'uncss'

    def __init__(self, urls: Iterable[str], command: str):
        self.urls = tuple(urls)
        super().__init__(command)

    def _build_substitutions(self, asset, input_file):
        subs = super()._build_substitutions(asset, input_file)
        # each url is its own argument
        subs['urls'] = ' '.join(shlex.quote(url) for url in self.urls)
        return subs

    def params(self):
        return dict(super().params(), urls=list(self.urls))


class CssMinify(Step):
    """Minify CSS with rcssmin, dropping /*! special comments too."""

    name = 'cssmin'

    def __init__(self, keep_special_comments: bool = False):
        self.keep_special_comments = keep_special_comments

    def apply(self, asset: Asset) -> Asset:
        css = rcssmin.cssmin(asset.text, keep_bang_comments=self.keep_special_comments)
        return asset.with_text(css)

    def params(self):
        return {'keep_special_comments': self.keep_special_comments}


def style_steps(output_style: str, autoprefix_browsers: Iterable[str],
                autoprefix_command: Optional[str], source_map: bool = False):
    """Compile + prefix steps shared by the dev and prod style tasks."""
    steps = [SassCompile(output_style, source_map=source_map)]
    if autoprefix_command:
        steps.append(Autoprefix(autoprefix_browsers, autoprefix_command))
    return steps
