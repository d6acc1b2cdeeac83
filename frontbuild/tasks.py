"""The project's fixed task graph.

    webserver     serve the development directory with live reload
    watch         rebuild dev assets when their sources change
    default       webserver and watch, in parallel
    clean         erase the build root
    cache:clear   drop cached image compression results
    styles:dev    SCSS -> CSS with source map, reloads browsers
    styles:prod   SCSS -> prefixed, stripped, minified style.min.css
    js:dev        bundle includes, write source map, reloads browsers
    js:prod       bundle includes, minify to *.min.js
    html:dev      expand includes and preprocess with the dev context
    html:prod     expand includes and preprocess with the prod context
    img:prod      compress images (cached)
    fonts:prod    copy fonts
    prod          clean, then every *:prod task in parallel

Only paths and transform parameters come from the configuration; the
graph itself is the same for every project.
"""

import logging
import shutil
from pathlib import Path
from typing import Optional, Sequence

from .cache import ContentCache
from .config.settings import BuildConfig
from .exceptions import ConfigurationError
from .graph import TaskRegistry, parallel, sequential
from .paths import AssetKind, Role
from .pipeline import Rename
from .pipeline.images import Cached, ImageCompress
from .pipeline.include import Include
from .pipeline.preprocess import Preprocess
from .pipeline.scripts import JsMinify, SourceMap
from .pipeline.styles import CssMinify, UnusedCss, style_steps
from .runner import Runner
from .server import LiveReloadServer
from .task import ActionTask, Mode, RunResult, TaskUnit
from .watch import WatchDispatcher

logger = logging.getLogger(__name__)

# watched kind -> dev task rebuilding it
WATCHED = (
    (AssetKind.MARKUP, 'html:dev'),
    (AssetKind.STYLE, 'styles:dev'),
    (AssetKind.SCRIPT, 'js:dev'),
)


def clean_build_dir(build_dir: Path, base_path: Path) -> None:
    """Remove the build root. A missing root is not an error.

    Raises:
        ConfigurationError: if build_dir is the project itself or one of
            its parents
        OSError: if the directory cannot be removed
    """
    build_dir = Path(build_dir).resolve()
    base_path = Path(base_path).resolve()
    if build_dir == base_path or build_dir in base_path.parents:
        raise ConfigurationError(
            f"Refusing to clean {build_dir}: it contains the project")
    if not build_dir.exists():
        logger.info("Nothing to clean at %s", build_dir)
        return
    shutil.rmtree(build_dir)
    logger.info("Removed %s", build_dir)


class Project:
    """Registry, runner and watch bindings for one configured project.

    Example:
        project = Project(load_config())
        try:
            result = project.run(['prod'])
        finally:
            project.close()
    """

    def __init__(self, config: BuildConfig, server: Optional[LiveReloadServer] = None,
                 cache: Optional[ContentCache] = None, max_workers: Optional[int] = None):
        self.config = config
        self.server = server or LiveReloadServer(
            config.server, config.base_path / config.server.base_dir)
        self.cache = cache or ContentCache(config.cache_dir)
        self.registry = TaskRegistry()
        self.runner = Runner(self.registry, max_workers=max_workers)
        self.dispatcher = WatchDispatcher(self.runner)

        self._define_tasks()
        self._define_watches()
        self.registry.validate()

    def _paths(self, kind, role):
        return self.config.paths.resolve(kind, role)

    def _dir(self, kind, role):
        return Path(self.config.paths.resolve_one(kind, role))

    def _define_tasks(self):
        config = self.config
        register = self.registry.register
        prefix = config.autoprefixer

        register(ActionTask('webserver', self.server.serve,
                            doc='Serve the development directory with live reload'))
        register(ActionTask('watch', self.dispatcher.watch,
                            doc='Rebuild dev assets when their sources change'))
        register(ActionTask('clean', self.clean, doc='Erase the build root'))
        register(ActionTask('cache:clear', self.cache.clear,
                            doc='Drop cached image compression results'))

        register(TaskUnit(
            'styles:dev', Mode.DEV,
            self._paths(AssetKind.STYLE, Role.SOURCE),
            style_steps(config.styles.output_style, prefix.browsers, prefix.command,
                        source_map=True),
            self._dir(AssetKind.STYLE, Role.INTERMEDIATE),
            notifies_server=True, notifier=self.server,
            doc='Compile SCSS with a source map',
        ))
        prod_styles = style_steps(config.styles.output_style, prefix.browsers, prefix.command)
        prod_styles.append(Rename('style.min.css'))
        if config.styles.uncss_urls and config.styles.uncss_command:
            prod_styles.append(UnusedCss(config.styles.uncss_urls, config.styles.uncss_command))
        prod_styles.append(CssMinify())
        register(TaskUnit(
            'styles:prod', Mode.PROD,
            self._paths(AssetKind.STYLE, Role.SOURCE),
            prod_styles,
            self._dir(AssetKind.STYLE, Role.BUILD),
            doc='Compile, prefix, strip and minify SCSS',
        ))

        register(TaskUnit(
            'js:dev', Mode.DEV,
            self._paths(AssetKind.SCRIPT, Role.SOURCE),
            [Include(), SourceMap()],
            self._dir(AssetKind.SCRIPT, Role.INTERMEDIATE),
            notifies_server=True, notifier=self.server,
            doc='Bundle scripts with a source map',
        ))
        register(TaskUnit(
            'js:prod', Mode.PROD,
            self._paths(AssetKind.SCRIPT, Role.SOURCE),
            [Include(), JsMinify(), Rename(suffix='.min')],
            self._dir(AssetKind.SCRIPT, Role.BUILD),
            doc='Bundle and minify scripts',
        ))

        register(TaskUnit(
            'html:dev', Mode.DEV,
            self._paths(AssetKind.MARKUP, Role.SOURCE),
            [Include(), Preprocess(config.context_for('dev'))],
            self._dir(AssetKind.MARKUP, Role.INTERMEDIATE),
            notifies_server=True, notifier=self.server,
            doc='Assemble HTML with the dev context',
        ))
        register(TaskUnit(
            'html:prod', Mode.PROD,
            self._paths(AssetKind.MARKUP, Role.SOURCE),
            [Include(), Preprocess(config.context_for('prod'))],
            self._dir(AssetKind.MARKUP, Role.BUILD),
            doc='Assemble HTML with the prod context',
        ))

        register(TaskUnit(
            'img:prod', Mode.PROD,
            self._paths(AssetKind.IMAGE, Role.SOURCE),
            [Cached(ImageCompress(config.images), self.cache)],
            self._dir(AssetKind.IMAGE, Role.BUILD),
            doc='Compress images',
        ))
        register(TaskUnit(
            'fonts:prod', Mode.PROD,
            self._paths(AssetKind.FONT, Role.SOURCE),
            [],
            self._dir(AssetKind.FONT, Role.BUILD),
            doc='Copy fonts',
        ))

        register(sequential(
            'clean',
            parallel('html:prod', 'styles:prod', 'js:prod', 'img:prod', 'fonts:prod',
                     name='prod:build'),
            name='prod', doc='Clean, then build everything for production',
        ))
        register(parallel('webserver', 'watch', name='default',
                          doc='Serve and rebuild on change'))

    def _define_watches(self):
        for kind, name in WATCHED:
            self.dispatcher.bind(self._paths(kind, Role.WATCH), self.registry.get(name))

    def clean(self) -> None:
        clean_build_dir(self.config.paths.build_dir, self.config.base_path)

    def run(self, names: Sequence[str] = ('default',)) -> RunResult:
        """Run tasks by name; several names run in parallel."""
        for name in names:
            self.registry.get(name)
        if len(names) == 1:
            return self.runner.run(names[0])
        return self.runner.run(parallel(*names, name=' + '.join(names)))

    def close(self) -> None:
        """Stop long running tasks and release the worker pool."""
        self.dispatcher.stop()
        self.server.stop()
        self.runner.shutdown(wait=False)
