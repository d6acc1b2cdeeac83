"""Live-reload web server.

Serves the development directory with livereload (a tornado app) and
pushes reload messages to connected browsers when tasks write files.
Stylesheets and images are swapped in place, other files reload the page.
"""

import asyncio
import logging
import threading
from pathlib import Path
from typing import Iterable, Optional

from livereload import Server
from livereload.handlers import LiveReloadHandler
from tornado.ioloop import IOLoop
from tornado.websocket import WebSocketClosedError

from .config.settings import ServerSettings

logger = logging.getLogger(__name__)


class LiveReloadServer:
    """Wrap livereload.Server for use from the task runner.

    serve() blocks the calling thread. notify() may be called from any
    thread; before serve() has started it only logs.
    """

    def __init__(self, settings: ServerSettings, root):
        self.settings = settings
        self.root = Path(root)
        self._loop: Optional[IOLoop] = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._loop is not None

    @property
    def url(self) -> str:
        return f"http://{self.settings.host}:{self.settings.port}/"

    def serve(self) -> None:
        asyncio.set_event_loop(asyncio.new_event_loop())
        server = Server()
        # Reloads come from notify(); the server's own watcher only idles.
        server.watch(str(self.root), delay='forever')
        with self._lock:
            self._loop = IOLoop.current()
        logger.info("Serving %s on %s", self.root, self.url)
        try:
            server.serve(
                root=str(self.root),
                host=self.settings.host,
                port=self.settings.port,
                open_url_delay=0 if self.settings.open_browser else None,
            )
        finally:
            with self._lock:
                self._loop = None

    def notify(self, paths: Iterable[Path]) -> None:
        paths = [Path(p) for p in paths]
        with self._lock:
            loop = self._loop
        if loop is None:
            logger.debug("Server not running, not reloading %d file(s)", len(paths))
            return
        loop.add_callback(self._send_reload, paths)

    def _send_reload(self, paths) -> None:
        for path in paths:
            try:
                target = path.relative_to(self.root).as_posix()
            except ValueError:
                target = path.as_posix()
            message = {
                'command': 'reload',
                'path': target,
                'liveCSS': True,
                'liveImg': True,
            }
            for waiter in list(LiveReloadHandler.waiters):
                try:
                    waiter.write_message(message)
                except WebSocketClosedError:
                    LiveReloadHandler.waiters.discard(waiter)
        logger.info("Reloaded %d file(s) in %d browser(s)",
                    len(paths), len(LiveReloadHandler.waiters))

    def stop(self) -> None:
        with self._lock:
            loop = self._loop
        if loop is not None:
            loop.add_callback(loop.stop)
