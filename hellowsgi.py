import os
import sys
import logging
import importlib
import importlib.util
from importlib.metadata import version

import click
import waitress

LL_DISABLED    = 0
LL_FATAL_ERROR = 1
LL_CRIT_ERROR  = 2
LL_ERROR       = 3
LL_WARNING     = 4
LL_NOTICE      = 5
LL_INFO        = 6
LL_DEBUG       = 7
LL_TRACE       = 8

_LOGGING_LEVELS = {
    LL_DISABLED:    logging.CRITICAL + 10,
    LL_FATAL_ERROR: logging.CRITICAL,
    LL_CRIT_ERROR:  logging.CRITICAL,
    LL_ERROR:       logging.ERROR,
    LL_WARNING:     logging.WARNING,
    LL_NOTICE:      logging.INFO,
    LL_INFO:        logging.INFO,
    LL_DEBUG:       logging.DEBUG,
    LL_TRACE:       logging.DEBUG,
}

DEFAULT_APP = "hello_app:app"

logger = logging.getLogger("hellowsgi")


def logging_level(loglevel):
    # out of range values clamp to the nearest end of the scale
    loglevel = min(max(loglevel, LL_DISABLED), LL_TRACE)
    return _LOGGING_LEVELS[loglevel]


class _Server():
    def __init__(self):
        self.app = None
        self.host = "0.0.0.0"
        self.port = 5000
        self.backlog = 1024
        self.loglevel = LL_ERROR
        self.threads = 4
        self.connection_limit = 100
        self.channel_timeout = 120      # seconds an idle connection is kept open
        self.wsgi_server = None

    def init(self, app, host = None, port = None, loglevel = None, threads = None):
        self.app = app
        self.host = host if host else self.host
        self.port = port if port is not None else self.port
        self.loglevel = loglevel if loglevel is not None else self.loglevel
        self.threads = threads if threads is not None else self.threads
        self.configure_logging()
        self.wsgi_server = waitress.create_server(
            self.app,
            host=self.host,
            port=self.port,
            backlog=self.backlog,
            threads=self.threads,
            connection_limit=self.connection_limit,
            channel_timeout=self.channel_timeout,
        )
        # port 0 binds to any free port
        self.port = int(self.wsgi_server.effective_port)
        logger.debug("Bound %s:%s with %d threads", self.host, self.port, self.threads)
        return 0

    def configure_logging(self):
        level = logging_level(self.loglevel)
        logging.basicConfig(format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
        for name in ("hellowsgi", "waitress"):
            logging.getLogger(name).setLevel(level)

    def run(self):
        if self.wsgi_server is None:
            raise RuntimeError("Server is not initialized, call init() first")
        try:
            self.wsgi_server.run()
        except KeyboardInterrupt:
            logger.info("Interrupted, shutting down")
        finally:
            self.close()
        return 0

    def close(self):
        if self.wsgi_server is None:
            return 0
        wsgi_server, self.wsgi_server = self.wsgi_server, None
        wsgi_server.close()
        return 0

server = _Server()

# -------------------------------------------------------------------------------------

def import_from_string(import_str):
    module_str, _, attrs_str = import_str.partition(":")
    if not module_str or not attrs_str:
        raise ImportError("Import string should be in the format <module>:<attribute>")

    try:
        relpath = f"{module_str}.py"
        if os.path.isfile(relpath):
            spec = importlib.util.spec_from_file_location(module_str, relpath)
            module = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(module)

        else:
            module = importlib.import_module(module_str)

        for attr_str in attrs_str.split("."):
            module = getattr(module, attr_str)
    except AttributeError:
        raise ImportError(f'Attribute "{attrs_str}" not found in module "{module_str}"')

    return module

# -------------------------------------------------------------------------------------

@click.command()
@click.version_option(version=version("hellowsgi"), message="%(version)s")
@click.option("--host", help="Host the socket is bound to.", type=str, default=server.host, show_default=True)
@click.option("-p", "--port", help="Port the socket is bound to.", type=int, default=server.port, show_default=True)
@click.option("-l", "--loglevel", help="Logging level.", type=int, default=server.loglevel, show_default=True)
@click.option("-t", "--threads", help="Number of worker threads.", type=int, default=server.threads, show_default=True)
@click.argument(
    "wsgi_app_import_string",
    type=str,
    default=DEFAULT_APP,
    required=False,
)
def run_from_cli(host, port, wsgi_app_import_string, loglevel, threads):
    """
    Run the Hello World app, or any WSGI app, from CLI
    """
    try:
        wsgi_app = import_from_string(wsgi_app_import_string)
    except ImportError as e:
        print(f"Error importing WSGI app: {e}")
        sys.exit(1)

    server.init(wsgi_app, host, port, loglevel, threads)
    print(f"hellowsgi server listening at http://{server.host}:{server.port}")
    server.run()

# -------------------------------------------------------------------------------------

def run(wsgi_app, host = None, port = None, loglevel = None, threads = None):
    print("hellowsgi server running on PID:", os.getpid())
    server.init(wsgi_app, host, port, loglevel, threads)
    print(f"hellowsgi server listening at http://{server.host}:{server.port}")
    server.run()
