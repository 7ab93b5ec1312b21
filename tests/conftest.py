import os
import sys
import time
import socket
import pytest
import hellowsgi
from enum import Enum

from contextlib import contextmanager
from multiprocessing import Process, set_start_method

from hello_app import create_app
from tests.apps_under_test import (
    flask_app,
    wsgi_app,
    error_app,
)

HOST = "127.0.0.1"
PORT = 5100
STARTUP_TIMEOUT = 10


class ServerProcess:
    def __init__(self, application, host=HOST, port=PORT) -> None:
        self.process = Process(target=hellowsgi.run, args=(application, host, port))
        self.endpoint = f"http://{host}:{port}"
        self.host = host
        self.port = port

    def start(self):
        self.process.start()

    def wait_until_ready(self, timeout=STARTUP_TIMEOUT):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            try:
                socket.create_connection((self.host, self.port), timeout=1).close()
                return
            except OSError:
                time.sleep(0.05)
        raise RuntimeError(f"Server at {self.endpoint} did not start")

    def kill(self):
        self.process.kill()
        self.process.join()


class Servers(Enum):
    FLASK_TEST_SERVER = 1
    WSGI_TEST_SERVER = 2
    ERROR_TEST_SERVER = 3


servers = {
    Servers.FLASK_TEST_SERVER: flask_app,
    Servers.WSGI_TEST_SERVER: wsgi_app,
    Servers.ERROR_TEST_SERVER: error_app,
}


@contextmanager
def mute_ouput():
    old_out = sys.stdout
    old_err = sys.stderr
    sys.stdout = open(os.devnull, "w")
    sys.stderr = open(os.devnull, "w")
    try:
        yield
    finally:
        sys.stdout.close()
        sys.stderr.close()
        sys.stdout = old_out
        sys.stderr = old_err


def pytest_sessionstart(session):
    set_start_method("fork", force=True)
    for i, server in enumerate(servers.items()):
        with mute_ouput():
            name, app = server
            server_process = ServerProcess(app, port=PORT + i)
            server_process.start()
        print(f"{name} is listening on port={PORT+i}")
        servers[name] = server_process
    try:
        for server_process in servers.values():
            server_process.wait_until_ready()
    except RuntimeError:
        kill_servers()
        raise


def kill_servers():
    for server_process in servers.values():
        if isinstance(server_process, ServerProcess) and server_process.process.is_alive():
            server_process.kill()


def pytest_sessionfinish(session, exitstatus):
    kill_servers()


@pytest.fixture
def flask_test_server():
    return servers.get(Servers.FLASK_TEST_SERVER)


@pytest.fixture
def wsgi_test_server():
    return servers.get(Servers.WSGI_TEST_SERVER)


@pytest.fixture
def error_test_server():
    return servers.get(Servers.ERROR_TEST_SERVER)


@pytest.fixture
def app():
    return create_app({"TESTING": True})


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client
