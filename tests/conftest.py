"""Test configuration and fixtures for the bootkit test suite"""

import os
import sys
import threading
from email.message import Message
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from bootkit.context import ExecutionContext
from bootkit.errors import CommandCancelledError, CommandFailedError
from bootkit.logger import BootkitLogger


class FakeRunner:
    """ProcessRunner double that records every command line"""

    def __init__(self):
        self.calls: List[List[str]] = []
        self._failures: Dict[str, int] = {}
        self._outputs: Dict[str, Tuple[Path, bytes]] = {}
        self._cancels: List[str] = []

    def fail_on(self, fragment: str, exit_code: int = 1) -> None:
        """Fail every command whose command line contains fragment"""
        self._failures[fragment] = exit_code

    def create_on(self, fragment: str, path: Path, content: bytes = b'') -> None:
        """Write a file when a matching command runs"""
        self._outputs[fragment] = (Path(path), content)

    def cancel_on(self, fragment: str) -> None:
        """Cancel the context while a matching command runs"""
        self._cancels.append(fragment)

    @property
    def commands(self) -> List[str]:
        return [' '.join(argv) for argv in self.calls]

    def run(self, argv: Sequence[str], context: ExecutionContext) -> None:
        argv = list(argv)
        self.calls.append(argv)
        line = ' '.join(argv)

        if context.reason is not None:
            raise CommandCancelledError(argv, context.reason)

        for fragment in self._cancels:
            if fragment in line:
                context.cancel('interrupted')
                raise CommandCancelledError(argv, 'interrupted')

        for fragment, exit_code in self._failures.items():
            if fragment in line:
                raise CommandFailedError(argv, exit_code)

        for fragment, (path, content) in self._outputs.items():
            if fragment in line:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_bytes(content)


class LocalHTTPServer:
    """Routes served by the http_server fixture"""

    def __init__(self, base_url: str):
        self.base_url = base_url
        self.routes: Dict[str, Tuple[int, bytes]] = {}
        self.requests: List[str] = []
        self.headers: List[Message] = []

    def add(self, path: str, body: bytes, status: int = 200) -> str:
        self.routes[path] = (status, body)
        return self.url(path)

    def url(self, path: str) -> str:
        return f"{self.base_url}{path}"


@pytest.fixture
def project_root():
    """Fixture providing path to project root directory"""
    return PROJECT_ROOT


@pytest.fixture(autouse=True)
def temp_home(tmp_path, monkeypatch):
    """Point HOME and BOOTKIT_HOME at a temporary directory"""
    home = tmp_path / 'home'
    home.mkdir()
    monkeypatch.setenv('HOME', str(home))
    monkeypatch.setenv('no_proxy', '*')
    monkeypatch.setenv('NO_PROXY', '*')
    monkeypatch.setenv('BOOTKIT_HOME', str(home / '.bootkit'))
    for name in list(os.environ):
        if name.startswith('BOOTKIT_') and name != 'BOOTKIT_HOME':
            monkeypatch.delenv(name, raising=False)
    return home


@pytest.fixture(autouse=True)
def reset_logging():
    """Give every test a fresh logging setup so caplog sees bootkit records"""
    BootkitLogger.reset()
    yield
    BootkitLogger.reset()


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def context():
    return ExecutionContext()


@pytest.fixture
def http_server():
    """Serve canned responses from a local HTTP server"""
    server_state: Optional[LocalHTTPServer] = None

    class Handler(BaseHTTPRequestHandler):
        def do_GET(self):
            server_state.requests.append(self.path)
            server_state.headers.append(self.headers)
            status, body = server_state.routes.get(self.path, (404, b'not found'))
            self.send_response(status)
            self.send_header('Content-Length', str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, format, *args):
            pass

    server = ThreadingHTTPServer(('127.0.0.1', 0), Handler)
    server_state = LocalHTTPServer(f"http://127.0.0.1:{server.server_address[1]}")
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    yield server_state

    server.shutdown()
    server.server_close()


@pytest.fixture
def tools_config_file(tmp_path):
    """Write a tools configuration document and return its path"""
    def _write(content: str) -> Path:
        path = tmp_path / 'config.yaml'
        path.write_text(content)
        return path
    return _write


# Pytest hooks for better test organization
def pytest_configure(config):
    """Configure pytest with custom markers and settings"""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow running tests")
    config.addinivalue_line("markers", "core: Core module tests")
    config.addinivalue_line("markers", "cli: Command line interface tests")


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers automatically"""
    for item in items:
        # Add markers based on test file location
        path = str(item.fspath)
        if "unit" in path:
            item.add_marker(pytest.mark.unit)
        elif "integration" in path:
            item.add_marker(pytest.mark.integration)

        if "core" in path:
            item.add_marker(pytest.mark.core)
        if "cli" in path:
            item.add_marker(pytest.mark.cli)
