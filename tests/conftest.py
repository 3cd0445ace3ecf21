import dataclasses
import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from src.apl.file import FileAPL
from src.app_server.server import PaymentAppServer
from src.config import AplBackend, AppConfig, SignatureScheme
from src.platform_simulator.api_server import FakePlatformApi
from src.platform_simulator.deliverer import PlatformWebhookDeliverer
from src.utils.factories import AuthDataFactory, EventPayloadFactory


API_URL = "https://shop.example.com/graphql/"
APP_TOKEN = "test-app-token-for-hmac"
FIXED_NOW = 1700000000.75


class _UpstashHandler(BaseHTTPRequestHandler):
    """Speaks the subset of the Upstash REST protocol the APL uses."""

    def _send_json(self, code: int, body: dict) -> None:
        data = json.dumps(body).encode()
        self.send_response(code)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def do_POST(self):
        content_length = int(self.headers.get("Content-Length", 0))
        command, *args = json.loads(self.rfile.read(content_length))
        server = self.server

        if self.headers.get("Authorization") != f"Bearer {server.token}":  # type: ignore[attr-defined]
            self._send_json(401, {"error": "Unauthorized"})
            return

        store = server.store  # type: ignore[attr-defined]
        with server.lock:  # type: ignore[attr-defined]
            name = command.upper()
            if name == "GET":
                result = store.get(args[0])
            elif name == "SET":
                store[args[0]] = args[1]
                result = "OK"
            elif name == "DEL":
                result = 1 if store.pop(args[0], None) is not None else 0
            elif name == "KEYS":
                result = list(store)
            elif name == "MGET":
                result = [store.get(key) for key in args]
            else:
                self._send_json(400, {"error": f"ERR unknown command '{command}'"})
                return
        self._send_json(200, {"result": result})

    def log_message(self, format, *args):
        pass


class FakeUpstash:
    """In-process Upstash REST endpoint backed by a dict."""

    def __init__(self, token: str = "upstash-test-token"):
        self.token = token
        self._server = ThreadingHTTPServer(("127.0.0.1", 0), _UpstashHandler)
        self._server.token = token  # type: ignore[attr-defined]
        self._server.store = {}  # type: ignore[attr-defined]
        self._server.lock = threading.Lock()  # type: ignore[attr-defined]
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._server.shutdown()
        self._server.server_close()
        self._thread.join(timeout=5)

    @property
    def url(self) -> str:
        return f"http://127.0.0.1:{self._server.server_address[1]}"

    @property
    def store(self) -> dict:
        return self._server.store  # type: ignore[attr-defined]


@pytest.fixture
def auth_data():
    return AuthDataFactory.create(api_url=API_URL, token=APP_TOKEN)


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def file_apl(tmp_path):
    return FileAPL(tmp_path / ".auth-data.json")


@pytest.fixture
def installed_apl(file_apl, auth_data):
    """File APL that already holds the test installation."""
    file_apl.set(auth_data)
    return file_apl


@pytest.fixture
def app_config(tmp_path):
    """Local app config; deliveries are HMAC-signed by the simulator."""
    return AppConfig(
        apl=AplBackend.FILE,
        file_apl_path=str(tmp_path / ".auth-data.json"),
        host="127.0.0.1",
        port=0,
        signature_scheme=SignatureScheme.HMAC,
    )


@pytest.fixture
def platform_app_config(app_config):
    """App config that checks signatures the way a platform install does."""
    return dataclasses.replace(app_config, signature_scheme=SignatureScheme.JWS)


@pytest.fixture
def app_server(app_config, installed_apl):
    server = PaymentAppServer(app_config, apl=installed_apl)
    server.start()
    yield server
    server.stop()


@pytest.fixture
def deliverer(auth_data):
    return PlatformWebhookDeliverer(auth_data, timeout_seconds=5)


@pytest.fixture
def platform_api():
    api = FakePlatformApi()
    api.start()
    yield api
    api.stop()


@pytest.fixture
def upstash_server():
    server = FakeUpstash()
    server.start()
    yield server
    server.stop()


@pytest.fixture
def payload_factory():
    return EventPayloadFactory
