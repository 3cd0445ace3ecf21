import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Self

import requests

from src.platform_simulator.signer import JwsWebhookSigner
from src.webhooks.middleware import API_URL_HEADER, DOMAIN_HEADER, JWKS_PATH


class _GraphQLHandler(BaseHTTPRequestHandler):
    """Answers the app-id query and publishes the webhook signing keys."""

    def _send_json(self, code: int, body: dict) -> None:
        data = json.dumps(body).encode()
        self.send_response(code)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def do_GET(self):
        server_config = self.server.config  # type: ignore[attr-defined]
        if self.path != JWKS_PATH:
            self._send_json(404, {"error": "not found"})
            return
        with server_config["lock"]:
            server_config["jwks_requests"] += 1
        self._send_json(200, server_config["signer"].jwks())

    def do_POST(self):
        content_length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(content_length)
        server_config = self.server.config  # type: ignore[attr-defined]

        try:
            request = json.loads(body)
        except (json.JSONDecodeError, ValueError):
            self._send_json(400, {"errors": [{"message": "invalid JSON"}]})
            return

        with server_config["lock"]:
            server_config["received_requests"].append({
                "query": request.get("query", ""),
                "variables": request.get("variables"),
                "headers": dict(self.headers),
            })

        if server_config["status_code"] != 200:
            self._send_json(server_config["status_code"], {"errors": [{"message": "unavailable"}]})
            return

        auth = self.headers.get("Authorization", "")
        expected = f"Bearer {server_config['token']}" if server_config["token"] else None
        if expected and auth != expected:
            self._send_json(200, {
                "data": {"app": None},
                "errors": [{"message": "You do not have permission to perform this action"}],
            })
            return

        self._send_json(200, {"data": {"app": {"id": server_config["app_id"]}}})

    def log_message(self, format, *args):
        """Suppress default request logging."""
        pass


class FakePlatformApi:
    """Configurable stand-in for the platform's GraphQL API."""

    def __init__(self, host: str = "127.0.0.1", port: int = 0, app_id: str = "QXBwOjE="):
        self._host = host
        self._port = port
        self._config = {
            "app_id": app_id,
            "token": None,
            "status_code": 200,
            "received_requests": [],
            "jwks_requests": 0,
            "signer": JwsWebhookSigner(),
            "lock": threading.Lock(),
        }
        self._server: ThreadingHTTPServer | None = None
        self._thread: threading.Thread | None = None

    def expect_token(self, token: str) -> Self:
        """Only answer requests authenticated with this token."""
        self._config["token"] = token
        return self

    def set_status_code(self, code: int) -> Self:
        self._config["status_code"] = code
        return self

    def start(self) -> None:
        self._server = ThreadingHTTPServer((self._host, self._port), _GraphQLHandler)
        self._server.config = self._config  # type: ignore[attr-defined]
        self._port = self._server.server_address[1]
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        if self._server:
            self._server.shutdown()
            self._server.server_close()
            self._server = None
        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None

    @property
    def url(self) -> str:
        return f"http://{self._host}:{self._port}/graphql/"

    @property
    def app_id(self) -> str:
        return self._config["app_id"]

    @property
    def signer(self) -> JwsWebhookSigner:
        """Signs deliveries with the key published at the JWKS endpoint."""
        return self._config["signer"]

    @property
    def jwks_requests(self) -> int:
        with self._config["lock"]:
            return self._config["jwks_requests"]

    def install_app(self, token_target_url: str, auth_token: str) -> requests.Response:
        """POST the installation token to the app, as the platform does on install."""
        return requests.post(
            token_target_url,
            json={"auth_token": auth_token},
            headers={
                API_URL_HEADER: self.url,
                DOMAIN_HEADER: f"{self._host}:{self._port}",
            },
            timeout=5,
        )

    def get_received_requests(self) -> list[dict]:
        with self._config["lock"]:
            return list(self._config["received_requests"])
