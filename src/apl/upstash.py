import json
import logging

import requests

from src.apl.base import APL, AplError
from src.models.auth import AuthData

logger = logging.getLogger(__name__)


class UpstashAPL(APL):
    """Multi-tenant APL stored in Upstash Redis through its REST API.

    Each installation is one key (the API URL) holding the serialized AuthData.
    """

    def __init__(
        self,
        url: str,
        token: str,
        timeout_seconds: float = 10,
        session: requests.Session | None = None,
    ):
        self.url = url
        self.token = token
        self.timeout_seconds = timeout_seconds
        self._session = session or requests.Session()

    def _command(self, *args):
        """Run one Redis command and return its `result`."""
        try:
            resp = self._session.post(
                self.url,
                json=list(args),
                headers={"Authorization": f"Bearer {self.token}"},
                timeout=self.timeout_seconds,
            )
        except requests.exceptions.RequestException as e:
            raise AplError(f"Upstash request failed: {e}") from e

        try:
            body = resp.json()
        except ValueError:
            raise AplError(f"Upstash returned non-JSON response ({resp.status_code})") from None

        if not resp.ok or "error" in body:
            raise AplError(
                f"Upstash {args[0]} failed ({resp.status_code}): {body.get('error', 'unknown error')}"
            )
        return body.get("result")

    def get(self, api_url: str) -> AuthData | None:
        raw = self._command("GET", api_url)
        if raw is None:
            return None
        return AuthData.from_dict(json.loads(raw))

    def set(self, auth_data: AuthData) -> None:
        self._command("SET", auth_data.api_url, json.dumps(auth_data.to_dict()))
        logger.info("Stored auth data for %s in Upstash", auth_data.api_url)

    def delete(self, api_url: str) -> None:
        self._command("DEL", api_url)
        logger.info("Removed auth data for %s from Upstash", api_url)

    def get_all(self) -> list[AuthData]:
        keys = self._command("KEYS", "*") or []
        if not keys:
            return []
        values = self._command("MGET", *keys) or []
        return [AuthData.from_dict(json.loads(v)) for v in values if v]

    def is_configured(self) -> bool:
        return bool(self.url and self.token)
