import json
import logging
import threading
from pathlib import Path

from src.apl.base import APL
from src.models.auth import AuthData

logger = logging.getLogger(__name__)


class FileAPL(APL):
    """Single-tenant APL backed by one JSON file.

    Only one installation is kept; storing a new one overwrites the file.
    """

    def __init__(self, path: str | Path = ".auth-data.json"):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> AuthData | None:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError:
            logger.warning("Auth data file %s is not valid JSON, ignoring it", self.path)
            return None
        if not isinstance(data, dict):
            logger.warning("Auth data file %s does not hold a JSON object, ignoring it", self.path)
            return None
        if not data.get("token") or not data.get("saleorApiUrl"):
            return None
        return AuthData.from_dict(data)

    def _write(self, data: dict) -> None:
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def get(self, api_url: str) -> AuthData | None:
        with self._lock:
            stored = self._read()
        if stored is None or stored.api_url != api_url:
            return None
        return stored

    def set(self, auth_data: AuthData) -> None:
        with self._lock:
            self._write(auth_data.to_dict())
        logger.info("Stored auth data for %s in %s", auth_data.api_url, self.path)

    def delete(self, api_url: str) -> None:
        with self._lock:
            stored = self._read()
            if stored is not None and stored.api_url == api_url:
                self._write({})
                logger.info("Removed auth data for %s", api_url)

    def get_all(self) -> list[AuthData]:
        with self._lock:
            stored = self._read()
        return [stored] if stored else []
