import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Mapping

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class ConfigurationError(Exception):
    """Raised at startup when the environment does not describe a usable app."""


class AplBackend(Enum):
    FILE = "file"
    UPSTASH = "upstash"


class SignatureScheme(Enum):
    """How the `saleor-signature` header of a delivery is checked.

    JWS is what the platform sends. HMAC is only produced by the platform
    simulator and is meant for local runs and tests.
    """

    JWS = "jws"
    HMAC = "hmac"


@dataclass(frozen=True)
class AppConfig:
    """Process-wide settings, built once at startup and passed to the server."""

    apl: AplBackend
    upstash_url: str | None = None
    upstash_token: str | None = None
    file_apl_path: str = ".auth-data.json"
    app_url: str | None = None
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    allowed_saleor_urls: tuple[str, ...] = ()
    signature_scheme: SignatureScheme = SignatureScheme.JWS
    delivery_log_size: int = 1000

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "AppConfig":
        env = os.environ if environ is None else environ

        raw_apl = env.get("APL", "").strip().lower()
        choices = ", ".join(b.value for b in AplBackend)
        if not raw_apl:
            raise ConfigurationError(f"APL is not set; expected one of: {choices}")
        try:
            apl = AplBackend(raw_apl)
        except ValueError:
            raise ConfigurationError(
                f"APL={raw_apl!r} is not supported; expected one of: {choices}"
            ) from None

        upstash_url = env.get("UPSTASH_URL") or None
        upstash_token = env.get("UPSTASH_TOKEN") or None
        if apl is AplBackend.UPSTASH:
            missing = [
                name for name, value in (
                    ("UPSTASH_URL", upstash_url),
                    ("UPSTASH_TOKEN", upstash_token),
                )
                if not value
            ]
            if missing:
                raise ConfigurationError(
                    f"APL=upstash requires {', '.join(missing)}"
                )

        raw_port = env.get("PORT", "3000")
        try:
            port = int(raw_port)
        except ValueError:
            raise ConfigurationError(f"PORT={raw_port!r} is not an integer") from None

        raw_scheme = (env.get("SIGNATURE_SCHEME") or "jws").strip().lower()
        try:
            signature_scheme = SignatureScheme(raw_scheme)
        except ValueError:
            schemes = ", ".join(s.value for s in SignatureScheme)
            raise ConfigurationError(
                f"SIGNATURE_SCHEME={raw_scheme!r} is not supported; expected one of: {schemes}"
            ) from None

        raw_log_size = env.get("DELIVERY_LOG_SIZE", "1000")
        try:
            delivery_log_size = int(raw_log_size)
        except ValueError:
            raise ConfigurationError(
                f"DELIVERY_LOG_SIZE={raw_log_size!r} is not an integer"
            ) from None
        if delivery_log_size < 0:
            raise ConfigurationError("DELIVERY_LOG_SIZE must not be negative")

        allowed = tuple(
            url.strip()
            for url in env.get("ALLOWED_SALEOR_URLS", "").split(",")
            if url.strip()
        )

        return cls(
            apl=apl,
            upstash_url=upstash_url,
            upstash_token=upstash_token,
            file_apl_path=env.get("FILE_APL_PATH") or ".auth-data.json",
            app_url=(env.get("APP_URL") or "").rstrip("/") or None,
            host=env.get("HOST") or "0.0.0.0",
            port=port,
            log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
            allowed_saleor_urls=allowed,
            signature_scheme=signature_scheme,
            delivery_log_size=delivery_log_size,
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
