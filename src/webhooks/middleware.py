"""Request pipeline run in front of every webhook handler.

Each step takes the WebhookContext, fills in what it is responsible for and
raises WebhookError to reject the delivery. Steps run in the order
build_pipeline returns them; each one relies only on what the previous ones
put on the context.
"""

import json
import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Mapping, NoReturn
from urllib.parse import urlsplit

import jwt
import requests

from src.apl.base import APL
from src.config import SignatureScheme
from src.models.auth import AuthData
from src.models.events import PayloadError
from src.utils.crypto import verify_signature

if TYPE_CHECKING:
    from src.webhooks.definition import SyncWebhook

logger = logging.getLogger(__name__)

API_URL_HEADER = "saleor-api-url"
EVENT_HEADER = "saleor-event"
SIGNATURE_HEADER = "saleor-signature"
DOMAIN_HEADER = "saleor-domain"

JWKS_PATH = "/.well-known/jwks.json"
JWS_ALGORITHMS = ["RS256"]


class WebhookError(Exception):
    """A delivery rejected before it reached the handler."""

    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status
        self.message = message


@dataclass
class WebhookRequest:
    method: str
    path: str
    headers: Mapping[str, str]
    body: bytes

    def __post_init__(self):
        self.headers = {k.lower(): v for k, v in self.headers.items()}

    def header(self, name: str) -> str | None:
        return self.headers.get(name.lower())


@dataclass
class WebhookContext:
    request: WebhookRequest
    webhook: "SyncWebhook"
    apl: APL
    base_url: str
    api_url: str | None = None
    event: str | None = None
    signature: str | None = None
    auth_data: AuthData | None = None
    raw_payload: Any = None
    payload: Any = None


Step = Callable[[WebhookContext], None]


def read_platform_headers(ctx: WebhookContext) -> None:
    if ctx.request.method != "POST":
        raise WebhookError(405, "Only POST requests are allowed")

    for name in (API_URL_HEADER, EVENT_HEADER, SIGNATURE_HEADER):
        if not ctx.request.header(name):
            raise WebhookError(400, f"Missing {name} header")

    ctx.api_url = ctx.request.header(API_URL_HEADER)
    ctx.event = ctx.request.header(EVENT_HEADER)
    ctx.signature = ctx.request.header(SIGNATURE_HEADER)


def check_event(ctx: WebhookContext) -> None:
    expected = ctx.webhook.event.lower()
    if ctx.event.lower() != expected:
        raise WebhookError(
            400, f"Wrong incoming request event: {ctx.event}. Expected: {expected}"
        )


def inject_auth_data(ctx: WebhookContext) -> None:
    auth_data = ctx.apl.get(ctx.api_url)
    if auth_data is None:
        raise WebhookError(
            401,
            f"Can't find auth data for {ctx.api_url}. Please register the application",
        )
    ctx.auth_data = auth_data


def _reject_signature(ctx: WebhookContext, reason: str) -> NoReturn:
    logger.warning("Signature check failed for %s delivery from %s: %s",
                   ctx.event, ctx.api_url, reason)
    raise WebhookError(401, "Request signature check failed")


def jwks_url(api_url: str) -> str:
    """The platform publishes its signing keys next to its GraphQL API."""
    parts = urlsplit(api_url)
    return f"{parts.scheme}://{parts.netloc}{JWKS_PATH}"


class JwksSignatureVerifier:
    """Checks the detached JWS the platform sends in `saleor-signature`.

    The signature covers the raw body (`b64: false`). Key sets are cached per
    platform; when no cached key verifies the signature the set is fetched
    again once, which is how key rotation is picked up.
    """

    def __init__(self, timeout_seconds: float = 10, session: requests.Session | None = None):
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()
        self._jws = jwt.PyJWS()
        self._key_sets: dict[str, jwt.PyJWKSet] = {}
        self._lock = threading.Lock()

    def fetch_key_set(self, url: str) -> jwt.PyJWKSet:
        resp = self.session.get(url, timeout=self.timeout_seconds)
        resp.raise_for_status()
        key_set = jwt.PyJWKSet.from_dict(resp.json())
        with self._lock:
            self._key_sets[url] = key_set
        logger.info("Fetched %d signing key(s) from %s", len(key_set.keys), url)
        return key_set

    def _matches(self, key_set: jwt.PyJWKSet, ctx: WebhookContext, kid: str | None) -> bool:
        for key in key_set.keys:
            if kid is not None and key.key_id != kid:
                continue
            try:
                self._jws.decode_complete(
                    ctx.signature,
                    key=key.key,
                    algorithms=JWS_ALGORITHMS,
                    detached_payload=ctx.request.body,
                )
            except jwt.PyJWTError:
                continue
            return True
        return False

    def __call__(self, ctx: WebhookContext) -> None:
        try:
            kid = jwt.get_unverified_header(ctx.signature).get("kid")
        except jwt.PyJWTError as e:
            _reject_signature(ctx, f"malformed JWS ({e})")

        url = jwks_url(ctx.api_url)
        with self._lock:
            key_set = self._key_sets.get(url)
        if key_set is not None and self._matches(key_set, ctx, kid):
            return

        try:
            key_set = self.fetch_key_set(url)
        except (requests.exceptions.RequestException, ValueError, jwt.PyJWTError) as e:
            _reject_signature(ctx, f"cannot load signing keys from {url} ({e})")
        if not self._matches(key_set, ctx, kid):
            _reject_signature(ctx, "no signing key matches")


def verify_hmac_signature(ctx: WebhookContext) -> None:
    """HMAC-SHA256 of the raw body keyed with the app token.

    Only the platform simulator signs this way.
    """
    if not verify_signature(ctx.request.body, ctx.auth_data.token, ctx.signature):
        _reject_signature(ctx, "HMAC mismatch")


def parse_payload(ctx: WebhookContext) -> None:
    try:
        ctx.raw_payload = json.loads(ctx.request.body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise WebhookError(400, "Invalid request json") from None

    try:
        ctx.payload = ctx.webhook.payload_type.from_dict(ctx.raw_payload)
    except PayloadError as e:
        raise WebhookError(400, f"Invalid payload: {e}") from e


def build_pipeline(
    scheme: SignatureScheme = SignatureScheme.JWS,
    verifier: Step | None = None,
) -> tuple[Step, ...]:
    """Steps run in front of a webhook handler, in order.

    `verifier` replaces the signature step picked from `scheme`.
    """
    if verifier is None:
        if scheme is SignatureScheme.HMAC:
            verifier = verify_hmac_signature
        else:
            verifier = JwksSignatureVerifier()
    return (
        read_platform_headers,
        check_event,
        inject_auth_data,
        verifier,
        parse_payload,
    )


def run_pipeline(ctx: WebhookContext, steps: tuple[Step, ...] | None = None) -> WebhookContext:
    for step in steps if steps is not None else ctx.webhook.steps:
        step(ctx)
    return ctx
