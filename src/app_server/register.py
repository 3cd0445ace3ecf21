import json
import logging
from typing import Callable

import requests

from src.api_client.client import GraphQLClient, GraphQLError, create_client
from src.apl.base import APL, AplError
from src.config import AppConfig
from src.models.auth import AuthData
from src.webhooks.middleware import API_URL_HEADER, WebhookRequest

logger = logging.getLogger(__name__)

APP_ID_QUERY = """
query AppId {
  app {
    id
  }
}
"""


def _failure(status: int, code: str, message: str) -> tuple[int, dict]:
    return status, {"success": False, "error": {"code": code, "message": message}}


def fetch_app_id(client: GraphQLClient) -> str | None:
    data = client.execute(APP_ID_QUERY)
    return (data.get("app") or {}).get("id")


def register_app(
    request: WebhookRequest,
    config: AppConfig,
    apl: APL,
    client_factory: Callable[..., GraphQLClient] = create_client,
) -> tuple[int, dict]:
    """Handle the platform's install call and store the installation's token.

    Returns the HTTP status and JSON body to answer with.
    """
    if not apl.is_configured():
        return _failure(503, "APL_NOT_CONFIGURED", "APL is not configured")

    api_url = request.header(API_URL_HEADER)
    if not api_url:
        return _failure(400, "MISSING_SALEOR_API_URL", f"Missing {API_URL_HEADER} header")

    if config.allowed_saleor_urls and api_url not in config.allowed_saleor_urls:
        logger.warning("Rejected registration from %s: not in allowlist", api_url)
        return _failure(403, "SALEOR_URL_PROHIBITED", "This app expects to be installed only in allowed Saleor instances")

    try:
        body = json.loads(request.body or b"{}")
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _failure(400, "INVALID_BODY", "Invalid request json")

    token = body.get("auth_token") if isinstance(body, dict) else None
    if not token:
        return _failure(400, "MISSING_AUTH_TOKEN", "Missing auth token")

    client = client_factory(api_url, lambda: token)
    try:
        app_id = fetch_app_id(client)
    except (GraphQLError, requests.exceptions.RequestException, ValueError) as e:
        logger.warning("Could not fetch app id from %s: %s", api_url, e)
        app_id = None
    if not app_id:
        return _failure(401, "UNKNOWN_APP_ID", "Couldn't fetch the app id")

    try:
        apl.set(AuthData(api_url=api_url, token=token, app_id=app_id))
    except AplError as e:
        logger.error("Could not store auth data for %s: %s", api_url, e)
        return _failure(500, "APL_SET_FAILED", "Could not store auth data")

    logger.info("Registered app %s for %s", app_id, api_url)
    return 200, {"success": True}
