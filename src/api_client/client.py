import logging
from typing import Callable

import requests

logger = logging.getLogger(__name__)


class GraphQLError(Exception):
    """The API answered, but reported errors for the operation."""

    def __init__(self, errors: list[dict]):
        self.errors = errors
        messages = "; ".join(str(e.get("message", e)) for e in errors)
        super().__init__(messages or "GraphQL request failed")


class GraphQLClient:
    """Minimal GraphQL-over-HTTP client for the platform API."""

    def __init__(
        self,
        api_url: str,
        get_token: Callable[[], str | None],
        timeout_seconds: float = 10,
        session: requests.Session | None = None,
    ):
        self.api_url = api_url
        self._get_token = get_token
        self.timeout_seconds = timeout_seconds
        self._session = session or requests.Session()

    def execute(self, query: str, variables: dict | None = None) -> dict:
        """Run a query or mutation and return its `data` object.

        Raises:
            GraphQLError: the response carries an `errors` list.
            requests.exceptions.RequestException: transport or HTTP failure.
        """
        headers = {"Content-Type": "application/json"}
        token = self._get_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        resp = self._session.post(
            self.api_url,
            json={"query": query, "variables": variables or {}},
            headers=headers,
            timeout=self.timeout_seconds,
        )
        resp.raise_for_status()
        body = resp.json()

        if body.get("errors"):
            logger.warning("GraphQL errors from %s: %s", self.api_url, body["errors"])
            raise GraphQLError(body["errors"])
        return body.get("data") or {}


def create_client(api_url: str, get_token: Callable[[], str | None]) -> GraphQLClient:
    return GraphQLClient(api_url, get_token)
