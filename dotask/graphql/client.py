"""GraphQL transport binding — single endpoint, bearer token from client storage.

Every request is a JSON POST of ``{operationName, query, variables}``.
The bearer token is read from client storage on each call, and cookies
returned by the server are sent back on later calls (session-cookie
fallback). Errors are tagged with a ClientError kind here so that the
stores never inspect message text.

Queries go through a small response cache modelled on Apollo's
InMemoryCache fetch policies:
  cache-first   → serve a cached result if present, else fetch and cache
  network-only  → always fetch, then refresh the cache
Mutations are never cached.
"""

from __future__ import annotations

import copy
import json
import logging
from typing import Any, Literal

import httpx

from dotask.graphql.errors import ClientError, classify_graphql_errors, first_error_message
from dotask.graphql.operations import Operation, is_cataloged
from dotask.storage import ACCESS_TOKEN_KEY, ClientStorage

logger = logging.getLogger(__name__)

FetchPolicy = Literal["cache-first", "network-only"]

_DEFAULT_TIMEOUT = 10.0


class GraphQLClient:
    """Async client for the task-management GraphQL endpoint.

    Usage:
        client = GraphQLClient("http://localhost:8080/query", storage=ClientStorage())
        data = await client.query(GET_TASKS, fetch_policy="network-only")
        tasks = root_field(data, GET_TASKS)
    """

    def __init__(
        self,
        url: str | None = None,
        storage: ClientStorage | None = None,
        timeout: float | None = None,
    ) -> None:
        if url is None or timeout is None:
            from dotask.config import settings

            url = url or settings.graphql_url
            timeout = timeout if timeout is not None else settings.request_timeout
        self.url = url
        self.storage = storage if storage is not None else ClientStorage()
        self._timeout = timeout or _DEFAULT_TIMEOUT
        self._cookies = httpx.Cookies()
        self._cache: dict[tuple[str, str], dict[str, Any]] = {}

    @property
    def cookies(self) -> httpx.Cookies:
        """Cookies the server has set; sent back with every request."""
        return self._cookies

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def _build_headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        token = self.storage.get_item(ACCESS_TOKEN_KEY)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    @staticmethod
    def _cache_key(operation: Operation, variables: dict[str, Any]) -> tuple[str, str]:
        return operation.name, json.dumps(variables, sort_keys=True, default=str)

    async def query(
        self,
        operation: Operation,
        variables: dict[str, Any] | None = None,
        fetch_policy: FetchPolicy = "cache-first",
    ) -> dict[str, Any]:
        """Run a catalog query and return its ``data`` object."""
        if operation.kind != "query":
            raise ValueError(f"{operation.name} is a {operation.kind}, not a query")
        variables = variables or {}
        key = self._cache_key(operation, variables)

        if fetch_policy == "cache-first" and key in self._cache:
            logger.debug("Cache hit for %s", operation.name)
            return copy.deepcopy(self._cache[key])

        data = await self._execute(operation, variables)
        self._cache[key] = copy.deepcopy(data)
        return data

    async def mutate(
        self,
        operation: Operation,
        variables: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Run a catalog mutation and return its ``data`` object."""
        if operation.kind != "mutation":
            raise ValueError(f"{operation.name} is a {operation.kind}, not a mutation")
        return await self._execute(operation, variables or {})

    def reset_store(self) -> None:
        """Drop every cached query result."""
        dropped = len(self._cache)
        self._cache.clear()
        logger.debug("Response cache reset (%d entries dropped)", dropped)

    def clear_cookies(self) -> None:
        """Forget every cookie the server has set (ends a cookie-backed session)."""
        self._cookies.clear()

    async def _execute(self, operation: Operation, variables: dict[str, Any]) -> dict[str, Any]:
        if not is_cataloged(operation):
            raise ValueError(f"Operation {operation.name} is not in the catalog")

        payload = {
            "operationName": operation.name,
            "query": operation.document,
            "variables": variables,
        }
        logger.debug("GraphQL %s %s", operation.kind, operation.name)

        try:
            async with httpx.AsyncClient(timeout=self._timeout, cookies=self._cookies) as client:
                resp = await client.post(self.url, json=payload, headers=self._build_headers())
        except httpx.TimeoutException as e:
            raise ClientError(f"Request timed out: {operation.name}", kind="transport") from e
        except httpx.HTTPError as e:
            raise ClientError(str(e) or f"Network error: {operation.name}", kind="transport") from e

        self._cookies.update(resp.cookies)
        status = resp.status_code

        if status in (401, 403):
            raise ClientError(f"Not authorized (HTTP {status})", kind="auth")

        try:
            body = resp.json()
        except ValueError as e:
            if status >= 400:
                raise ClientError(f"HTTP {status} from GraphQL endpoint", kind="transport") from e
            raise ClientError("Response is not valid JSON", kind="malformed") from e

        if not isinstance(body, dict):
            raise ClientError("Response body is not a JSON object", kind="malformed")

        errors = body.get("errors") or []
        if errors:
            raise ClientError(
                first_error_message(errors, f"{operation.name} failed"),
                kind=classify_graphql_errors(errors),
                errors=errors,
            )

        if status >= 400:
            raise ClientError(f"HTTP {status} from GraphQL endpoint", kind="transport")

        data = body.get("data")
        if not isinstance(data, dict):
            raise ClientError(f"{operation.name} returned no data", kind="malformed")
        return data


def root_field(data: dict[str, Any], operation: Operation) -> Any:
    """Extract an operation's root field, rejecting empty/partial payloads."""
    value = data.get(operation.root_field)
    if value is None:
        raise ClientError(
            f"{operation.name} returned no {operation.root_field}",
            kind="malformed",
        )
    return value
