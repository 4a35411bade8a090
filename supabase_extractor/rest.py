"""Client for the Supabase REST (PostgREST) data API."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import requests

from .errors import RestApiError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60


class SupabaseRestClient:
    """Row-level read access through ``/rest/v1`` using the service-role key.

    Only two operations are needed: calling a remote procedure and selecting
    a range of rows from a table.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: int = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
            }
        )

    def _url(self, path: str) -> str:
        return f"{self.base_url}/rest/v1/{path}"

    def _decode(self, response: requests.Response, what: str) -> list[dict[str, Any]]:
        if not response.ok:
            detail = response.text
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict) and body.get("message"):
                detail = body["message"]
            raise RestApiError(f"{what} failed: {detail}", status_code=response.status_code)
        try:
            payload = response.json() if response.content else []
        except ValueError as e:
            raise RestApiError(f"{what} returned invalid JSON: {e}", status_code=response.status_code) from e
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise RestApiError(f"{what} returned {type(payload).__name__}, expected a list of rows")
        return payload

    def rpc(self, function: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """Call a database function exposed under ``/rpc`` and return its rows."""
        url = self._url(f"rpc/{quote(function, safe='')}")
        try:
            response = self.session.post(url, json=params or {}, timeout=self.timeout)
        except requests.RequestException as e:
            raise RestApiError(f"rpc {function} failed: {e}") from e
        return self._decode(response, f"rpc {function}")

    def select_range(self, table: str, start: int, end: int) -> list[dict[str, Any]]:
        """Select all columns of rows ``start`` through ``end`` (inclusive)."""
        url = self._url(quote(table, safe=""))
        headers = {"Range-Unit": "items", "Range": f"{start}-{end}"}
        logger.debug(f"GET {table} rows {start}-{end}")
        try:
            response = self.session.get(
                url,
                params={"select": "*"},
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise RestApiError(f"select from {table} failed: {e}") from e
        return self._decode(response, f"select from {table}")
