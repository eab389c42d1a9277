"""Supabase REST (PostgREST) client - HTTP transport for the backing store."""

import logging

import requests

from dzisiaj.config import Config

logger = logging.getLogger(__name__)

REST_PATH = "/rest/v1"


class StoreError(Exception):
    """Raised when a store request fails."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


def _quote(value) -> str:
    # Quoted values keep '.', ',' and ')' in emails from breaking or=() syntax
    return '"' + str(value).replace('"', '\\"') + '"'


def _error_message(resp: requests.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.text
    if isinstance(data, dict):
        return data.get("message") or data.get("error") or resp.text
    return resp.text


class SupabaseClient:
    """
    Thin PostgREST client.

    Handles headers, filters and error mapping. No business logic - just I/O.
    Each call is one complete read or write; there are no transactions.
    """

    def __init__(
        self,
        url: str,
        key: str,
        session: requests.Session | None = None,
        timeout: int = 30,
    ):
        self.url = url.rstrip("/")
        self.key = key
        self.timeout = timeout
        self._session = session or requests.Session()

    @classmethod
    def from_config(cls, config: Config) -> "SupabaseClient":
        config.require_store()
        return cls(config.supabase_url, config.supabase_key)

    def _headers(self, prefer: str | None = None) -> dict:
        headers = {
            "apikey": self.key,
            "Authorization": f"Bearer {self.key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _request(
        self,
        method: str,
        table: str,
        params: list[tuple[str, str]] | None = None,
        payload: dict | list | None = None,
        prefer: str | None = None,
    ) -> list[dict]:
        """Make a store request. Returns the decoded rows, if any."""
        logger.debug(f"{method} {table} {params or ''}")
        try:
            resp = self._session.request(
                method,
                f"{self.url}{REST_PATH}/{table}",
                params=params,
                json=payload,
                headers=self._headers(prefer),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise StoreError(f"{method} {table} failed: {e}") from e

        if not resp.ok:
            raise StoreError(
                f"{method} {table} failed ({resp.status_code}): {_error_message(resp)}",
                status=resp.status_code,
            )

        if not resp.content:
            return []
        data = resp.json()
        return data if isinstance(data, list) else [data]

    @staticmethod
    def _filters(
        eq: dict | None = None,
        or_eq: list[tuple[str, str]] | None = None,
        filters: list[tuple[str, str, str]] | None = None,
    ) -> list[tuple[str, str]]:
        params = [(column, f"eq.{value}") for column, value in (eq or {}).items()]
        if or_eq:
            clauses = ",".join(f"{column}.eq.{_quote(value)}" for column, value in or_eq)
            params.append(("or", f"({clauses})"))
        for column, op, value in filters or []:
            params.append((column, f"{op}.{value}"))
        return params

    def select(
        self,
        table: str,
        columns: str = "*",
        eq: dict | None = None,
        or_eq: list[tuple[str, str]] | None = None,
        filters: list[tuple[str, str, str]] | None = None,
        order: str | None = None,
    ) -> list[dict]:
        """
        Read rows.

        Args:
            eq: column -> value equality filters (ANDed)
            or_eq: (column, value) pairs, any of which may match
            filters: (column, operator, value) triples, e.g. ("due_date", "gte", "2025-01-01")
            order: PostgREST order clause, e.g. "data_poczatkowa.asc"
        """
        params = [("select", columns), *self._filters(eq, or_eq, filters)]
        if order:
            params.append(("order", order))
        return self._request("GET", table, params=params)

    def insert(self, table: str, rows: dict | list[dict]) -> list[dict]:
        return self._request("POST", table, payload=rows, prefer="return=representation")

    def update(self, table: str, values: dict, eq: dict) -> list[dict]:
        if not eq:
            raise ValueError("update requires a filter")
        return self._request(
            "PATCH", table, params=self._filters(eq), payload=values, prefer="return=representation"
        )

    def delete(self, table: str, eq: dict) -> None:
        if not eq:
            raise ValueError("delete requires a filter")
        self._request("DELETE", table, params=self._filters(eq))

    def upsert(self, table: str, rows: dict | list[dict], on_conflict: str | None = None) -> list[dict]:
        params = [("on_conflict", on_conflict)] if on_conflict else None
        return self._request(
            "POST",
            table,
            params=params,
            payload=rows,
            prefer="resolution=merge-duplicates,return=representation",
        )
