"""
SQL API 客户端：按 ID 读取 dashboard 和 query。
"""

import logging
from typing import Protocol, Type, TypeVar

import httpx
from pydantic import BaseModel

from sqlexport.errors import DecodeError, FetchError, NotFoundError
from sqlexport.models import Dashboard, Query

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

API_PREFIX = "/api/2.0/preview/sql"


class Fetcher(Protocol):
    """What the inventory needs from the remote service."""

    def fetch_dashboard(self, remote_id: str) -> Dashboard: ...

    def fetch_query(self, remote_id: str) -> Query: ...


class SqlAnalyticsClient:
    """
    Blocking client for the SQL dashboards/queries endpoints.

    Any failure is raised immediately; there is no retry.
    """

    def __init__(self, host: str, token: str | None, timeout: float = 30.0, transport: httpx.BaseTransport | None = None):
        self._client = httpx.Client(
            base_url=host.rstrip("/") + API_PREFIX,
            timeout=timeout,
            transport=transport,
            headers={"Authorization": f"Bearer {token}"} if token else None,
        )

    def fetch_dashboard(self, remote_id: str) -> Dashboard:
        return self._get("dashboard", f"/dashboards/{remote_id}", remote_id, Dashboard)

    def fetch_query(self, remote_id: str) -> Query:
        return self._get("query", f"/queries/{remote_id}", remote_id, Query)

    def close(self):
        self._client.close()

    def __enter__(self) -> "SqlAnalyticsClient":
        return self

    def __exit__(self, *exc):
        self.close()

    def _get(self, kind: str, path: str, remote_id: str, model: Type[M]) -> M:
        logger.debug(f"GET {path}")
        try:
            response = self._client.get(path)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise NotFoundError(kind, remote_id, "not found") from e
            raise FetchError(kind, remote_id, f"HTTP {e.response.status_code}: {e.response.text}") from e
        except httpx.HTTPError as e:
            raise FetchError(kind, remote_id, str(e)) from e

        try:
            return model.model_validate(response.json())
        except ValueError as e:
            # covers both pydantic ValidationError and a non-JSON body
            raise DecodeError(f"Cannot decode {kind} {remote_id!r}: {e}") from e
