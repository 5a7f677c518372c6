"""Socrata SODA client for the Transparència Catalunya open-data portal."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..errors import ErrorCode, ProviderError
from .client import FetchClient


logger = logging.getLogger(__name__)

BASE_URL = "https://analisi.transparenciacatalunya.cat"
DEFAULT_PAGE_SIZE = 5000


def soql_quote(value: str) -> str:
    """Quote a string literal for a SoQL ``$where`` clause."""

    return "'" + str(value).replace("'", "''") + "'"


class SocrataClient:
    def __init__(
        self,
        fetch_client: Optional[FetchClient] = None,
        base_url: str = BASE_URL,
        app_token: Optional[str] = None,
        provider: Optional[str] = None,
    ) -> None:
        self.fetch_client = fetch_client or FetchClient()
        self.base_url = base_url.rstrip("/")
        self.app_token = app_token
        self.provider = provider

    def resource_url(self, resource: str) -> str:
        return f"{self.base_url}/resource/{resource}.json"

    def query(
        self,
        resource: str,
        *,
        select: Optional[str] = None,
        where: Optional[str] = None,
        order: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {}
        if select:
            params["$select"] = select
        if where:
            params["$where"] = where
        if order:
            params["$order"] = order
        if limit is not None:
            params["$limit"] = limit
        if offset is not None:
            params["$offset"] = offset
        headers = {"X-App-Token": self.app_token} if self.app_token else None
        result = self.fetch_client.fetch(
            self.resource_url(resource), params=params, headers=headers, provider=self.provider
        )
        if not isinstance(result.data, list):
            raise ProviderError(
                ErrorCode.PROVIDER_ERROR,
                f"Socrata {resource}: expected a list of rows",
                provider=self.provider,
            )
        return result.data

    def fetch_all_pages(
        self,
        resource: str,
        *,
        select: Optional[str] = None,
        where: Optional[str] = None,
        order: Optional[str] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> List[Dict[str, Any]]:
        """Concatenate pages until one comes back shorter than ``page_size``.

        ``order`` should define a total ordering so offsets are stable; rows
        are not deduplicated. A failing page aborts the whole fetch.
        """

        if page_size <= 0:
            raise ValueError("page_size must be positive")
        rows: List[Dict[str, Any]] = []
        offset = 0
        while True:
            page = self.query(
                resource, select=select, where=where, order=order, limit=page_size, offset=offset
            )
            rows.extend(page)
            if len(page) < page_size:
                break
            offset += page_size
        logger.debug("Socrata %s: %s rows in %s pages", resource, len(rows), offset // page_size + 1)
        return rows


__all__ = ["BASE_URL", "DEFAULT_PAGE_SIZE", "SocrataClient", "soql_quote"]
