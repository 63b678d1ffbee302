"""Range requests against the hosted PostgREST endpoint of the backend.

Filters are encoded in PostgREST syntax (``col=eq.v``, ``col=in.(a,b)``,
``col=not.is.null``) and the page window is sent as ``offset``/``limit``.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests

from backend.app.core.config import settings
from backend.app.trends.pagination import RangeQuery, StoreError


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _in_list(values) -> str:
    quoted = []
    for value in values:
        text = _format_value(value)
        if any(ch in text for ch in ',()"'):
            text = '"' + text.replace('"', '\\"') + '"'
        quoted.append(text)
    return "(" + ",".join(quoted) + ")"


def build_params(query: RangeQuery, start: int, end: int) -> Dict[str, str]:
    params: Dict[str, str] = {
        "select": ",".join(query.columns),
        "order": f"{query.order_column}.{'asc' if query.ascending else 'desc'}",
        "offset": str(start),
        "limit": str(end - start + 1),
    }
    for flt in query.filters:
        if flt.op == "in":
            values = flt.value if isinstance(flt.value, (list, tuple, set)) else [flt.value]
            params[flt.column] = f"in.{_in_list(values)}"
        else:
            params[flt.column] = f"eq.{_format_value(flt.value)}"
    for column in query.not_null:
        params[column] = "not.is.null"
    return params


class PostgrestRangeSource:
    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        http: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = (base_url if base_url is not None else settings.store_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.store_api_key
        self.timeout = timeout if timeout is not None else settings.store_timeout
        self.http = http or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def fetch_range(self, query: RangeQuery, start: int, end: int) -> List[Dict[str, Any]]:
        if not self.base_url:
            raise StoreError("STORE_URL is not configured")
        url = f"{self.base_url}/rest/v1/{query.table}"
        try:
            resp = self.http.get(
                url,
                params=build_params(query, start, end),
                headers=self._headers(),
                timeout=self.timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise StoreError(f"{query.table} range {start}-{end} failed: {exc}") from exc

        if not isinstance(data, list):
            raise StoreError(f"{query.table} range {start}-{end} returned {type(data).__name__}, expected list")
        return [row for row in data if isinstance(row, dict)]
