# storefront/remote/client.py
from datetime import datetime
from typing import Any, Callable, Iterable

import requests
from requests import RequestException

from storefront.domain.errors import RemoteError
from storefront.utils.retry import http_retry
from storefront.utils.settings import REMOTE_URL, REMOTE_ANON_KEY, REMOTE_TIMEOUT_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

#query string keys that are not row filters
_MODIFIERS = {"select", "order", "limit", "offset"}


def _format_value(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def raise_for_remote(resp: requests.Response, what: str) -> None:
    """Turn an error response of the hosted backend into RemoteError."""
    if resp.status_code < 400:
        return
    code = None
    try:
        body = resp.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        message = body.get("message") or body.get("msg") or body.get("error_description") or str(body)
        code = body.get("code") or body.get("error")
    else:
        message = resp.text
    raise RemoteError(f"{what} failed ({resp.status_code}): {message}", status=resp.status_code, code=code)


class TableQuery:
    """
    Query builder for one table of the REST data API.

        client.table("cart_items").select("*").eq("user_id", uid).execute()

    execute() returns the decoded JSON (a list of rows for reads and for
    inserts with returning=True, None otherwise) or raises RemoteError.
    """

    def __init__(self, client: "RemoteClient", table: str):
        self._client = client
        self.table = table
        self.method = "GET"
        self.params: list[tuple[str, str]] = []
        self.payload: Any = None
        self.prefer: list[str] = []

    def select(self, columns: str = "*") -> "TableQuery":
        self.params.append(("select", columns))
        return self

    def insert(self, rows: dict | list[dict], returning: bool = True) -> "TableQuery":
        self.method = "POST"
        self.payload = rows
        self.prefer.append("return=representation" if returning else "return=minimal")
        return self

    def update(self, values: dict) -> "TableQuery":
        self.method = "PATCH"
        self.payload = values
        self.prefer.append("return=minimal")
        return self

    def delete(self) -> "TableQuery":
        self.method = "DELETE"
        self.prefer.append("return=minimal")
        return self

    def eq(self, column: str, value: Any) -> "TableQuery":
        self.params.append((column, f"eq.{_format_value(value)}"))
        return self

    def lt(self, column: str, value: Any) -> "TableQuery":
        self.params.append((column, f"lt.{_format_value(value)}"))
        return self

    def in_(self, column: str, values: Iterable[Any]) -> "TableQuery":
        joined = ",".join(_format_value(v) for v in values)
        self.params.append((column, f"in.({joined})"))
        return self

    def order(self, column: str, ascending: bool = True) -> "TableQuery":
        self.params.append(("order", f"{column}.{'asc' if ascending else 'desc'}"))
        return self

    def limit(self, count: int) -> "TableQuery":
        self.params.append(("limit", str(count)))
        return self

    def has_filters(self) -> bool:
        return any(key not in _MODIFIERS for key, _ in self.params)

    def execute(self) -> Any:
        #update/delete without a filter would hit every row the token can see
        if self.method in ("PATCH", "DELETE") and not self.has_filters():
            raise ValueError(f"Refusing unfiltered {self.method} on {self.table}")
        return self._client.send(self.method, self.table, self.params, self.payload, self.prefer)


class RemoteClient:
    """
    Client of the hosted REST data API.
    The bearer token is pulled from token_provider on every call, so one
    client follows sign-in / sign-out of its session.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        token_provider: Callable[[], str | None] | None = None,
        timeout: float | None = None,
        http: requests.Session | None = None,
    ):
        self.base_url = (base_url or REMOTE_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else REMOTE_ANON_KEY
        self.token_provider = token_provider
        self.timeout = timeout or REMOTE_TIMEOUT_SECONDS
        self.http = http or requests.Session()

    def table(self, name: str) -> TableQuery:
        return TableQuery(self, name)

    def _headers(self, prefer: Iterable[str]) -> dict:
        token = self.token_provider() if self.token_provider else None
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {token or self.api_key}",
            "Content-Type": "application/json",
        }
        prefer = list(prefer)
        if prefer:
            headers["Prefer"] = ",".join(prefer)
        return headers

    @http_retry()
    def _get(self, url: str, params: list, headers: dict) -> requests.Response:
        return self.http.get(url, params=params, headers=headers, timeout=self.timeout)

    def send(
        self,
        method: str,
        table: str,
        params: list[tuple[str, str]],
        payload: Any = None,
        prefer: Iterable[str] = (),
    ) -> Any:
        url = f"{self.base_url}/rest/v1/{table}"
        headers = self._headers(prefer)
        logger.debug(f"RemoteClient {method} {url} {params}")

        try:
            if method == "GET":
                resp = self._get(url, params, headers)
            else:
                resp = self.http.request(
                    method,
                    url,
                    params=params,
                    json=payload,
                    headers=headers,
                    timeout=self.timeout,
                )
        except RequestException as e:
            raise RemoteError(f"{method} {table} failed: {e}") from e

        raise_for_remote(resp, f"{method} {table}")

        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()
