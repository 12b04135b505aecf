# genstudio/backend/client.py

from __future__ import annotations

from datetime import datetime
from typing import Any

import httpx

from genstudio.core.config import Settings, get_settings
from genstudio.core.errors import PersistenceError
from genstudio.core.timeutil import iso

DEFAULT_TIMEOUT = 10.0
USER_AGENT = "genstudio/1.0"


class BackendError(PersistenceError):
    """Non-2xx answer (or transport failure, status=0) from the hosted backend."""

    def __init__(self, status: int, message: str):
        self.status = status
        super().__init__(message)


def _fmt(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return iso(value)
    if value is None:
        return "null"
    return str(value)


def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        data = None

    if isinstance(data, dict):
        for key in ("message", "msg", "error_description", "error"):
            if data.get(key):
                return str(data[key])

    body = (resp.text or "").strip()[:300]
    return body or f"Backend error {resp.status_code}"


class TableQuery:
    """
    Chainable request against one REST table:

        await backend.table("projects").select("*").eq("user_id", uid).order("created_at", desc=True).execute()

    ``execute()`` returns a list of rows, or a single row / None after ``single()``.
    """

    def __init__(self, client: "BackendClient", table: str):
        self._client = client
        self._table = table
        self._method = "GET"
        self._columns = "*"
        self._filters: list[tuple[str, str]] = []
        self._order: list[str] = []
        self._limit: int | None = None
        self._body: Any = None
        self._single = False

    @property
    def table(self) -> str:
        return self._table

    def select(self, columns: str = "*") -> "TableQuery":
        self._method = "GET"
        self._columns = columns
        return self

    def insert(self, row: dict | list[dict]) -> "TableQuery":
        self._method = "POST"
        self._body = row
        return self

    def update(self, values: dict) -> "TableQuery":
        self._method = "PATCH"
        self._body = values
        return self

    def delete(self) -> "TableQuery":
        self._method = "DELETE"
        return self

    def eq(self, column: str, value: Any) -> "TableQuery":
        self._filters.append((column, f"eq.{_fmt(value)}"))
        return self

    def gt(self, column: str, value: Any) -> "TableQuery":
        self._filters.append((column, f"gt.{_fmt(value)}"))
        return self

    def order(self, column: str, desc: bool = False) -> "TableQuery":
        self._order.append(f"{column}.{'desc' if desc else 'asc'}")
        return self

    def limit(self, n: int) -> "TableQuery":
        self._limit = int(n)
        return self

    def single(self) -> "TableQuery":
        # first matching row or None; the backend may hold several
        self._single = True
        return self

    def params(self) -> list[tuple[str, str]]:
        params = [("select", self._columns)]
        params.extend(self._filters)
        if self._order:
            params.append(("order", ",".join(self._order)))
        if self._limit is not None:
            params.append(("limit", str(self._limit)))
        elif self._single:
            params.append(("limit", "1"))
        return params

    async def execute(self):
        if self._method in ("PATCH", "DELETE") and not self._filters:
            # the REST layer would touch every row
            raise ValueError(f"Refusing unfiltered {self._method} on {self._table}")

        headers = {}
        if self._method != "GET":
            headers["Prefer"] = "return=representation"

        resp = await self._client.request(
            self._method,
            f"/rest/v1/{self._table}",
            params=self.params(),
            json=self._body,
            headers=headers,
        )

        rows = resp.json() if resp.content else []
        if isinstance(rows, dict):
            rows = [rows]

        if self._single:
            return rows[0] if rows else None
        return rows


class BackendClient:
    """
    Thin async client for the hosted backend: token auth API (/auth/v1) and
    REST table API (/rest/v1). Calls made with ``access_token`` run under
    that user's row-level security; otherwise under the public API key.
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        access_token: str | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.url = url.rstrip("/")
        self.api_key = api_key
        self.access_token = access_token
        self._transport = transport
        self._timeout = timeout

    def with_token(self, access_token: str | None) -> "BackendClient":
        return BackendClient(
            self.url,
            self.api_key,
            access_token,
            transport=self._transport,
            timeout=self._timeout,
        )

    def _headers(self, token: str | None = None) -> dict:
        bearer = token or self.access_token or self.api_key
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {bearer}",
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }

    async def request(
        self,
        method: str,
        path: str,
        *,
        params=None,
        json=None,
        headers: dict | None = None,
        token: str | None = None,
    ) -> httpx.Response:
        h = self._headers(token)
        if headers:
            h.update(headers)

        try:
            async with httpx.AsyncClient(
                base_url=self.url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                resp = await client.request(method, path, params=params, json=json, headers=h)
        except httpx.HTTPError as e:
            raise BackendError(0, f"Backend request failed: {e}") from e

        if not (200 <= resp.status_code < 300):
            raise BackendError(resp.status_code, _error_message(resp))
        return resp

    def table(self, name: str) -> TableQuery:
        return TableQuery(self, name)

    # ---- auth API ----

    async def sign_up(
        self,
        email: str,
        password: str,
        full_name: str | None = None,
        redirect_to: str | None = None,
    ) -> dict:
        params = {"redirect_to": redirect_to} if redirect_to else None
        resp = await self.request(
            "POST",
            "/auth/v1/signup",
            params=params,
            json={"email": email, "password": password, "data": {"full_name": full_name or ""}},
        )
        return resp.json()

    async def sign_in_with_password(self, email: str, password: str) -> dict:
        resp = await self.request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        return resp.json()

    async def sign_out(self, access_token: str):
        await self.request("POST", "/auth/v1/logout", token=access_token)

    async def get_user(self, access_token: str) -> dict | None:
        try:
            resp = await self.request("GET", "/auth/v1/user", token=access_token)
        except BackendError as e:
            if e.status in (401, 403):
                return None
            raise
        return resp.json()


def create_backend(
    access_token: str | None = None,
    *,
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> BackendClient:
    settings = (settings or get_settings()).require_backend()
    return BackendClient(
        settings.backend_url,
        settings.backend_anon_key,
        access_token,
        transport=transport,
    )
