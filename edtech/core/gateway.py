import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional

import httpx

from edtech.core.config import Settings
from edtech.core.exceptions import RemoteUnavailableError

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class RemoteGateway(ABC):
    """
    Table-oriented access to the hosted relational store.

    Rows come back as plain dicts; row-level security on the remote side
    decides what the current principal may read or write.
    """

    @abstractmethod
    async def select(
        self,
        table: str,
        columns: str = "*",
        eq: Optional[Dict[str, Any]] = None,
        in_: Optional[Dict[str, Iterable[Any]]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Row]: ...

    @abstractmethod
    async def insert(self, table: str, payload: Row) -> Row: ...

    @abstractmethod
    async def update(self, table: str, row_id: str, patch: Row) -> Row: ...

    @abstractmethod
    async def delete(self, table: str, row_id: str) -> None: ...

    async def close(self) -> None:
        return None


def _quote(value: Any) -> str:
    text = str(value).replace('"', '\\"')
    return f'"{text}"'


class RestGateway(RemoteGateway):
    """RemoteGateway over a PostgREST endpoint (``<remote_url>/rest/v1``)."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        access_token: str = "",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {
            "apikey": api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        token = access_token or api_key
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self.client = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/rest/v1",
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "RestGateway":
        return cls(
            base_url=settings.remote_url,
            api_key=settings.remote_api_key,
            access_token=settings.remote_access_token,
            timeout=settings.remote_timeout,
        )

    def set_access_token(self, token: Optional[str]) -> None:
        """Swap the bearer token after the auth service refreshes the session."""
        if token:
            self.client.headers["Authorization"] = f"Bearer {token}"
        else:
            self.client.headers.pop("Authorization", None)

    async def select(
        self,
        table: str,
        columns: str = "*",
        eq: Optional[Dict[str, Any]] = None,
        in_: Optional[Dict[str, Iterable[Any]]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Row]:
        params = [("select", columns)]
        for column, value in (eq or {}).items():
            params.append((column, f"eq.{value}"))
        for column, values in (in_ or {}).items():
            values = list(values)
            if not values:
                # PostgREST answers `in.()` with nothing; skip the round trip
                return []
            params.append((column, f"in.({','.join(_quote(v) for v in values)})"))
        if order_by:
            params.append(("order", f"{order_by}.{'desc' if descending else 'asc'}"))

        data = await self._request("GET", f"/{table}", params=params)
        return data or []

    async def insert(self, table: str, payload: Row) -> Row:
        data = await self._request(
            "POST",
            f"/{table}",
            json=payload,
            headers={"Prefer": "return=representation"},
        )
        return data[0] if data else {}

    async def update(self, table: str, row_id: str, patch: Row) -> Row:
        data = await self._request(
            "PATCH",
            f"/{table}",
            params=[("id", f"eq.{row_id}")],
            json=patch,
            headers={"Prefer": "return=representation"},
        )
        return data[0] if data else {}

    async def delete(self, table: str, row_id: str) -> None:
        await self._request("DELETE", f"/{table}", params=[("id", f"eq.{row_id}")])

    async def close(self) -> None:
        await self.client.aclose()

    async def _request(self, method: str, url: str, **kwargs) -> Any:
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {url} failed: {e}")
            raise RemoteUnavailableError(f"Remote store unreachable: {e}") from e

        if response.is_error:
            code = None
            message = response.text
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                code = body.get("code")
                message = body.get("message") or message
            logger.warning(
                f"{method} {url} rejected ({response.status_code}, code={code}): {message}"
            )
            raise RemoteUnavailableError(
                message or "Remote store error",
                code=code,
                status=response.status_code,
            )

        if response.status_code == 204 or not response.content:
            return None
        return response.json()
