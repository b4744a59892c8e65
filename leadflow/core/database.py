# leadflow/core/database.py
import logging
from typing import Any, Mapping, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import AsyncClient, acreate_client

from leadflow.core.settings import settings

logger = logging.getLogger(__name__)

Row = dict[str, Any]
Filters = Mapping[str, Any]


class GatewayError(Exception):
    """Raised when the remote store rejects a call or cannot be reached."""

    def __init__(self, table: str, operation: str, message: str) -> None:
        self.table = table
        self.operation = operation
        self.message = message
        super().__init__(f"{operation} on {table} failed: {message}")


class RowGateway:
    """
    Generic relational-row client used for every table in the application.

    Filters are plain column -> value mappings. A ``None`` value matches
    ``IS NULL`` and a list/tuple/set value matches ``IN (...)``; a ``None``
    inside the collection also admits ``IS NULL`` rows. Row level
    security is enforced by the store, not here.
    """

    def __init__(self, client: AsyncClient):
        self.client = client

    async def select(
        self,
        table: str,
        filters: Optional[Filters] = None,
        columns: str = "*",
        order: Optional[str] = None,
    ) -> list[Row]:
        query = self._apply_filters(self.client.table(table).select(columns), filters)
        if order:
            query = query.order(order)
        return await self._execute(table, "select", query)

    async def select_one(
        self, table: str, filters: Filters, columns: str = "*"
    ) -> Optional[Row]:
        """Return the first row matching ``filters`` or None."""
        rows = await self.select(table, filters, columns)
        return rows[0] if rows else None

    async def insert(self, table: str, rows: Row | list[Row]) -> list[Row]:
        return await self._execute(table, "insert", self.client.table(table).insert(rows))

    async def update(self, table: str, filters: Filters, patch: Row) -> list[Row]:
        self._require_filters(table, "update", filters)
        query = self._apply_filters(self.client.table(table).update(patch), filters)
        return await self._execute(table, "update", query)

    async def delete(self, table: str, filters: Filters) -> list[Row]:
        self._require_filters(table, "delete", filters)
        query = self._apply_filters(self.client.table(table).delete(), filters)
        return await self._execute(table, "delete", query)

    async def rpc(self, function: str, params: Optional[Row] = None) -> Any:
        try:
            response = await self.client.rpc(function, params or {}).execute()
        except (APIError, httpx.HTTPError) as e:
            raise GatewayError(function, "rpc", str(e)) from e
        return response.data

    @staticmethod
    def _apply_filters(query: Any, filters: Optional[Filters]) -> Any:
        for column, value in (filters or {}).items():
            if value is None:
                query = query.is_(column, "null")
            elif isinstance(value, (list, tuple, set, frozenset)):
                values = [item for item in value if item is not None]
                if len(values) == len(value):
                    query = query.in_(column, values)
                elif values:
                    joined = ",".join(str(item) for item in values)
                    query = query.or_(f"{column}.is.null,{column}.in.({joined})")
                else:
                    query = query.is_(column, "null")
            else:
                query = query.eq(column, value)
        return query

    @staticmethod
    def _require_filters(table: str, operation: str, filters: Filters) -> None:
        # Unfiltered writes would touch every row visible to the caller
        if not filters:
            raise ValueError(f"Refusing unfiltered {operation} on {table}")

    @staticmethod
    async def _execute(table: str, operation: str, query: Any) -> list[Row]:
        try:
            response = await query.execute()
        except (APIError, httpx.HTTPError) as e:
            logger.debug(f"{operation} on {table} raised {e!r}")
            raise GatewayError(table, operation, str(e)) from e
        return list(response.data or [])


# Global gateway instance, bound on application startup
_gateway: Optional[RowGateway] = None


async def connect() -> RowGateway:
    """Create the Supabase client and bind the global gateway."""
    global _gateway
    if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
        raise ValueError("Supabase configuration is required for the row gateway")

    client = await acreate_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
    _gateway = RowGateway(client)
    return _gateway


async def disconnect() -> None:
    global _gateway
    _gateway = None


async def get_gateway() -> RowGateway:
    """Gateway dependency for FastAPI dependency injection."""
    if _gateway is None:
        raise RuntimeError("Row gateway is not connected")
    return _gateway
