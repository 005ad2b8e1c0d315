"""
PostgREST store for hosted Postgres instances that are only reachable over
their REST endpoint (e.g. a separately provisioned Supabase project).
"""

import asyncio
import json
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

import aiohttp

from .errors import MissingColumnError, StoreError
from .stores import RelationalStore, UNDEFINED_COLUMN_SQLSTATE, extract_missing_column, normalize_rows

logger = logging.getLogger(__name__)

# PostgREST: column named in the payload is not in its schema cache
SCHEMA_CACHE_MISSING_COLUMN = "PGRST204"

_SCHEMA_CACHE_PATTERN = re.compile(r"Could not find the '([^']+)' column")


class PostgrestStore(RelationalStore):
    """Store that talks to a PostgREST API with a service key."""

    def __init__(self, base_url: str, service_key: str, timeout: float = 30.0, name: str = "postgrest"):
        self.base_url = base_url.rstrip('/')
        self.service_key = service_key
        self.timeout = timeout
        self.name = name

    @property
    def headers(self) -> Dict[str, str]:
        return {
            'apikey': self.service_key,
            'Authorization': f'Bearer {self.service_key}',
            'Accept': 'application/json',
            'Content-Type': 'application/json',
        }

    async def select(self, table, columns=None, filters=None):
        params = {'select': ','.join(columns) if columns else '*'}
        params.update(self._filter_params(filters))
        status, payload = await self._request('GET', table, params=params)
        self._raise_for_error(status, payload, table)
        return payload or []

    async def upsert(self, table, rows, on_conflict="id"):
        rows = normalize_rows(rows)
        if not rows:
            return 0
        status, payload = await self._request(
            'POST',
            table,
            params={'on_conflict': on_conflict},
            headers={'Prefer': 'resolution=merge-duplicates,return=minimal'},
            body=rows
        )
        self._raise_for_error(status, payload, table)
        return len(rows)

    async def delete(self, table, filters):
        if not filters:
            raise StoreError("Refusing to delete without filters", table=table)
        status, payload = await self._request(
            'DELETE',
            table,
            params=self._filter_params(filters),
            headers={'Prefer': 'return=representation'}
        )
        self._raise_for_error(status, payload, table)
        return len(payload) if isinstance(payload, list) else 0

    @staticmethod
    def _filter_params(filters) -> Dict[str, str]:
        return {key: f'eq.{value}' for key, value in (filters or {}).items()}

    async def _request(
        self,
        method: str,
        table: str,
        params: Optional[Dict[str, str]] = None,
        headers: Optional[Dict[str, str]] = None,
        body: Optional[List[Dict[str, Any]]] = None
    ) -> Tuple[int, Any]:
        """Send one request and return (status, decoded JSON body or None)."""
        url = f'{self.base_url}/rest/v1/{table}'
        request_headers = dict(self.headers)
        request_headers.update(headers or {})
        data = json.dumps(body, default=str) if body is not None else None

        try:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.request(
                    method, url, params=params, headers=request_headers, data=data
                ) as response:
                    text = await response.text()
                    payload = json.loads(text) if text else None
                    return response.status, payload
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise StoreError(f"{self.name} request failed: {e}", table=table, original_exception=e) from e
        except json.JSONDecodeError as e:
            raise StoreError(f"{self.name} returned a non-JSON body", table=table, original_exception=e) from e

    def _raise_for_error(self, status: int, payload: Any, table: str) -> None:
        if status < 400:
            return

        error = payload if isinstance(payload, dict) else {}
        code = error.get('code')
        message = error.get('message') or f'HTTP {status}'

        column = None
        if code == SCHEMA_CACHE_MISSING_COLUMN:
            match = _SCHEMA_CACHE_PATTERN.search(message)
            column = match.group(1) if match else None
        elif code == UNDEFINED_COLUMN_SQLSTATE:
            column = extract_missing_column(Exception(message))

        if column:
            raise MissingColumnError(column, table=table, code=code, status=status, message=message)

        logger.error(f"{self.name} error on {table}: {json.dumps(error) if error else status}")
        raise StoreError(message, table=table, code=code, status=status)
