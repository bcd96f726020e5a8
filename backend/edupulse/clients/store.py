"""
Remote store client.

The store is a single HTTP endpoint: GET ?action=init for the bulk snapshot,
POST {"action": ...} for everything else. No retries; callers decide how to
degrade when a call fails.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from ..models import LoginResponse, Result, Snapshot
from .records import item_to_sheet_row, result_to_store, snapshot_from_payload, user_from_login

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Transport or protocol failure talking to the remote store."""


class StoreClient:
    """Async client for the spreadsheet store."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        # Script deployments answer through a redirect
        return httpx.AsyncClient(
            timeout=self.timeout,
            transport=self.transport,
            follow_redirects=True
        )

    async def _get(self, params: Dict[str, Any]) -> Any:
        try:
            async with self._client() as client:
                response = await client.get(self.base_url, params=params)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPError as e:
            raise StoreError(f"Store GET {params.get('action')} failed: {e}") from e
        except ValueError as e:
            raise StoreError(f"Store GET {params.get('action')} returned invalid JSON: {e}") from e

    async def _post(self, payload: Dict[str, Any]) -> Any:
        try:
            async with self._client() as client:
                response = await client.post(self.base_url, json=payload)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPError as e:
            raise StoreError(f"Store {payload.get('action')} failed: {e}") from e
        except ValueError as e:
            raise StoreError(f"Store {payload.get('action')} returned invalid JSON: {e}") from e

    # ============ READ ============

    async def get_data(self) -> Snapshot:
        """Fetch and normalise the bulk snapshot."""
        data = await self._get({"action": "init"})
        if not isinstance(data, dict):
            raise StoreError("Store init returned an unexpected payload")
        try:
            return snapshot_from_payload(data)
        except (ValueError, TypeError, AttributeError) as e:
            raise StoreError(f"Store init payload could not be normalised: {e}") from e

    # ============ AUTH ============

    async def login(self, account: str, password: str) -> LoginResponse:
        """
        Check credentials.

        Invalid credentials come back as ``success=False`` with the store's
        message; only transport problems raise StoreError.
        """
        data = await self._post({"action": "login", "account": account, "password": password})
        if not isinstance(data, dict):
            raise StoreError("Store login returned an unexpected payload")

        if data.get("success") and data.get("user"):
            return LoginResponse(success=True, user=user_from_login(data["user"]))
        return LoginResponse(success=False, message=data.get("message"))

    async def logout(self, name: str) -> None:
        """Fire-and-forget logout beacon."""
        try:
            await self._post({"action": "logout", "name": name})
        except StoreError as e:
            logger.warning(f"Logout beacon for {name} failed: {e}")

    # ============ WRITE ============

    async def submit_result(self, result: Result) -> Any:
        return await self._post({"action": "submitResult", "result": result_to_store(result)})

    async def save_item(self, sheet_name: str, item: Dict[str, Any], id_key: str) -> Any:
        row = item_to_sheet_row(sheet_name, item)
        return await self._post({"action": "saveItem", "sheetName": sheet_name, "item": row, "idKey": id_key})

    async def delete_item(self, sheet_name: str, id_value: Any, id_key: str) -> Any:
        return await self._post({"action": "deleteItem", "sheetName": sheet_name, "idValue": id_value, "idKey": id_key})
