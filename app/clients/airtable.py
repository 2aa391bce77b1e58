"""Thin Airtable Web API wrapper used by the protected integration endpoints."""

from __future__ import annotations

from typing import Any, Dict, List
from urllib.parse import quote

import httpx


class AirtableAPIError(Exception):
    """Raised when the Airtable API rejects a request."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code


class AirtableClient:
    """List bases and tables and create records with a bearer credential."""

    API_BASE_URL = "https://api.airtable.com/v0"

    def __init__(self, *, timeout: float = 10.0) -> None:
        self._timeout = timeout

    async def _request(
        self, method: str, path: str, *, token: str, json: Dict[str, Any] | None = None
    ) -> Dict[str, Any]:
        headers = {"Authorization": f"Bearer {token}"}
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.request(
                    method, f"{self.API_BASE_URL}{path}", headers=headers, json=json
                )
            payload = response.json() if response.content else {}
        except (httpx.HTTPError, ValueError) as exc:
            raise AirtableAPIError(0, f"Airtable request failed: {exc}") from exc

        if response.is_error:
            error = payload.get("error") if isinstance(payload, dict) else None
            message = error.get("message") if isinstance(error, dict) else error
            raise AirtableAPIError(response.status_code, message or "Unknown Airtable error")
        return payload

    async def list_bases(self, token: str) -> List[Dict[str, Any]]:
        payload = await self._request("GET", "/meta/bases", token=token)
        return [
            {
                "id": base.get("id"),
                "name": base.get("name"),
                "permissionLevel": base.get("permissionLevel"),
            }
            for base in payload.get("bases", [])
        ]

    async def list_tables(self, token: str, base_id: str) -> List[Dict[str, Any]]:
        payload = await self._request(
            "GET", f"/meta/bases/{quote(base_id, safe='')}/tables", token=token
        )
        return [
            {
                "id": table.get("id"),
                "name": table.get("name"),
                "primaryFieldId": table.get("primaryFieldId"),
                "fields": [
                    {"id": field.get("id"), "name": field.get("name"), "type": field.get("type")}
                    for field in table.get("fields", [])
                ],
            }
            for table in payload.get("tables", [])
        ]

    async def create_record(
        self,
        token: str,
        *,
        base_id: str,
        table_name: str,
        fields: Dict[str, Any],
    ) -> Dict[str, Any]:
        path = f"/{quote(base_id, safe='')}/{quote(table_name, safe='')}"
        payload = await self._request("POST", path, token=token, json={"fields": fields})
        return {"id": payload.get("id"), "fields": payload.get("fields", {})}


__all__ = ["AirtableAPIError", "AirtableClient"]
