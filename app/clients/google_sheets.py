"""Google Sheets client wrapper for the spreadsheet-creation integration."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build


class GoogleSheetsClient:
    """Create a starter spreadsheet with a user's bound Google credential."""

    async def create_spreadsheet(
        self,
        *,
        access_token: str,
        title: str,
        domain: str,
        email: str | None,
    ) -> Dict[str, Any]:
        """Create the sheet, seed a header row and return its id, title and URL."""
        credentials = Credentials(token=access_token)

        def _execute_create() -> Dict[str, Any]:
            service = build("sheets", "v4", credentials=credentials, cache_discovery=False)
            spreadsheet = (
                service.spreadsheets()
                .create(
                    body={
                        "properties": {"title": title},
                        "sheets": [
                            {
                                "properties": {
                                    "title": "Data",
                                    "gridProperties": {"rowCount": 100, "columnCount": 10},
                                }
                            }
                        ],
                    }
                )
                .execute()
            )
            spreadsheet_id = spreadsheet["spreadsheetId"]
            (
                service.spreadsheets()
                .values()
                .update(
                    spreadsheetId=spreadsheet_id,
                    range="Data!A1:C3",
                    valueInputOption="RAW",
                    body={
                        "values": [
                            ["Domain", "User", "Created"],
                            [domain, email or "", datetime.now(timezone.utc).isoformat()],
                            ["Sample", "Data", "Row"],
                        ]
                    },
                )
                .execute()
            )
            return {
                "id": spreadsheet_id,
                "title": spreadsheet.get("properties", {}).get("title", title),
                "url": spreadsheet.get("spreadsheetUrl"),
            }

        return await asyncio.to_thread(_execute_create)


__all__ = ["GoogleSheetsClient"]
