"""Request bodies for the token verification and protected integration endpoints."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class DomainTokenRequest(BaseModel):
    """Session token presented on behalf of a customer domain."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    token: Optional[str] = Field(None, description="Domain-scoped session token.")
    domain: Optional[str] = Field(
        None, description="Domain the caller is acting for; must match the token."
    )


class VerifyTokenRequest(DomainTokenRequest):
    pass


class SheetCreateRequest(DomainTokenRequest):
    sheet_name: Optional[str] = Field(None, alias="sheetName")


class AirtableBasesRequest(DomainTokenRequest):
    pass


class AirtableTablesRequest(DomainTokenRequest):
    base_id: Optional[str] = Field(None, alias="baseId")


class AirtableSetupInfoRequest(DomainTokenRequest):
    pass


class AirtableRecordRequest(DomainTokenRequest):
    base_id: Optional[str] = Field(None, alias="baseId")
    table_name: str = Field("Main Table", alias="tableName")
    record_data: Dict[str, Any] = Field(default_factory=dict, alias="recordData")
    airtable_api_key: Optional[str] = Field(
        None,
        alias="airtableApiKey",
        description="Personal access token used only when no Airtable OAuth credential is bound.",
    )


__all__ = [
    "AirtableBasesRequest",
    "AirtableRecordRequest",
    "AirtableSetupInfoRequest",
    "AirtableTablesRequest",
    "DomainTokenRequest",
    "SheetCreateRequest",
    "VerifyTokenRequest",
]
