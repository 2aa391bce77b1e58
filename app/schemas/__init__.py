"""Public schema exports."""

from .auth import (
    AirtableBasesRequest,
    AirtableRecordRequest,
    AirtableSetupInfoRequest,
    AirtableTablesRequest,
    DomainTokenRequest,
    SheetCreateRequest,
    VerifyTokenRequest,
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
