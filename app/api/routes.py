"""
FastAPI routes for multi-domain sign-in and the protected integration calls.

``router`` carries the browser-facing OAuth endpoints (errors as plain text) and
``api_router`` the JSON API mounted under ``/api``.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from http import HTTPStatus
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, RedirectResponse
from googleapiclient.errors import HttpError

from app.clients import AirtableAPIError, AirtableClient, GoogleSheetsClient
from app.core.config import AppSettings
from app.core.errors import InvalidRequestError, UnauthorizedError, UpstreamServiceError
from app.dependencies import (
    get_airtable_client,
    get_app_settings,
    get_domain_guard,
    get_primary_flow,
    get_secondary_flow,
    get_sheets_client,
)
from app.schemas import (
    AirtableBasesRequest,
    AirtableRecordRequest,
    AirtableSetupInfoRequest,
    AirtableTablesRequest,
    DomainTokenRequest,
    SheetCreateRequest,
    VerifyTokenRequest,
)
from app.services import (
    DomainAuthorizationGuard,
    PrimaryOAuthFlow,
    SecondaryOAuthFlow,
    VerifiedSession,
)

router = APIRouter()
api_router = APIRouter()
logger = logging.getLogger(__name__)

GuardDependency = Annotated[DomainAuthorizationGuard, Depends(get_domain_guard)]

AIRTABLE_SETUP_INSTRUCTIONS = [
    "1. Go to https://airtable.com/create/tokens",
    "2. Create a personal access token with 'data.records:write' scope",
    "3. Copy your Base ID from your Airtable base URL",
    "4. Ensure your base has a table (we'll use 'Main Table' by default)",
]


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck(
    settings: Annotated[AppSettings, Depends(get_app_settings)],
) -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok", "environment": settings.environment}


@router.get("/auth/primary")
async def start_primary_auth(
    flow: Annotated[PrimaryOAuthFlow, Depends(get_primary_flow)],
    return_domain: Optional[str] = Query(
        default=None, description="Customer domain the user signs in from."
    ),
) -> RedirectResponse:
    """Redirect the browser to the Google consent screen."""
    return RedirectResponse(url=flow.start(return_domain), status_code=HTTPStatus.FOUND)


@router.get("/auth/primary/callback")
async def complete_primary_auth(
    flow: Annotated[PrimaryOAuthFlow, Depends(get_primary_flow)],
    code: Optional[str] = Query(default=None),
    state: Optional[str] = Query(default=None),
    error: Optional[str] = Query(default=None),
) -> RedirectResponse:
    result = await flow.complete_callback(code=code, state=state, provider_error=error)
    return RedirectResponse(url=result.redirect_url, status_code=HTTPStatus.FOUND)


@router.get("/auth/secondary")
async def start_secondary_auth(
    flow: Annotated[SecondaryOAuthFlow, Depends(get_secondary_flow)],
    token: Optional[str] = Query(default=None, description="Existing session token."),
    domain: Optional[str] = Query(default=None, description="Domain the token is bound to."),
) -> RedirectResponse:
    """Chain an Airtable connection onto an existing session."""
    authorization_url = await flow.start(existing_token=token, requesting_domain=domain)
    return RedirectResponse(url=authorization_url, status_code=HTTPStatus.FOUND)


@router.get("/auth/secondary/callback")
async def complete_secondary_auth(
    flow: Annotated[SecondaryOAuthFlow, Depends(get_secondary_flow)],
    code: Optional[str] = Query(default=None),
    state: Optional[str] = Query(default=None),
    error: Optional[str] = Query(default=None),
) -> RedirectResponse:
    result = await flow.complete_callback(code=code, state_id=state, provider_error=error)
    return RedirectResponse(url=result.redirect_url, status_code=HTTPStatus.FOUND)


def _authorize(guard: DomainAuthorizationGuard, payload: DomainTokenRequest) -> VerifiedSession:
    if not payload.token or not payload.domain:
        raise InvalidRequestError("Token and domain are required")
    return guard.authorize(payload.token, payload.domain)


@api_router.post("/verify-token")
async def verify_token(payload: VerifyTokenRequest, guard: GuardDependency) -> JSONResponse:
    """Check a session token against the domain presenting it."""
    try:
        session = _authorize(guard, payload)
    except UnauthorizedError as exc:
        return JSONResponse(
            {"valid": False, "error": exc.message}, status_code=exc.status_code
        )
    return JSONResponse({"valid": True, "user": session.claims.public_profile()})


@api_router.post("/logout")
async def logout() -> dict:
    """Sessions are stateless; the client discards its token."""
    return {"message": "Logged out successfully"}


@api_router.post("/sheets/create")
async def create_sheet(
    payload: SheetCreateRequest,
    guard: GuardDependency,
    sheets_client: Annotated[GoogleSheetsClient, Depends(get_sheets_client)],
) -> dict:
    """Create a starter spreadsheet with the Google credential bound in the token."""
    session = _authorize(guard, payload)
    claims = session.claims
    access_token = guard.select_credential(
        claims.google_access_token, None, provider="Google"
    )
    title = payload.sheet_name or f"{claims.domain} - Data Sheet - {date.today().isoformat()}"

    try:
        spreadsheet = await sheets_client.create_spreadsheet(
            access_token=access_token,
            title=title,
            domain=claims.domain,
            email=claims.email,
        )
    except HttpError as exc:
        logger.exception("Failed to create Google Sheet for %s", claims.domain)
        raise UpstreamServiceError("Failed to create Google Sheet") from exc

    logger.info("Created spreadsheet %s for domain %s", spreadsheet["id"], claims.domain)
    return {"success": True, "spreadsheet": spreadsheet}


@api_router.post("/airtable/bases")
async def list_airtable_bases(
    payload: AirtableBasesRequest,
    guard: GuardDependency,
    airtable: Annotated[AirtableClient, Depends(get_airtable_client)],
) -> dict:
    session = _authorize(guard, payload)
    access_token = guard.select_credential(
        session.claims.airtable_access_token, None, provider="Airtable"
    )
    try:
        bases = await airtable.list_bases(access_token)
    except AirtableAPIError as exc:
        logger.warning("Airtable base listing failed (HTTP %s): %s", exc.status_code, exc)
        raise UpstreamServiceError(f"Failed to fetch bases: {exc}") from exc
    return {"success": True, "bases": bases}


@api_router.post("/airtable/tables")
async def list_airtable_tables(
    payload: AirtableTablesRequest,
    guard: GuardDependency,
    airtable: Annotated[AirtableClient, Depends(get_airtable_client)],
) -> dict:
    session = _authorize(guard, payload)
    access_token = guard.select_credential(
        session.claims.airtable_access_token, None, provider="Airtable"
    )
    if not payload.base_id:
        raise InvalidRequestError("Base ID is required")
    try:
        tables = await airtable.list_tables(access_token, payload.base_id)
    except AirtableAPIError as exc:
        logger.warning("Airtable table listing failed (HTTP %s): %s", exc.status_code, exc)
        raise UpstreamServiceError(f"Failed to fetch tables: {exc}") from exc
    return {"success": True, "tables": tables}


@api_router.post("/airtable/setup-info")
async def airtable_setup_info(
    payload: AirtableSetupInfoRequest, guard: GuardDependency
) -> JSONResponse:
    """Instructions for connecting Airtable with a personal access token instead of OAuth."""
    try:
        session = _authorize(guard, payload)
    except UnauthorizedError as exc:
        return JSONResponse(
            {"valid": False, "error": exc.message}, status_code=exc.status_code
        )
    claims = session.claims
    sample_record = {
        "Domain": claims.domain,
        "User Email": claims.email,
        "User Name": claims.name,
        "Created At": datetime.now(timezone.utc).isoformat(),
        "Status": "Active",
    }
    return JSONResponse(
        {
            "success": True,
            "setupInfo": {
                "domain": claims.domain,
                "user": claims.email,
                "instructions": AIRTABLE_SETUP_INSTRUCTIONS,
                "sampleRecord": sample_record,
            },
        }
    )


@api_router.post("/airtable/create-record")
async def create_airtable_record(
    payload: AirtableRecordRequest,
    guard: GuardDependency,
    airtable: Annotated[AirtableClient, Depends(get_airtable_client)],
) -> dict:
    """Create a record, preferring the Airtable credential bound in the token.

    ``airtableApiKey`` is only used when the session carries no Airtable
    credential of its own.
    """
    session = _authorize(guard, payload)
    if not payload.base_id:
        raise InvalidRequestError("Base ID is required")
    claims = session.claims
    access_token = guard.select_credential(
        claims.airtable_access_token, payload.airtable_api_key, provider="Airtable"
    )

    fields = {
        "Name": f"{claims.name or claims.email or claims.user_id} - {claims.domain} "
        f"({date.today().isoformat()})",
        **payload.record_data,
    }
    try:
        record = await airtable.create_record(
            access_token,
            base_id=payload.base_id,
            table_name=payload.table_name,
            fields=fields,
        )
    except AirtableAPIError as exc:
        logger.warning("Airtable record creation failed (HTTP %s): %s", exc.status_code, exc)
        raise UpstreamServiceError(f"Failed to create Airtable record: {exc}") from exc

    logger.info("Created Airtable record for domain %s", claims.domain)
    return {
        "success": True,
        "record": {**record, "baseId": payload.base_id, "tableName": payload.table_name},
    }


__all__ = ["api_router", "router"]
