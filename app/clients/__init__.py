"""Expose constructed client wrappers."""

from .airtable import AirtableAPIError, AirtableClient
from .airtable_auth import AirtableOAuthClient
from .dynamodb import DynamoDBStateStore
from .google_auth import GoogleOAuthClient, OAuthStateEncoder
from .google_sheets import GoogleSheetsClient
from .sqlite_store import SQLiteStateStore
from .state_store import InMemoryStateStore, StateStore, TransactionNotFoundError

__all__ = [
    "AirtableAPIError",
    "AirtableClient",
    "AirtableOAuthClient",
    "DynamoDBStateStore",
    "GoogleOAuthClient",
    "GoogleSheetsClient",
    "InMemoryStateStore",
    "OAuthStateEncoder",
    "SQLiteStateStore",
    "StateStore",
    "TransactionNotFoundError",
]
