"""
Domain models for in-flight OAuth transactions and session token claims.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class OAuthTransactionState(BaseModel):
    """Context captured when a chained flow starts and read back on callback.

    Serialized with the wire names ``token``, ``domain``, ``codeVerifier`` and
    ``timestamp`` (Unix milliseconds).
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    domain: str
    session_token: Optional[str] = Field(None, alias="token")
    code_verifier: Optional[str] = Field(None, alias="codeVerifier")
    timestamp: int = Field(..., description="Creation time in Unix milliseconds.")

    def age_seconds(self, now: float) -> float:
        return now - self.timestamp / 1000

    def is_expired(self, *, now: float, ttl_seconds: int) -> bool:
        """Return True once the record is older than ``ttl_seconds``."""
        return self.age_seconds(now) > ttl_seconds

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "OAuthTransactionState":
        return cls.model_validate(record)


class SessionClaims(BaseModel):
    """Identity and provider credentials carried inside a session token."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    user_id: str = Field(..., alias="userId")
    email: Optional[str] = None
    name: Optional[str] = None
    picture: Optional[str] = None
    domain: str
    google_access_token: Optional[str] = Field(None, alias="googleAccessToken")
    google_refresh_token: Optional[str] = Field(None, alias="googleRefreshToken")
    airtable_access_token: Optional[str] = Field(None, alias="airtableAccessToken")
    airtable_refresh_token: Optional[str] = Field(None, alias="airtableRefreshToken")
    iat: Optional[int] = None
    exp: Optional[int] = None

    def to_payload(self) -> Dict[str, Any]:
        """Flat JSON object using the wire claim names."""
        return self.model_dump(by_alias=True)

    def public_profile(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "email": self.email,
            "name": self.name,
            "picture": self.picture,
            "domain": self.domain,
        }


__all__ = ["OAuthTransactionState", "SessionClaims"]
