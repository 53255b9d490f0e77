"""
Session and identity user models.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


EXPIRY_MARGIN = timedelta(seconds=30)
MFP_DOMAIN = "MFP"


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ProfileEmail(BaseModel):
    email: str = ""
    verified: bool = False
    primary: bool = False


class ProfileEmails(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_email_verified: bool = Field(default=False, alias="isEmailVerified")
    emails: List[ProfileEmail] = Field(default_factory=list)


class ProfileLocation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    postal_code: Optional[str] = Field(default=None, alias="postalCode")
    country: Optional[str] = None


class UserProfile(BaseModel):
    """Profile block of an identity user."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    full_name: Optional[str] = Field(default=None, alias="fullName")
    display_name: Optional[str] = Field(default=None, alias="displayName")
    first_name: str = Field(default="", alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    profile_picture_uri: Optional[str] = Field(default=None, alias="profilePictureUri")
    birthdate: Optional[str] = None
    gender: Optional[str] = None
    weight: Optional[float] = None
    # Inches
    height: Optional[float] = None
    locale: Optional[str] = None
    location: Optional[ProfileLocation] = None

    @property
    def height_in_cm(self) -> Optional[float]:
        if self.height is None:
            return None
        return self.height * 2.54


class AccountLink(BaseModel):
    """Link between the identity user and a domain-specific account."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    user_id: Optional[Union[int, str]] = Field(default=None, alias="userId")
    domain: str = ""
    domain_user_id: str = Field(default="", alias="domainUserId")


class IdentityUser(BaseModel):
    """Response of ``GET /users/{id}`` with profile and emails."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    user_id: Optional[Union[int, str]] = Field(default=None, alias="userId")
    domain: Optional[str] = None
    region: Optional[str] = None
    status: Optional[str] = None
    profile: UserProfile = Field(default_factory=UserProfile)
    profile_emails: ProfileEmails = Field(default_factory=ProfileEmails, alias="profileEmails")
    account_links: List[AccountLink] = Field(default_factory=list, alias="accountLinks")

    def domain_user_id(self, domain: str = MFP_DOMAIN) -> Optional[str]:
        """Return the first linked account id for ``domain``."""
        for link in self.account_links:
            if link.domain == domain:
                return link.domain_user_id or None
        return None

    def primary_email(self) -> str:
        emails = self.profile_emails.emails
        for entry in emails:
            if entry.primary:
                return entry.email
        return emails[0].email if emails else ""


@dataclass(frozen=True)
class Session:
    """An authenticated user session.

    Sessions are values: a refresh produces a new ``Session`` rather than
    changing this one.
    """

    user_id: str
    domain_user_id: str
    email: str
    first_name: str
    last_name: str
    access_token: str
    refresh_token: str
    id_token: str
    expires_at: datetime
    data: str = ""

    def __post_init__(self):
        if not self.domain_user_id:
            raise ValueError("Session requires a domain user id")

    def __repr__(self) -> str:
        return (
            f"Session(user_id={self.user_id!r}, domain_user_id={self.domain_user_id!r}, "
            f"expires_at={self.expires_at.isoformat()!r})"
        )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """True once the session is within the expiry margin."""
        now = as_utc(now or datetime.now(timezone.utc))
        return now > as_utc(self.expires_at) - EXPIRY_MARGIN

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["expires_at"] = self.expires_at.isoformat()
        return data
