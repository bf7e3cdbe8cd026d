"""Publication gate results."""

from enum import Enum
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from brokerage.models.document import DocumentInstance


class AuthorizationSource(str, Enum):
    """Where the authorization evidence came from."""
    DIGITAL = "digital"
    LEGACY = "legacy"
    NONE = "none"


REASON_DIGITAL_REQUIRED = "digital authorization required"
REASON_DATA_CHANGED = "data changed after signature — resend required"
REASON_NOT_SIGNED = "not yet signed"
REASON_NOT_FOUND = "authorization not found"
REASON_MEDIA_REQUIRED = "at least one media item is required"

# Reported as the state status when the document store could not be queried
STATUS_UNKNOWN = "unknown"


class SignatureState(BaseModel):
    """Outcome of looking up a listing's authorization document instances."""
    model_config = ConfigDict(frozen=True)

    authoritative_signed: Optional[DocumentInstance] = None
    latest_pending: Optional[DocumentInstance] = None
    schema_absent: bool = False


class AuthorizationState(BaseModel):
    """Derived authorization status of a listing; never persisted."""
    model_config = ConfigDict(frozen=True)

    has_authorization: bool = False
    source: AuthorizationSource = AuthorizationSource.NONE
    status: Optional[str] = Field(None, description="Status of the authoritative or latest instance")
    document_instance_id: Optional[str] = None
    signed_at: Optional[datetime] = None
    data_changed_after_signature: bool = False
    reason: Optional[str] = None


class PublicationDecision(BaseModel):
    """Whether a listing may be published, and why not."""
    allowed: bool
    reasons: list[str] = Field(default_factory=list)
    media_count: int = 0
    authorization: AuthorizationState


class PublishResult(BaseModel):
    """Outcome of a publish/unpublish request."""
    success: bool
    property_id: str
    status: Optional[str] = Field(None, description="Status written to the listing, if any")
    reasons: list[str] = Field(default_factory=list)
