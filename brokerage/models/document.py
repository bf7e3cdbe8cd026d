"""Authorization document models (digital instances and legacy files)."""

from enum import Enum
from typing import Optional, Any
from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, Field, field_validator

from brokerage.models.snapshot import Snapshot


class DocumentStatus(str, Enum):
    """Lifecycle of a document instance in the e-signature workflow."""
    DRAFT = "draft"
    SENT = "sent"
    VIEWED = "viewed"
    SIGNED = "signed"
    REFUSED = "refused"
    VOIDED = "voided"
    ERROR = "error"


class DocumentInstance(BaseModel):
    """Digitally tracked authorization document (document_instances row)."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Document instance ID")
    template_code: str = Field(..., description="Authorization template code, e.g. AUT_VENDA_V1")
    status: str = Field(..., description="draft, sent, viewed, signed, refused, voided or error")
    signed_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    authorization_snapshot: Optional[Snapshot] = Field(
        None,
        description="Listing facts captured for signature; None for rows predating capture"
    )

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: Any) -> str:
        return str(value or "").strip().lower()

    @field_validator("signed_at", "updated_at", mode="after")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @field_validator("authorization_snapshot", mode="before")
    @classmethod
    def _parse_snapshot(cls, value: Any) -> Optional[Snapshot]:
        if isinstance(value, Snapshot):
            return value
        return Snapshot.from_stored(value)

    @property
    def is_signed(self) -> bool:
        return self.status == DocumentStatus.SIGNED.value


class LegacyDocument(BaseModel):
    """Pre-digital authorization file (property_documents or documents row)."""
    id: str = Field(..., description="Document ID")
    doc_type: Optional[str] = Field(None, description="Document type classifier")
    title: Optional[str] = Field(None, description="Free-text title")
    status: Optional[str] = Field(None, description="Only present on newer schema generations")

    @property
    def has_status_field(self) -> bool:
        """True when the row carried a status column at all, even a null one."""
        return "status" in self.model_fields_set
