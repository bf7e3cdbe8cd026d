"""Listing models."""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field


class ListingStatus(str, Enum):
    """Publication status of a listing."""
    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"


# Columns the publication gate reads from the properties table
LISTING_FACT_COLUMNS = (
    "id",
    "status",
    "registry_number",
    "address",
    "address_number",
    "address_complement",
    "neighborhood",
    "city",
    "state",
    "postal_code",
    "price",
    "commission_percent",
    "authorization_started_at",
    "authorization_expires_at",
    "authorization_is_exclusive",
)


class Listing(BaseModel):
    """Real estate listing (properties row) as seen by the publication gate."""
    id: str = Field(..., description="Listing ID")
    status: Optional[str] = Field(None, description="draft, active or archived")
    registry_number: Optional[str] = Field(None, description="Property registry number")
    address: Optional[str] = Field(None, description="Street")
    address_number: Optional[str] = None
    address_complement: Optional[str] = None
    neighborhood: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    price: Any = Field(None, description="Sale price")
    commission_percent: Any = Field(None, description="Inline commission (%), legacy field")
    authorization_started_at: Optional[str] = None
    authorization_expires_at: Optional[str] = None
    authorization_is_exclusive: Optional[bool] = None
