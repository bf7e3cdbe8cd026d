"""Authorization snapshot: the listing facts an owner signed off on."""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

TRUTHY_FLAGS = ("true", "1", "yes", "y", "on", "sim", "s")


def compact_text(value: Any) -> Optional[str]:
    """Trim a value to text, treating blanks as absent."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_decimal(value: Any) -> Optional[Decimal]:
    """Parse a numeric value, accepting a comma decimal separator."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, (int, float)):
        value = str(value)
    text = compact_text(value)
    if not text:
        return None
    try:
        parsed = Decimal(text.replace(",", "."))
    except InvalidOperation:
        return None
    return parsed if parsed.is_finite() else None


def parse_iso_date(value: Any) -> Optional[str]:
    """Reduce a date or timestamp to YYYY-MM-DD; unparseable text is kept as is."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = compact_text(value)
    if not text:
        return None
    try:
        return date.fromisoformat(text.split("T")[0].split(" ")[0]).isoformat()
    except ValueError:
        return text


def parse_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = compact_text(value)
    if not text:
        return False
    return text.lower() in TRUTHY_FLAGS


def _fold(value: Optional[str]) -> str:
    return (value or "").casefold()


class Address(BaseModel):
    """Listing address broken into its parts."""
    model_config = ConfigDict(frozen=True)

    street: Optional[str] = Field(None, description="Street name (properties.address)")
    number: Optional[str] = None
    complement: Optional[str] = None
    neighborhood: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def _compact(cls, value: Any) -> Optional[str]:
        return compact_text(value)

    @property
    def full_address(self) -> Optional[str]:
        parts = [
            self.street,
            self.number,
            self.complement,
            self.neighborhood,
            self.city,
            self.state,
            self.postal_code,
        ]
        joined = ", ".join(part for part in parts if part)
        return joined or None


class Snapshot(BaseModel):
    """Immutable fingerprint of the facts covered by an authorization."""
    model_config = ConfigDict(frozen=True)

    registry_number: Optional[str] = Field(None, description="Property registry (matricula) number")
    address: Address = Field(default_factory=Address)
    sale_price: Optional[Decimal] = None
    commission_percent: Optional[Decimal] = Field(None, description="Effective sale commission (%)")
    authorization_started_at: Optional[str] = Field(None, description="ISO date")
    authorization_expires_at: Optional[str] = Field(None, description="ISO date")
    authorization_is_exclusive: bool = False

    @field_validator("registry_number", mode="before")
    @classmethod
    def _normalize_registry(cls, value: Any) -> Optional[str]:
        return compact_text(value)

    @field_validator("sale_price", "commission_percent", mode="before")
    @classmethod
    def _normalize_number(cls, value: Any) -> Optional[Decimal]:
        return parse_decimal(value)

    @field_validator("authorization_started_at", "authorization_expires_at", mode="before")
    @classmethod
    def _normalize_date(cls, value: Any) -> Optional[str]:
        return parse_iso_date(value)

    @field_validator("authorization_is_exclusive", mode="before")
    @classmethod
    def _normalize_flag(cls, value: Any) -> bool:
        return parse_flag(value)

    @property
    def full_address(self) -> Optional[str]:
        return self.address.full_address

    def fingerprint(self) -> dict[str, Any]:
        """Comparable form of every tracked field."""
        return {
            "registry_number": _fold(self.registry_number),
            "full_address": _fold(self.full_address),
            "sale_price": self.sale_price,
            "commission_percent": self.commission_percent,
            "authorization_started_at": _fold(self.authorization_started_at),
            "authorization_expires_at": _fold(self.authorization_expires_at),
            "authorization_is_exclusive": self.authorization_is_exclusive,
        }

    @classmethod
    def from_stored(cls, data: Any) -> Optional["Snapshot"]:
        """Parse a snapshot persisted on a document instance.

        Older writers stored the address only as a joined ``full_address``
        string; it is kept whole in ``address.street`` so the joined form
        compares equal.
        """
        if not isinstance(data, dict):
            return None
        address = data.get("address")
        if isinstance(address, dict):
            parsed_address = Address(**{k: v for k, v in address.items() if k in Address.model_fields})
        else:
            parsed_address = Address(street=data.get("full_address") or address)
        return cls(
            registry_number=data.get("registry_number"),
            address=parsed_address,
            sale_price=data.get("sale_price"),
            commission_percent=data.get("commission_percent"),
            authorization_started_at=data.get("authorization_started_at"),
            authorization_expires_at=data.get("authorization_expires_at"),
            authorization_is_exclusive=data.get("authorization_is_exclusive"),
        )
