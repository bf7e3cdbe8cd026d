"""Fact extractor - build the current authorization snapshot of a listing."""

from decimal import Decimal
from typing import Optional

from pydantic import ValidationError

from brokerage.models.listing import Listing, LISTING_FACT_COLUMNS
from brokerage.models.snapshot import Address, Snapshot, parse_decimal
from brokerage.services.supabase_client import SupabaseClient, execute_query
from brokerage.utils.config import get_default_commission_percent
from brokerage.utils.errors import NotFoundError, SchemaAbsentError, SupabaseError
from brokerage.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)


async def get_listing(property_id: str) -> Listing:
    """Load the listing fields tracked by authorizations."""
    async with SupabaseClient() as client:
        result = execute_query(
            client.table("properties")
            .select(",".join(LISTING_FACT_COLUMNS))
            .eq("id", property_id)
            .limit(1),
            "load property",
        )
    if not result.data:
        raise NotFoundError(f"Property not found: {property_id}")
    try:
        return Listing.model_validate(result.data[0])
    except ValidationError as e:
        raise SupabaseError(f"Malformed property row: {e}") from e


async def get_commission_setting(property_id: str) -> Optional[Decimal]:
    """Sale commission from the dedicated settings record, if there is one."""
    async with SupabaseClient() as client:
        try:
            result = execute_query(
                client.table("property_commission_settings")
                .select("sale_commission_percent")
                .eq("property_id", property_id)
                .limit(1),
                "load commission settings",
            )
        except SchemaAbsentError as e:
            logger.info(
                "Commission settings unavailable, using listing commission",
                property_id=property_id,
                code=e.code,
            )
            return None
    if not result.data:
        return None
    return parse_decimal(result.data[0].get("sale_commission_percent"))


def resolve_commission_percent(listing: Listing, setting: Optional[Decimal]) -> Decimal:
    """Settings record, then the listing's inline field, then the default."""
    if setting is not None:
        return setting
    inline = parse_decimal(listing.commission_percent)
    if inline is not None:
        return inline
    return get_default_commission_percent()


def build_snapshot(listing: Listing, commission_percent: Decimal) -> Snapshot:
    return Snapshot(
        registry_number=listing.registry_number,
        address=Address(
            street=listing.address,
            number=listing.address_number,
            complement=listing.address_complement,
            neighborhood=listing.neighborhood,
            city=listing.city,
            state=listing.state,
            postal_code=listing.postal_code,
        ),
        sale_price=listing.price,
        commission_percent=commission_percent,
        authorization_started_at=listing.authorization_started_at,
        authorization_expires_at=listing.authorization_expires_at,
        authorization_is_exclusive=listing.authorization_is_exclusive,
    )


async def extract_snapshot(property_id: str) -> Snapshot:
    """
    Compute the current snapshot of a listing.

    Raises NotFoundError when the listing does not exist.
    """
    listing = await get_listing(property_id)
    setting = await get_commission_setting(property_id)
    commission = resolve_commission_percent(listing, setting)
    return build_snapshot(listing, commission)
