"""Signature state tracker - find the authoritative authorization document of a listing."""

from datetime import datetime, timezone
from typing import Iterable, Optional

from pydantic import ValidationError

from brokerage.models.authorization import SignatureState
from brokerage.models.document import DocumentInstance
from brokerage.services.supabase_client import SupabaseClient, execute_query
from brokerage.utils.config import AUTHORIZATION_TEMPLATE_CODES
from brokerage.utils.errors import SchemaAbsentError, SupabaseError
from brokerage.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

INSTANCE_FETCH_LIMIT = 20

INSTANCE_COLUMNS = "id, template_code, status, signed_at, updated_at, authorization_snapshot"

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def recency_key(instance: DocumentInstance) -> tuple:
    """Sort key for "most recent first" with reverse=True.

    Orders by signed_at, then updated_at, both descending; a missing
    timestamp ranks after any present one.
    """
    return (
        instance.signed_at is not None,
        instance.signed_at or _EPOCH,
        instance.updated_at is not None,
        instance.updated_at or _EPOCH,
    )


def sort_by_recency(instances: Iterable[DocumentInstance]) -> list[DocumentInstance]:
    return sorted(instances, key=recency_key, reverse=True)


def select_signature_state(instances: Iterable[DocumentInstance]) -> SignatureState:
    """Pick the authoritative signed instance, or the latest one for status reporting."""
    ordered = sort_by_recency(
        instance for instance in instances
        if instance.template_code in AUTHORIZATION_TEMPLATE_CODES
    )
    for instance in ordered:
        if instance.is_signed:
            return SignatureState(authoritative_signed=instance)
    latest: Optional[DocumentInstance] = ordered[0] if ordered else None
    return SignatureState(latest_pending=latest)


async def fetch_authorization_instances(property_id: str) -> list[DocumentInstance]:
    async with SupabaseClient() as client:
        result = execute_query(
            client.table("document_instances")
            .select(INSTANCE_COLUMNS)
            .eq("property_id", property_id)
            .in_("template_code", list(AUTHORIZATION_TEMPLATE_CODES))
            .order("signed_at", desc=True, nullsfirst=False)
            .order("updated_at", desc=True, nullsfirst=False)
            .limit(INSTANCE_FETCH_LIMIT),
            "load document instances",
        )
    try:
        return [DocumentInstance.model_validate(row) for row in result.data or []]
    except ValidationError as e:
        raise SupabaseError(f"Malformed document instance row: {e}") from e


async def find_signature_state(property_id: str) -> SignatureState:
    """
    Resolve the digital signature state of a listing.

    A document store that cannot be queried is reported as schema_absent,
    never as "no signed document". Any other storage failure raises.
    """
    try:
        instances = await fetch_authorization_instances(property_id)
    except SchemaAbsentError as e:
        logger.warning(
            "Document instances unavailable",
            property_id=property_id,
            code=e.code,
        )
        return SignatureState(schema_absent=True)

    state = select_signature_state(instances)
    logger.debug(
        "Signature state resolved",
        property_id=property_id,
        instances=len(instances),
        authoritative_id=state.authoritative_signed.id if state.authoritative_signed else None,
        latest_status=state.latest_pending.status if state.latest_pending else None,
    )
    return state
