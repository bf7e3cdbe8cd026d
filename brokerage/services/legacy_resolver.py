"""Legacy fallback resolver - authorization evidence predating digital signatures.

Three storage shapes are tried in order:

1. ``property_documents`` rows carrying a ``status`` column. A status
   observed on any row makes the answer final.
2. ``property_documents`` without the status column: any row counts.
3. ``document_links`` -> ``documents`` whose type or title marks an
   authorization.

A missing table or column moves on to the next shape. Other storage
errors propagate.
"""

from enum import Enum

from pydantic import ValidationError

from brokerage.models.document import LegacyDocument
from brokerage.services.supabase_client import SupabaseClient, execute_query
from brokerage.utils.errors import SchemaAbsentError, SupabaseError
from brokerage.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

AUTHORIZATION_DOC_TYPE = "authorization"
VALID_LEGACY_STATUSES = frozenset({"validated", "valid", "approved", "active", "signed"})
AUTHORIZATION_TITLE_TOKENS = ("autoriza", "authoriz")
LEGACY_FETCH_LIMIT = 20


class StatusCheck(str, Enum):
    """Outcome of the status-aware legacy lookup."""
    VALID = "valid"
    INVALID = "invalid"
    EMPTY = "empty"
    AMBIGUOUS = "ambiguous"


async def check_status_documents(property_id: str) -> StatusCheck:
    """Tier 1: authorization rows judged by their status column."""
    async with SupabaseClient() as client:
        try:
            result = execute_query(
                client.table("property_documents")
                .select("id, status")
                .eq("property_id", property_id)
                .eq("doc_type", AUTHORIZATION_DOC_TYPE)
                .limit(LEGACY_FETCH_LIMIT),
                "load property documents with status",
            )
        except SchemaAbsentError as e:
            logger.info("Legacy documents have no status column", property_id=property_id, code=e.code)
            return StatusCheck.AMBIGUOUS

    try:
        documents = [LegacyDocument.model_validate(row) for row in result.data or []]
    except ValidationError as e:
        raise SupabaseError(f"Malformed property document row: {e}") from e
    if not documents:
        return StatusCheck.EMPTY
    if not any(doc.has_status_field for doc in documents):
        return StatusCheck.AMBIGUOUS
    if any((doc.status or "").strip().lower() in VALID_LEGACY_STATUSES for doc in documents):
        return StatusCheck.VALID
    return StatusCheck.INVALID


async def check_plain_documents(property_id: str) -> bool:
    """Tier 2: any authorization row counts, whatever its status."""
    async with SupabaseClient() as client:
        try:
            result = execute_query(
                client.table("property_documents")
                .select("id")
                .eq("property_id", property_id)
                .eq("doc_type", AUTHORIZATION_DOC_TYPE)
                .limit(1),
                "load property documents",
            )
        except SchemaAbsentError as e:
            logger.info("Legacy documents table unavailable", property_id=property_id, code=e.code)
            return False
    return bool(result.data)


def authorization_filter() -> str:
    """PostgREST or-filter matching authorization documents by type or title."""
    clauses = [f"doc_type.eq.{AUTHORIZATION_DOC_TYPE}"]
    clauses.extend(f"title.ilike.*{token}*" for token in AUTHORIZATION_TITLE_TOKENS)
    return ",".join(clauses)


async def check_linked_documents(property_id: str) -> bool:
    """Tier 3: generic documents linked to the listing."""
    async with SupabaseClient() as client:
        try:
            links = execute_query(
                client.table("document_links")
                .select("document_id")
                .eq("entity_type", "property")
                .eq("entity_id", property_id)
                .limit(LEGACY_FETCH_LIMIT),
                "load document links",
            )
            document_ids = [row["document_id"] for row in links.data or [] if row.get("document_id")]
            if not document_ids:
                return False

            documents = execute_query(
                client.table("documents")
                .select("id")
                .in_("id", document_ids)
                .or_(authorization_filter())
                .limit(1),
                "load linked documents",
            )
        except SchemaAbsentError as e:
            logger.info("Linked documents unavailable", property_id=property_id, code=e.code)
            return False
    return bool(documents.data)


async def legacy_authorization_exists(property_id: str) -> bool:
    """Whether a legacy authorization document is on file for the listing."""
    status_check = await check_status_documents(property_id)
    if status_check is StatusCheck.VALID:
        logger.info("Legacy authorization found", property_id=property_id, tier=1)
        return True
    if status_check is StatusCheck.INVALID:
        logger.info("Legacy authorization rows are not valid", property_id=property_id, tier=1)
        return False

    # An empty tier 1 means tier 2 has nothing either
    if status_check is StatusCheck.AMBIGUOUS and await check_plain_documents(property_id):
        logger.info("Legacy authorization found", property_id=property_id, tier=2)
        return True

    found = await check_linked_documents(property_id)
    logger.info(
        "Legacy authorization lookup finished",
        property_id=property_id,
        tier=3,
        found=found,
    )
    return found
