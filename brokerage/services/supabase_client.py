"""Supabase client wrapper with async context manager support."""

import os
from typing import Optional, Any
from supabase import create_client, Client
from supabase.client import ClientOptions
from postgrest.exceptions import APIError
from brokerage.utils.errors import BrokerageError, NotFoundError, SchemaAbsentError, SupabaseError
import logging

logger = logging.getLogger(__name__)

# Postgres / PostgREST codes meaning the queried table, column or relationship does not exist
SCHEMA_ABSENT_CODES = frozenset({
    "42P01",     # undefined_table
    "42703",     # undefined_column
    "PGRST200",  # relationship not found in schema cache
    "PGRST204",  # column not found in schema cache
    "PGRST205",  # table not found in schema cache
})

# Global client instance (singleton pattern)
_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """Get or create Supabase client singleton."""
    global _client

    if _client is None:
        url = os.environ.get("SUPABASE_URL")
        key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")

        if not url or not key:
            raise SupabaseError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")

        options = ClientOptions(
            auto_refresh_token=False,
            persist_session=False,
        )

        _client = create_client(url, key, options)
        logger.info("Supabase client initialized", extra={"url": url})

    return _client


class SupabaseClient:
    """Async context manager for Supabase client."""

    def __init__(self):
        self.client: Optional[Client] = None

    async def __aenter__(self) -> Client:
        self.client = get_supabase_client()
        return self.client

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type and not issubclass(exc_type, SchemaAbsentError):
            logger.error(
                "Supabase operation error",
                extra={"error": str(exc_val), "type": exc_type.__name__}
            )
        return False


def classify_api_error(error: APIError, operation: str) -> BrokerageError:
    """Map a PostgREST error to a typed error by its code."""
    code = str(error.code or "")
    if code in SCHEMA_ABSENT_CODES:
        return SchemaAbsentError(f"Schema absent while trying to {operation}: {error.message}", code=code)
    return SupabaseError(f"Failed to {operation}: {error.message} (code={code or 'n/a'})")


def execute_query(query: Any, operation: str) -> Any:
    """Execute a PostgREST query builder, raising typed errors on failure."""
    try:
        return query.execute()
    except APIError as e:
        raise classify_api_error(e, operation) from e
    except Exception as e:
        raise SupabaseError(f"Failed to {operation}: {e}") from e


# Media and listing status operations used by the publication gate
async def count_property_media(property_id: str) -> int:
    """Count media records attached to a listing."""
    async with SupabaseClient() as client:
        result = execute_query(
            client.table("property_media")
            .select("id", count="exact", head=True)
            .eq("property_id", property_id),
            "count property media",
        )
        if isinstance(result.count, int):
            return result.count
        return len(result.data) if result.data else 0


async def update_property_status(property_id: str, status: str) -> dict:
    """Write the publication status of a listing."""
    async with SupabaseClient() as client:
        result = execute_query(
            client.table("properties").update({"status": status}).eq("id", property_id),
            "update property status",
        )
        if result.data and len(result.data) > 0:
            return result.data[0]
        raise NotFoundError(f"Property not found: {property_id}")
