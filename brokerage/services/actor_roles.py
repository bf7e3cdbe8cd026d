"""Actor role resolution from the profiles table."""

import logging
from typing import Optional

from brokerage.services.supabase_client import SupabaseClient, execute_query
from brokerage.utils.config import ELEVATED_ROLES

logger = logging.getLogger(__name__)


def is_elevated_role(role: Optional[str]) -> bool:
    """Only admins and managers may publish or unpublish listings."""
    return (role or "").strip().lower() in ELEVATED_ROLES


async def resolve_actor_role(user_id: str) -> Optional[str]:
    """
    Role of an active user.

    Returns None for unknown or deactivated users.
    """
    if not user_id:
        return None

    async with SupabaseClient() as client:
        result = execute_query(
            client.table("profiles").select("role, is_active").eq("id", user_id).limit(1),
            "load actor profile",
        )

    if not result.data:
        logger.warning("Actor profile not found", extra={"user_id": user_id})
        return None

    profile = result.data[0]
    if not profile.get("is_active"):
        logger.info("Actor profile is inactive", extra={"user_id": user_id})
        return None
    return profile.get("role")
