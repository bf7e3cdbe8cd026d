"""Property publication endpoint (Vercel serverless function).

GET  ?property_id=...                      -> authorization state and publish checklist
POST ?property_id=...&action=publish       -> publish (admin/gestor only)
POST ?property_id=...&action=unpublish     -> back to draft (admin/gestor only)

The acting user is identified by the ``x-actor-id`` header.
"""

import json
import asyncio

from brokerage.services.actor_roles import resolve_actor_role
from brokerage.services.publication_gate import PublicationGate
from brokerage.utils.errors import (
    NotFoundError,
    PermissionDeniedError,
    SchemaAbsentError,
    SupabaseError,
)
from brokerage.utils.logging import correlation_context, get_structured_logger, setup_logging
from brokerage.utils.logging_config import LoggingConfig

setup_logging()
logger = get_structured_logger(__name__)

ACTIONS = ("publish", "unpublish")


def _response(status_code: int, body: dict) -> dict:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body, default=str)
    }


def _header(headers: dict, name: str) -> str:
    for key, value in (headers or {}).items():
        if key.lower() == name.lower():
            return value or ""
    return ""


async def _describe(gate: PublicationGate, property_id: str) -> dict:
    decision = await gate.can_publish(property_id)
    return {
        "property_id": property_id,
        "allowed": decision.allowed,
        "reasons": decision.reasons,
        "media_count": decision.media_count,
        "authorization": decision.authorization.model_dump(mode="json"),
    }


async def _change_status(gate: PublicationGate, property_id: str, action: str, actor_id: str) -> dict:
    actor_role = await resolve_actor_role(actor_id)
    if action == "publish":
        result = await gate.publish(property_id, actor_role)
    else:
        result = await gate.unpublish(property_id, actor_role)
    return result.model_dump(mode="json")


def handler(request):
    """Handle a publication request."""
    headers = request.get("headers", {}) or {}
    query_params = request.get("query", {}) or {}
    method = (request.get("method") or "GET").upper()
    property_id = (query_params.get("property_id") or "").strip()
    action = (query_params.get("action") or "").strip().lower()

    correlation_id = _header(headers, LoggingConfig.LOG_CORRELATION_ID_HEADER) or None
    with correlation_context(correlation_id):
        if not property_id:
            return _response(400, {"error": "property_id is required"})

        gate = PublicationGate()
        if method == "GET":
            work = _describe(gate, property_id)
        elif method == "POST":
            if action not in ACTIONS:
                return _response(400, {"error": f"action must be one of {', '.join(ACTIONS)}"})
            work = _change_status(gate, property_id, action, _header(headers, "x-actor-id"))
        else:
            return _response(405, {"error": "method not allowed"})

        try:
            body = asyncio.run(work)
        except PermissionDeniedError as e:
            return _response(403, {"error": str(e)})
        except NotFoundError as e:
            return _response(404, {"error": str(e)})
        except SchemaAbsentError as e:
            logger.error("Storage schema unavailable", property_id=property_id, code=e.code)
            return _response(503, {"error": str(e)})
        except SupabaseError as e:
            logger.error("Storage failure", property_id=property_id, error=str(e), exc_info=True)
            return _response(500, {"error": str(e)})
        except Exception as e:
            logger.error(f"Error processing publication request: {e}", property_id=property_id, exc_info=True)
            return _response(500, {"error": "internal error"})

        if method == "POST" and not body.get("success"):
            return _response(409, body)
        return _response(200, body)
