"""Test helper functions."""

import json
from typing import Any, Dict, Iterable
from unittest.mock import MagicMock

from postgrest.exceptions import APIError

QUERY_METHODS = ("select", "eq", "in_", "or_", "is_", "order", "limit", "update")


def api_error(code: str, message: str = "query failed") -> APIError:
    """Build a PostgREST error as the client raises it."""
    return APIError({"message": message, "code": code, "hint": None, "details": None})


def schema_error(column: str = "status") -> APIError:
    return api_error("42703", f"column property_documents.{column} does not exist")


def query_result(rows: Iterable[dict] = (), count: int | None = None) -> MagicMock:
    rows = list(rows)
    return MagicMock(data=rows, count=len(rows) if count is None else count)


def build_query(responses: list) -> MagicMock:
    """Chainable query builder whose execute() plays back responses in order.

    A response is a list of rows, a prepared result, or an exception to raise.
    """
    query = MagicMock()
    for method in QUERY_METHODS:
        getattr(query, method).return_value = query
    query.execute.side_effect = [
        response if isinstance(response, (BaseException, MagicMock)) else query_result(response)
        for response in responses
    ]
    return query


class FakeSupabase:
    """Supabase client stand-in routing table() to scripted queries."""

    def __init__(self, tables: Dict[str, list]):
        self.queries = {name: build_query(list(responses)) for name, responses in tables.items()}

    def table(self, name: str) -> MagicMock:
        if name not in self.queries:
            raise AssertionError(f"unexpected table: {name}")
        return self.queries[name]

    def executions(self, name: str) -> int:
        return self.queries[name].execute.call_count if name in self.queries else 0


def create_vercel_request(
    method: str = "GET",
    query: Dict[str, str] = None,
    headers: Dict[str, str] = None,
    body: Any = None,
) -> Dict[str, Any]:
    """Create a Vercel request object for testing."""
    return {
        "method": method,
        "path": "/api/properties/publication",
        "headers": headers or {"content-type": "application/json"},
        "body": json.dumps(body) if isinstance(body, dict) else body,
        "query": query or {},
    }
